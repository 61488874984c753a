"""Tests for reachability checks (nmap and TCP connect)."""

import socket
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from adminkit.exceptions import ProbeError, ProbeTimeout
from adminkit.nmap_runner import NmapRunner, tcp_reachable


def _fake_nmap(state, returncode=0):
    def run(command, **kwargs):
        xml_path = Path(command[command.index("-oX") + 1])
        xml_path.write_text(
            f'<?xml version="1.0"?><nmaprun><host><status state="{state}"/></host></nmaprun>',
            encoding="utf-8",
        )
        return subprocess.CompletedProcess(command, returncode, stdout="", stderr="")

    return run


def test_ping_scan_up():
    with patch("adminkit.nmap_runner.subprocess.run", side_effect=_fake_nmap("up")) as run:
        assert NmapRunner()("srv01", 10) is True
    command = run.call_args.args[0]
    assert command[:2] == ["nmap", "-sn"]
    assert "--host-timeout" in command
    assert command[-1] == "srv01"


def test_ping_scan_down_and_cleanup():
    with patch("adminkit.nmap_runner.subprocess.run", side_effect=_fake_nmap("down")) as run:
        assert NmapRunner().ping_scan("srv02", 10) is False
    xml_path = Path(run.call_args.args[0][run.call_args.args[0].index("-oX") + 1])
    assert not xml_path.exists()
    assert not xml_path.parent.exists()


def test_ping_scan_timeout():
    with patch(
        "adminkit.nmap_runner.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd="nmap", timeout=1),
    ):
        with pytest.raises(ProbeTimeout):
            NmapRunner().ping_scan("srv03", 1)


def test_ping_scan_nonzero_exit():
    with patch("adminkit.nmap_runner.subprocess.run", side_effect=_fake_nmap("up", returncode=1)):
        with pytest.raises(ProbeError):
            NmapRunner().ping_scan("srv04", 5)


def test_ping_scan_missing_binary():
    with patch("adminkit.nmap_runner.subprocess.run", side_effect=FileNotFoundError("nmap")):
        with pytest.raises(ProbeError):
            NmapRunner(binary="nmap-missing").ping_scan("srv05", 5)


def test_tcp_reachable_connects():
    with patch("adminkit.nmap_runner.socket.create_connection", return_value=MagicMock()) as connect:
        assert tcp_reachable("srv01", 3, port=5986) is True
    connect.assert_called_once_with(("srv01", 5986), timeout=3)


def test_tcp_reachable_refused():
    with patch("adminkit.nmap_runner.socket.create_connection", side_effect=ConnectionRefusedError()):
        assert tcp_reachable("srv01", 3) is False


def test_tcp_reachable_timeout():
    with patch("adminkit.nmap_runner.socket.create_connection", side_effect=socket.timeout("timed out")):
        with pytest.raises(ProbeTimeout):
            tcp_reachable("srv01", 3)
