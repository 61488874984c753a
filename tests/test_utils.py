"""Tests for host-list loading and small CLI helpers."""

import pytest

from adminkit.exceptions import ConfigError
from adminkit.models import HostRecord
from adminkit.utils import format_exception, load_hosts, parse_duration, sanitize_filename


@pytest.mark.parametrize(
    "value,expected",
    [("30", 30.0), ("45s", 45.0), ("1.5m", 90.0), ("500ms", 0.5), ("1h", 3600.0), (" 2M ", 120.0)],
)
def test_parse_duration(value, expected):
    assert parse_duration(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", ["", "abc", "-5", "0", "10d"])
def test_parse_duration_rejects(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_load_hosts_with_header(tmp_path):
    path = tmp_path / "hosts.csv"
    path.write_text("Host,Site\nsrv01,norte\nsrv02,sur\n", encoding="utf-8")
    assert load_hosts(path) == [HostRecord("srv01", 0), HostRecord("srv02", 1)]


def test_load_hosts_recognises_export_columns(tmp_path):
    """AD exports carry a BOM and a ComputerName column."""
    path = tmp_path / "ad.csv"
    path.write_text("\ufeffOU,ComputerName\nServers,SRV01\nServers,SRV02\n", encoding="utf-8")
    assert [record.host for record in load_hosts(path)] == ["SRV01", "SRV02"]


def test_load_hosts_custom_column(tmp_path):
    path = tmp_path / "inventory.csv"
    path.write_text("Equipo,Ip\nsrv01,10.0.0.1\nsrv02,10.0.0.2\n", encoding="utf-8")
    assert [record.host for record in load_hosts(path, column="ip")] == ["10.0.0.1", "10.0.0.2"]

    with pytest.raises(ConfigError):
        load_hosts(path, column="Missing")


def test_load_hosts_plain_list(tmp_path):
    path = tmp_path / "hosts.txt"
    path.write_text("# servidores\nsrv01\n\nSRV01\nsrv02\n  srv03  \n", encoding="utf-8")
    hosts = load_hosts(path)
    assert [record.host for record in hosts] == ["srv01", "srv02", "srv03"]
    assert [record.index for record in hosts] == [0, 1, 2]


def test_load_hosts_empty_and_missing(tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("\n\n", encoding="utf-8")
    assert load_hosts(empty) == []

    with pytest.raises(ConfigError):
        load_hosts(tmp_path / "missing.csv")


def test_sanitize_filename():
    assert sanitize_filename("srv01.corp/local") == "srv01.corp_local"
    assert sanitize_filename("..") == "host"


def test_format_exception():
    assert format_exception(ValueError("bad")) == "ValueError: bad"
