from __future__ import annotations

import logging
import shlex
import socket
import subprocess
import tempfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .exceptions import ProbeError, ProbeTimeout
from .parsers import extract_host_status
from .utils import sanitize_filename

logger = logging.getLogger(__name__)

WINRM_HTTP_PORT = 5985
# Extra seconds granted to the nmap process on top of --host-timeout.
PROCESS_GRACE = 5.0


@dataclass(slots=True)
class ScanOutputs:
    base_dir: Path
    xml_path: Path


def _create_output_paths(prefix: str) -> ScanOutputs:
    temp_dir = Path(tempfile.mkdtemp(prefix="adminkit-"))
    return ScanOutputs(base_dir=temp_dir, xml_path=temp_dir / f"{prefix}.xml")


class NmapRunner:
    """Reachability check backed by an ``nmap -sn`` host discovery."""

    def __init__(self, binary: str = "nmap") -> None:
        self.binary = binary

    def __call__(self, target: str, timeout: float) -> bool:
        return self.ping_scan(target, timeout)

    def _run(self, args: Sequence[str], timeout: float) -> subprocess.CompletedProcess:
        command = [self.binary, *args]
        logger.debug("Nmap cmd: %s", " ".join(shlex.quote(part) for part in command))
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ProbeTimeout(f"nmap no respondio en {timeout:.0f}s") from exc
        except FileNotFoundError as exc:
            raise ProbeError(f"No se encontro el ejecutable '{self.binary}'") from exc

        if result.returncode != 0:
            logger.error("Error ejecutando nmap (%s): %s", result.returncode, result.stderr.strip())
            raise ProbeError(f"nmap finalizo con codigo {result.returncode}: {result.stderr.strip()}")
        if result.stderr:
            logger.debug("STDERR nmap: %s", result.stderr.strip())
        return result

    def ping_scan(self, target: str, timeout: float) -> bool:
        outputs = _create_output_paths(f"{sanitize_filename(target)}_ping")
        args = [
            "-sn",
            "-n",
            "--host-timeout",
            f"{max(int(timeout), 1)}s",
            "-oX",
            str(outputs.xml_path),
            target,
        ]
        try:
            self._run(args, timeout=timeout + PROCESS_GRACE)
            try:
                status = extract_host_status(outputs.xml_path)
            except (ET.ParseError, FileNotFoundError) as exc:
                raise ProbeError(f"Reporte de nmap ilegible para {target}: {exc}") from exc
        finally:
            self._cleanup_temp(outputs)

        if status is None:
            logger.debug("[%s] Estado desconocido en el ping scan; se considera inalcanzable.", target)
        return status is True

    def _cleanup_temp(self, outputs: ScanOutputs) -> None:
        try:
            if outputs.xml_path.exists():
                outputs.xml_path.unlink()
            if outputs.base_dir.exists():
                outputs.base_dir.rmdir()
        except OSError as exc:
            logger.debug("No se pudo eliminar temporal: %s", exc)


def tcp_reachable(target: str, timeout: float, port: int = WINRM_HTTP_PORT) -> bool:
    """Reachability check that opens a TCP connection to the WinRM port."""
    try:
        with socket.create_connection((target, port), timeout=timeout):
            return True
    except socket.timeout as exc:
        raise ProbeTimeout(f"Sin respuesta en {target}:{port} tras {timeout:.0f}s") from exc
    except OSError as exc:
        logger.debug("[%s] Conexion a puerto %d fallida: %s", target, port, exc)
        return False
