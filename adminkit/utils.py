from __future__ import annotations

import csv
import logging
import re
import signal
import sys
from pathlib import Path
from threading import Event, Lock
from typing import List, Optional, Sequence

from .exceptions import ConfigError
from .models import HostRecord

HOST_COLUMNS = ("host", "hostname", "computername", "name", "dnshostname", "ipaddress")

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

_INTERRUPT_LOCK = Lock()
_INTERRUPT_EVENT: Optional[Event] = None


class _ColorFormatter(logging.Formatter):
    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str, datefmt: Optional[str], use_color: bool) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if self.use_color and record.levelno in self.COLORS:
            color = self.COLORS[record.levelno]
            original_levelname = record.levelname
            record.levelname = f"{color}{original_levelname}{self.RESET}"
            try:
                return super().format(record)
            finally:
                record.levelname = original_levelname
        return super().format(record)


def configure_logging(level: str = "info") -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger()
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    formatter = _ColorFormatter(
        fmt="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        use_color=handler.stream.isatty(),
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def sanitize_filename(value: str) -> str:
    safe = "".join(ch if ch.isalnum() or ch in ("-", "_", ".") else "_" for ch in value)
    return safe.strip("._") or "host"


def parse_duration(value: str) -> float:
    """Parse ``30``, ``30s``, ``1.5m``, ``500ms`` or ``1h`` into seconds."""
    match = _DURATION_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Duracion invalida: {value!r}")
    amount, unit = match.groups()
    seconds = float(amount) * _DURATION_UNITS[(unit or "s").lower()]
    if seconds <= 0:
        raise ValueError(f"La duracion debe ser mayor que cero: {value!r}")
    return seconds


def _host_column(header: Sequence[str], column: Optional[str]) -> Optional[int]:
    normalized = [cell.strip().lower() for cell in header]
    if column:
        try:
            return normalized.index(column.strip().lower())
        except ValueError:
            raise ConfigError(f"La columna '{column}' no existe en la lista de hosts.") from None
    for candidate in HOST_COLUMNS:
        if candidate in normalized:
            return normalized.index(candidate)
    return None


def load_hosts(path: Path, column: Optional[str] = None) -> List[HostRecord]:
    if not path.exists():
        raise ConfigError(f"No existe el archivo de hosts: {path}")
    try:
        text = path.read_text(encoding="utf-8-sig", errors="ignore")
    except OSError as exc:
        raise ConfigError(f"No se pudo leer el archivo de hosts {path}: {exc}") from exc

    rows = [row for row in csv.reader(text.splitlines()) if any(cell.strip() for cell in row)]
    if not rows:
        return []

    index = _host_column(rows[0], column)
    # Without a recognised header the file is a plain list, one host per line.
    data = rows if index is None else rows[1:]
    index = index or 0

    hosts: List[HostRecord] = []
    seen = set()
    for row in data:
        if index >= len(row):
            continue
        value = row[index].strip()
        if not value or value.startswith("#"):
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        hosts.append(HostRecord(host=value, index=len(hosts)))
    return hosts


def _signal_handler(signum, frame):  # type: ignore[override]
    assert _INTERRUPT_EVENT is not None  # configurado en setup_interrupt_handling
    with _INTERRUPT_LOCK:
        if _INTERRUPT_EVENT.is_set():
            print("\n[!] Interrupcion repetida. Finalizando inmediatamente.", file=sys.stderr)
            raise SystemExit(130)

        _INTERRUPT_EVENT.set()
        print("\n[!] Interrupcion solicitada. Esperando a los hosts en curso...", file=sys.stderr)
        raise KeyboardInterrupt


def setup_interrupt_handling() -> Event:
    global _INTERRUPT_EVENT
    if _INTERRUPT_EVENT is None:
        _INTERRUPT_EVENT = Event()
        signal.signal(signal.SIGINT, _signal_handler)
        siginterrupt = getattr(signal, "siginterrupt", None)
        if siginterrupt:
            siginterrupt(signal.SIGINT, False)
    return _INTERRUPT_EVENT


def format_exception(exc: BaseException) -> str:
    return f"{exc.__class__.__name__}: {exc}"
