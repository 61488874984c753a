from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from threading import Event
from typing import Optional, Sequence

from .exceptions import ConfigError
from .models import HostRecord

DEFAULT_DELIMITER = "-"
DEFAULT_WORKERS = 8
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True, slots=True)
class PassphraseConfig:
    word_count: int = 6
    add_number: bool = False
    add_capital: bool = False
    delimiter: Optional[str] = DEFAULT_DELIMITER

    def __post_init__(self) -> None:
        if self.word_count < 1:
            raise ConfigError(f"La cantidad de palabras debe ser >= 1 (recibido {self.word_count}).")

    @property
    def separator(self) -> str:
        return self.delimiter or DEFAULT_DELIMITER


@dataclass(slots=True)
class WinRMOptions:
    username: Optional[str]
    password: Optional[str]
    transport: str = "ntlm"
    port: int = 5985
    scheme: str = "http"


@dataclass(slots=True)
class ScanConfig:
    hosts: Sequence[HostRecord]
    workers: int
    timeout: float
    probe: str
    use_ping: bool
    winrm: WinRMOptions
    stop_event: Optional[Event] = None  # resolved at runtime


@dataclass(slots=True)
class ExportConfig:
    output_path: Path
    fmt: str
