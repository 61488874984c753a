from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional


@dataclass(frozen=True, slots=True)
class HostRecord:
    host: str
    index: int = 0


class ServiceRecord(NamedTuple):
    """One service row: (name, display name, start account)."""

    name: Optional[str]
    display_name: Optional[str] = None
    start_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ServiceFinding:
    host: str
    service_name: Optional[str]
    display_name: Optional[str]
    start_name: str


class OutcomeKind(str, Enum):
    SUCCEEDED = "succeeded"
    UNREACHABLE = "unreachable"
    ENUMERATION_FAILED = "enumeration_failed"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class ScanOutcome:
    host: str
    kind: OutcomeKind
    findings: List[ServiceFinding] = field(default_factory=list)
    detail: Optional[str] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCEEDED


@dataclass(slots=True)
class ScanReport:
    """One outcome slot per input host, in input order."""

    outcomes: List[ScanOutcome]

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for outcome in self.outcomes if outcome.kind is kind)

    @property
    def succeeded(self) -> int:
        return self.count(OutcomeKind.SUCCEEDED)

    @property
    def unreachable(self) -> int:
        return self.count(OutcomeKind.UNREACHABLE)

    @property
    def failed(self) -> int:
        return self.count(OutcomeKind.ENUMERATION_FAILED)

    @property
    def timed_out(self) -> int:
        return self.count(OutcomeKind.TIMEOUT)

    @property
    def cancelled(self) -> int:
        return self.count(OutcomeKind.CANCELLED)

    @property
    def findings(self) -> List[ServiceFinding]:
        return [finding for outcome in self.outcomes for finding in outcome.findings]

    @property
    def failures(self) -> List[ScanOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]
