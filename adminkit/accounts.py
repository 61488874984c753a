from __future__ import annotations

from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

from .models import ServiceFinding

# Compared case-insensitively against the whole StartName value.
DEFAULT_ACCOUNTS: FrozenSet[str] = frozenset(
    name.lower()
    for name in (
        "LocalSystem",
        ".\\LocalSystem",
        "NT AUTHORITY\\LocalService",
        "NT AUTHORITY\\NetworkService",
        "NT AUTHORITY\\Local Service",
        "NT AUTHORITY\\Network Service",
        "NT AUTHORITY\\SYSTEM",
    )
)

# Also matches any account ending in "System", e.g. "CorpSystem".
DEFAULT_ACCOUNT_SUFFIXES: FrozenSet[str] = frozenset(
    name.lower() for name in ("LocalSystem", "LocalService", "NetworkService", "System")
)

AccountMatcher = Callable[[str], bool]


def is_default_account(
    account: str,
    accounts: Iterable[str] = DEFAULT_ACCOUNTS,
    suffixes: Iterable[str] = DEFAULT_ACCOUNT_SUFFIXES,
) -> bool:
    lowered = account.strip().lower()
    if any(lowered == name.lower() for name in accounts):
        return True
    return any(lowered.endswith(suffix.lower()) for suffix in suffixes)


def find_non_default(
    host: str,
    services: Iterable[Tuple[Optional[str], Optional[str], Optional[str]]],
    matcher: Optional[AccountMatcher] = None,
) -> List[ServiceFinding]:
    matcher = matcher or is_default_account
    findings: List[ServiceFinding] = []
    for name, display_name, account in services:
        if account is None or not account.strip():
            continue
        if matcher(account):
            continue
        findings.append(
            ServiceFinding(
                host=host,
                service_name=name,
                display_name=display_name,
                start_name=account,
            )
        )
    return findings
