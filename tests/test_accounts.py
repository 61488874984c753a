"""Tests for the default service account filter."""

import pytest

from adminkit.accounts import find_non_default, is_default_account
from adminkit.models import ServiceFinding, ServiceRecord


@pytest.mark.parametrize(
    "account",
    [
        "LocalSystem",
        "localsystem",
        "NT AUTHORITY\\LocalService",
        "NT AUTHORITY\\NetworkService",
        "nt authority\\networkservice",
        "NT AUTHORITY\\Local Service",
        "NT AUTHORITY\\Network Service",
        "NT AUTHORITY\\SYSTEM",
        ".\\LocalSystem",
        "  LocalSystem  ",
    ],
)
def test_default_accounts(account):
    assert is_default_account(account)


@pytest.mark.parametrize(
    "account",
    ["DOMAIN\\svc_backup", ".\\sqlsvc", "svc_web@corp.example", "NT SERVICE\\MSSQLSERVER"],
)
def test_custom_accounts(account):
    assert not is_default_account(account)


def test_generic_system_suffix_is_treated_as_default():
    """Accounts ending in 'System' are excluded, custom names included."""
    assert is_default_account("CORP\\CorpSystem")


def test_custom_suffixes_override_defaults():
    assert not is_default_account("CORP\\CorpSystem", suffixes=("LocalService",))
    assert is_default_account("corp\\Backup", accounts=("CORP\\BACKUP",), suffixes=())


def test_find_non_default_reports_custom_accounts():
    services = [
        ServiceRecord("Spooler", "Print Spooler", "LocalSystem"),
        ServiceRecord("W32Time", "Windows Time", "NT AUTHORITY\\LocalService"),
        ServiceRecord("Dnscache", "DNS Client", "NT AUTHORITY\\NetworkService"),
        ServiceRecord("BackupAgent", "Backup Agent", "DOMAIN\\svc_backup"),
        ServiceRecord("Driver", "Kernel driver", None),
        ServiceRecord("Blank", "Blank account", "   "),
    ]
    findings = find_non_default("srv01", services)
    assert findings == [
        ServiceFinding(
            host="srv01",
            service_name="BackupAgent",
            display_name="Backup Agent",
            start_name="DOMAIN\\svc_backup",
        )
    ]


def test_find_non_default_with_custom_matcher():
    services = [ServiceRecord("A", "A", "LocalSystem"), ServiceRecord("B", "B", "CORP\\b")]
    findings = find_non_default("h", services, matcher=lambda account: False)
    assert [finding.service_name for finding in findings] == ["A", "B"]
