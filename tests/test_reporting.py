"""Tests for findings export and console rendering."""

import csv
import json
from zipfile import ZipFile

import pytest

from adminkit.config import ExportConfig
from adminkit.exceptions import ConfigError
from adminkit.models import OutcomeKind, ScanOutcome, ScanReport, ServiceFinding
from adminkit.reporting import HEADERS, export_findings, render_report, resolve_format


@pytest.fixture
def report():
    return ScanReport(
        outcomes=[
            ScanOutcome(
                host="srv01",
                kind=OutcomeKind.SUCCEEDED,
                findings=[
                    ServiceFinding("srv01", "BackupAgent", "Backup & Restore", "DOMAIN\\svc_backup"),
                    ServiceFinding("srv01", "WebApp", None, ".\\websvc"),
                ],
            ),
            ScanOutcome(host="srv02", kind=OutcomeKind.UNREACHABLE, detail="Host inalcanzable"),
            ScanOutcome(host="srv03", kind=OutcomeKind.TIMEOUT, detail="ProbeTimeout: WinRM"),
        ]
    )


def test_export_csv(tmp_path, report):
    output = tmp_path / "out" / "findings.csv"
    export_findings(report, ExportConfig(output_path=output, fmt="csv"))
    with output.open(encoding="utf-8", newline="") as handler:
        rows = list(csv.DictReader(handler))
    assert list(rows[0].keys()) == HEADERS
    assert rows[0] == {
        "Host": "srv01",
        "ServiceName": "BackupAgent",
        "DisplayName": "Backup & Restore",
        "StartName": "DOMAIN\\svc_backup",
    }
    assert rows[1]["DisplayName"] == ""


def test_export_json(tmp_path, report):
    output = tmp_path / "findings.json"
    export_findings(report, ExportConfig(output_path=output, fmt="json"))
    data = json.loads(output.read_text(encoding="utf-8"))
    assert [row["ServiceName"] for row in data] == ["BackupAgent", "WebApp"]


def test_export_xlsx(tmp_path, report):
    output = tmp_path / "findings.xlsx"
    export_findings(report, ExportConfig(output_path=output, fmt="xlsx"))
    with ZipFile(output) as archive:
        names = set(archive.namelist())
        findings_sheet = archive.read("xl/worksheets/sheet1.xml").decode("utf-8")
        hosts_sheet = archive.read("xl/worksheets/sheet2.xml").decode("utf-8")
    assert {"[Content_Types].xml", "xl/workbook.xml", "xl/worksheets/sheet1.xml"} <= names
    assert "Backup &amp; Restore" in findings_sheet
    assert "unreachable" in hosts_sheet


def test_export_without_findings_writes_header_only(tmp_path):
    output = tmp_path / "empty.csv"
    export_findings(ScanReport(outcomes=[]), ExportConfig(output_path=output, fmt="csv"))
    assert output.read_text(encoding="utf-8").strip() == ",".join(HEADERS)


def test_resolve_format(tmp_path):
    assert resolve_format(tmp_path / "a.csv") == "csv"
    assert resolve_format(tmp_path / "a.XLSX") == "xlsx"
    assert resolve_format(tmp_path / "a") == "csv"
    assert resolve_format(tmp_path / "a.txt", "json") == "json"
    with pytest.raises(ConfigError):
        resolve_format(tmp_path / "a.txt")


def test_render_report(report):
    text = render_report(report)
    assert "BackupAgent" in text
    assert "DOMAIN\\svc_backup" in text
    assert "srv02 [unreachable]: Host inalcanzable" in text
    assert "srv03 [timeout]" in text
    assert "3 hosts: 1 completados, 1 inalcanzables" in text


def test_render_report_without_findings():
    text = render_report(ScanReport(outcomes=[ScanOutcome("srv01", OutcomeKind.SUCCEEDED)]))
    assert "Sin servicios con cuentas no predeterminadas." in text
