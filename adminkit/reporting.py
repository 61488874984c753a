from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence
from zipfile import ZIP_DEFLATED, ZipFile

from .config import ExportConfig
from .exceptions import ConfigError
from .models import ScanReport, ServiceFinding

logger = logging.getLogger(__name__)

HEADERS = ["Host", "ServiceName", "DisplayName", "StartName"]
OUTCOME_HEADERS = ["Host", "Outcome", "Findings", "Detail"]
FORMATS = ("csv", "json", "xlsx")

_XLSX_CONTENT_TYPES = """<?xml version="1.0" encoding="UTF-8"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
  <Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>
  <Default Extension="xml" ContentType="application/xml"/>
  <Override PartName="/xl/workbook.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml"/>
  <Override PartName="/xl/worksheets/sheet1.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"/>
  <Override PartName="/xl/worksheets/sheet2.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"/>
</Types>
"""

_XLSX_ROOT_RELS = """<?xml version="1.0" encoding="UTF-8"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" Target="xl/workbook.xml"/>
</Relationships>
"""

_XLSX_WORKBOOK = """<?xml version="1.0" encoding="UTF-8"?>
<workbook xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main" xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">
  <sheets>
    <sheet name="Findings" sheetId="1" r:id="rId1"/>
    <sheet name="Hosts" sheetId="2" r:id="rId2"/>
  </sheets>
</workbook>
"""

_XLSX_WORKBOOK_RELS = """<?xml version="1.0" encoding="UTF-8"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/worksheet" Target="worksheets/sheet1.xml"/>
  <Relationship Id="rId2" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/worksheet" Target="worksheets/sheet2.xml"/>
</Relationships>
"""


def resolve_format(output_path: Path, fmt: Optional[str] = None) -> str:
    if fmt:
        fmt = fmt.lower()
    else:
        fmt = output_path.suffix.lstrip(".").lower() or "csv"
    if fmt not in FORMATS:
        raise ConfigError(f"Formato no soportado: {fmt} (use {', '.join(FORMATS)})")
    return fmt


def finding_to_row(finding: ServiceFinding) -> Dict[str, str]:
    return {
        "Host": finding.host,
        "ServiceName": finding.service_name or "",
        "DisplayName": finding.display_name or "",
        "StartName": finding.start_name,
    }


def outcome_rows(report: ScanReport) -> List[Dict[str, str]]:
    return [
        {
            "Host": outcome.host,
            "Outcome": outcome.kind.value,
            "Findings": str(len(outcome.findings)),
            "Detail": outcome.detail or "",
        }
        for outcome in report.outcomes
    ]


def export_findings(report: ScanReport, config: ExportConfig) -> Path:
    dataset = [finding_to_row(finding) for finding in report.findings]
    output = config.output_path
    output.parent.mkdir(parents=True, exist_ok=True)

    if config.fmt == "csv":
        _write_csv(output, dataset)
    elif config.fmt == "json":
        _write_json(output, dataset)
    elif config.fmt == "xlsx":
        _write_xlsx(output, dataset, outcome_rows(report))
    else:  # pragma: no cover - validado en resolve_format
        raise ConfigError(f"Formato no soportado: {config.fmt}")

    logger.info("Reporte exportado en %s (%s filas).", output, len(dataset))
    return output


def render_report(report: ScanReport) -> str:
    lines: List[str] = []
    findings = report.findings
    if findings:
        widths = [
            max(len(header), *(len(row[header]) for row in map(finding_to_row, findings)))
            for header in HEADERS
        ]
        lines.append("  ".join(header.ljust(width) for header, width in zip(HEADERS, widths)))
        lines.append("  ".join("-" * width for width in widths))
        for row in map(finding_to_row, findings):
            lines.append("  ".join(row[header].ljust(width) for header, width in zip(HEADERS, widths)).rstrip())
    else:
        lines.append("Sin servicios con cuentas no predeterminadas.")

    failures = report.failures
    if failures:
        lines.append("")
        lines.append("Hosts sin resultado:")
        for outcome in failures:
            detail = f": {outcome.detail}" if outcome.detail else ""
            lines.append(f"  {outcome.host} [{outcome.kind.value}]{detail}")

    lines.append("")
    lines.append(
        f"{len(report.outcomes)} hosts: {report.succeeded} completados, "
        f"{report.unreachable} inalcanzables, {report.failed} fallidos, "
        f"{report.timed_out} con tiempo agotado, {report.cancelled} cancelados."
    )
    return "\n".join(lines)


def _write_csv(path: Path, rows: Iterable[Dict[str, str]]) -> None:
    with path.open("w", newline="", encoding="utf-8") as handler:
        writer = csv.DictWriter(handler, fieldnames=HEADERS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)


def _write_json(path: Path, rows: Iterable[Dict[str, str]]) -> None:
    with path.open("w", encoding="utf-8") as handler:
        json.dump(list(rows), handler, ensure_ascii=False, indent=2)


def _write_xlsx(path: Path, findings: List[Dict[str, str]], outcomes: List[Dict[str, str]]) -> None:
    with ZipFile(path, "w", ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", _XLSX_CONTENT_TYPES)
        archive.writestr("_rels/.rels", _XLSX_ROOT_RELS)
        archive.writestr("xl/workbook.xml", _XLSX_WORKBOOK)
        archive.writestr("xl/_rels/workbook.xml.rels", _XLSX_WORKBOOK_RELS)
        archive.writestr("xl/worksheets/sheet1.xml", _build_sheet_xml(HEADERS, findings))
        archive.writestr("xl/worksheets/sheet2.xml", _build_sheet_xml(OUTCOME_HEADERS, outcomes))


def _column_letter(index: int) -> str:
    result = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        result = chr(65 + remainder) + result
    return result


def _escape(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _build_sheet_xml(headers: Sequence[str], rows: List[Dict[str, str]]) -> str:
    def cell(ref: str, value: str) -> str:
        return f'<c r="{ref}" t="inlineStr"><is><t>{_escape(value)}</t></is></c>'

    rows_xml = []
    header_cells = [cell(f"{_column_letter(idx)}1", header) for idx, header in enumerate(headers, start=1)]
    rows_xml.append(f'<row r="1">{"".join(header_cells)}</row>')

    for row_index, row in enumerate(rows, start=2):
        cells = [
            cell(f"{_column_letter(col_index)}{row_index}", row.get(header, "") or "")
            for col_index, header in enumerate(headers, start=1)
        ]
        rows_xml.append(f'<row r="{row_index}">{"".join(cells)}</row>')

    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<worksheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main">'
        "<sheetData>"
        f"{''.join(rows_xml)}"
        "</sheetData>"
        "</worksheet>"
    )
