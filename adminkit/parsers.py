from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, List, Optional, Union

from .exceptions import EnumerationError
from .models import ServiceRecord

logger = logging.getLogger(__name__)


def _safe_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_host_status(xml_path: Path) -> Optional[bool]:
    tree = ET.parse(xml_path)
    root = tree.getroot()
    host = root.find("host")
    if host is None:
        return None
    status = host.find("status")
    if status is None:
        return None
    state = status.get("state")
    if state == "up":
        return True
    if state == "down":
        return False
    return None


def parse_service_listing(payload: Union[str, bytes]) -> List[ServiceRecord]:
    """Parse ``ConvertTo-Json`` output of Win32_Service (object or array)."""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="ignore")
    text = payload.strip().lstrip("\ufeff")
    if not text:
        return []

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise EnumerationError(f"Respuesta de servicios no es JSON valido: {exc}") from exc

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise EnumerationError(f"Respuesta de servicios inesperada: {type(data).__name__}")

    records: List[ServiceRecord] = []
    for entry in data:
        if not isinstance(entry, dict):
            logger.debug("Entrada de servicio ignorada: %r", entry)
            continue
        records.append(
            ServiceRecord(
                name=_safe_text(entry.get("Name")),
                display_name=_safe_text(entry.get("DisplayName")),
                start_name=_safe_text(entry.get("StartName")),
            )
        )
    return records
