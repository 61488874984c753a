from __future__ import annotations

import logging
from typing import List, Optional

import requests
import winrm
from winrm.exceptions import WinRMError, WinRMOperationTimeoutError, WinRMTransportError

from .config import WinRMOptions
from .exceptions import EnumerationError, ProbeTimeout
from .models import ServiceRecord
from .parsers import parse_service_listing

logger = logging.getLogger(__name__)

SERVICE_QUERY = r"""
$services = if (Get-Command -Name Get-CimInstance -ErrorAction SilentlyContinue) {
  Get-CimInstance -ClassName Win32_Service
} else {
  Get-WmiObject -Class Win32_Service
}
$services | Select-Object Name,DisplayName,StartName | ConvertTo-Json -Compress
"""


class WinRMServiceEnumerator:
    """Lists Win32_Service entries of a remote host over WinRM."""

    def __init__(
        self,
        username: Optional[str],
        password: Optional[str],
        transport: str = "ntlm",
        port: int = 5985,
        scheme: str = "http",
    ) -> None:
        self.username = username
        self.password = password
        self.transport = transport
        self.port = port
        self.scheme = scheme

    @classmethod
    def from_options(cls, options: WinRMOptions) -> "WinRMServiceEnumerator":
        return cls(
            username=options.username,
            password=options.password,
            transport=options.transport,
            port=options.port,
            scheme=options.scheme,
        )

    def endpoint(self, host: str) -> str:
        return f"{self.scheme}://{host}:{self.port}/wsman"

    def _session(self, host: str, timeout: float) -> winrm.Session:
        # pywinrm requires read_timeout_sec > operation_timeout_sec.
        operation_timeout = max(int(timeout) - 1, 1)
        read_timeout = max(int(timeout), operation_timeout + 1)
        return winrm.Session(
            self.endpoint(host),
            auth=(self.username or "", self.password or ""),
            transport=self.transport,
            operation_timeout_sec=operation_timeout,
            read_timeout_sec=read_timeout,
        )

    def __call__(self, host: str, timeout: float) -> List[ServiceRecord]:
        return self.enumerate(host, timeout)

    def enumerate(self, host: str, timeout: float) -> List[ServiceRecord]:
        logger.debug("[%s] Consultando servicios via %s", host, self.endpoint(host))
        try:
            result = self._session(host, timeout).run_ps(SERVICE_QUERY)
        except (WinRMOperationTimeoutError, requests.exceptions.Timeout) as exc:
            raise ProbeTimeout(f"WinRM no respondio en {timeout:.0f}s") from exc
        except (WinRMError, WinRMTransportError, requests.exceptions.RequestException) as exc:
            raise EnumerationError(f"{exc.__class__.__name__}: {exc}") from exc

        if result.status_code != 0:
            detail = result.std_err.decode("utf-8", errors="ignore").strip()
            raise EnumerationError(f"PowerShell finalizo con codigo {result.status_code}: {detail}")

        services = parse_service_listing(result.std_out)
        logger.debug("[%s] %d servicios recibidos.", host, len(services))
        return services
