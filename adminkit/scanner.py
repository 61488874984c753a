from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from threading import Event
from typing import Callable, Dict, List, Optional, Sequence

from .accounts import AccountMatcher, find_non_default, is_default_account
from .config import DEFAULT_TIMEOUT, DEFAULT_WORKERS
from .models import HostRecord, OutcomeKind, ScanOutcome, ScanReport, ServiceRecord
from .utils import format_exception

logger = logging.getLogger(__name__)

ReachabilityCheck = Callable[[str, float], bool]
ServiceEnumerator = Callable[[str, float], List[ServiceRecord]]


def _always_reachable(host: str, timeout: float) -> bool:
    return True


class FleetScanner:
    def __init__(
        self,
        is_reachable: Optional[ReachabilityCheck],
        enumerate_services: ServiceEnumerator,
        workers: int = DEFAULT_WORKERS,
        timeout: float = DEFAULT_TIMEOUT,
        account_matcher: AccountMatcher = is_default_account,
        stop_event: Optional[Event] = None,
    ) -> None:
        self.is_reachable = is_reachable or _always_reachable
        self.enumerate_services = enumerate_services
        self.workers = max(workers, 1)
        self.timeout = timeout
        self.account_matcher = account_matcher
        self.stop_event = stop_event

    def scan(self, hosts: Sequence[HostRecord]) -> ScanReport:
        slots: List[Optional[ScanOutcome]] = [None] * len(hosts)
        if not hosts:
            return ScanReport(outcomes=[])

        logger.info("Hosts a procesar: %d (workers=%d, timeout=%.0fs)", len(hosts), self.workers, self.timeout)

        try:
            if self.workers == 1:
                for position, record in enumerate(hosts):
                    slots[position] = self._scan_wrapper(record)
            else:
                self._run_pool(hosts, slots)
        except KeyboardInterrupt:
            logger.warning("Interrupcion recibida. Se conservan los resultados parciales.")
            if self.stop_event is not None:
                self.stop_event.set()

        outcomes = [
            slot if slot is not None else self._cancelled(record)
            for slot, record in zip(slots, hosts)
        ]
        report = ScanReport(outcomes=outcomes)
        self._log_scan_summary(report)
        return report

    def _run_pool(self, hosts: Sequence[HostRecord], slots: List[Optional[ScanOutcome]]) -> None:
        pool = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="adminkit-scan")
        futures: Dict[Future, int] = {}
        try:
            for position, record in enumerate(hosts):
                futures[pool.submit(self._scan_wrapper, record)] = position
            for future in as_completed(futures):
                position = futures[future]
                try:
                    slots[position] = future.result()
                except Exception as exc:
                    logger.error("Error no controlado en %s: %s", hosts[position].host, exc)
                    slots[position] = ScanOutcome(
                        host=hosts[position].host,
                        kind=OutcomeKind.ENUMERATION_FAILED,
                        detail=format_exception(exc),
                    )
        except KeyboardInterrupt:
            if self.stop_event is not None:
                self.stop_event.set()
            # Pending hosts are dropped; in-flight probes finish or time out.
            pool.shutdown(wait=True, cancel_futures=True)
            for future, position in futures.items():
                if slots[position] is None and future.done() and not future.cancelled() and future.exception() is None:
                    slots[position] = future.result()
            raise
        else:
            pool.shutdown(wait=True)

    def _scan_wrapper(self, record: HostRecord) -> ScanOutcome:
        target = record.host
        if self._should_stop():
            logger.info("Senal de parada recibida. Saltando %s", target)
            return self._cancelled(record)

        started = time.monotonic()
        try:
            outcome = self._scan_host(target, started)
        except Exception as exc:
            logger.error("Error no controlado en %s: %s", target, exc)
            outcome = ScanOutcome(target, OutcomeKind.ENUMERATION_FAILED, detail=format_exception(exc))
        outcome.elapsed = time.monotonic() - started
        self._log_host_summary(outcome)
        return outcome

    def _scan_host(self, target: str, started: float) -> ScanOutcome:
        try:
            alive = self.is_reachable(target, self.timeout)
        except TimeoutError as exc:
            return ScanOutcome(target, OutcomeKind.TIMEOUT, detail=format_exception(exc))
        except Exception as exc:
            logger.warning("[%s] Fallo la verificacion de alcance: %s", target, exc)
            return ScanOutcome(target, OutcomeKind.UNREACHABLE, detail=format_exception(exc))

        if not alive:
            return ScanOutcome(target, OutcomeKind.UNREACHABLE, detail="Host inalcanzable")

        remaining = self.timeout - (time.monotonic() - started)
        if remaining <= 0:
            return ScanOutcome(
                target,
                OutcomeKind.TIMEOUT,
                detail=f"Verificacion de alcance agoto el plazo de {self.timeout:.0f}s",
            )

        try:
            services = self.enumerate_services(target, remaining)
        except TimeoutError as exc:
            return ScanOutcome(target, OutcomeKind.TIMEOUT, detail=format_exception(exc))
        except Exception as exc:
            logger.debug("[%s] Enumeracion fallida", target, exc_info=True)
            return ScanOutcome(target, OutcomeKind.ENUMERATION_FAILED, detail=format_exception(exc))

        elapsed = time.monotonic() - started
        if elapsed > self.timeout:
            return ScanOutcome(
                target,
                OutcomeKind.TIMEOUT,
                detail=f"La enumeracion respondio en {elapsed:.1f}s, fuera del plazo de {self.timeout:.0f}s",
            )

        findings = find_non_default(target, services, self.account_matcher)
        return ScanOutcome(target, OutcomeKind.SUCCEEDED, findings=findings)

    def _should_stop(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    @staticmethod
    def _cancelled(record: HostRecord) -> ScanOutcome:
        return ScanOutcome(record.host, OutcomeKind.CANCELLED, detail="Escaneo cancelado antes de procesar el host")

    def _log_host_summary(self, outcome: ScanOutcome) -> None:
        target = outcome.host
        if outcome.kind is OutcomeKind.UNREACHABLE:
            logger.info("[%s] Host inalcanzable. Registrado y omitido.", target)
            return
        if outcome.kind is OutcomeKind.TIMEOUT:
            logger.warning("[%s] Tiempo agotado: %s", target, outcome.detail)
            return
        if outcome.kind is OutcomeKind.ENUMERATION_FAILED:
            logger.error("[%s] Fallo la enumeracion de servicios: %s", target, outcome.detail)
            return

        if outcome.findings:
            logger.info("[%s] Servicios con cuentas no predeterminadas:", target)
            for finding in outcome.findings:
                logger.info(
                    "[%s]   - %s (%s) -> %s",
                    target,
                    finding.service_name or "desconocido",
                    finding.display_name or "sin nombre",
                    finding.start_name,
                )
        else:
            logger.info("[%s] Sin servicios con cuentas no predeterminadas.", target)
        logger.info("[%s] Escaneo completado en %.1fs.", target, outcome.elapsed)

    @staticmethod
    def _log_scan_summary(report: ScanReport) -> None:
        logger.info(
            "Resumen: %d completados, %d inalcanzables, %d fallidos, %d con tiempo agotado, %d cancelados. %d hallazgos.",
            report.succeeded,
            report.unreachable,
            report.failed,
            report.timed_out,
            report.cancelled,
            len(report.findings),
        )
