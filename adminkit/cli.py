from __future__ import annotations

import argparse
import logging
import os
import sys
from functools import partial
from pathlib import Path
from typing import Sequence

from .config import DEFAULT_TIMEOUT, DEFAULT_WORKERS, ExportConfig, PassphraseConfig, ScanConfig, WinRMOptions
from .exceptions import AdminkitError, ConfigError
from .nmap_runner import NmapRunner, tcp_reachable
from .passphrase import PassphraseGenerator, estimate_entropy
from .reporting import FORMATS, export_findings, render_report, resolve_format
from .scanner import FleetScanner
from .utils import (
    configure_logging,
    format_exception,
    load_hosts,
    parse_duration,
    setup_interrupt_handling,
)
from .winrm_client import WinRMServiceEnumerator
from .wordlist import DEFAULT_WORDLIST_PATH, DEFAULT_WORDLIST_URL, fetch_wordlist, load_wordlist

logger = logging.getLogger("adminkit.cli")

ENV_WINRM_USER = "ADMINKIT_WINRM_USER"
ENV_WINRM_PASSWORD = "ADMINKIT_WINRM_PASSWORD"


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adminkit",
        description="Genera frases de paso e inventaria cuentas de servicio en equipos Windows.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    pass_parser = subparsers.add_parser(
        "passphrase",
        help="Genera una frase de paso a partir de una lista de palabras.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    pass_parser.add_argument(
        "-f",
        "--file",
        default=str(DEFAULT_WORDLIST_PATH),
        help="Lista de palabras (<clave>\\t<palabra> por linea).",
    )
    pass_parser.add_argument(
        "-c",
        "--count",
        type=int,
        default=6,
        help="Cantidad de palabras.",
    )
    pass_parser.add_argument(
        "-n",
        "--number",
        action="store_true",
        help="Agrega un digito al final de una palabra elegida al azar.",
    )
    pass_parser.add_argument(
        "-C",
        "--capital",
        action="store_true",
        help="Convierte en mayuscula la primera letra de cada palabra.",
    )
    pass_parser.add_argument(
        "-d",
        "--delimiter",
        default="-",
        help="Separador entre palabras (vacio equivale a '-').",
    )
    pass_parser.add_argument(
        "--amount",
        type=int,
        default=1,
        help="Cantidad de frases a generar.",
    )
    pass_parser.add_argument(
        "--download",
        action="store_true",
        help="Descarga la lista de palabras si no existe localmente.",
    )
    pass_parser.add_argument(
        "--url",
        default=DEFAULT_WORDLIST_URL,
        help="Origen de la lista de palabras para --download.",
    )
    pass_parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="warning",
        help="Nivel de log.",
    )

    scan_parser = subparsers.add_parser(
        "scan",
        help="Busca servicios con cuentas no predeterminadas en una lista de hosts.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    scan_parser.add_argument(
        "-i",
        "--input",
        required=True,
        help="CSV con la columna de hosts (o un host por linea).",
    )
    scan_parser.add_argument(
        "-o",
        "--output",
        required=True,
        help="Archivo de salida con los hallazgos.",
    )
    scan_parser.add_argument(
        "--column",
        default=None,
        help="Nombre de la columna de hosts en el CSV.",
    )
    scan_parser.add_argument(
        "--format",
        choices=list(FORMATS),
        default=None,
        help="Formato de salida (por defecto segun la extension).",
    )
    scan_parser.add_argument(
        "-w",
        "--concurrency",
        type=int,
        default=DEFAULT_WORKERS,
        help="Cantidad de hosts a procesar en paralelo.",
    )
    scan_parser.add_argument(
        "-t",
        "--timeout",
        type=_duration,
        default=DEFAULT_TIMEOUT,
        help="Plazo maximo por host (p. ej. 30, 30s, 2m).",
    )
    scan_parser.add_argument(
        "--probe",
        choices=["nmap", "tcp"],
        default="nmap",
        help="Metodo de verificacion de host vivo.",
    )
    scan_parser.add_argument(
        "--no-ping",
        action="store_true",
        help="Omite la verificacion de host vivo.",
    )
    scan_parser.add_argument(
        "--winrm-transport",
        choices=["ntlm", "kerberos", "basic", "credssp"],
        default="ntlm",
        help="Transporte de autenticacion WinRM.",
    )
    scan_parser.add_argument(
        "--winrm-port",
        type=int,
        default=5985,
        help="Puerto WinRM.",
    )
    scan_parser.add_argument(
        "--https",
        action="store_true",
        help="Usa HTTPS para WinRM.",
    )
    scan_parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Nivel de log.",
    )

    return parser


def _resolve_wordlist_path(args: argparse.Namespace) -> Path:
    path = Path(args.file).expanduser()
    if path.exists():
        return path
    if not args.download:
        raise ConfigError(f"No existe la lista de palabras: {path} (use --download para obtenerla)")
    return fetch_wordlist(args.url, path)


def run_passphrase(args: argparse.Namespace) -> int:
    configure_logging(args.log_level)
    try:
        config = PassphraseConfig(
            word_count=args.count,
            add_number=args.number,
            add_capital=args.capital,
            delimiter=args.delimiter,
        )
        if args.amount < 1:
            raise ConfigError("--amount debe ser >= 1.")
        wordlist = load_wordlist(_resolve_wordlist_path(args))
        logger.debug("Entropia estimada: %.1f bits", estimate_entropy(len(wordlist), config))

        generator = PassphraseGenerator(wordlist, config)
        for _ in range(args.amount):
            print(generator.generate())
    except AdminkitError as exc:
        print(f"[!] {exc}", file=sys.stderr)
        return 2
    return 0


def _winrm_options(args: argparse.Namespace) -> WinRMOptions:
    options = WinRMOptions(
        username=os.environ.get(ENV_WINRM_USER),
        password=os.environ.get(ENV_WINRM_PASSWORD),
        transport=args.winrm_transport,
        port=args.winrm_port,
        scheme="https" if args.https else "http",
    )
    if options.transport != "kerberos" and not (options.username and options.password):
        raise ConfigError(
            f"Defina {ENV_WINRM_USER} y {ENV_WINRM_PASSWORD} para el transporte {options.transport}."
        )
    return options


def _build_scan_config(args: argparse.Namespace) -> ScanConfig:
    if args.concurrency < 1:
        raise ConfigError("--concurrency debe ser >= 1.")
    hosts = load_hosts(Path(args.input).expanduser(), args.column)
    if not hosts:
        raise ConfigError(f"No hay hosts en {args.input}.")
    return ScanConfig(
        hosts=hosts,
        workers=args.concurrency,
        timeout=args.timeout,
        probe=args.probe,
        use_ping=not args.no_ping,
        winrm=_winrm_options(args),
    )


def _reachability_check(config: ScanConfig):
    if not config.use_ping:
        return None
    if config.probe == "tcp":
        return partial(tcp_reachable, port=config.winrm.port)
    return NmapRunner()


def run_scan(args: argparse.Namespace) -> int:
    configure_logging(args.log_level)

    try:
        config = _build_scan_config(args)
        export = ExportConfig(
            output_path=Path(args.output).expanduser(),
            fmt=resolve_format(Path(args.output), args.format),
        )
    except AdminkitError as exc:
        print(f"[!] {exc}", file=sys.stderr)
        return 2

    config.stop_event = setup_interrupt_handling()
    scanner = FleetScanner(
        is_reachable=_reachability_check(config),
        enumerate_services=WinRMServiceEnumerator.from_options(config.winrm),
        workers=config.workers,
        timeout=config.timeout,
        stop_event=config.stop_event,
    )

    try:
        report = scanner.scan(config.hosts)
        print(render_report(report))
        export_findings(report, export)
    except Exception as exc:  # pragma: no cover
        print(f"[!] Error inesperado: {format_exception(exc)}", file=sys.stderr)
        return 1

    if report.cancelled == len(report.outcomes):
        logger.error("Escaneo cancelado antes de procesar algun host.")
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "passphrase":
        return run_passphrase(args)
    if args.command == "scan":
        return run_scan(args)

    parser.print_help()
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
