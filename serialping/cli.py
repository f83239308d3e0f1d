"""Command line front end: parse options, run one exchange, print the result."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from .config import CliDefaults, ConnectionParams, Parity, StopBits, load_config
from .errors import ConfigError, OpenError, ReadError, WriteError
from .exchange import Exchange, ExchangeReport, Response, StopReason
from .services import PortService, format_port_listing
from .settings import CONFIG_FILE, configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_OPEN_FAILED = 1
EXIT_USAGE = 2  # argparse's own status for bad arguments
EXIT_CONFIG = 3
EXIT_IO_FAILED = 4

def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def _positive_int(value: str) -> int:
    number = _non_negative_int(value)
    if number == 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return number


def build_parser(defaults: Optional[CliDefaults] = None) -> argparse.ArgumentParser:
    """Return the argument parser, seeded with *defaults*."""

    defaults = defaults or CliDefaults()
    parser = argparse.ArgumentParser(
        prog="serialping",
        description="Send a message over a serial port and print the response.",
    )
    parser.add_argument(
        "--port",
        default=defaults.port,
        help=f"serial device path or pyserial URL (default {defaults.port})",
    )
    parser.add_argument(
        "--baud",
        type=_positive_int,
        default=defaults.baudrate,
        help=f"baud rate (default {defaults.baudrate})",
    )
    parser.add_argument(
        "--data-bits",
        type=int,
        choices=(5, 6, 7, 8),
        default=defaults.data_bits,
        help=f"data bits per character (default {defaults.data_bits})",
    )
    parser.add_argument(
        "--stop-bits",
        choices=("1", "1.5", "2"),
        default=defaults.stop_bits,
        help=f"stop bits (default {defaults.stop_bits})",
    )
    parser.add_argument(
        "--parity",
        type=str.lower,
        choices=("none", "odd", "even", "mark", "space"),
        default=defaults.parity,
        help=f"parity scheme (default {defaults.parity})",
    )
    parser.add_argument(
        "--timeout",
        type=_non_negative_int,
        default=defaults.timeout_ms,
        metavar="MS",
        help=f"response window in milliseconds (default {defaults.timeout_ms})",
    )
    parser.add_argument(
        "--message",
        default=defaults.message,
        metavar="TEXT",
        help=f"text to send (default {defaults.message!r})",
    )
    parser.add_argument(
        "--newline",
        action=argparse.BooleanOptionalAction,
        default=defaults.newline,
        help="append a line feed to the message",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="list available serial ports and exit",
    )
    parser.add_argument(
        "--config",
        default=CONFIG_FILE,
        metavar="PATH",
        help=f"JSON file with default option values (default {CONFIG_FILE})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="log more detail (repeat for debug output)",
    )
    return parser


def _preparse_config(argv: Sequence[str]) -> str:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=CONFIG_FILE)
    known, _ = pre.parse_known_args(argv)
    return known.config


def params_from_args(args: argparse.Namespace) -> ConnectionParams:
    """Build validated connection parameters from parsed arguments."""

    port = (args.port or "").strip()
    if not port:
        raise ConfigError(
            "--port is required (e.g., --port=/dev/ttyACM0). "
            "Use --list to see available ports."
        )
    return ConnectionParams(
        device=port,
        baudrate=args.baud,
        data_bits=args.data_bits,
        stop_bits=StopBits.parse(args.stop_bits),
        parity=Parity.parse(args.parity),
        timeout=args.timeout / 1000.0,
    )


def print_written(bytes_written: int, timeout_ms: int) -> None:
    print(
        f"Wrote {bytes_written} bytes, waiting up to {timeout_ms} ms for response...",
        flush=True,
    )


def print_report(report: ExchangeReport) -> None:
    elapsed_ms = round(report.elapsed * 1000)
    if report.stop_reason is StopReason.END_OF_STREAM:
        print(f"end of stream after {elapsed_ms} ms (device closed the link)")
    result = report.result
    if isinstance(result, Response):
        print(f"<- {result.byte_count} bytes in {elapsed_ms} ms: {result.text}")
        print(f"   HEX: {result.hex}")
    else:
        print(f"No response received within timeout ({elapsed_ms} ms).")


def list_ports(service: Optional[PortService] = None) -> int:
    service = service or PortService()
    print(format_port_listing(service.list_ports()))
    return EXIT_OK


def run_exchange(args: argparse.Namespace) -> int:
    try:
        params = params_from_args(args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    exchange = Exchange(params, newline=args.newline)
    print(f"Opening {params.device} @ {params.baudrate} baud...")
    payload = list(exchange.payload_for(args.message))
    print(f"-> {payload} ({len(payload)} bytes)")
    try:
        report = exchange.run(
            args.message,
            on_written=lambda written: print_written(written, args.timeout),
        )
    except OpenError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_OPEN_FAILED
    except (WriteError, ReadError) as exc:
        print(f"I/O error: {exc}", file=sys.stderr)
        return EXIT_IO_FAILED

    print_report(report)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``serialping`` console script."""

    argv = list(sys.argv[1:] if argv is None else argv)
    defaults = load_config(_preparse_config(argv))
    args = build_parser(defaults).parse_args(argv)

    configure_logging(args.verbose)
    logger.debug("Arguments: %s", vars(args))

    if args.list:
        return list_ports()
    return run_exchange(args)


if __name__ == "__main__":
    raise SystemExit(main())
