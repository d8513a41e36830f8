"""Command line front end for hoptrace."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence

from rich.console import Console

from ._config import MtrConfig
from ._display import Display, InteractiveDisplay, ReportDisplay, Screen
from ._exceptions import ConfigurationError, RawSocketPermissionError, ResolutionError
from ._icmp import Icmp, configure_logging, console
from ._mtr import Mtr
from ._probe import Prober
from ._render import TableRenderer

EXIT_OK = 0
EXIT_RESOLUTION = 1
EXIT_CONFIGURATION = 2
EXIT_PERMISSION = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hoptrace",
        description="Continuously probe every hop on the path to a host",
    )
    parser.add_argument("target", help="target host name or IP address")
    parser.add_argument(
        "-m", "--max-hops", type=int, default=30, help="max hop TTL (default: 30)"
    )
    parser.add_argument(
        "-c",
        "--rounds",
        type=int,
        default=0,
        help="number of rounds, 0 runs until interrupted (default: 0)",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=float,
        default=1.0,
        help="seconds between the start of consecutive rounds (default: 1.0)",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=1000.0,
        help="per-probe timeout in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "-n", "--no-dns", action="store_true", help="skip reverse DNS lookups"
    )
    parser.add_argument(
        "-r",
        "--report",
        action="store_true",
        help="print a single report at the end; requires --rounds",
    )
    parser.add_argument(
        "--tui", action="store_true", help="show the table in a Textual interface"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="log progress (-v) or every probe (-vv)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> MtrConfig:
    return MtrConfig(
        target=args.target,
        max_hops=args.max_hops,
        rounds=args.rounds,
        interval=args.interval,
        timeout_ms=args.timeout,
        resolve_dns=not args.no_dns,
        report=args.report,
    )


@contextmanager
def cancel_on_signals(
    interrupt: Callable[[], None],
    signals: Sequence[int] = (signal.SIGINT, signal.SIGTERM),
) -> Iterator[None]:
    """Call ``interrupt`` when one of ``signals`` arrives while active.

    ``interrupt`` runs inside the signal handler, so it must not take locks.
    """

    def _handler(signum, frame) -> None:
        interrupt()

    previous = {signum: signal.signal(signum, _handler) for signum in signals}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def make_display(config: MtrConfig, out: Console) -> Display:
    renderer = TableRenderer()
    if config.report:
        return ReportDisplay(renderer, out)
    return InteractiveDisplay(renderer, Screen(out))


def run(
    config: MtrConfig,
    *,
    prober: Optional[Prober] = None,
    display: Optional[Display] = None,
    out: Console = console,
    cancel: Optional[threading.Event] = None,
) -> int:
    """Run one session and map its failures onto exit codes."""
    cancel = cancel or threading.Event()
    try:
        config.validate()
    except ConfigurationError as exc:
        out.print(f"[red]Configuration error: {exc}[/red]")
        return EXIT_CONFIGURATION

    with Icmp() as icmp:
        engine = Mtr(
            config,
            prober or icmp,
            display or make_display(config, out),
            cancel=cancel,
        )
        try:
            target = engine.resolve()
            if prober is None:
                icmp.open(target.address)
            with cancel_on_signals(engine.interrupt):
                engine.run()
        except ResolutionError as exc:
            out.print(f"[red]{exc}[/red]")
            return EXIT_RESOLUTION
        except RawSocketPermissionError as exc:
            out.print(f"[red]{exc}[/red]")
            return EXIT_PERMISSION
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(
        max(logging.DEBUG, logging.WARNING - 10 * args.verbose),
        stderr=args.tui or not args.report,
    )
    config = config_from_args(args)

    if args.tui:
        from .tui import HoptraceApp

        try:
            config.validate()
        except ConfigurationError as exc:
            console.print(f"[red]Configuration error: {exc}[/red]")
            return EXIT_CONFIGURATION
        HoptraceApp(config).run()
        return EXIT_OK

    return run(config)
