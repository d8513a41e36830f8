"""Minimal MTR loop using hoptrace with a rich Live table."""

from __future__ import annotations

import argparse

from rich import box
from rich.console import Console
from rich.live import Live
from rich.table import Table

from hoptrace import Display, Icmp, Mtr, MtrConfig, RawSocketPermissionError, ResolutionError
from hoptrace._render import format_loss, format_ms, host_label, row_style


console = Console()


def _build_table(title: str, hops, round: int, round_limit: int) -> Table:
    caption = f"Round {round}/{round_limit}" if round else "Collecting..."
    table = Table(title=title, caption=caption, box=box.SQUARE, expand=True)
    table.add_column("Hop", justify="right", style="cyan", no_wrap=True)
    table.add_column("Host")
    table.add_column("Loss %", justify="right")
    table.add_column("Sent", justify="right")
    table.add_column("Recv", justify="right")
    table.add_column("Last", justify="right")
    table.add_column("Avg", justify="right")
    table.add_column("Best", justify="right")
    table.add_column("Worst", justify="right")

    for hop in hops:
        table.add_row(
            str(hop.ttl),
            host_label(hop),
            format_loss(hop.loss_percent),
            str(hop.sent),
            str(hop.received),
            format_ms(hop.last_rtt),
            format_ms(hop.avg_rtt),
            format_ms(hop.best_rtt),
            format_ms(hop.worst_rtt),
            style=row_style(hop),
        )
    return table


class LiveDisplay(Display):
    def __init__(self) -> None:
        self.live = Live(console=console)
        self.title = ""

    def open(self, target) -> None:
        self.title = f"MTR to {target}"
        self.live.start()

    def refresh(self, hops, round, round_limit, *, round_complete):
        self.live.update(_build_table(self.title, hops, round, round_limit))

    def close(self, hops, round, round_limit):
        self.live.update(_build_table(self.title, hops, round, round_limit))
        self.live.stop()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run an interactive MTR loop")
    parser.add_argument("host", nargs="?", default="8.8.8.8", help="target host")
    parser.add_argument("-c", "--cycles", type=int, default=5, help="number of rounds")
    parser.add_argument("-m", "--max-hops", type=int, default=30, help="max hop TTL")
    parser.add_argument("-t", "--timeout", type=float, default=1.0, help="probe timeout")
    parser.add_argument("-i", "--interval", type=float, default=1.0, help="round interval")
    parser.add_argument("--no-dns", action="store_true", help="skip reverse DNS lookups")
    args = parser.parse_args()

    config = MtrConfig(
        target=args.host,
        max_hops=max(1, args.max_hops),
        rounds=max(1, args.cycles),
        interval=max(0.0, args.interval),
        timeout_ms=max(0.1, args.timeout) * 1000,
        resolve_dns=not args.no_dns,
    )
    with Icmp() as icmp:
        engine = Mtr(config, icmp, LiveDisplay())
        try:
            icmp.open(engine.resolve().address)
            engine.run()
        except RawSocketPermissionError as exc:
            console.print(f"[red]{exc}[/red]")
        except ResolutionError as exc:
            console.print(f"[red]{exc}[/red]")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
