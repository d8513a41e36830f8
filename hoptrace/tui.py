"""Interactive Textual TUI for hoptrace."""

from __future__ import annotations

import threading
from typing import Optional, Sequence

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.widgets import DataTable, Footer, Static

from ._config import MtrConfig
from ._display import Display
from ._exceptions import RawSocketPermissionError, ResolutionError
from ._icmp import Icmp
from ._models import Hop, Target
from ._mtr import Mtr
from ._probe import Prober
from ._render import format_loss, format_ms, host_label, row_style

COLUMNS = (
    "Hop",
    "Host",
    "Loss%",
    "Snt",
    "Rcv",
    "Last",
    "Avg",
    "Best",
    "Wrst",
    "StDev",
)


def hop_cells(hop: Hop) -> tuple[Text, ...]:
    style = row_style(hop)
    values = (
        str(hop.ttl),
        host_label(hop),
        format_loss(hop.loss_percent),
        str(hop.sent),
        str(hop.received),
        format_ms(hop.last_rtt),
        format_ms(hop.avg_rtt),
        format_ms(hop.best_rtt),
        format_ms(hop.worst_rtt),
        format_ms(hop.stddev),
    )
    return tuple(
        Text(value, style=style, justify="left" if idx == 1 else "right")
        for idx, value in enumerate(values)
    )


class TableDisplay(Display):
    """Pushes row snapshots from the engine thread into the app."""

    def __init__(self, app: "HoptraceApp"):
        self.app = app
        self.target: Optional[Target] = None

    def _push(self, hops: Sequence[Hop], caption: str) -> None:
        if not self.app.is_running:
            return
        rows = [hop_cells(hop) for hop in hops]
        self.app.call_from_thread(self.app.show_hops, rows, caption)

    def open(self, target: Target) -> None:
        self.target = target

    def refresh(self, hops, round, round_limit, *, round_complete):
        progress = f"{round}/{round_limit}" if round_limit else str(round)
        self._push(hops, f"{self.target} | round {progress}")

    def close(self, hops, round, round_limit):
        self._push(hops, f"{self.target} | finished after {round} rounds")


class HoptraceApp(App):
    """Single-screen Textual view of a running hoptrace session."""

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, config: MtrConfig, prober: Optional[Prober] = None) -> None:
        super().__init__()
        self.mtr_config = config
        self.prober = prober
        self.cancel = threading.Event()
        self.status_text = ""

    def compose(self) -> ComposeResult:
        yield Static(f"Resolving {self.mtr_config.target}...", id="summary")
        yield DataTable(id="hops", zebra_stripes=True)
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#hops", DataTable).add_columns(*COLUMNS)
        self.perform_mtr()

    @work(thread=True, exclusive=True)
    def perform_mtr(self) -> None:
        with Icmp() as icmp:
            engine = Mtr(
                self.mtr_config,
                self.prober or icmp,
                TableDisplay(self),
                cancel=self.cancel,
            )
            try:
                target = engine.resolve()
                if self.prober is None:
                    icmp.open(target.address)
                engine.run()
            except (ResolutionError, RawSocketPermissionError) as exc:
                self.call_from_thread(self.show_error, exc)

    def show_hops(self, rows: list[tuple[Text, ...]], caption: str) -> None:
        table = self.query_one("#hops", DataTable)
        table.clear()
        for row in rows:
            table.add_row(*row)
        self.status_text = caption
        self.query_one("#summary", Static).update(caption)

    def show_error(self, error: Exception) -> None:
        self.bell()
        self.status_text = f"Error: {error}"
        self.query_one("#summary", Static).update(self.status_text)
        self.notify(str(error), severity="error")

    async def action_quit(self) -> None:
        self.cancel.set()
        self.exit()
