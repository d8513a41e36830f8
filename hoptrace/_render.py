"""Fixed-width text rendering of the hop table."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from rich.text import Text

from ._models import Hop, Target

NO_REPLY = "(no reply)"
PLACEHOLDER = "-"
MIN_HOST_WIDTH = 10

STYLE_CLEAN = "green"
STYLE_LOSSY = "yellow"
STYLE_BAD = "red"
STYLE_SILENT = "dim"
STYLE_HEADER = "bold"

LOW_LOSS_LIMIT = 10.0

# hop number, then eight right-aligned numeric columns
_NUMERIC_COLUMNS = (
    ("Loss%", 6),
    ("Snt", 5),
    ("Rcv", 5),
    ("Last", 7),
    ("Avg", 7),
    ("Best", 7),
    ("Wrst", 7),
    ("StDev", 7),
)
_HOP_WIDTH = 4
_FIXED_WIDTH = _HOP_WIDTH + 2 + sum(width + 1 for _, width in _NUMERIC_COLUMNS)


def format_ms(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        return PLACEHOLDER
    return f"{value:.1f}"


def format_loss(value: Optional[float]) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{value:.1f}%"


def host_label(hop: Hop) -> str:
    if hop.address is None:
        return NO_REPLY
    if hop.hostname and hop.hostname != hop.address:
        return f"{hop.hostname} ({hop.address})"
    return hop.address


def row_style(hop: Hop) -> str:
    loss = hop.loss_percent
    if hop.address is None or loss is None:
        return STYLE_SILENT
    if loss == 0:
        return STYLE_CLEAN
    if loss < LOW_LOSS_LIMIT:
        return STYLE_LOSSY
    return STYLE_BAD


class TableRenderer:
    """Turns the hop list into a styled, fixed-column text block.

    Output depends only on its arguments and ``width``, so rendering the same
    state twice yields identical text.
    """

    def __init__(self, target: Optional[Target] = None, width: int = 80):
        self.target = target
        self.width = width

    @property
    def line_width(self) -> int:
        """Longest line written; the last terminal column stays free."""
        return self.width - 1

    @property
    def host_width(self) -> int:
        return max(MIN_HOST_WIDTH, self.line_width - _FIXED_WIDTH)

    def _fit(self, line: str) -> str:
        return line[: self.line_width]

    def _title(self, round: int, round_limit: int, final: bool) -> str:
        target = str(self.target) if self.target else "?"
        if final:
            return self._fit(
                f"Report for {target} after {round} round{'s' if round != 1 else ''}"
            )
        progress = f"{round}/{round_limit}" if round_limit else f"{round}"
        return self._fit(f"hoptrace to {target}    round {progress}")

    def _line(self, hop_col: str, host: str, values: Iterable[str]) -> str:
        width = self.host_width
        if len(host) > width:
            host = host[: width - 3] + "..."
        cells = "".join(
            f" {value:>{col_width}}"
            for value, (_, col_width) in zip(values, _NUMERIC_COLUMNS)
        )
        return self._fit(f"{hop_col:>{_HOP_WIDTH}}  {host:<{width}}{cells}")

    def header(self) -> str:
        return self._line("Hop", "Host", (name for name, _ in _NUMERIC_COLUMNS))

    def row(self, hop: Hop) -> str:
        return self._line(
            f"{hop.ttl}.",
            host_label(hop),
            (
                format_loss(hop.loss_percent),
                str(hop.sent),
                str(hop.received),
                format_ms(hop.last_rtt),
                format_ms(hop.avg_rtt),
                format_ms(hop.best_rtt),
                format_ms(hop.worst_rtt),
                format_ms(hop.stddev),
            ),
        )

    def render(
        self,
        hops: Iterable[Hop],
        round: int,
        round_limit: int = 0,
        final: bool = False,
    ) -> Text:
        text = Text()
        text.append(self._title(round, round_limit, final), style=STYLE_HEADER)
        text.append("\n")
        text.append(self.header(), style=STYLE_HEADER)
        for hop in hops:
            text.append("\n")
            text.append(self.row(hop), style=row_style(hop))
        return text
