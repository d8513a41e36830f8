"""Display surface and the redraw disciplines built on it."""

from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType
from rich.text import Text

from ._models import Hop, Target
from ._render import TableRenderer

ERASE_TO_EOL = Control((ControlType.ERASE_IN_LINE, 0))
ERASE_LINE = Control((ControlType.ERASE_IN_LINE, 2))


class Screen:
    """Terminal surface with a remembered anchor at the top-left corner."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.anchored = False

    @property
    def width(self) -> int:
        return self.console.width

    def clear(self) -> None:
        self.console.clear(home=True)
        self.anchored = True

    def move_to_anchor(self) -> None:
        self.console.control(Control.home())

    def write_lines(self, lines: Sequence[Text], blank: int = 0) -> None:
        for line in lines:
            self.console.print(line, end="", soft_wrap=True)
            self.console.control(ERASE_TO_EOL)
            self.console.line()
        for _ in range(blank):
            self.console.control(ERASE_LINE)
            self.console.line()

    def hide_cursor(self) -> None:
        self.console.show_cursor(False)

    def show_cursor(self) -> None:
        self.console.show_cursor(True)


class Display:
    """Redraw discipline interface; the base class draws nothing."""

    def open(self, target: Target) -> None:
        """Acquire the display surface for a run against ``target``."""

    def refresh(
        self,
        hops: Sequence[Hop],
        round: int,
        round_limit: int,
        *,
        round_complete: bool,
    ) -> None:
        """Show the current table state."""

    def close(self, hops: Sequence[Hop], round: int, round_limit: int) -> None:
        """Show the final table and release the surface."""


class InteractiveDisplay(Display):
    """Overwrites the table in place from the anchor on every refresh."""

    def __init__(self, renderer: TableRenderer, screen: Optional[Screen] = None):
        self.renderer = renderer
        self.screen = screen or Screen()
        self._lines = 0

    def open(self, target: Target) -> None:
        self.renderer.target = target
        self.screen.hide_cursor()
        self.screen.clear()
        self._lines = 0

    def _draw(self, text: Text) -> None:
        lines = text.split("\n")
        if not self.screen.anchored:
            self.screen.clear()
        self.screen.move_to_anchor()
        self.screen.write_lines(lines, blank=max(0, self._lines - len(lines)))
        self._lines = len(lines)

    def refresh(self, hops, round, round_limit, *, round_complete):
        self.renderer.width = self.screen.width
        self._draw(self.renderer.render(hops, round, round_limit))

    def close(self, hops, round, round_limit):
        try:
            self.renderer.width = self.screen.width
            self._draw(self.renderer.render(hops, round, round_limit, final=True))
        finally:
            self.screen.show_cursor()


class ReportDisplay(Display):
    """Prints progress lines while running and the full table once at the end."""

    def __init__(
        self,
        renderer: TableRenderer,
        console: Optional[Console] = None,
        progress: Optional[Console] = None,
    ):
        self.renderer = renderer
        self.console = console or Console()
        self.progress = progress or Console(stderr=True)

    def open(self, target: Target) -> None:
        self.renderer.target = target

    def refresh(self, hops, round, round_limit, *, round_complete):
        if round_complete:
            self.progress.print(
                f"round {round}/{round_limit}, {len(hops)} hops", highlight=False
            )

    def close(self, hops, round, round_limit):
        self.renderer.width = self.console.width
        self.console.print(
            self.renderer.render(hops, round, round_limit, final=True),
            soft_wrap=True,
        )
