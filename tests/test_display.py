import io

from rich.console import Console

from hoptrace import Hop, InteractiveDisplay, ReportDisplay, Screen, TableRenderer, Target

TARGET = Target("example.com", "192.0.2.1")


class FakeScreen(Screen):
    def __init__(self, width=100):
        super().__init__(Console(file=io.StringIO(), width=width))
        self.events = []

    def clear(self):
        self.anchored = True
        self.events.append("clear")

    def move_to_anchor(self):
        self.events.append("anchor")

    def write_lines(self, lines, blank=0):
        self.events.append(("write", [line.plain for line in lines], blank))

    def hide_cursor(self):
        self.events.append("hide")

    def show_cursor(self):
        self.events.append("show")


def hops(count):
    return [Hop(ttl=ttl) for ttl in range(1, count + 1)]


def test_interactive_redraws_from_anchor():
    screen = FakeScreen()
    display = InteractiveDisplay(TableRenderer(), screen)
    display.open(TARGET)
    display.refresh(hops(1), 0, 0, round_complete=False)
    display.refresh(hops(2), 0, 0, round_complete=False)

    assert screen.events[:2] == ["hide", "clear"]
    writes = [event for event in screen.events if isinstance(event, tuple)]
    assert [len(lines) for _, lines, _ in writes] == [3, 4]
    assert screen.events.count("anchor") == 2
    assert screen.events.count("clear") == 1
    assert writes[0][1][0].startswith("hoptrace to example.com (192.0.2.1)")


def test_interactive_blanks_leftover_lines_when_table_shrinks():
    screen = FakeScreen()
    display = InteractiveDisplay(TableRenderer(), screen)
    display.open(TARGET)
    display.refresh(hops(5), 1, 0, round_complete=True)
    display.refresh(hops(2), 2, 0, round_complete=True)

    writes = [event for event in screen.events if isinstance(event, tuple)]
    assert writes[0][2] == 0
    assert len(writes[1][1]) == 4
    assert writes[1][2] == 3


def test_interactive_close_renders_final_then_restores_cursor():
    screen = FakeScreen()
    display = InteractiveDisplay(TableRenderer(), screen)
    display.open(TARGET)
    display.close(hops(2), 3, 0)

    assert screen.events[-1] == "show"
    _, lines, _ = screen.events[-2]
    assert lines[0].startswith("Report for example.com")


def test_screen_writes_control_codes():
    out = io.StringIO()
    screen = Screen(Console(file=out, force_terminal=True, width=40, _environ={"TERM": "xterm"}))
    screen.clear()
    screen.move_to_anchor()
    screen.write_lines(TableRenderer(TARGET).render([], 0).split("\n"), blank=2)

    written = out.getvalue()
    assert written.startswith("\x1b[2J\x1b[H\x1b[H")
    assert written.count("\x1b[0K") == 2
    assert written.count("\x1b[2K") == 2


def test_report_prints_progress_then_single_table():
    out = io.StringIO()
    progress = io.StringIO()
    display = ReportDisplay(
        TableRenderer(),
        Console(file=out, width=100),
        Console(file=progress, width=100),
    )
    display.open(TARGET)
    display.refresh(hops(1), 0, 2, round_complete=False)
    display.refresh(hops(2), 1, 2, round_complete=True)
    display.refresh(hops(2), 2, 2, round_complete=True)
    assert out.getvalue() == ""

    display.close(hops(2), 2, 2)

    assert progress.getvalue().splitlines() == ["round 1/2, 2 hops", "round 2/2, 2 hops"]
    report = out.getvalue().splitlines()
    assert report[0] == "Report for example.com (192.0.2.1) after 2 rounds"
    assert len(report) == 4
