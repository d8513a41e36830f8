import math

import pytest

from hoptrace import Hop, Target, TableRenderer
from hoptrace._render import (
    MIN_HOST_WIDTH,
    NO_REPLY,
    STYLE_BAD,
    STYLE_CLEAN,
    STYLE_LOSSY,
    STYLE_SILENT,
    format_loss,
    format_ms,
    host_label,
    row_style,
)


def make_hop(ttl, address=None, hostname=None, sent=0, rtts=()):
    hop = Hop(ttl=ttl, sent=sent)
    for rtt in rtts:
        hop.record_reply(address, hostname or address, rtt)
    return hop


def test_placeholders_for_missing_values():
    assert format_ms(None) == "-"
    assert format_ms(math.inf) == "-"
    assert format_ms(12.345) == "12.3"
    assert format_loss(None) == "-"
    assert format_loss(83.3333) == "83.3%"


def test_host_label_variants():
    assert host_label(Hop(ttl=1)) == NO_REPLY
    assert host_label(make_hop(1, "10.0.0.1", sent=1, rtts=[1.0])) == "10.0.0.1"
    named = make_hop(1, "10.0.0.1", "gw.example", sent=1, rtts=[1.0])
    assert host_label(named) == "gw.example (10.0.0.1)"


def test_row_styles_distinguish_loss_classes():
    assert row_style(Hop(ttl=1)) == STYLE_SILENT
    assert row_style(Hop(ttl=1, sent=3)) == STYLE_SILENT
    assert row_style(make_hop(1, "10.0.0.1", sent=2, rtts=[1.0, 2.0])) == STYLE_CLEAN
    assert row_style(make_hop(1, "10.0.0.1", sent=20, rtts=[1.0] * 19)) == STYLE_LOSSY
    assert row_style(make_hop(1, "10.0.0.1", sent=10, rtts=[1.0] * 9)) == STYLE_BAD


def test_fresh_row_renders_placeholders():
    renderer = TableRenderer(Target("192.0.2.1", "192.0.2.1"))
    line = renderer.row(Hop(ttl=4))
    assert line.startswith("  4.  (no reply)")
    assert line.split()[-8:] == ["-", "0", "0", "-", "-", "-", "-", "-"]


def test_row_columns():
    renderer = TableRenderer(Target("example.com", "192.0.2.1"), width=100)
    hop = make_hop(2, "192.0.2.1", "example.com", sent=2, rtts=[10.0, 14.0])
    assert renderer.row(hop).split()[-8:] == [
        "0.0%", "2", "2", "14.0", "12.0", "10.0", "14.0", "2.8",
    ]


def test_render_is_idempotent():
    renderer = TableRenderer(Target("example.com", "192.0.2.1"), width=90)
    hops = [
        make_hop(1, "10.0.0.1", "gw.example", sent=3, rtts=[1.0, 2.0]),
        Hop(ttl=2, sent=3),
        make_hop(3, "192.0.2.1", sent=3, rtts=[9.0, 11.0, 10.0]),
    ]
    first = renderer.render(hops, 3, 10)
    second = renderer.render(hops, 3, 10)
    assert first == second
    assert first.plain == second.plain


def test_title_and_layout():
    renderer = TableRenderer(Target("example.com", "192.0.2.1"), width=80)
    text = renderer.render([Hop(ttl=1)], 2, 0)
    lines = text.plain.split("\n")
    assert lines[0] == "hoptrace to example.com (192.0.2.1)    round 2"
    assert lines[1].split() == [
        "Hop", "Host", "Loss%", "Snt", "Rcv", "Last", "Avg", "Best", "Wrst", "StDev",
    ]
    assert len(lines) == 3
    assert all(len(line) == len(lines[1]) for line in lines[1:])

    final = renderer.render([], 4, 4, final=True).plain
    assert final.startswith("Report for example.com (192.0.2.1) after 4 rounds")


def test_long_host_labels_are_truncated():
    renderer = TableRenderer(width=80)
    hop = make_hop(1, "10.0.0.1", "x" * 200 + ".example", sent=1, rtts=[1.0])
    line = renderer.row(hop)
    assert "..." in line
    assert len(line) == len(renderer.header())


def test_host_column_grows_with_width():
    narrow = TableRenderer(width=40)
    wide = TableRenderer(width=160)
    assert narrow.host_width == MIN_HOST_WIDTH
    assert wide.host_width > narrow.host_width
    assert len(wide.header()) == 159


@pytest.mark.parametrize("width", [40, 80, 120])
def test_lines_leave_last_column_free(width):
    renderer = TableRenderer(Target("a-rather-long-target-name.example.com", "192.0.2.1"), width=width)
    hops = [
        make_hop(1, "10.0.0.1", "edge-router-with-a-long-name.example.net", sent=4, rtts=[1.0, 2.5]),
        Hop(ttl=2, sent=4),
    ]
    for final in (False, True):
        lines = renderer.render(hops, 4, 10, final=final).plain.split("\n")
        assert all(len(line) < width for line in lines)


def test_three_digit_ttl_keeps_columns_aligned():
    renderer = TableRenderer(width=100)
    assert len(renderer.row(Hop(ttl=100))) == len(renderer.header()) == 99
    assert renderer.row(Hop(ttl=100)).startswith("100.  ")
