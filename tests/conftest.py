from collections import deque

import pytest

from hoptrace import Display, MtrConfig, Silent


class FakeProber:
    """
    script: dict[ttl] -> list of outcomes returned in order; the last outcome
    repeats once the list is exhausted. Unscripted TTLs stay silent.
    """

    def __init__(self, script=None, on_probe=None):
        self.script = {ttl: deque(outcomes) for ttl, outcomes in (script or {}).items()}
        self.on_probe = on_probe
        self.calls = []

    def echo(self, address, ttl, timeout_ms):
        self.calls.append((address, ttl, timeout_ms))
        if self.on_probe is not None:
            self.on_probe(ttl)
        outcomes = self.script.get(ttl)
        if not outcomes:
            return Silent()
        if len(outcomes) > 1:
            return outcomes.popleft()
        return outcomes[0]

    @property
    def ttls(self):
        return [ttl for _, ttl, _ in self.calls]


class RecordingDisplay(Display):
    def __init__(self):
        self.opened = None
        self.refreshes = []
        self.closes = []

    def open(self, target):
        self.opened = target

    def refresh(self, hops, round, round_limit, *, round_complete):
        self.refreshes.append(([hop.ttl for hop in hops], round, round_complete))

    def close(self, hops, round, round_limit):
        self.closes.append(([hop.ttl for hop in hops], round))


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def config():
    return MtrConfig(target="192.0.2.10", max_hops=10, rounds=1, interval=0.0, resolve_dns=False)
