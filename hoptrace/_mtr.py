"""Round-based probing engine."""

from __future__ import annotations

import enum
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ._config import MtrConfig
from ._display import Display
from ._dns import AddressResolver, DnsCache, ReverseResolver, lookup_address, resolve_target
from ._hops import HopTable
from ._icmp import logger
from ._models import Arrived, Hop, Target
from ._probe import Prober, ProbeDriver
from ._render import TableRenderer

PAUSE_SLICE = 0.1


class Phase(enum.Enum):
    PROBING = "probing"
    ROUND_COMPLETE = "round-complete"
    SLEEPING = "sleeping"
    FINISHED = "finished"


@dataclass
class RunState:
    max_ttl: int
    round: int = 0
    ttl: int = 0
    phase: Phase = Phase.PROBING
    elapsed: float = 0.0
    cancel: threading.Event = field(default_factory=threading.Event)
    # set from signal handlers, which must not take the event's lock
    interrupted: bool = False

    @property
    def cancelled(self) -> bool:
        return self.interrupted or self.cancel.is_set()


@dataclass
class MtrResult:
    target: Target
    rounds: int
    round_limit: int
    max_ttl: int
    cancelled: bool
    hops: list[Hop]

    def __str__(self) -> str:
        renderer = TableRenderer(self.target)
        text = renderer.render(self.hops, self.rounds, self.round_limit, final=True)
        return text.plain + "\n"

    def __rich__(self) -> str:  # pragma: no cover - rich display helper
        return self.__str__()


class Mtr:
    """Repeatedly sweeps TTL 1..max over the path to one target.

    All per-run state (hop table, DNS cache, round bookkeeping) lives on the
    instance, so independent runs never share anything.
    """

    def __init__(
        self,
        config: MtrConfig,
        prober: Prober,
        display: Optional[Display] = None,
        *,
        resolver: AddressResolver = lookup_address,
        reverse_resolver: Optional[ReverseResolver] = None,
        cancel: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        config.validate()
        self.config = config
        self.prober = prober
        self.display = display or Display()
        self.table = HopTable()
        if reverse_resolver is None:
            self.dns = DnsCache(enabled=config.resolve_dns)
        else:
            self.dns = DnsCache(reverse_resolver, enabled=config.resolve_dns)
        self.state = RunState(
            max_ttl=config.max_hops, cancel=cancel or threading.Event()
        )
        self.target: Optional[Target] = None
        self._resolver = resolver
        self._clock = clock

    def cancel(self) -> None:
        self.state.cancel.set()

    def interrupt(self) -> None:
        """Request cancellation; safe to call from a signal handler."""
        self.state.interrupted = True

    def resolve(self) -> Target:
        if self.target is None:
            self.target = resolve_target(self.config.target, self._resolver)
        return self.target

    def visible_hops(self) -> list[Hop]:
        return [hop for hop in self.table if hop.ttl <= self.state.max_ttl]

    def _refresh(self, *, round_complete: bool) -> None:
        self.display.refresh(
            self.visible_hops(),
            self.state.round,
            self.config.rounds,
            round_complete=round_complete,
        )

    def run_round(self, driver: ProbeDriver) -> bool:
        """Probe every TTL once; return ``False`` if cancelled part way."""
        state = self.state
        state.phase = Phase.PROBING
        first = state.round == 0
        ttl = 1
        while ttl <= state.max_ttl:
            if state.cancelled:
                return False
            state.ttl = ttl
            outcome = driver.probe(ttl)
            if isinstance(outcome, Arrived) and ttl < state.max_ttl:
                logger.info("Destination reached at TTL %d", ttl)
                state.max_ttl = ttl
            if first:
                self._refresh(round_complete=False)
            ttl += 1
        return True

    def _pause(self, started: float) -> None:
        state = self.state
        state.phase = Phase.SLEEPING
        spent = self._clock() - started
        state.elapsed += spent
        remaining = max(0.0, self.config.interval - spent)
        while remaining > 0 and not state.cancelled:
            step = min(remaining, PAUSE_SLICE)
            if state.cancel.wait(step):
                break
            remaining -= step

    def run(self) -> MtrResult:
        """Run until the round limit is reached or cancellation is requested.

        Raises :class:`ResolutionError` before probing when the target has no
        address. The final render always runs once probing has started.
        """
        config = self.config
        target = self.resolve()
        driver = ProbeDriver(self.prober, self.table, self.dns, target, config.timeout_ms)
        state = self.state
        logger.info(
            "Starting MTR to %s rounds=%s max_hops=%d interval=%.2fs",
            target,
            config.rounds or "unbounded",
            config.max_hops,
            config.interval,
        )

        self.display.open(target)
        try:
            while not state.cancelled:
                started = self._clock()
                if not self.run_round(driver):
                    break
                state.round += 1
                state.phase = Phase.ROUND_COMPLETE
                logger.info(
                    "Round %d complete, %d hops", state.round, len(self.visible_hops())
                )
                self._refresh(round_complete=True)
                if config.bounded and state.round >= config.rounds:
                    break
                self._pause(started)
        finally:
            state.phase = Phase.FINISHED
            if state.cancelled:
                logger.info("Cancelled during round %d", state.round + 1)
            self.display.close(self.visible_hops(), state.round, config.rounds)

        return MtrResult(
            target=target,
            rounds=state.round,
            round_limit=config.rounds,
            max_ttl=state.max_ttl,
            cancelled=state.cancelled,
            hops=self.visible_hops(),
        )


def mtr(
    prober: Prober,
    dest_addr: str,
    *,
    max_hops: int = 30,
    rounds: int = 5,
    interval: float = 0.0,
    timeout_ms: float = 1000.0,
    resolve_dns: bool = False,
    display: Optional[Display] = None,
) -> MtrResult:
    """Run a bounded MTR session using an existing prober such as :class:`Icmp`."""
    config = MtrConfig(
        target=dest_addr,
        max_hops=max_hops,
        rounds=rounds,
        interval=interval,
        timeout_ms=timeout_ms,
        resolve_dns=resolve_dns,
    )
    return Mtr(config, prober, display).run()
