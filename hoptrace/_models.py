"""Data model shared by the probing engine and its front ends."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Union

from ._stats import RunningStats


@dataclass(frozen=True)
class Target:
    label: str
    address: str

    def __str__(self) -> str:
        if self.label == self.address:
            return self.address
        return f"{self.label} ({self.address})"


@dataclass(frozen=True)
class Relayed:
    """A router on the path answered with Time Exceeded."""

    address: str
    rtt: float


@dataclass(frozen=True)
class Arrived:
    """The destination itself answered the echo request."""

    address: str
    rtt: float


@dataclass(frozen=True)
class Silent:
    """No usable answer: timeout, unreachable, or transport error."""

    reason: str = "timeout"


Outcome = Union[Relayed, Arrived, Silent]


@dataclass
class Hop:
    ttl: int
    address: Optional[str] = None
    hostname: Optional[str] = None
    sent: int = 0
    received: int = 0
    last_rtt: Optional[float] = None
    best_rtt: float = math.inf
    worst_rtt: Optional[float] = None
    stats: RunningStats = field(default_factory=RunningStats, repr=False)

    @property
    def loss_percent(self) -> Optional[float]:
        if self.sent == 0:
            return None
        return (self.sent - self.received) / self.sent * 100

    @property
    def avg_rtt(self) -> Optional[float]:
        return self.stats.mean if self.received else None

    @property
    def stddev(self) -> Optional[float]:
        return self.stats.stddev() if self.received else None

    @property
    def replied(self) -> bool:
        return self.address is not None

    def record_reply(self, address: str, hostname: str, rtt: float) -> None:
        """Fold one successful reply into the hop.

        A different responder at the same TTL replaces the previous one.
        """
        if address != self.address:
            self.address = address
            self.hostname = hostname
        self.received += 1
        self.last_rtt = rtt
        self.best_rtt = min(self.best_rtt, rtt)
        self.worst_rtt = rtt if self.worst_rtt is None else max(self.worst_rtt, rtt)
        self.stats.observe(rtt)
