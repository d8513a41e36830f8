"""Running latency statistics."""

from __future__ import annotations

import math


class RunningStats:
    """Single-pass mean and variance using Welford's recurrence.

    No samples are stored, so memory stays constant however long a run lasts.
    """

    __slots__ = ("count", "mean", "sum_squared_delta")

    def __init__(self) -> None:
        self.count = 0
        self.mean = 0.0
        self.sum_squared_delta = 0.0

    def observe(self, rtt: float) -> None:
        self.count += 1
        delta = rtt - self.mean
        self.mean += delta / self.count
        self.sum_squared_delta += delta * (rtt - self.mean)

    def variance(self) -> float:
        """Sample variance, ``0.0`` until two samples have been seen."""
        if self.count > 1:
            return self.sum_squared_delta / (self.count - 1)
        return 0.0

    def stddev(self) -> float:
        return math.sqrt(self.variance())

    def __repr__(self) -> str:
        return (
            f"RunningStats(count={self.count}, mean={self.mean:.3f}, "
            f"stddev={self.stddev():.3f})"
        )
