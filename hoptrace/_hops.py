"""Ordered, per-run collection of hop records."""

from __future__ import annotations

from typing import Iterator, Optional

from ._models import Hop


class HopTable:
    """Hops keyed by TTL, iterated in ascending TTL order.

    Records are never removed during a run.
    """

    def __init__(self) -> None:
        self._hops: dict[int, Hop] = {}

    def get_or_create(self, ttl: int) -> Hop:
        hop = self._hops.get(ttl)
        if hop is None:
            if ttl < 1:
                raise ValueError(f"ttl must be positive, got {ttl}")
            hop = Hop(ttl=ttl)
            in_order = not self._hops or ttl > next(reversed(self._hops))
            self._hops[ttl] = hop
            if not in_order:
                self._hops = dict(sorted(self._hops.items()))
        return hop

    def get(self, ttl: int) -> Optional[Hop]:
        return self._hops.get(ttl)

    def all(self) -> list[Hop]:
        return list(self._hops.values())

    def ttls(self) -> list[int]:
        return list(self._hops)

    def __iter__(self) -> Iterator[Hop]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._hops)

    def __contains__(self, ttl: int) -> bool:
        return ttl in self._hops
