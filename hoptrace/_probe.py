"""Single-probe execution and hop bookkeeping."""

from __future__ import annotations

from typing import Protocol

from ._dns import DnsCache
from ._exceptions import RawSocketPermissionError
from ._hops import HopTable
from ._icmp import logger
from ._models import Arrived, Outcome, Relayed, Silent, Target


class Prober(Protocol):
    def echo(self, address: str, ttl: int, timeout_ms: float) -> Outcome: ...


class ProbeDriver:
    """Issues one probe per call and folds the outcome into the hop table."""

    def __init__(
        self,
        prober: Prober,
        table: HopTable,
        dns: DnsCache,
        target: Target,
        timeout_ms: float,
    ):
        self.prober = prober
        self.table = table
        self.dns = dns
        self.target = target
        self.timeout_ms = timeout_ms

    def probe(self, ttl: int) -> Outcome:
        hop = self.table.get_or_create(ttl)
        hop.sent += 1
        try:
            outcome = self.prober.echo(self.target.address, ttl, self.timeout_ms)
        except RawSocketPermissionError:
            raise
        except Exception as exc:  # transport failures count as loss
            logger.debug("  ttl %d: probe error %s", ttl, exc)
            outcome = Silent(str(exc))

        if isinstance(outcome, (Relayed, Arrived)):
            hostname = (
                hop.hostname
                if outcome.address == hop.address and hop.hostname
                else self.dns.resolve(outcome.address)
            )
            hop.record_reply(outcome.address, hostname, outcome.rtt)
            logger.debug(
                "  ttl %d: %s %s rtt=%.2f ms",
                ttl,
                "arrived" if isinstance(outcome, Arrived) else "relayed",
                outcome.address,
                outcome.rtt,
            )
        elif isinstance(outcome, Silent):
            logger.debug("  ttl %d: %s", ttl, outcome.reason)
        else:
            raise TypeError(f"unexpected probe outcome {outcome!r}")
        return outcome
