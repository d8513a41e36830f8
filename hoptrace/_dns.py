"""Forward and reverse name resolution."""

from __future__ import annotations

import ipaddress
import socket
from typing import Callable, Optional

from ._exceptions import ResolutionError
from ._icmp import logger
from ._models import Target

ReverseResolver = Callable[[str], Optional[str]]
AddressResolver = Callable[[str], str]


def reverse_lookup(addr: str) -> Optional[str]:
    try:
        return socket.gethostbyaddr(addr)[0]
    except OSError:
        return None


def lookup_address(host: str) -> str:
    """Return the first address ``getaddrinfo`` yields for ``host``."""
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        pass
    try:
        infos = socket.getaddrinfo(host, None)
    except OSError as exc:
        raise ResolutionError(f"Resolve error {host}: {exc}") from exc
    if not infos:
        raise ResolutionError(f"Resolve error {host}: no address")
    return infos[0][4][0]


def resolve_target(label: str, resolver: AddressResolver = lookup_address) -> Target:
    try:
        address = resolver(label)
    except ResolutionError as exc:
        logger.error(str(exc))
        raise
    if not address:
        message = f"Resolve error {label}: no address"
        logger.error(message)
        raise ResolutionError(message)
    return Target(label=label, address=address)


class DnsCache:
    """Per-run memo of reverse lookups.

    Each distinct address is looked up at most once; failures are cached as
    the address itself.
    """

    def __init__(self, resolver: ReverseResolver = reverse_lookup, enabled: bool = True):
        self._resolver = resolver
        self.enabled = enabled
        self._names: dict[str, str] = {}

    def resolve(self, address: str) -> str:
        if not self.enabled:
            return address
        name = self._names.get(address)
        if name is None:
            try:
                name = self._resolver(address) or address
            except Exception as exc:
                logger.debug("Reverse lookup for %s failed: %s", address, exc)
                name = address
            self._names[address] = name
        return name

    def __contains__(self, address: str) -> bool:
        return address in self._names

    def __len__(self) -> int:
        return len(self._names)
