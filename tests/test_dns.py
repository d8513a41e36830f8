import socket

import pytest

from hoptrace import DnsCache, ResolutionError, lookup_address, resolve_target


class CountingResolver:
    def __init__(self, names=None, error=None):
        self.names = names or {}
        self.error = error
        self.calls = []

    def __call__(self, address):
        self.calls.append(address)
        if self.error is not None:
            raise self.error
        return self.names.get(address)


def test_lookup_happens_once_per_address():
    resolver = CountingResolver({"10.0.0.1": "gw.example"})
    cache = DnsCache(resolver)
    for _ in range(5):
        assert cache.resolve("10.0.0.1") == "gw.example"
    assert resolver.calls == ["10.0.0.1"]
    assert "10.0.0.1" in cache


def test_failed_lookup_is_cached_as_address():
    resolver = CountingResolver()
    cache = DnsCache(resolver)
    assert cache.resolve("10.0.0.2") == "10.0.0.2"
    assert cache.resolve("10.0.0.2") == "10.0.0.2"
    assert resolver.calls == ["10.0.0.2"]


def test_resolver_exception_degrades_to_address():
    resolver = CountingResolver(error=OSError("no PTR"))
    cache = DnsCache(resolver)
    assert cache.resolve("10.0.0.3") == "10.0.0.3"
    assert cache.resolve("10.0.0.3") == "10.0.0.3"
    assert len(resolver.calls) == 1


def test_disabled_cache_never_looks_up():
    resolver = CountingResolver({"10.0.0.1": "gw.example"})
    cache = DnsCache(resolver, enabled=False)
    assert cache.resolve("10.0.0.1") == "10.0.0.1"
    assert resolver.calls == []
    assert len(cache) == 0


def test_literal_address_skips_lookup(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("getaddrinfo should not be called")

    monkeypatch.setattr(socket, "getaddrinfo", fail)
    assert lookup_address("192.0.2.7") == "192.0.2.7"
    assert lookup_address("2001:db8::1") == "2001:db8::1"


def test_lookup_uses_first_result(monkeypatch):
    infos = [
        (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("2001:db8::5", 0, 0, 0)),
        (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.5", 0)),
    ]
    monkeypatch.setattr(socket, "getaddrinfo", lambda *args, **kwargs: infos)
    assert lookup_address("dual.example") == "2001:db8::5"


def test_lookup_failure_raises(monkeypatch):
    def fail(*args, **kwargs):
        raise socket.gaierror(-2, "Name or service not known")

    monkeypatch.setattr(socket, "getaddrinfo", fail)
    with pytest.raises(ResolutionError):
        lookup_address("nowhere.invalid")


def test_resolve_target_rejects_empty_address():
    with pytest.raises(ResolutionError):
        resolve_target("example.com", lambda label: "")


def test_resolve_target_keeps_label():
    target = resolve_target("example.com", lambda label: "192.0.2.1")
    assert target.label == "example.com"
    assert target.address == "192.0.2.1"
