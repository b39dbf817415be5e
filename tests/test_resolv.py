import socket
from types import SimpleNamespace
from unittest.mock import patch

import dns.rdatatype
import dns.resolver
import pytest

from relaykit.netutils import SockAddr
from relaykit.resolv import ResolvMode, Resolver, choose_address

V4 = SockAddr.from_ip("192.0.2.1", 80)
V4B = SockAddr.from_ip("192.0.2.2", 80)
V6 = SockAddr.from_ip("2001:db8::1", 80)


def _records(*addresses):
    return [SimpleNamespace(address=a) for a in addresses]


def _fake(a=None, aaaa=None, calls=None):
    def resolve(qname, rdtype, **kwargs):
        if calls is not None:
            calls.append((qname, rdtype, kwargs))
        result = a if rdtype == dns.rdatatype.A else aaaa
        if isinstance(result, Exception):
            raise result
        return result or []
    return resolve


def test_choose_ipv4_first_prefers_v4():
    assert choose_address([V6, V4, V4B], ResolvMode.IPV4_FIRST) == V4


def test_choose_ipv6_first_prefers_v6():
    assert choose_address([V4, V4B, V6], ResolvMode.IPV6_FIRST) == V6


def test_choose_falls_back_to_first():
    assert choose_address([V4, V4B], ResolvMode.IPV6_FIRST) == V4
    assert choose_address([V6], ResolvMode.IPV4_FIRST) == V6


def test_choose_any_mode_takes_first():
    assert choose_address([V6, V4], ResolvMode.IPV4_ONLY) == V6


def test_choose_empty_is_none():
    assert choose_address([], ResolvMode.IPV4_FIRST) is None


def test_mode_follows_ipv6first():
    assert Resolver(["192.0.2.53"]).mode is ResolvMode.IPV4_FIRST
    assert Resolver(["192.0.2.53"], ipv6first=True).mode is ResolvMode.IPV6_FIRST


def test_nameservers_kept():
    resolver = Resolver(["192.0.2.53", "192.0.2.54"])
    assert resolver.nameservers == ["192.0.2.53", "192.0.2.54"]


def test_resolve_prefers_v4_and_sets_port():
    resolver = Resolver(["192.0.2.53"])
    fake = _fake(a=_records("192.0.2.7"), aaaa=_records("2001:db8::7"))
    with patch.object(resolver._resolver, "resolve", side_effect=fake):
        result = resolver.resolve("example.com", 443)
    assert result == SockAddr.from_ip("192.0.2.7", 443)
    assert result.family == socket.AF_INET


def test_resolve_prefers_v6_when_asked():
    resolver = Resolver(["192.0.2.53"], ipv6first=True)
    fake = _fake(a=_records("192.0.2.7"), aaaa=_records("2001:db8::7"))
    with patch.object(resolver._resolver, "resolve", side_effect=fake):
        result = resolver.resolve("example.com", 8080)
    assert result == SockAddr.from_ip("2001:db8::7", 8080)


def test_resolve_failed_query_is_skipped():
    resolver = Resolver(["192.0.2.53"])
    fake = _fake(a=dns.resolver.NXDOMAIN(), aaaa=_records("2001:db8::9"))
    with patch.object(resolver._resolver, "resolve", side_effect=fake):
        result = resolver.resolve("example.com", 22)
    assert result == SockAddr.from_ip("2001:db8::9", 22)


def test_resolve_nothing_found_is_none():
    resolver = Resolver(["192.0.2.53"])
    fake = _fake(a=dns.resolver.NoAnswer(), aaaa=dns.resolver.NXDOMAIN())
    with patch.object(resolver._resolver, "resolve", side_effect=fake):
        assert resolver.resolve("example.com", 22) is None


def test_both_families_queried():
    resolver = Resolver(["192.0.2.53"])
    calls = []
    fake = _fake(aaaa=_records("2001:db8::5"), calls=calls)
    with patch.object(resolver._resolver, "resolve", side_effect=fake):
        result = resolver.resolve("example.com", 80)
    assert result == SockAddr.from_ip("2001:db8::5", 80)
    assert [c[1] for c in calls] == [dns.rdatatype.A, dns.rdatatype.AAAA]
    assert all(c[0] == "example.com" for c in calls)


@pytest.mark.parametrize(
    "mode, expected_types, expected_result",
    [
        (ResolvMode.IPV4_ONLY, [dns.rdatatype.A], SockAddr.from_ip("192.0.2.7", 80)),
        (ResolvMode.IPV6_ONLY, [dns.rdatatype.AAAA], SockAddr.from_ip("2001:db8::7", 80)),
    ],
)
def test_only_modes_query_one_family(mode, expected_types, expected_result):
    resolver = Resolver(["192.0.2.53"])
    resolver.mode = mode
    calls = []
    fake = _fake(a=_records("192.0.2.7"), aaaa=_records("2001:db8::7"), calls=calls)
    with patch.object(resolver._resolver, "resolve", side_effect=fake):
        result = resolver.resolve("example.com", 80)
    assert result == expected_result
    assert [c[1] for c in calls] == expected_types


def test_loopback_nameserver_sets_source():
    resolver = Resolver(["127.0.0.1"])
    calls = []
    fake = _fake(a=_records("192.0.2.7"), calls=calls)
    with patch.object(resolver._resolver, "resolve", side_effect=fake):
        result = resolver.resolve("example.com", 80)
    assert result == SockAddr.from_ip("192.0.2.7", 80)
    assert calls and all(c[2]["source"] == "127.0.0.1" for c in calls)


def test_remote_nameserver_has_no_source():
    resolver = Resolver(["192.0.2.53"])
    calls = []
    fake = _fake(a=_records("192.0.2.8"), calls=calls)
    with patch.object(resolver._resolver, "resolve", side_effect=fake):
        result = resolver.resolve("example.com", 80)
    assert result == SockAddr.from_ip("192.0.2.8", 80)
    assert calls and all(c[2]["source"] is None for c in calls)