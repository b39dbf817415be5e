"""Asynchronous-style hostname resolution with address-family preference."""

from __future__ import annotations

import enum
import logging
import socket
from collections.abc import Iterable, Sequence
from typing import Optional

import dns.exception
import dns.rdatatype
import dns.resolver

from relaykit.netutils import SockAddr

__all__ = ["ResolvMode", "Resolver", "choose_address"]

log = logging.getLogger(__name__)

# Longest total wait for one query, in seconds.
_QUERY_LIFETIME = 30.0

_LOOPBACK_PREFIXES = ("127.0.0.1", "::1")


class ResolvMode(enum.IntEnum):
    """Which address families to ask for and which to prefer."""

    IPV4_ONLY = 0
    IPV6_ONLY = 1
    IPV4_FIRST = 2
    IPV6_FIRST = 3


def choose_address(responses: Sequence[SockAddr], mode: ResolvMode) -> Optional[SockAddr]:
    """Pick the best address from ``responses`` for ``mode``.

    In the "first" modes the first address of the preferred family wins;
    otherwise, and when none of that family is present, the first address
    is taken. Returns None when there are no responses.
    """
    preferred = {
        ResolvMode.IPV4_FIRST: socket.AF_INET,
        ResolvMode.IPV6_FIRST: socket.AF_INET6,
    }.get(mode)
    if preferred is not None:
        for addr in responses:
            if addr.family == preferred:
                return addr
    return responses[0] if responses else None


class Resolver:
    """Resolves host names to a single socket address.

    With no ``nameservers`` the system resolver configuration is used.
    A single loopback nameserver makes queries go out from that address.
    """

    def __init__(self, nameservers: Optional[Iterable[str]] = None,
                 ipv6first: bool = False) -> None:
        self.mode = ResolvMode.IPV6_FIRST if ipv6first else ResolvMode.IPV4_FIRST
        self._source: Optional[str] = None
        if nameservers is None:
            self._resolver = dns.resolver.Resolver(configure=True)
        else:
            servers = list(nameservers)
            self._resolver = dns.resolver.Resolver(configure=False)
            self._resolver.nameservers = servers
            if len(servers) == 1 and servers[0].startswith(_LOOPBACK_PREFIXES):
                log.debug("bind UDP resolver to %s", servers[0])
                self._source = servers[0]

    @property
    def nameservers(self) -> list:
        """The nameservers queries are sent to."""
        return list(self._resolver.nameservers)

    def _query(self, hostname: str, rdtype: dns.rdatatype.RdataType,
               port: int, label: str) -> list[SockAddr]:
        try:
            answer = self._resolver.resolve(
                hostname,
                rdtype,
                source=self._source,
                raise_on_no_answer=False,
                lifetime=_QUERY_LIFETIME,
            )
        except dns.exception.DNSException as exc:
            log.debug("%s resolv: %s", label, exc)
            return []
        results = []
        for rdata in answer:
            try:
                results.append(SockAddr.from_ip(str(rdata.address), port))
            except ValueError:
                log.error("invalid address in DNS response: %r", rdata.address)
        return results

    def resolve(self, hostname: str, port: int = 0) -> Optional[SockAddr]:
        """Look up ``hostname`` and return the best address carrying ``port``.

        A and AAAA records are requested as the mode allows; failed queries
        contribute nothing. Returns None when no address was found.
        """
        responses: list[SockAddr] = []
        if self.mode is not ResolvMode.IPV6_ONLY:
            responses += self._query(hostname, dns.rdatatype.A, port, "IPv4")
        if self.mode is not ResolvMode.IPV4_ONLY:
            responses += self._query(hostname, dns.rdatatype.AAAA, port, "IPv6")
        return choose_address(responses, self.mode)