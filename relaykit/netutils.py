"""Socket address helpers: comparison, resolution, binding and hostname checks."""

from __future__ import annotations

import ipaddress
import logging
import socket
import time
from dataclasses import dataclass
from typing import Optional, Union

__all__ = [
    "INET_SIZE",
    "INET6_SIZE",
    "SockAddr",
    "validate_hostname",
    "sockaddr_cmp",
    "sockaddr_cmp_addr",
    "get_sockaddr_len",
    "get_sockaddr",
    "bind_to_address",
    "set_reuseport",
]

log = logging.getLogger(__name__)

INET_SIZE = 4
INET6_SIZE = 16

_SOCKADDR_IN_LEN = 16
_SOCKADDR_IN6_LEN = 28

_SO_REUSEPORT = getattr(socket, "SO_REUSEPORT", 15)

_VALID_LABEL_CHARS = frozenset(
    "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"
)

_RESOLVE_ATTEMPTS = 7


@dataclass(frozen=True)
class SockAddr:
    """An IPv4 or IPv6 socket address: family, packed address bytes and port."""

    family: int
    address: bytes
    port: int = 0

    @classmethod
    def from_ip(cls, host: str, port: int = 0) -> "SockAddr":
        """Build an address from an IP literal; raises ValueError otherwise."""
        ip = ipaddress.ip_address(host.split("%", 1)[0])
        family = socket.AF_INET if ip.version == 4 else socket.AF_INET6
        return cls(family, ip.packed, port)

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: tuple) -> "SockAddr":
        """Build an address from a ``getaddrinfo``-style sockaddr tuple."""
        host, port = sockaddr[0], sockaddr[1]
        return cls(family, socket.inet_pton(family, host.split("%", 1)[0]), port)

    @property
    def host(self) -> str:
        """The address in presentation form."""
        return socket.inet_ntop(self.family, self.address)

    def to_tuple(self) -> tuple:
        """Return the address as a tuple accepted by ``socket.connect``."""
        if self.family == socket.AF_INET6:
            return (self.host, self.port, 0, 0)
        return (self.host, self.port)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _bytes_cmp(a: bytes, b: bytes) -> int:
    return (a > b) - (a < b)


def sockaddr_cmp(addr1: SockAddr, addr2: SockAddr) -> int:
    """Order two addresses by family, port and address; returns -1, 0 or 1."""
    if addr1.family != addr2.family:
        return -1 if addr1.family < addr2.family else 1
    if addr1.port != addr2.port:
        return _sign(addr1.port - addr2.port)
    return _bytes_cmp(addr1.address, addr2.address)


def sockaddr_cmp_addr(addr1: SockAddr, addr2: SockAddr) -> int:
    """Order two addresses by family and address, ignoring the port."""
    if addr1.family != addr2.family:
        return -1 if addr1.family < addr2.family else 1
    return _bytes_cmp(addr1.address, addr2.address)


def get_sockaddr_len(addr: SockAddr) -> int:
    """Return the size of the native socket address structure, or 0."""
    if addr.family == socket.AF_INET:
        return _SOCKADDR_IN_LEN
    if addr.family == socket.AF_INET6:
        return _SOCKADDR_IN6_LEN
    return 0


def validate_hostname(hostname: Union[str, bytes, None]) -> bool:
    """Return whether ``hostname`` is a syntactically valid DNS name.

    Each dot-separated label must be 1 to 63 characters of letters, digits,
    ``-`` or ``_`` and may not begin or end with ``-``. A single trailing
    dot is allowed; a leading one is not.
    """
    if hostname is None:
        return False
    if isinstance(hostname, (bytes, bytearray)):
        hostname = bytes(hostname).decode("latin-1")
    if not 1 <= len(hostname) <= 255:
        return False
    if hostname[0] == ".":
        return False

    labels = hostname.split(".")
    if hostname.endswith("."):
        labels.pop()
    for label in labels:
        if not 1 <= len(label) <= 63:
            return False
        if label[0] == "-" or label[-1] == "-":
            return False
        if not set(label) <= _VALID_LABEL_CHARS:
            return False
    return True


def _atoi(text: Optional[str]) -> int:
    if text is None:
        return 0
    text = text.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for char in text:
        if not char.isdigit():
            break
        digits += char
    return sign * int(digits) if digits else 0


def _ip_literal(host: Optional[str]) -> Optional[SockAddr]:
    if host is None:
        return None
    try:
        return SockAddr.from_ip(host)
    except ValueError:
        return None


def get_sockaddr(host: str, port: Optional[str] = None, block: bool = False,
                 ipv6first: bool = False) -> SockAddr:
    """Resolve ``host`` and ``port`` to a single socket address.

    IP literals are used as they are. Names are resolved with
    ``getaddrinfo``; when ``block`` is set a failing lookup is retried up to
    seven times, waiting 2, 4, ... seconds. An address of the preferred
    family (IPv6 with ``ipv6first``, else IPv4) is chosen when present,
    otherwise the first one. Raises OSError when resolution fails.
    """
    literal = _ip_literal(host)
    if literal is not None:
        return SockAddr(literal.family, literal.address, _atoi(port) & 0xFFFF)

    error: Optional[OSError] = None
    results = []
    for attempt in range(1, _RESOLVE_ATTEMPTS + 1):
        try:
            results = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM)
            error = None
        except socket.gaierror as exc:
            error = exc
        if not block or error is None:
            break
        delay = 2 ** attempt
        time.sleep(delay)
        log.error("failed to resolve server name, wait %d seconds", delay)

    if error is not None:
        log.error("getaddrinfo: %s", error)
        raise error

    prefer = socket.AF_INET6 if ipv6first else socket.AF_INET
    usable = [(family, sockaddr) for family, _, _, _, sockaddr in results
              if family in (socket.AF_INET, socket.AF_INET6)]
    for family, sockaddr in usable:
        if family == prefer:
            return SockAddr.from_sockaddr(family, sockaddr)
    if usable:
        family, sockaddr = usable[0]
        return SockAddr.from_sockaddr(family, sockaddr)
    raise OSError("failed to resolve remote addr")


def bind_to_address(sock: socket.socket, host: str) -> None:
    """Bind ``sock`` to the IP literal ``host`` with an ephemeral port.

    Raises ValueError when ``host`` is not an IP address, and OSError when
    the bind fails.
    """
    literal = _ip_literal(host)
    if literal is None:
        raise ValueError(f"not an IP address: {host!r}")
    sock.bind(SockAddr(literal.family, literal.address, 0).to_tuple())


def set_reuseport(sock: socket.socket) -> None:
    """Enable port reuse on ``sock``; raises OSError if unsupported."""
    sock.setsockopt(socket.SOL_SOCKET, _SO_REUSEPORT, 1)