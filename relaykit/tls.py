"""Minimal TLS ClientHello parser that extracts the Server Name Indication."""

from __future__ import annotations

import logging

__all__ = [
    "DEFAULT_PORT",
    "TlsError",
    "IncompleteRequest",
    "NoHostname",
    "InvalidClientHello",
    "parse_tls_header",
]

log = logging.getLogger(__name__)

DEFAULT_PORT = 443

_TLS_HEADER_LEN = 5
_TLS_HANDSHAKE_CONTENT_TYPE = 0x16
_TLS_HANDSHAKE_TYPE_CLIENT_HELLO = 0x01


class TlsError(ValueError):
    """Base class for failures to extract a hostname."""


class IncompleteRequest(TlsError):
    """More data is needed to parse the record."""


class NoHostname(TlsError):
    """The request is well formed but carries no server name."""


class InvalidClientHello(TlsError):
    """The data is not a valid TLS ClientHello."""


def _signed(byte: int) -> int:
    return byte - 256 if byte > 0x7F else byte


def _u16(data: bytes, pos: int) -> int:
    return (data[pos] << 8) + data[pos + 1]


def parse_tls_header(data: bytes) -> str:
    """Return the first host name in the SNI extension of a ClientHello.

    Raises :class:`IncompleteRequest` when the record is not complete yet,
    :class:`NoHostname` when no server name can be present, and
    :class:`InvalidClientHello` for malformed data.
    """
    data = bytes(data)
    data_len = len(data)

    if data_len < _TLS_HEADER_LEN:
        raise IncompleteRequest("incomplete TLS header")

    if data[0] & 0x80 and data[2] == 1:
        log.debug("Received SSL 2.0 Client Hello which can not support SNI.")
        raise NoHostname("SSL 2.0 Client Hello can not support SNI")

    if data[0] != _TLS_HANDSHAKE_CONTENT_TYPE:
        raise InvalidClientHello("Request did not begin with TLS handshake.")

    major = _signed(data[1])
    minor = _signed(data[2])
    if major < 3:
        raise NoHostname(f"SSL {major}.{minor} handshake can not support SNI")

    length = (data[3] << 8) + data[4] + _TLS_HEADER_LEN
    data_len = min(data_len, length)
    if data_len < length:
        raise IncompleteRequest("incomplete TLS record")
    data = data[:data_len]

    pos = _TLS_HEADER_LEN
    if pos + 1 > data_len:
        raise InvalidClientHello("missing handshake type")
    if data[pos] != _TLS_HANDSHAKE_TYPE_CLIENT_HELLO:
        raise InvalidClientHello("Not a client hello")

    # Handshake type, length, version and random, up to the session id.
    pos += 38

    if pos + 1 > data_len:
        raise InvalidClientHello("truncated session id")
    pos += 1 + data[pos]

    if pos + 2 > data_len:
        raise InvalidClientHello("truncated cipher suites")
    pos += 2 + _u16(data, pos)

    if pos + 1 > data_len:
        raise InvalidClientHello("truncated compression methods")
    pos += 1 + data[pos]

    if pos == data_len and major == 3 and minor == 0:
        raise NoHostname("Received SSL 3.0 handshake without extensions")

    if pos + 2 > data_len:
        raise InvalidClientHello("truncated extensions length")
    ext_len = _u16(data, pos)
    pos += 2

    if pos + ext_len > data_len:
        raise InvalidClientHello("extensions exceed record")
    return _parse_extensions(data[pos:pos + ext_len])


def _parse_extensions(data: bytes) -> str:
    pos = 0
    data_len = len(data)
    while pos + 4 <= data_len:
        length = _u16(data, pos + 2)
        if data[pos] == 0x00 and data[pos + 1] == 0x00:
            if pos + 4 + length > data_len:
                raise InvalidClientHello("server name extension exceeds data")
            return _parse_server_name_extension(data[pos + 4:pos + 4 + length])
        pos += 4 + length
    if pos != data_len:
        raise InvalidClientHello("extensions do not end where expected")
    raise NoHostname("no server name extension")


def _parse_server_name_extension(data: bytes) -> str:
    pos = 2  # server name list length
    data_len = len(data)
    while pos + 3 < data_len:
        length = _u16(data, pos + 1)
        if pos + 3 + length > data_len:
            raise InvalidClientHello("server name exceeds extension")
        if data[pos] == 0x00:
            name = data[pos + 3:pos + 3 + length]
            return name.split(b"\0", 1)[0].decode("latin-1")
        log.debug("Unknown server name extension name type: %d", _signed(data[pos]))
        pos += 3 + length
    if pos != data_len:
        raise InvalidClientHello("server name list does not end where expected")
    raise NoHostname("no host_name entry")