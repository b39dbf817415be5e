import pytest

from relaykit.tls import (
    IncompleteRequest,
    InvalidClientHello,
    NoHostname,
    TlsError,
    parse_tls_header,
)


def u16(n):
    return n.to_bytes(2, "big")


def sni_extension(entries):
    body = b"".join(bytes([kind]) + u16(len(name)) + name for kind, name in entries)
    lst = u16(len(body)) + body
    return b"\x00\x00" + u16(len(lst)) + lst


def client_hello(extensions=None, version=(3, 3), handshake_type=1, content_type=0x16,
                 include_ext_block=True):
    if extensions is None:
        extensions = sni_extension([(0, b"example.com")])
    body = (
        bytes([handshake_type]) + b"\x00\x00\x00" + bytes(version) + bytes(32)
        + b"\x00" + b"\x00\x02\x00\x2f" + b"\x01\x00"
    )
    if include_ext_block:
        body += u16(len(extensions)) + extensions
    return bytes([content_type]) + bytes(version) + u16(len(body)) + body


def test_extracts_hostname():
    assert parse_tls_header(client_hello()) == "example.com"


def test_trailing_data_beyond_record_ignored():
    assert parse_tls_header(client_hello() + b"garbage") == "example.com"


def test_sni_after_other_extension():
    other = b"\x00\x0b" + u16(2) + b"\x01\x00"
    ext = other + sni_extension([(0, b"host.example.com")])
    assert parse_tls_header(client_hello(ext)) == "host.example.com"


def test_skips_unknown_name_type():
    ext = sni_extension([(5, b"abc"), (0, b"www.example.com")])
    assert parse_tls_header(client_hello(ext)) == "www.example.com"


def test_name_truncated_at_nul():
    ext = sni_extension([(0, b"example.com\x00junk")])
    assert parse_tls_header(client_hello(ext)) == "example.com"


def test_short_data_incomplete():
    with pytest.raises(IncompleteRequest):
        parse_tls_header(b"\x16\x03\x01")


def test_truncated_record_incomplete():
    data = client_hello()
    with pytest.raises(IncompleteRequest):
        parse_tls_header(data[:-3])


def test_ssl2_hello_has_no_hostname():
    with pytest.raises(NoHostname):
        parse_tls_header(b"\x80\x2e\x01\x03\x01")


def test_old_version_has_no_hostname():
    with pytest.raises(NoHostname):
        parse_tls_header(client_hello(version=(2, 0)))


def test_not_handshake_is_invalid():
    with pytest.raises(InvalidClientHello):
        parse_tls_header(client_hello(content_type=0x17))


def test_not_client_hello_is_invalid():
    with pytest.raises(InvalidClientHello):
        parse_tls_header(client_hello(handshake_type=2))


def test_empty_record_is_invalid():
    with pytest.raises(InvalidClientHello):
        parse_tls_header(b"\x16\x03\x01\x00\x00")


def test_ssl3_without_extensions():
    with pytest.raises(NoHostname):
        parse_tls_header(client_hello(version=(3, 0), include_ext_block=False))


def test_tls12_without_extension_block_is_invalid():
    with pytest.raises(InvalidClientHello):
        parse_tls_header(client_hello(include_ext_block=False))


def test_no_sni_extension():
    other = b"\x00\x0b" + u16(2) + b"\x01\x00"
    with pytest.raises(NoHostname):
        parse_tls_header(client_hello(other))


def test_extension_overrun_is_invalid():
    bad = b"\x00\x0b" + u16(10) + b"\x01\x00"
    with pytest.raises(InvalidClientHello):
        parse_tls_header(client_hello(bad))


def test_sni_with_only_unknown_types():
    with pytest.raises(NoHostname):
        parse_tls_header(client_hello(sni_extension([(7, b"abcd")])))


def test_errors_share_base_class():
    for data in (b"", client_hello(content_type=0x17), client_hello(version=(2, 0))):
        with pytest.raises(TlsError):
            parse_tls_header(data)