from unittest import mock

import pytest

from relaykit.obfsutil import XorShift128Plus, get_head_size


def test_ipv4_header_size():
    assert get_head_size(bytes([1, 0, 0, 0, 0, 0, 0]), 30) == 7


def test_ipv6_header_size():
    assert get_head_size(bytes([4, 0]), 30) == 19


@pytest.mark.parametrize("name_len", [0, 1, 10, 127])
def test_domain_header_size_follows_length(name_len):
    assert get_head_size(bytes([3, name_len]), 30) - 4 == name_len


def test_domain_length_byte_is_signed():
    assert get_head_size(bytes([3, 0xF0]), 30) < 4


def test_only_low_bits_select_type():
    assert get_head_size(bytes([0x11, 0]), 30) == get_head_size(bytes([1, 0]), 30)
    assert get_head_size(bytes([0xF4, 0]), 30) == get_head_size(bytes([4, 0]), 30)


@pytest.mark.parametrize("data", [None, b"", b"\x01", bytes([2, 0]), bytes([7, 9])])
def test_default_size(data):
    assert get_head_size(data, 42) == 42


def test_same_seed_same_sequence():
    first = XorShift128Plus(1234)
    second = XorShift128Plus(1234)
    assert [first.next() for _ in range(50)] == [second.next() for _ in range(50)]


def test_different_seeds_differ():
    first = XorShift128Plus(1)
    second = XorShift128Plus(2)
    assert [first.next() for _ in range(5)] != [second.next() for _ in range(5)]


def test_values_are_64_bit_and_varied():
    gen = XorShift128Plus(99)
    values = [gen.next() for _ in range(1000)]
    assert all(0 <= v < 2**64 for v in values)
    assert len(set(values)) > 990


def test_seed_is_truncated_to_32_bits():
    wide = XorShift128Plus(5 + (1 << 32))
    narrow = XorShift128Plus(5)
    assert [wide.next() for _ in range(10)] == [narrow.next() for _ in range(10)]


def test_default_seed_comes_from_clock():
    with mock.patch("relaykit.obfsutil.time.time", return_value=1234.0):
        gen = XorShift128Plus()
    assert gen.next() == XorShift128Plus(1234).next()