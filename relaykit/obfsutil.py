"""Helpers shared by the obfuscation and protocol plugins."""

from __future__ import annotations

import time
from typing import Optional

__all__ = ["XorShift128Plus", "get_head_size"]

_MASK64 = (1 << 64) - 1


def get_head_size(data: Optional[bytes], default_size: int) -> int:
    """Return the length of the address header at the start of ``data``.

    The low three bits of the first byte give the address type: IPv4
    headers are 7 bytes, IPv6 headers 19, and domain headers 4 plus the
    name length. Anything shorter than two bytes, or of unknown type,
    yields ``default_size``.
    """
    if data is None or len(data) < 2:
        return default_size
    head_type = data[0] & 0x7
    if head_type == 1:
        return 7
    if head_type == 4:
        return 19
    if head_type == 3:
        # The length byte is read as a signed char.
        length = data[1] - 256 if data[1] > 0x7F else data[1]
        return 4 + length
    return default_size


class XorShift128Plus:
    """The xorshift128+ pseudo-random generator, seeded from a 32-bit value."""

    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = int(time.time())
        seed &= 0xFFFFFFFF
        self._s0 = seed | 0x100000000
        self._s1 = ((seed << 32) | 0x1) & _MASK64

    def next(self) -> int:
        """Return the next 64-bit value."""
        x = self._s0
        y = self._s1
        self._s0 = y
        x ^= (x << 23) & _MASK64
        x ^= x >> 17
        x ^= y ^ (y >> 26)
        self._s1 = x
        return (x + y) & _MASK64