"""Ethernet hardware addresses."""

from __future__ import annotations

import functools
import random as _random
import re

_HEX_DIGIT = re.compile(r"[0-9A-Fa-f]")
_OCTET_TEXT = re.compile(r".{1,2}")


def _parse(text: str) -> bytes:
    digits = "".join(_HEX_DIGIT.findall(text))
    octets = _OCTET_TEXT.findall(digits)[: Mac.SIZE]
    if len(octets) != Mac.SIZE:
        raise ValueError(f"not a MAC address: {text!r}")
    return bytes(int(octet, 16) for octet in octets)


@functools.total_ordering
class Mac:
    """An immutable six-octet Ethernet address.

    Accepts another ``Mac``, six raw bytes, or text; in text every
    character that is not a hexadecimal digit is ignored, so
    ``"00:11:22:33:44:55"`` and ``"001122-334455"`` are the same address.
    """

    SIZE = 6
    __slots__ = ("_octets",)

    def __init__(self, value) -> None:
        if isinstance(value, Mac):
            octets = value._octets
        elif isinstance(value, str):
            octets = _parse(value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            octets = bytes(value)
            if len(octets) != self.SIZE:
                raise ValueError(
                    f"a MAC address has {self.SIZE} octets, got {len(octets)}"
                )
        else:
            raise TypeError(f"cannot make a MAC address from {type(value).__name__}")
        self._octets = octets

    def __str__(self) -> str:
        return ":".join(f"{octet:02X}" for octet in self._octets)

    def __repr__(self) -> str:
        return f"Mac({str(self)!r})"

    def __bytes__(self) -> bytes:
        return self._octets

    def __eq__(self, other) -> bool:
        if isinstance(other, Mac):
            return self._octets == other._octets
        if isinstance(other, (bytes, bytearray, memoryview)):
            return self._octets == bytes(other)
        return NotImplemented

    def __lt__(self, other) -> bool:
        if isinstance(other, Mac):
            return self._octets < other._octets
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._octets)

    def is_null(self) -> bool:
        """True for 00:00:00:00:00:00."""
        return self == Mac.null()

    def is_broadcast(self) -> bool:
        """True for FF:FF:FF:FF:FF:FF."""
        return self == Mac.broadcast()

    def is_multicast(self) -> bool:
        """True for IPv4 multicast addresses, 01:00:5E:0x:xx:xx."""
        first, second, third, fourth = self._octets[:4]
        return first == 0x01 and second == 0x00 and third == 0x5E and not fourth & 0x80

    @staticmethod
    def random() -> Mac:
        """A random address whose first octet has its top bit clear."""
        octets = bytearray(_random.randrange(256) for _ in range(Mac.SIZE))
        octets[0] &= 0x7F
        return Mac(bytes(octets))

    @staticmethod
    def null() -> Mac:
        """The all-zero address."""
        return _NULL

    @staticmethod
    def broadcast() -> Mac:
        """The all-ones address."""
        return _BROADCAST


_NULL = Mac(bytes(Mac.SIZE))
_BROADCAST = Mac(b"\xff" * Mac.SIZE)