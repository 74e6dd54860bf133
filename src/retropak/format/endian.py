"""Byte order selection shared by every codec in the package."""

from __future__ import annotations

from enum import Enum

__all__ = ["Endian", "parse_endian"]


class Endian(Enum):
    LITTLE = "<"
    BIG = ">"

    @property
    def prefix(self) -> str:
        """``struct`` format prefix for this byte order."""
        return self.value

    @property
    def byteorder(self) -> str:
        """``int.from_bytes`` byte order name."""
        return "little" if self is Endian.LITTLE else "big"


def parse_endian(value: str | Endian) -> Endian:
    if isinstance(value, Endian):
        return value
    lowered = value.strip().lower()
    if lowered in ("little", "le", "<"):
        return Endian.LITTLE
    if lowered in ("big", "be", ">"):
        return Endian.BIG
    raise ValueError(f"Unknown endianness: {value!r}")
