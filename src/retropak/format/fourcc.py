"""Four-character type tags.

A tag is stored on disk as a u32 in the file byte order whose big-endian
byte sequence spells the tag, so little-endian files carry ``PACK`` as
``KCAP``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .endian import Endian

__all__ = ["FourCC"]


@dataclass(frozen=True, slots=True)
class FourCC:
    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != 4:
            raise ValueError(f"FourCC must be 4 bytes (got {len(self.raw)})")

    @classmethod
    def from_str(cls, text: str) -> "FourCC":
        return cls(text.encode("ascii"))

    @classmethod
    def unpack(cls, data: bytes | memoryview, endian: Endian) -> "FourCC":
        raw = bytes(data[:4])
        if endian is Endian.LITTLE:
            raw = raw[::-1]
        return cls(raw)

    def pack(self, endian: Endian) -> bytes:
        if endian is Endian.LITTLE:
            return self.raw[::-1]
        return self.raw

    def swap(self) -> "FourCC":
        return FourCC(self.raw[::-1])

    def __str__(self) -> str:
        return self.raw.decode("latin-1")

    def __repr__(self) -> str:
        return f"FourCC({str(self)!r})"
