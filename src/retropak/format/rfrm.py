"""RFRM form framing.

A form is ``RFRM`` + body size + reserved word + type tag + version pair,
followed by ``size`` body bytes. The body size is only known once the body has
been emitted, so :meth:`FormDescriptor.write` reserves the header, runs the
body callback and back-patches the header afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import struct
from typing import BinaryIO, Callable, Tuple

from ..errors import structure_error
from .constants import FORM_HEADER_SIZE, FORM_MAGIC
from .endian import Endian
from .fourcc import FourCC

__all__ = ["FormDescriptor"]


@dataclass(frozen=True, slots=True)
class FormDescriptor:
    id: FourCC
    version: int
    other_version: int
    size: int = 0
    unk1: int = 0

    @classmethod
    def unpack(cls, data: bytes | memoryview, endian: Endian) -> "FormDescriptor":
        """Parse a form header from the first 32 bytes of ``data``."""
        if len(data) < FORM_HEADER_SIZE:
            raise structure_error(
                f"Form header truncated: {len(data)}<{FORM_HEADER_SIZE}",
                {"available": len(data)},
            )
        magic = bytes(data[0:4])
        if magic != FORM_MAGIC:
            raise structure_error(
                f"Bad form magic {magic!r}", {"magic": magic.hex()}
            )
        size, unk1 = struct.unpack_from(f"{endian.prefix}QQ", data, 4)
        form_id = FourCC.unpack(data[20:24], endian)
        version, other_version = struct.unpack_from(
            f"{endian.prefix}II", data, 24
        )
        return cls(
            id=form_id,
            version=version,
            other_version=other_version,
            size=size,
            unk1=unk1,
        )

    def pack(self, endian: Endian) -> bytes:
        return (
            FORM_MAGIC
            + struct.pack(f"{endian.prefix}QQ", self.size, self.unk1)
            + self.id.pack(endian)
            + struct.pack(
                f"{endian.prefix}II", self.version, self.other_version
            )
        )

    @classmethod
    def slice(
        cls, data: bytes | memoryview, endian: Endian
    ) -> Tuple["FormDescriptor", memoryview, memoryview]:
        """Split ``data`` into (header, body, remaining bytes)."""
        view = memoryview(data)
        desc = cls.unpack(view, endian)
        end = FORM_HEADER_SIZE + desc.size
        if end > len(view):
            raise structure_error(
                f"Form {desc.id} body exceeds buffer: {end}>{len(view)}",
                {"form": str(desc.id), "size": desc.size},
            )
        return desc, view[FORM_HEADER_SIZE:end], view[end:]

    def write(
        self,
        w: BinaryIO,
        endian: Endian,
        body: Callable[[BinaryIO], None],
    ) -> int:
        """Emit this form around ``body`` and return the final body size."""
        start = w.tell()
        w.write(replace(self, size=0).pack(endian))
        body(w)
        end = w.tell()
        size = end - start - FORM_HEADER_SIZE
        w.seek(start)
        w.write(replace(self, size=size).pack(endian))
        w.seek(end)
        return size
