"""Chunk framing for sections nested inside a form body.

Header: type tag, body size (u64), reserved word (u32), skip length (u64).
Chunk data begins ``skip`` bytes into the body.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import struct
from typing import BinaryIO, Callable, Tuple

from ..errors import structure_error
from .constants import CHUNK_HEADER_SIZE, CHUNK_RESERVED
from .endian import Endian
from .fourcc import FourCC

__all__ = ["ChunkDescriptor"]


@dataclass(frozen=True, slots=True)
class ChunkDescriptor:
    id: FourCC
    size: int = 0
    unk: int = CHUNK_RESERVED
    skip: int = 0

    @classmethod
    def unpack(
        cls, data: bytes | memoryview, endian: Endian
    ) -> "ChunkDescriptor":
        if len(data) < CHUNK_HEADER_SIZE:
            raise structure_error(
                f"Chunk header truncated: {len(data)}<{CHUNK_HEADER_SIZE}",
                {"available": len(data)},
            )
        chunk_id = FourCC.unpack(data[0:4], endian)
        size, unk, skip = struct.unpack_from(f"{endian.prefix}QIQ", data, 4)
        return cls(id=chunk_id, size=size, unk=unk, skip=skip)

    def pack(self, endian: Endian) -> bytes:
        return self.id.pack(endian) + struct.pack(
            f"{endian.prefix}QIQ", self.size, self.unk, self.skip
        )

    @classmethod
    def slice(
        cls, data: bytes | memoryview, endian: Endian
    ) -> Tuple["ChunkDescriptor", memoryview, memoryview]:
        """Split ``data`` into (header, chunk data, remaining bytes)."""
        view = memoryview(data)
        desc = cls.unpack(view, endian)
        end = CHUNK_HEADER_SIZE + desc.size
        if end > len(view):
            raise structure_error(
                f"Chunk {desc.id} body exceeds buffer: {end}>{len(view)}",
                {"chunk": str(desc.id), "size": desc.size},
            )
        if desc.skip > desc.size:
            raise structure_error(
                f"Chunk {desc.id} skip {desc.skip} exceeds size {desc.size}",
                {"chunk": str(desc.id), "skip": desc.skip},
            )
        body = view[CHUNK_HEADER_SIZE:end]
        return desc, body[desc.skip :], view[end:]

    def write(
        self,
        w: BinaryIO,
        endian: Endian,
        body: Callable[[BinaryIO], None],
    ) -> int:
        """Emit this chunk around ``body`` and return the final body size."""
        start = w.tell()
        w.write(replace(self, size=0, skip=0).pack(endian))
        body(w)
        end = w.tell()
        size = end - start - CHUNK_HEADER_SIZE
        w.seek(start)
        w.write(replace(self, size=size, skip=0).pack(endian))
        w.seek(end)
        return size
