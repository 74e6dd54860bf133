"""LZSS decompression for compressed package payloads.

Streams are groups of eight items led by a flag byte, most significant bit
first. A clear bit copies one literal unit; a set bit is a two-byte back
reference ``b0 b1`` copying ``(b0 >> 4) + min_count`` units from
``((b0 & 0xF) << 8 | b1)`` units behind the write cursor. The three modes only
differ in unit width and minimum run length.
"""

from __future__ import annotations

import struct

from ..errors import CompressionModeError, E_COMPRESSION
from ..format.constants import COMPRESSION_MODES, COMPRESSION_PREFIX_SIZE

__all__ = ["MODE_PARAMS", "decompress", "split_compressed_payload"]

# mode -> (unit width in bytes, minimum run length in units)
MODE_PARAMS = {
    1: (1, 3),
    2: (2, 2),
    3: (4, 1),
}


def _corrupt(mode: int, message: str) -> CompressionModeError:
    return CompressionModeError(
        code=E_COMPRESSION,
        message=f"Corrupt mode {mode} stream: {message}",
        context={"mode": mode},
    )


def split_compressed_payload(data: bytes | memoryview) -> tuple[int, memoryview]:
    """Return (mode, stream) for a compressed payload.

    The mode selector is always a little-endian u32 regardless of the package
    byte order.
    """
    view = memoryview(data)
    if len(view) < COMPRESSION_PREFIX_SIZE:
        raise CompressionModeError(
            code=E_COMPRESSION,
            message=f"Compressed payload too short ({len(view)} bytes)",
            context={"size": len(view)},
        )
    (mode,) = struct.unpack_from("<I", view, 0)
    return mode, view[COMPRESSION_PREFIX_SIZE:]


def decompress(mode: int, src: bytes | memoryview, out_size: int) -> bytes:
    """Decompress ``src`` into a fresh buffer of exactly ``out_size`` bytes."""
    if mode not in COMPRESSION_MODES:
        raise CompressionModeError(
            code=E_COMPRESSION,
            message=f"Unsupported compression mode {mode}",
            context={"mode": mode},
        )
    unit, min_count = MODE_PARAMS[mode]
    out = bytearray(out_size)
    in_pos = 0
    out_pos = 0
    flags = 0
    remaining_flags = 0
    src_len = len(src)
    while out_pos < out_size:
        if remaining_flags == 0:
            if in_pos >= src_len:
                raise _corrupt(mode, f"input exhausted at {out_pos}/{out_size}")
            flags = src[in_pos]
            in_pos += 1
            remaining_flags = 8
        if flags & 0x80:
            if in_pos + 2 > src_len:
                raise _corrupt(mode, "truncated back reference")
            b0 = src[in_pos]
            b1 = src[in_pos + 1]
            in_pos += 2
            count = ((b0 >> 4) + min_count) * unit
            distance = (((b0 & 0x0F) << 8) | b1) * unit
            if distance == 0 or distance > out_pos:
                raise _corrupt(
                    mode, f"back reference distance {distance} at {out_pos}"
                )
            count = min(count, out_size - out_pos)
            # Byte-wise so overlapping runs replicate.
            for _ in range(count):
                out[out_pos] = out[out_pos - distance]
                out_pos += 1
        else:
            take = min(unit, out_size - out_pos)
            if in_pos + take > src_len:
                raise _corrupt(mode, "truncated literal")
            out[out_pos : out_pos + take] = src[in_pos : in_pos + take]
            in_pos += unit
            out_pos += take
        flags = (flags << 1) & 0xFF
        remaining_flags -= 1
    return bytes(out)
