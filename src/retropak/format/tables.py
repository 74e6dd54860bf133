"""Table-of-contents records: asset directory, metadata table, string table.

Each table is a u32 entry count followed by its entries. Directory and
metadata entries have a fixed width; string table entries carry a
length-prefixed name. ``pack_*`` functions are side-effect free and validate
field capacities; ``parse_*`` functions validate that the buffer holds every
declared entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import struct
from typing import List, Optional
from uuid import UUID

from ..errors import capacity_error, structure_error
from .constants import (
    ASSET_ID_SIZE,
    ASSET_INFO_SIZE,
    DIRECTORY_ENTRY_SIZE,
    METADATA_ENTRY_SIZE,
    STRING_ENTRY_HEADER_SIZE,
    TABLE_COUNT_SIZE,
    U32_MAX,
    U64_MAX,
    UNKNOWN_OFFSET,
)
from .endian import Endian
from .fourcc import FourCC

__all__ = [
    "AssetDirectoryEntry",
    "AssetDirectory",
    "MetadataTableEntry",
    "MetadataTable",
    "StringTableEntry",
    "StringTable",
    "AssetInfo",
    "pack_uuid",
    "parse_uuid",
    "pack_asset_directory",
    "parse_asset_directory",
    "pack_metadata_table",
    "parse_metadata_table",
    "pack_string_table",
    "parse_string_table",
    "pack_asset_info",
    "parse_asset_info",
]


@dataclass(slots=True)
class AssetDirectoryEntry:
    asset_type: FourCC
    asset_id: UUID
    version: int
    other_version: int
    offset: int
    decompressed_size: int
    size: int

    @property
    def is_compressed(self) -> bool:
        return self.size != self.decompressed_size


@dataclass(slots=True)
class AssetDirectory:
    entries: List[AssetDirectoryEntry] = field(default_factory=list)

    def packed_size(self) -> int:
        return TABLE_COUNT_SIZE + DIRECTORY_ENTRY_SIZE * len(self.entries)


@dataclass(slots=True)
class MetadataTableEntry:
    asset_id: UUID
    offset: int


@dataclass(slots=True)
class MetadataTable:
    entries: List[MetadataTableEntry] = field(default_factory=list)

    def packed_size(self) -> int:
        return TABLE_COUNT_SIZE + METADATA_ENTRY_SIZE * len(self.entries)


@dataclass(slots=True)
class StringTableEntry:
    # Canonical tag; stored byte-swapped on disk
    kind: FourCC
    asset_id: UUID
    name: bytes


@dataclass(slots=True)
class StringTable:
    entries: List[StringTableEntry] = field(default_factory=list)


@dataclass(slots=True)
class AssetInfo:
    """Read-time provenance of an asset.

    ``orig_offset`` is the absolute offset the payload had in its source
    package, or ``None`` for assets that never came from one.
    """

    id: UUID
    compression_mode: int = 0
    entry_idx: int = 0
    orig_offset: Optional[int] = None


def pack_uuid(value: UUID, endian: Endian) -> bytes:
    return value.int.to_bytes(ASSET_ID_SIZE, endian.byteorder)


def parse_uuid(data: bytes | memoryview, endian: Endian) -> UUID:
    return UUID(int=int.from_bytes(bytes(data[:ASSET_ID_SIZE]), endian.byteorder))


def _check_u32(what: str, value: int) -> int:
    if value > U32_MAX:
        raise capacity_error(what, value, U32_MAX)
    return value


def _check_u64(what: str, value: int) -> int:
    if value > U64_MAX:
        raise capacity_error(what, value, U64_MAX)
    return value


def _pack_count(what: str, count: int, endian: Endian) -> bytes:
    return struct.pack(f"{endian.prefix}I", _check_u32(what, count))


def _parse_count(data: bytes | memoryview, endian: Endian, label: str) -> int:
    if len(data) < TABLE_COUNT_SIZE:
        raise structure_error(f"{label} count truncated")
    return struct.unpack_from(f"{endian.prefix}I", data, 0)[0]


def _require(data: bytes | memoryview, end: int, label: str) -> None:
    if end > len(data):
        raise structure_error(
            f"Out of range read for {label}: {end}>{len(data)}",
            {"table": label, "needed": end, "available": len(data)},
        )


def pack_asset_directory(directory: AssetDirectory, endian: Endian) -> bytes:
    p = endian.prefix
    out = bytearray(
        _pack_count("asset directory entry count", len(directory.entries), endian)
    )
    for e in directory.entries:
        out += e.asset_type.pack(endian)
        out += pack_uuid(e.asset_id, endian)
        out += struct.pack(
            f"{p}IIQQQ",
            _check_u32("asset version", e.version),
            _check_u32("asset other_version", e.other_version),
            _check_u64("asset offset", e.offset),
            _check_u64("asset decompressed_size", e.decompressed_size),
            _check_u64("asset size", e.size),
        )
    if len(out) != directory.packed_size():  # pragma: no cover
        raise RuntimeError("Asset directory size mismatch")
    return bytes(out)


def parse_asset_directory(
    data: bytes | memoryview, endian: Endian
) -> AssetDirectory:
    count = _parse_count(data, endian, "ADIR")
    _require(data, TABLE_COUNT_SIZE + count * DIRECTORY_ENTRY_SIZE, "ADIR")
    entries: List[AssetDirectoryEntry] = []
    off = TABLE_COUNT_SIZE
    for _ in range(count):
        asset_type = FourCC.unpack(data[off : off + 4], endian)
        asset_id = parse_uuid(data[off + 4 : off + 20], endian)
        version, other_version, offset, dsize, size = struct.unpack_from(
            f"{endian.prefix}IIQQQ", data, off + 20
        )
        entries.append(
            AssetDirectoryEntry(
                asset_type=asset_type,
                asset_id=asset_id,
                version=version,
                other_version=other_version,
                offset=offset,
                decompressed_size=dsize,
                size=size,
            )
        )
        off += DIRECTORY_ENTRY_SIZE
    return AssetDirectory(entries)


def pack_metadata_table(table: MetadataTable, endian: Endian) -> bytes:
    out = bytearray(
        _pack_count("metadata entry count", len(table.entries), endian)
    )
    for e in table.entries:
        out += pack_uuid(e.asset_id, endian)
        out += struct.pack(
            f"{endian.prefix}I", _check_u32("metadata offset", e.offset)
        )
    return bytes(out)


def parse_metadata_table(
    data: bytes | memoryview, endian: Endian
) -> MetadataTable:
    count = _parse_count(data, endian, "META")
    _require(data, TABLE_COUNT_SIZE + count * METADATA_ENTRY_SIZE, "META")
    entries: List[MetadataTableEntry] = []
    off = TABLE_COUNT_SIZE
    for _ in range(count):
        asset_id = parse_uuid(data[off : off + 16], endian)
        (offset,) = struct.unpack_from(f"{endian.prefix}I", data, off + 16)
        entries.append(MetadataTableEntry(asset_id=asset_id, offset=offset))
        off += METADATA_ENTRY_SIZE
    return MetadataTable(entries)


def pack_string_table(table: StringTable, endian: Endian) -> bytes:
    out = bytearray(_pack_count("string entry count", len(table.entries), endian))
    for e in table.entries:
        out += e.kind.swap().pack(endian)
        out += pack_uuid(e.asset_id, endian)
        out += struct.pack(
            f"{endian.prefix}I", _check_u32("name length", len(e.name))
        )
        out += e.name
    return bytes(out)


def parse_string_table(data: bytes | memoryview, endian: Endian) -> StringTable:
    count = _parse_count(data, endian, "STRG")
    entries: List[StringTableEntry] = []
    off = TABLE_COUNT_SIZE
    for i in range(count):
        _require(data, off + STRING_ENTRY_HEADER_SIZE, f"STRG[{i}]")
        kind = FourCC.unpack(data[off : off + 4], endian).swap()
        asset_id = parse_uuid(data[off + 4 : off + 20], endian)
        (length,) = struct.unpack_from(f"{endian.prefix}I", data, off + 20)
        off += STRING_ENTRY_HEADER_SIZE
        _require(data, off + length, f"STRG[{i}].name")
        entries.append(
            StringTableEntry(
                kind=kind, asset_id=asset_id, name=bytes(data[off : off + length])
            )
        )
        off += length
    return StringTable(entries)


def pack_asset_info(info: AssetInfo, endian: Endian) -> bytes:
    orig_offset = UNKNOWN_OFFSET if info.orig_offset is None else info.orig_offset
    return pack_uuid(info.id, endian) + struct.pack(
        f"{endian.prefix}IIQ",
        _check_u32("compression mode", info.compression_mode),
        _check_u32("entry index", info.entry_idx),
        _check_u64("original offset", orig_offset),
    )


def parse_asset_info(data: bytes | memoryview, endian: Endian) -> AssetInfo:
    _require(data, ASSET_INFO_SIZE, "AINF")
    asset_id = parse_uuid(data[0:16], endian)
    mode, entry_idx, orig_offset = struct.unpack_from(
        f"{endian.prefix}IIQ", data, 16
    )
    return AssetInfo(
        id=asset_id,
        compression_mode=mode,
        entry_idx=entry_idx,
        orig_offset=None if orig_offset == UNKNOWN_OFFSET else orig_offset,
    )
