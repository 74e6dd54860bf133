"""Central constants for the PACK container format.

Tag values are spelled in their canonical (big-endian) character order; the
on-disk byte order depends on the file endianness (see :mod:`.fourcc`).
"""

from __future__ import annotations

from .fourcc import FourCC

# Form magic preceding every form header (literal bytes, never swapped)
FORM_MAGIC = b"RFRM"

# Package file
FORM_PACK = FourCC(b"PACK")
# Table of contents
FORM_TOCC = FourCC(b"TOCC")
# Asset directory
CHUNK_ADIR = FourCC(b"ADIR")
# Metadata
CHUNK_META = FourCC(b"META")
# String table
CHUNK_STRG = FourCC(b"STRG")

# Footer appended to extracted asset files
FORM_FOOT = FourCC(b"FOOT")
# Footer asset information
CHUNK_AINF = FourCC(b"AINF")
# Footer asset name
CHUNK_NAME = FourCC(b"NAME")

PACK_VERSION = 1
TOCC_VERSION = 3
FOOT_VERSION = 1

# Form header: magic(4) size(8) reserved(8) id(4) version(4) other_version(4)
FORM_HEADER_SIZE = 32
# Chunk header: id(4) size(8) reserved(4) skip(8)
CHUNK_HEADER_SIZE = 24
# Chunk headers written by this package carry 1 in their reserved word
CHUNK_RESERVED = 1

ASSET_ID_SIZE = 16
TABLE_COUNT_SIZE = 4
# id(4) uuid(16) version(4) other_version(4) offset(8) dsize(8) size(8)
DIRECTORY_ENTRY_SIZE = 52
# uuid(16) offset(4)
METADATA_ENTRY_SIZE = 20
# swapped id(4) uuid(16) length(4); name bytes follow
STRING_ENTRY_HEADER_SIZE = 24
# uuid(16) compression_mode(4) entry_idx(4) orig_offset(8)
ASSET_INFO_SIZE = 32

# Compressed payload prefix: little-endian u32 mode selector
COMPRESSION_PREFIX_SIZE = 4
COMPRESSION_NONE = 0
COMPRESSION_MODES = (1, 2, 3)

# Package output is zero-padded to this boundary
PACKAGE_ALIGNMENT = 16

U32_MAX = 0xFFFFFFFF
U64_MAX = 0xFFFFFFFFFFFFFFFF
# AINF encoding of "no known original offset"
UNKNOWN_OFFSET = U64_MAX

__all__ = [
    "FORM_MAGIC",
    "FORM_PACK",
    "FORM_TOCC",
    "CHUNK_ADIR",
    "CHUNK_META",
    "CHUNK_STRG",
    "FORM_FOOT",
    "CHUNK_AINF",
    "CHUNK_NAME",
    "PACK_VERSION",
    "TOCC_VERSION",
    "FOOT_VERSION",
    "FORM_HEADER_SIZE",
    "CHUNK_HEADER_SIZE",
    "CHUNK_RESERVED",
    "ASSET_ID_SIZE",
    "TABLE_COUNT_SIZE",
    "DIRECTORY_ENTRY_SIZE",
    "METADATA_ENTRY_SIZE",
    "STRING_ENTRY_HEADER_SIZE",
    "ASSET_INFO_SIZE",
    "COMPRESSION_PREFIX_SIZE",
    "COMPRESSION_NONE",
    "COMPRESSION_MODES",
    "PACKAGE_ALIGNMENT",
    "U32_MAX",
    "U64_MAX",
    "UNKNOWN_OFFSET",
]
