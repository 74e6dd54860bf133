"""Binary framing and table codecs for PACK containers."""

from .endian import Endian, parse_endian
from .fourcc import FourCC
from .rfrm import FormDescriptor
from .chunk import ChunkDescriptor
from .tables import (
    AssetDirectory,
    AssetDirectoryEntry,
    AssetInfo,
    MetadataTable,
    MetadataTableEntry,
    StringTable,
    StringTableEntry,
)

__all__ = [
    "Endian",
    "parse_endian",
    "FourCC",
    "FormDescriptor",
    "ChunkDescriptor",
    "AssetDirectory",
    "AssetDirectoryEntry",
    "AssetInfo",
    "MetadataTable",
    "MetadataTableEntry",
    "StringTable",
    "StringTableEntry",
]
