"""retropak: reader/writer for RFRM ``PACK`` asset packages."""

from .errors import (
    PakError,
    StructureError,
    UnknownSectionError,
    MissingDirectoryError,
    CompressionModeError,
    CrossValidationError,
    EncodingError,
    CapacityError,
)
from .format import AssetInfo, Endian, FourCC
from .packing import Asset, Package

__version__ = "0.1.0"

__all__ = [
    "Asset",
    "AssetInfo",
    "Endian",
    "FourCC",
    "Package",
    "PakError",
    "StructureError",
    "UnknownSectionError",
    "MissingDirectoryError",
    "CompressionModeError",
    "CrossValidationError",
    "EncodingError",
    "CapacityError",
]
