"""Error definitions for retropak.

Every failure raised while reading or writing a package is a :class:`PakError`
subclass carrying a stable ``code`` plus optional structured ``context``.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_STRUCTURE = "E_STRUCTURE"
E_UNKNOWN_SECTION = "E_UNKNOWN_SECTION"
E_MISSING_DIRECTORY = "E_MISSING_DIRECTORY"
E_COMPRESSION = "E_COMPRESSION"
E_CROSS_VALIDATION = "E_CROSS_VALIDATION"
E_ENCODING = "E_ENCODING"
E_CAPACITY = "E_CAPACITY"


@dataclass
class PakError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class StructureError(PakError):
    pass


class UnknownSectionError(PakError):
    pass


class MissingDirectoryError(PakError):
    pass


class CompressionModeError(PakError):
    pass


class CrossValidationError(PakError):
    pass


class EncodingError(PakError):
    pass


class CapacityError(PakError):
    pass


def structure_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> StructureError:
    return StructureError(code=E_STRUCTURE, message=message, context=context)


def capacity_error(
    what: str, value: int, limit: int
) -> CapacityError:
    return CapacityError(
        code=E_CAPACITY,
        message=f"{what} {value} exceeds field capacity {limit}",
        context={"field": what, "value": value, "limit": limit},
    )


__all__ = [
    "PakError",
    "StructureError",
    "UnknownSectionError",
    "MissingDirectoryError",
    "CompressionModeError",
    "CrossValidationError",
    "EncodingError",
    "CapacityError",
    "structure_error",
    "capacity_error",
    "E_STRUCTURE",
    "E_UNKNOWN_SECTION",
    "E_MISSING_DIRECTORY",
    "E_COMPRESSION",
    "E_CROSS_VALIDATION",
    "E_ENCODING",
    "E_CAPACITY",
]
