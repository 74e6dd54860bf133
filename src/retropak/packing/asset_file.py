"""Standalone asset files with a provenance footer.

Extraction writes each asset as its own payload followed by a ``FOOT`` form::

    RFRM <kind> ...          asset payload (32-byte header + body)
    RFRM FOOT v1
      AINF  AssetInfo (id, compression mode, entry index, original offset)
      NAME  UTF-8 name            (only for named assets)
      META  metadata blob         (only when present)

The footer lets a directory of extracted files be packaged again with the
original asset order and payload layout.
"""

from __future__ import annotations

from typing import BinaryIO, Optional
from uuid import UUID

from ..errors import (
    EncodingError,
    UnknownSectionError,
    E_ENCODING,
    E_UNKNOWN_SECTION,
    structure_error,
)
from ..format.chunk import ChunkDescriptor
from ..format.constants import (
    CHUNK_AINF,
    CHUNK_META,
    CHUNK_NAME,
    FOOT_VERSION,
    FORM_FOOT,
    FORM_HEADER_SIZE,
)
from ..format.endian import Endian
from ..format.rfrm import FormDescriptor
from ..format.tables import AssetInfo, pack_asset_info, parse_asset_info
from .package import Asset

__all__ = ["asset_file_name", "write_asset_file", "read_asset_file"]


def asset_file_name(asset: Asset) -> str:
    return f"{asset.id}.{str(asset.kind).lower()}"


def write_asset_file(asset: Asset, w: BinaryIO, endian: Endian) -> int:
    """Write ``asset`` plus its footer to ``w``; returns bytes written."""
    start = w.tell()
    w.write(asset.data)

    def write_footer(w: BinaryIO) -> None:
        ChunkDescriptor(CHUNK_AINF).write(
            w, endian, lambda w: w.write(pack_asset_info(asset.info, endian))
        )
        if asset.name is not None:
            name = asset.name.encode("utf-8")
            ChunkDescriptor(CHUNK_NAME).write(w, endian, lambda w: w.write(name))
        if asset.meta is not None:
            meta = asset.meta
            ChunkDescriptor(CHUNK_META).write(w, endian, lambda w: w.write(meta))

    FormDescriptor(FORM_FOOT, FOOT_VERSION, FOOT_VERSION).write(
        w, endian, write_footer
    )
    return w.tell() - start


def read_asset_file(
    data: bytes | memoryview,
    endian: Endian,
    fallback_id: Optional[UUID] = None,
) -> Asset:
    """Parse an extracted asset file.

    Files without a footer (or without ``AINF``) take ``fallback_id`` as their
    identity and carry no original offset.
    """
    view = memoryview(data)
    form = FormDescriptor.unpack(view, endian)
    end = FORM_HEADER_SIZE + form.size
    if end > len(view):
        raise structure_error(
            f"Asset form {form.id} exceeds file size: {end}>{len(view)}",
            {"form": str(form.id), "size": form.size},
        )
    payload = view[:end]
    info: Optional[AssetInfo] = None
    name: Optional[str] = None
    meta: Optional[memoryview] = None

    rest = view[end:]
    if len(rest):
        foot, foot_data, trailing = FormDescriptor.slice(rest, endian)
        if foot.id != FORM_FOOT:
            raise structure_error(
                f"Expected FOOT form after asset payload, found {foot.id}",
                {"found": str(foot.id)},
            )
        if len(trailing):
            raise structure_error(
                f"{len(trailing)} trailing bytes after FOOT form",
                {"trailing": len(trailing)},
            )
        while len(foot_data):
            desc, chunk_data, foot_data = ChunkDescriptor.slice(foot_data, endian)
            if desc.id == CHUNK_AINF:
                info = parse_asset_info(chunk_data, endian)
            elif desc.id == CHUNK_NAME:
                try:
                    name = bytes(chunk_data).decode("utf-8")
                except UnicodeDecodeError as exc:
                    raise EncodingError(
                        code=E_ENCODING,
                        message="Asset file name chunk is not valid UTF-8",
                        context={"name": bytes(chunk_data).hex()},
                    ) from exc
            elif desc.id == CHUNK_META:
                meta = chunk_data
            else:
                raise UnknownSectionError(
                    code=E_UNKNOWN_SECTION,
                    message=f"Unhandled FOOT chunk {desc.id}",
                    context={"chunk": str(desc.id)},
                )

    if info is None:
        if fallback_id is None:
            raise structure_error(
                "Asset file has no AINF footer and no fallback id",
                {"kind": str(form.id)},
            )
        info = AssetInfo(id=fallback_id)
    return Asset.from_payload(
        payload, endian, asset_id=info.id, name=name, meta=meta, info=info
    )
