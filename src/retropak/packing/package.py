"""Package model and the PACK read/write assembler.

Layout of a package::

    RFRM PACK v1
      RFRM TOCC v3
        ADIR  asset directory (absolute payload offsets)
        META  metadata table + metadata blobs
        STRG  string table
      payload bytes, one per directory entry
    zero padding to 16 bytes

Reading slices a single resident buffer. Uncompressed payloads are returned as
``memoryview`` slices of that buffer (they stay valid while it is alive);
compressed payloads are decompressed into owned ``bytes``. Writing never
compresses, and emits payloads in the order they had in their source package
so an unmodified read/write round trip keeps the data segment layout.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import BinaryIO, Dict, Iterator, List, Optional, Union
from uuid import UUID

from ..compression import decompress, split_compressed_payload
from ..errors import (
    CompressionModeError,
    CrossValidationError,
    EncodingError,
    MissingDirectoryError,
    UnknownSectionError,
    E_COMPRESSION,
    E_CROSS_VALIDATION,
    E_ENCODING,
    E_MISSING_DIRECTORY,
    E_UNKNOWN_SECTION,
    structure_error,
)
from ..format.chunk import ChunkDescriptor
from ..format.constants import (
    CHUNK_ADIR,
    CHUNK_META,
    CHUNK_STRG,
    COMPRESSION_MODES,
    COMPRESSION_NONE,
    FORM_HEADER_SIZE,
    FORM_PACK,
    FORM_TOCC,
    PACK_VERSION,
    PACKAGE_ALIGNMENT,
    TOCC_VERSION,
)
from ..format.endian import Endian
from ..format.fourcc import FourCC
from ..format.rfrm import FormDescriptor
from ..format.tables import (
    AssetDirectory,
    AssetDirectoryEntry,
    AssetInfo,
    MetadataTable,
    MetadataTableEntry,
    StringTable,
    StringTableEntry,
    pack_asset_directory,
    pack_metadata_table,
    pack_string_table,
    parse_asset_directory,
    parse_metadata_table,
    parse_string_table,
)
from ..logging import get_logger
from ..reporting import get_reporter

__all__ = [
    "Payload",
    "Asset",
    "Package",
    "metadata_spans",
    "payload_order",
]

# Borrowed view into a source buffer, or an owned buffer
Payload = Union[bytes, memoryview]


@dataclass(slots=True)
class Asset:
    id: UUID
    kind: FourCC
    data: Payload
    info: AssetInfo
    version: int
    other_version: int
    name: Optional[str] = None
    meta: Optional[Payload] = None

    @classmethod
    def from_payload(
        cls,
        data: Payload,
        endian: Endian,
        *,
        asset_id: UUID,
        name: Optional[str] = None,
        meta: Optional[Payload] = None,
        info: Optional[AssetInfo] = None,
    ) -> "Asset":
        """Build an asset whose type and versions come from its own form header."""
        form = FormDescriptor.unpack(data, endian)
        return cls(
            id=asset_id,
            kind=form.id,
            data=data,
            info=info if info is not None else AssetInfo(id=asset_id),
            version=form.version,
            other_version=form.other_version,
            name=name,
            meta=meta,
        )

    @property
    def is_borrowed(self) -> bool:
        """True when ``data`` is a view into the buffer the package was read from."""
        return isinstance(self.data, memoryview)

    def detach(self) -> "Asset":
        """Return a copy that owns its payload and metadata bytes."""
        return replace(
            self,
            data=bytes(self.data),
            meta=None if self.meta is None else bytes(self.meta),
            info=replace(self.info),
        )


def metadata_spans(
    table: MetadataTable, chunk_data: memoryview
) -> Dict[UUID, memoryview]:
    """Slice each metadata blob out of its chunk body.

    Blob lengths are not stored: a blob runs up to the next entry's offset, or
    to the end of the chunk body for the last entry. Later entries with the
    same id replace earlier ones.
    """
    spans: Dict[UUID, memoryview] = {}
    entries = table.entries
    for i, entry in enumerate(entries):
        end = entries[i + 1].offset if i + 1 < len(entries) else len(chunk_data)
        if entry.offset > end or end > len(chunk_data):
            raise structure_error(
                f"Metadata span for {entry.asset_id} out of range: "
                f"{entry.offset}..{end} (body {len(chunk_data)})",
                {
                    "asset_id": str(entry.asset_id),
                    "offset": entry.offset,
                    "end": end,
                },
            )
        spans[entry.asset_id] = chunk_data[entry.offset : end]
    return spans


def payload_order(assets: List[Asset]) -> List[int]:
    """Indices of ``assets`` in on-disk payload order.

    Assets keep the relative order of their original offsets; assets with no
    original offset follow, in list order.
    """

    def key(i: int) -> tuple[bool, int]:
        orig = assets[i].info.orig_offset
        return (orig is None, orig or 0)

    return sorted(range(len(assets)), key=key)


def _expect_form(form: FormDescriptor, form_id: FourCC, version: int) -> None:
    if form.id != form_id or form.version != version:
        raise structure_error(
            f"Expected form {form_id} v{version}, found {form.id} v{form.version}",
            {
                "expected": str(form_id),
                "expected_version": version,
                "found": str(form.id),
                "found_version": form.version,
            },
        )


def _decode_name(entry: StringTableEntry) -> str:
    try:
        return entry.name.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EncodingError(
            code=E_ENCODING,
            message=f"Name of asset {entry.asset_id} is not valid UTF-8",
            context={"asset_id": str(entry.asset_id), "name": entry.name.hex()},
        ) from exc


def _cross_validate(
    entry: AssetDirectoryEntry, payload: Payload, endian: Endian
) -> None:
    if len(payload) < FORM_HEADER_SIZE:
        raise structure_error(
            f"Asset {entry.asset_id} payload of {len(payload)} bytes is shorter "
            f"than its {FORM_HEADER_SIZE}-byte form header",
            {"asset_id": str(entry.asset_id), "available": len(payload)},
        )
    form = FormDescriptor.unpack(payload, endian)
    checks = (
        ("type", str(entry.asset_type), str(form.id)),
        ("version", entry.version, form.version),
        ("other_version", entry.other_version, form.other_version),
        (
            "size",
            entry.decompressed_size,
            form.size + FORM_HEADER_SIZE,
        ),
    )
    for name, expected, found in checks:
        if expected != found:
            raise CrossValidationError(
                code=E_CROSS_VALIDATION,
                message=(
                    f"Asset {entry.asset_id} {name} mismatch: "
                    f"directory={expected} form={found}"
                ),
                context={
                    "asset_id": str(entry.asset_id),
                    "field": name,
                    "directory": expected,
                    "form": found,
                },
            )


@dataclass(slots=True)
class Package:
    assets: List[Asset] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.assets)

    def __iter__(self) -> Iterator[Asset]:
        return iter(self.assets)

    def find(self, asset_id: UUID) -> Optional[Asset]:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None

    # Reading ---------------------------------------------------------------
    @classmethod
    def read(
        cls, data: bytes | bytearray | memoryview, endian: Endian = Endian.LITTLE
    ) -> "Package":
        logger = get_logger()
        view = memoryview(data)
        pack, pack_data, _ = FormDescriptor.slice(view, endian)
        _expect_form(pack, FORM_PACK, PACK_VERSION)
        logger.debug("PACK: %s", pack)
        tocc, tocc_data, _ = FormDescriptor.slice(pack_data, endian)
        _expect_form(tocc, FORM_TOCC, TOCC_VERSION)
        logger.debug("TOCC: %s", tocc)

        adir: Optional[AssetDirectory] = None
        meta: Dict[UUID, memoryview] = {}
        names: Dict[UUID, str] = {}
        while len(tocc_data):
            desc, chunk_data, tocc_data = ChunkDescriptor.slice(tocc_data, endian)
            logger.debug("%s data size %d", desc, len(chunk_data))
            if desc.id == CHUNK_ADIR:
                adir = parse_asset_directory(chunk_data, endian)
                for dir_entry in adir.entries:
                    logger.debug("- %s", dir_entry)
            elif desc.id == CHUNK_META:
                table = parse_metadata_table(chunk_data, endian)
                for meta_entry in table.entries:
                    logger.debug("- %s", meta_entry)
                meta.update(metadata_spans(table, chunk_data))
            elif desc.id == CHUNK_STRG:
                strings = parse_string_table(chunk_data, endian)
                for str_entry in strings.entries:
                    logger.debug("- %s", str_entry)
                    names[str_entry.asset_id] = _decode_name(str_entry)
            else:
                raise UnknownSectionError(
                    code=E_UNKNOWN_SECTION,
                    message=f"Unhandled TOCC chunk {desc.id}",
                    context={"chunk": str(desc.id)},
                )

        if adir is None:
            raise MissingDirectoryError(
                code=E_MISSING_DIRECTORY,
                message="Failed to locate asset directory",
            )

        rep = get_reporter()
        rep.start_task("read.assets", "Read assets", total=len(adir.entries))
        assets: List[Asset] = []
        compressed = 0
        for entry_idx, entry in enumerate(adir.entries):
            end = entry.offset + entry.size
            if end > len(view):
                raise structure_error(
                    f"Asset {entry.asset_id} data {entry.offset}+{entry.size} "
                    f"exceeds package size {len(view)}",
                    {"asset_id": str(entry.asset_id), "offset": entry.offset},
                )
            raw = view[entry.offset : end]
            mode = COMPRESSION_NONE
            payload: Payload
            if entry.is_compressed:
                mode, stream = split_compressed_payload(raw)
                if mode not in COMPRESSION_MODES:
                    raise CompressionModeError(
                        code=E_COMPRESSION,
                        message=(
                            f"Unsupported compression mode {mode} "
                            f"for asset {entry.asset_id}"
                        ),
                        context={"mode": mode, "asset_id": str(entry.asset_id)},
                    )
                payload = decompress(mode, stream, entry.decompressed_size)
                compressed += 1
            else:
                payload = raw

            _cross_validate(entry, payload, endian)

            assets.append(
                Asset(
                    id=entry.asset_id,
                    kind=entry.asset_type,
                    data=payload,
                    info=AssetInfo(
                        id=entry.asset_id,
                        compression_mode=mode,
                        entry_idx=entry_idx,
                        orig_offset=entry.offset,
                    ),
                    version=entry.version,
                    other_version=entry.other_version,
                    name=names.get(entry.asset_id),
                    meta=meta.get(entry.asset_id),
                )
            )
            rep.advance(
                "read.assets",
                current_item=f"{entry.asset_id}.{entry.asset_type}",
            )
        rep.end_task("read.assets", assets=len(assets), compressed=compressed)
        return cls(assets)

    # Writing ---------------------------------------------------------------
    def write(self, w: BinaryIO, endian: Endian = Endian.LITTLE) -> int:
        """Serialize into the seekable sink ``w`` and return bytes written.

        Directory offsets are absolute relative to the sink position at entry.
        """
        logger = get_logger()
        directory = AssetDirectory()
        metadata = MetadataTable()
        string_table = StringTable()
        for asset in self.assets:
            size = len(asset.data)
            directory.entries.append(
                AssetDirectoryEntry(
                    asset_type=asset.kind,
                    asset_id=asset.id,
                    version=asset.version,
                    other_version=asset.other_version,
                    offset=0,
                    decompressed_size=size,
                    size=size,
                )
            )
            if asset.meta is not None:
                metadata.entries.append(MetadataTableEntry(asset.id, 0))
            if asset.name is not None:
                string_table.entries.append(
                    StringTableEntry(
                        asset.kind, asset.id, asset.name.encode("utf-8")
                    )
                )
        meta_assets = [a for a in self.assets if a.meta is not None]

        base = w.tell()
        adir_pos = base

        def write_adir(w: BinaryIO) -> None:
            nonlocal adir_pos
            adir_pos = w.tell()
            w.write(pack_asset_directory(directory, endian))

        def write_meta(w: BinaryIO) -> None:
            start = w.tell()
            w.write(pack_metadata_table(metadata, endian))
            for asset, entry in zip(meta_assets, metadata.entries):
                entry.offset = w.tell() - start
                w.write(asset.meta)
            end = w.tell()
            w.seek(start)
            w.write(pack_metadata_table(metadata, endian))
            w.seek(end)

        def write_strg(w: BinaryIO) -> None:
            w.write(pack_string_table(string_table, endian))

        def write_tocc(w: BinaryIO) -> None:
            ChunkDescriptor(CHUNK_ADIR).write(w, endian, write_adir)
            ChunkDescriptor(CHUNK_META).write(w, endian, write_meta)
            ChunkDescriptor(CHUNK_STRG).write(w, endian, write_strg)

        rep = get_reporter()

        def write_pack(w: BinaryIO) -> None:
            FormDescriptor(FORM_TOCC, TOCC_VERSION, TOCC_VERSION).write(
                w, endian, write_tocc
            )
            rep.start_task(
                "write.payloads", "Write payloads", total=len(self.assets)
            )
            for i in payload_order(self.assets):
                asset = self.assets[i]
                directory.entries[i].offset = w.tell() - base
                w.write(asset.data)
                rep.advance(
                    "write.payloads", current_item=f"{asset.id}.{asset.kind}"
                )
            rep.end_task("write.payloads", assets=len(self.assets))

        FormDescriptor(FORM_PACK, PACK_VERSION, PACK_VERSION).write(
            w, endian, write_pack
        )

        # Patch directory offsets now that payload positions are known
        pos = w.tell()
        w.seek(adir_pos)
        w.write(pack_asset_directory(directory, endian))
        w.seek(pos)

        written = pos - base
        pad = (-written) % PACKAGE_ALIGNMENT
        w.write(b"\x00" * pad)
        written += pad
        logger.info(
            "Wrote package: %d bytes assets=%d metadata=%d names=%d",
            written,
            len(directory.entries),
            len(metadata.entries),
            len(string_table.entries),
        )
        return written
