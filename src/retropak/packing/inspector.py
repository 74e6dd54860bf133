"""Structural package inspection.

Public functions:
- inspect_package(data, endian) -> dict
- validate_package(info) -> list[str]

Inspection walks the forms and table-of-contents chunks without decompressing
or cross-validating payloads, so it also works on packages that
:meth:`Package.read` rejects for payload-level problems. Unknown chunks are
recorded rather than rejected.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ..format.chunk import ChunkDescriptor
from ..format.constants import (
    CHUNK_ADIR,
    CHUNK_META,
    CHUNK_STRG,
    FORM_HEADER_SIZE,
    PACKAGE_ALIGNMENT,
)
from ..format.endian import Endian
from ..format.rfrm import FormDescriptor
from ..format.tables import (
    parse_asset_directory,
    parse_metadata_table,
    parse_string_table,
)

__all__ = ["inspect_package", "validate_package"]


def _form_dict(form: FormDescriptor) -> Dict[str, Any]:
    return {
        "id": str(form.id),
        "version": form.version,
        "other_version": form.other_version,
        "size": form.size,
    }


def inspect_package(
    data: bytes | memoryview, endian: Endian = Endian.LITTLE
) -> Dict[str, Any]:
    view = memoryview(data)
    pack, pack_data, _ = FormDescriptor.slice(view, endian)
    tocc, tocc_data, _ = FormDescriptor.slice(pack_data, endian)
    result: Dict[str, Any] = {
        "file_size": len(view),
        "endian": endian.byteorder,
        "pack": _form_dict(pack),
        "tocc": _form_dict(tocc),
        "chunks": [],
        "directory_entries": [],
        "metadata_entries": [],
        "string_entries": [],
    }
    # Offsets below are absolute within the package
    cursor = 2 * FORM_HEADER_SIZE
    while len(tocc_data):
        before = len(tocc_data)
        desc, chunk_data, tocc_data = ChunkDescriptor.slice(tocc_data, endian)
        result["chunks"].append(
            {
                "id": str(desc.id),
                "offset": cursor,
                "size": desc.size,
                "skip": desc.skip,
            }
        )
        cursor += before - len(tocc_data)
        if desc.id == CHUNK_ADIR:
            result["directory_entries"] = [
                {
                    "id": str(e.asset_id),
                    "type": str(e.asset_type),
                    "version": e.version,
                    "other_version": e.other_version,
                    "offset": e.offset,
                    "size": e.size,
                    "decompressed_size": e.decompressed_size,
                    "compressed": e.is_compressed,
                }
                for e in parse_asset_directory(chunk_data, endian).entries
            ]
        elif desc.id == CHUNK_META:
            result["metadata_entries"] = [
                {"id": str(e.asset_id), "offset": e.offset}
                for e in parse_metadata_table(chunk_data, endian).entries
            ]
        elif desc.id == CHUNK_STRG:
            result["string_entries"] = [
                {
                    "id": str(e.asset_id),
                    "kind": str(e.kind),
                    "name": e.name.decode("utf-8", errors="replace"),
                }
                for e in parse_string_table(chunk_data, endian).entries
            ]
    result["payload_start"] = FORM_HEADER_SIZE * 2 + tocc.size
    result["payload_end"] = FORM_HEADER_SIZE + pack.size
    return result


def validate_package(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = []
    if info["pack"]["id"] != "PACK":
        issues.append(f"Outer form is {info['pack']['id']}, expected PACK")
    if info["tocc"]["id"] != "TOCC":
        issues.append(f"Inner form is {info['tocc']['id']}, expected TOCC")
    chunk_ids = [c["id"] for c in info["chunks"]]
    for cid in chunk_ids:
        if cid not in ("ADIR", "META", "STRG"):
            issues.append(f"Unknown TOCC chunk {cid}")
    if "ADIR" not in chunk_ids:
        issues.append("Missing asset directory")
    if info["file_size"] % PACKAGE_ALIGNMENT:
        issues.append(f"File size not aligned to {PACKAGE_ALIGNMENT}")

    file_size = info["file_size"]
    spans = []
    seen: set[str] = set()
    for e in info["directory_entries"]:
        if e["id"] in seen:
            issues.append(f"Duplicate asset id {e['id']}")
        seen.add(e["id"])
        end = e["offset"] + e["size"]
        if end > file_size:
            issues.append(f"Asset {e['id']} exceeds file size")
        if e["offset"] < info["payload_start"]:
            issues.append(f"Asset {e['id']} overlaps table of contents")
        spans.append((e["offset"], end, e["id"]))
    spans.sort()
    for (_, a_end, a_id), (b_start, _, b_id) in zip(spans, spans[1:]):
        if b_start < a_end:
            issues.append(f"Assets {a_id} and {b_id} overlap")

    offsets = [m["offset"] for m in info["metadata_entries"]]
    if offsets != sorted(offsets):
        issues.append("Metadata offsets are not ascending")
    return issues
