"""Extraction manifest.

The manifest is an optional JSON artifact listing every asset written by an
extraction: identity, type, name, file name, sizes and provenance. It is only
produced when requested by the caller / CLI flag.
"""

from __future__ import annotations

from pathlib import Path
import hashlib
import json
from typing import Any, Dict, List

from .packing.asset_file import asset_file_name
from .packing.package import Package

__all__ = ["build_manifest", "manifest_dict"]


def manifest_dict(
    package: Package,
    *,
    source: str | None = None,
    endian: str = "little",
) -> dict[str, Any]:
    assets: List[Dict[str, Any]] = []
    for asset in package:
        assets.append(
            {
                "id": str(asset.id),
                "kind": str(asset.kind),
                "name": asset.name,
                "file": asset_file_name(asset),
                "version": asset.version,
                "other_version": asset.other_version,
                "size": len(asset.data),
                "meta_size": None if asset.meta is None else len(asset.meta),
                "compression_mode": asset.info.compression_mode,
                "entry_idx": asset.info.entry_idx,
                "orig_offset": asset.info.orig_offset,
                "sha256": hashlib.sha256(asset.data).hexdigest(),
            }
        )
    compressed = sum(1 for a in package if a.info.compression_mode)
    return {
        "version": 1,
        "source": source,
        "endian": endian,
        "counts": {
            "assets": len(assets),
            "compressed": compressed,
            "named": sum(1 for a in package if a.name is not None),
            "with_meta": sum(1 for a in package if a.meta is not None),
        },
        "assets": assets,
    }


def build_manifest(
    package: Package,
    output_path: Path,
    *,
    source: str | None = None,
    endian: str = "little",
) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    data = manifest_dict(package, source=source, endian=endian)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
        f.write("\n")
    return output_path
