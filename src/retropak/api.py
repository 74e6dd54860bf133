"""High-level file-based API for retropak.

Thin orchestration over :class:`~retropak.packing.package.Package` and the
extracted-asset file codec. All functions raise :class:`~retropak.errors.PakError`
subclasses for format problems and let ``OSError`` propagate for I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List
from uuid import UUID

from .format.constants import FORM_MAGIC
from .format.endian import Endian
from .logging import get_logger, section
from .manifest import build_manifest
from .packing.asset_file import asset_file_name, read_asset_file, write_asset_file
from .packing.inspector import (
    inspect_package as _inspect_package_impl,
    validate_package as _validate_package_impl,
)
from .packing.package import Asset, Package
from .reporting import get_reporter, task

__all__ = [
    "ExtractOptions",
    "ExtractResult",
    "BuildOptions",
    "BuildResult",
    "read_package",
    "write_package",
    "extract_package",
    "build_package",
    "repack_package",
    "inspect_package",
    "validate_package",
]


@dataclass(slots=True)
class ExtractOptions:
    package_path: Path
    output_dir: Path
    endian: Endian = Endian.LITTLE
    # Optional path; when provided a manifest JSON is emitted alongside
    manifest_path: Path | None = None


@dataclass(slots=True)
class ExtractResult:
    output_dir: Path
    files: List[Path] = field(default_factory=list)
    bytes_written: int = 0


@dataclass(slots=True)
class BuildOptions:
    input_dir: Path
    output_path: Path
    endian: Endian = Endian.LITTLE


@dataclass(slots=True)
class BuildResult:
    output_file: Path
    asset_count: int
    bytes_written: int


def read_package(path: str | Path, endian: Endian = Endian.LITTLE) -> Package:
    """Read a package file; uncompressed payloads borrow the loaded bytes."""
    data = Path(path).read_bytes()
    package = Package.read(data, endian)
    get_reporter().summary(
        "read", file=Path(path).name, bytes=len(data), assets=len(package)
    )
    return package


def write_package(
    package: Package, path: str | Path, endian: Endian = Endian.LITTLE
) -> int:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("wb") as f:
        written = package.write(f, endian)
    get_reporter().summary(
        "write", file=p.name, bytes=written, assets=len(package)
    )
    return written


def extract_package(options: ExtractOptions) -> ExtractResult:
    logger = get_logger()
    rep = get_reporter()
    with section(f"Extract {options.package_path.name}"):
        package = read_package(options.package_path, options.endian)
        options.output_dir.mkdir(parents=True, exist_ok=True)
        result = ExtractResult(output_dir=options.output_dir)
        rep.start_task("extract.assets", "Extract assets", total=len(package))
        for asset in package:
            out = options.output_dir / asset_file_name(asset)
            with out.open("wb") as f:
                result.bytes_written += write_asset_file(asset, f, options.endian)
            result.files.append(out)
            logger.info("Extracted %s (%d bytes)", out.name, len(asset.data))
            rep.advance("extract.assets", current_item=out.name)
        rep.end_task(
            "extract.assets",
            assets=len(result.files),
            bytes=result.bytes_written,
        )
        if options.manifest_path is not None:
            with task("manifest.emit", "Emit manifest"):
                build_manifest(
                    package,
                    options.manifest_path,
                    source=options.package_path.name,
                    endian=options.endian.byteorder,
                )
            rep.summary("manifest", file=options.manifest_path.name)
    rep.summary("extract", assets=len(result.files), bytes=result.bytes_written)
    return result


def _fallback_id(path: Path) -> UUID | None:
    try:
        return UUID(path.stem)
    except ValueError:
        return None


def _is_asset_file(path: Path) -> bool:
    """True for ``<uuid>.<kind>`` files holding a form, as extraction writes."""
    if not path.is_file() or len(path.suffix) != 5:
        return False
    if _fallback_id(path) is None:
        return False
    with path.open("rb") as f:
        return f.read(len(FORM_MAGIC)) == FORM_MAGIC


def _load_asset_files(input_dir: Path, endian: Endian) -> List[Asset]:
    files = []
    for path in sorted(input_dir.iterdir()):
        if _is_asset_file(path):
            files.append(path)
        else:
            get_logger().debug("Skipping non-asset file %s", path.name)
    loaded: List[tuple[bool, int, str, Asset]] = []
    rep = get_reporter()
    rep.start_task("build.load", "Load asset files", total=len(files))
    for path in files:
        asset = read_asset_file(path.read_bytes(), endian, _fallback_id(path))
        # Files without an AINF footer have no original offset
        fresh = asset.info.orig_offset is None
        entry_idx = 0 if fresh else asset.info.entry_idx
        loaded.append((fresh, entry_idx, path.name, asset))
        rep.advance("build.load", current_item=path.name)
    rep.end_task("build.load", assets=len(loaded))
    # Extracted assets first in original directory order, fresh ones by name
    loaded.sort(key=lambda t: t[:3])
    return [t[3] for t in loaded]


def build_package(options: BuildOptions) -> BuildResult:
    """Package every asset file in ``options.input_dir``."""
    with section(f"Build {options.output_path.name}"):
        assets = _load_asset_files(options.input_dir, options.endian)
        package = Package(assets)
        written = write_package(package, options.output_path, options.endian)
    get_reporter().summary(
        "build", file=options.output_path.name, bytes=written, assets=len(assets)
    )
    return BuildResult(
        output_file=options.output_path,
        asset_count=len(assets),
        bytes_written=written,
    )


def repack_package(
    src: str | Path, dst: str | Path, endian: Endian = Endian.LITTLE
) -> int:
    """Read ``src`` and write it back uncompressed to ``dst``."""
    package = read_package(src, endian)
    return write_package(package, dst, endian)


def inspect_package(
    path: str | Path, endian: Endian = Endian.LITTLE
) -> dict[str, Any]:
    return _inspect_package_impl(Path(path).read_bytes(), endian)


def validate_package(
    path: str | Path, endian: Endian = Endian.LITTLE
) -> list[str]:
    return _validate_package_impl(inspect_package(path, endian))
