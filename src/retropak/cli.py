"""Command line interface for retropak."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import (
    BuildOptions,
    ExtractOptions,
    build_package,
    extract_package,
    inspect_package,
    read_package,
    repack_package,
    validate_package,
)
from .errors import PakError
from .format.endian import parse_endian
from .logging import configure_logging, step
from .reporting import (
    BACKENDS,
    PlainReporter,
    RichReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)


def _list_cmd(args: argparse.Namespace) -> int:
    package = read_package(args.pak, args.endian)
    rep = get_reporter()
    rep.section(f"Assets in {args.pak.name}")
    for asset in package:
        name = asset.name if asset.name is not None else "-"
        mode = asset.info.compression_mode
        rep.status(
            f"[{asset.info.entry_idx}] {asset.id} {asset.kind} "
            f"v{asset.version}/{asset.other_version} size={len(asset.data)} "
            f"mode={mode} meta={0 if asset.meta is None else len(asset.meta)} "
            f"name={name}"
        )
    return 0


def _inspect_cmd(args: argparse.Namespace) -> int:
    info = inspect_package(args.pak, args.endian)
    if args.json:
        print(json.dumps(info, indent=2, sort_keys=True))
    else:
        rep = get_reporter()
        rep.section(f"Inspect {args.pak.name}")
        chunks = ",".join(
            f"{c['id']}@{c['offset']}+{c['size']}" for c in info["chunks"]
        )
        rep.summary(
            "inspect",
            file_size=info["file_size"],
            chunks=chunks,
            assets=len(info["directory_entries"]),
            names=len(info["string_entries"]),
            metadata=len(info["metadata_entries"]),
        )
    issues = validate_package(args.pak, args.endian)
    for issue in issues:
        get_reporter().warning(issue)
    return 1 if issues else 0


def _extract_cmd(args: argparse.Namespace) -> int:
    extract_package(
        ExtractOptions(
            package_path=args.pak,
            output_dir=args.output,
            endian=args.endian,
            manifest_path=args.emit_manifest,
        )
    )
    return 0


def _build_cmd(args: argparse.Namespace) -> int:
    build_package(
        BuildOptions(
            input_dir=args.input,
            output_path=args.output,
            endian=args.endian,
        )
    )
    return 0


def _repack_cmd(args: argparse.Namespace) -> int:
    step(f"repacking {args.pak.name} -> {args.output.name}")
    repack_package(args.pak, args.output, args.endian)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="retropak", description="PACK asset package tool"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=sorted(BACKENDS),
        default="plain",
        help="Reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    p.add_argument(
        "--endian",
        type=parse_endian,
        default="little",
        help="Byte order of the package files: little (default) or big",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    ls = sub.add_parser("list", help="List the assets of a package")
    ls.add_argument("pak", type=Path)
    ls.set_defaults(func=_list_cmd)

    i = sub.add_parser("inspect", help="Inspect package structure")
    i.add_argument("pak", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON")
    i.set_defaults(func=_inspect_cmd)

    x = sub.add_parser("extract", help="Extract assets to a directory")
    x.add_argument("pak", type=Path)
    x.add_argument("output", type=Path)
    x.add_argument(
        "--emit-manifest",
        dest="emit_manifest",
        type=Path,
        help="Optional path to write manifest JSON (opt-in)",
    )
    x.set_defaults(func=_extract_cmd)

    b = sub.add_parser("build", help="Build a package from asset files")
    b.add_argument("input", type=Path)
    b.add_argument("output", type=Path)
    b.set_defaults(func=_build_cmd)

    r = sub.add_parser("repack", help="Rewrite a package uncompressed")
    r.add_argument("pak", type=Path)
    r.add_argument("output", type=Path)
    r.set_defaults(func=_repack_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    backend = BACKENDS[args.reporter]
    if backend is RichReporter and not sys.stderr.isatty():
        backend = PlainReporter
    set_reporter(backend())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    rep = get_reporter()
    try:
        return args.func(args)
    except PakError as exc:
        rep.flush()
        rep.error(str(exc))
        return 1
    finally:
        rep.flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
