from __future__ import annotations

import json
from pathlib import Path

from retropak.cli import build_parser, main
from retropak.format.endian import Endian
from retropak.reporting import SilentReporter, set_reporter, set_verbosity

from pak_fixtures import ID_B, build_package, chunk, simple_assets


def teardown_function(function):
    set_verbosity(0)
    set_reporter(SilentReporter())


def _pak(tmp: Path, **kw) -> Path:
    p = tmp / "src.pak"
    p.write_bytes(build_package(simple_assets(), **kw))
    return p


def test_parser_defaults():
    args = build_parser().parse_args(["list", "x.pak"])
    assert args.endian is Endian.LITTLE
    assert args.reporter == "plain"
    assert args.verbose == 0
    args = build_parser().parse_args(["--endian", "big", "-vv", "list", "x.pak"])
    assert args.endian is Endian.BIG
    assert args.verbose == 2


def test_list_plain(tmp_path: Path, capsys):  # noqa: N802
    pak = _pak(tmp_path)
    assert main(["list", str(pak)]) == 0
    err = capsys.readouterr().err
    assert str(ID_B) in err
    assert "name=meshes/crate" in err
    assert "mode=2" in err


def test_inspect_json(tmp_path: Path, capsys):  # noqa: N802
    pak = _pak(tmp_path)
    assert main(["-r", "silent", "inspect", "--json", str(pak)]) == 0
    info = json.loads(capsys.readouterr().out)
    assert [c["id"] for c in info["chunks"]] == ["ADIR", "META", "STRG"]


def test_inspect_reports_issues(tmp_path: Path, capsys):  # noqa: N802
    pak = _pak(tmp_path, extra_chunks=[chunk("XYZZ", b"")])
    assert main(["inspect", str(pak)]) == 1
    assert "Unknown TOCC chunk XYZZ" in capsys.readouterr().err


def test_error_exit_code(tmp_path: Path, capsys):  # noqa: N802
    pak = _pak(tmp_path, extra_chunks=[chunk("XYZZ", b"")])
    assert main(["list", str(pak)]) == 1
    err = capsys.readouterr().err
    assert "E_UNKNOWN_SECTION" in err
    assert "XYZZ" in err


def test_extract_build_repack(tmp_path: Path):  # noqa: N802
    pak = _pak(tmp_path, layout=[2, 1, 0])
    out_dir = tmp_path / "assets"
    manifest = tmp_path / "manifest.json"
    assert (
        main(
            [
                "-r",
                "silent",
                "extract",
                str(pak),
                str(out_dir),
                "--emit-manifest",
                str(manifest),
            ]
        )
        == 0
    )
    assert len(list(out_dir.iterdir())) == 3
    assert json.loads(manifest.read_text(encoding="utf-8"))["counts"]["assets"] == 3

    rebuilt = tmp_path / "rebuilt.pak"
    repacked = tmp_path / "repacked.pak"
    assert main(["-r", "silent", "build", str(out_dir), str(rebuilt)]) == 0
    assert main(["-r", "silent", "repack", str(pak), str(repacked)]) == 0
    assert rebuilt.read_bytes() == repacked.read_bytes()


def test_json_reporter_emits_summaries(tmp_path: Path, capsys):  # noqa: N802
    pak = _pak(tmp_path)
    out = tmp_path / "out.pak"
    assert main(["-r", "json", "repack", str(pak), str(out)]) == 0
    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    summaries = {e["summary_type"] for e in events if e["event"] == "summary"}
    assert {"read", "write"} <= summaries
    ends = [e for e in events if e["event"] == "task_end"]
    assert any(e["id"] == "read.assets" and e["compressed"] == 1 for e in ends)


def test_rich_without_tty_falls_back(tmp_path: Path, capsys):  # noqa: N802
    pak = _pak(tmp_path)
    assert main(["-r", "rich", "list", str(pak)]) == 0
    assert "INFO:" in capsys.readouterr().err


def test_verbose_logging_goes_through_reporter(tmp_path: Path, capsys):  # noqa: N802
    pak = _pak(tmp_path)
    out = tmp_path / "out.pak"
    assert main(["-v", "repack", str(pak), str(out)]) == 0
    err = capsys.readouterr().err
    assert "VERB1: Wrote package" in err
