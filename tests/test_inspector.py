from __future__ import annotations

from retropak.packing.inspector import inspect_package, validate_package

from pak_fixtures import (
    BE,
    ID_A,
    ID_B,
    ID_C,
    FixtureAsset,
    build_package,
    chunk,
    simple_assets,
)


def test_inspect_simple_package():
    data = build_package(simple_assets())
    info = inspect_package(data)
    assert info["file_size"] == len(data)
    assert info["pack"]["id"] == "PACK"
    assert info["tocc"]["id"] == "TOCC"
    assert info["tocc"]["version"] == 3
    assert [c["id"] for c in info["chunks"]] == ["ADIR", "META", "STRG"]
    assert info["chunks"][0]["offset"] == 64
    adir = info["chunks"][0]
    assert info["chunks"][1]["offset"] == adir["offset"] + 24 + adir["size"]
    entries = info["directory_entries"]
    assert [e["type"] for e in entries] == ["TXTR", "MSHD", "SCAN"]
    assert [e["compressed"] for e in entries] == [False, True, False]
    assert entries[0]["offset"] == info["payload_start"]
    assert [s["name"] for s in info["string_entries"]] == ["meshes/crate", "scan_a"]
    assert [m["id"] for m in info["metadata_entries"]] == [str(ID_B), str(ID_C)]
    assert validate_package(info) == []


def test_inspect_big_endian():
    info = inspect_package(build_package(simple_assets(), BE), BE)
    assert info["endian"] == "big"
    assert info["directory_entries"][0]["id"] == str(ID_A)
    assert validate_package(info) == []


def test_inspect_records_unknown_chunk():
    data = build_package(simple_assets(), extra_chunks=[chunk("XYZZ", b"12")])
    info = inspect_package(data)
    assert info["chunks"][-1]["id"] == "XYZZ"
    issues = validate_package(info)
    assert "Unknown TOCC chunk XYZZ" in issues


def test_validate_reports_missing_directory_and_duplicates():
    info = inspect_package(build_package([], with_directory=False))
    assert "Missing asset directory" in validate_package(info)

    dup = [
        FixtureAsset("TXTR", ID_A, b"one"),
        FixtureAsset("TXTR", ID_A, b"two"),
    ]
    issues = validate_package(inspect_package(build_package(dup)))
    assert f"Duplicate asset id {ID_A}" in issues


def test_validate_reports_misalignment_and_overlap():
    data = build_package(simple_assets())
    info = inspect_package(data)
    info["file_size"] = len(data) - 3
    issues = validate_package(info)
    assert any("not aligned" in i for i in issues)

    info = inspect_package(data)
    info["directory_entries"][1]["offset"] = info["directory_entries"][0]["offset"]
    issues = validate_package(info)
    assert any("overlap" in i for i in issues)
