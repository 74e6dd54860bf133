from __future__ import annotations

import struct

import pytest

from retropak.errors import (
    CompressionModeError,
    CrossValidationError,
    EncodingError,
    MissingDirectoryError,
    StructureError,
    UnknownSectionError,
    E_CROSS_VALIDATION,
    E_UNKNOWN_SECTION,
)
from retropak.format.fourcc import FourCC
from retropak.packing.package import Package
from retropak.reporting import SilentReporter, set_reporter

from pak_fixtures import (
    BE,
    ID_A,
    ID_B,
    ID_C,
    LE,
    FixtureAsset,
    build_package,
    chunk,
    simple_assets,
)


def setup_module(module):
    set_reporter(SilentReporter())


def test_single_uncompressed_asset():
    asset = FixtureAsset("TXTR", ID_A, b"hello world")
    data = build_package([asset])
    pkg = Package.read(data)
    assert len(pkg) == 1
    a = pkg.assets[0]
    assert a.id == ID_A
    assert a.kind == FourCC(b"TXTR")
    assert a.name is None
    assert a.meta is None
    assert bytes(a.data) == asset.payload()
    assert a.info.compression_mode == 0
    assert a.info.entry_idx == 0


def test_order_matches_directory_not_layout():
    assets = simple_assets()
    data = build_package(assets, layout=[2, 0, 1])
    pkg = Package.read(data)
    assert [a.id for a in pkg] == [ID_A, ID_B, ID_C]
    assert [a.info.entry_idx for a in pkg] == [0, 1, 2]
    offsets = [a.info.orig_offset for a in pkg]
    assert offsets[2] < offsets[0] < offsets[1]


def test_uncompressed_payload_borrows_source():
    data = build_package(simple_assets())
    pkg = Package.read(data)
    a = pkg.find(ID_A)
    assert a.is_borrowed
    assert a.data.obj is data
    start = a.info.orig_offset
    assert bytes(a.data) == data[start : start + len(a.data)]


def test_compressed_payload_is_owned_and_decompressed():
    assets = simple_assets()
    data = build_package(assets)
    pkg = Package.read(data)
    b = pkg.find(ID_B)
    assert isinstance(b.data, bytes)
    assert not b.is_borrowed
    assert b.data == assets[1].payload()
    assert len(b.data) == 32 + 40
    assert b.info.compression_mode == 2


@pytest.mark.parametrize("mode", [1, 2, 3])
def test_all_compression_modes(mode):
    asset = FixtureAsset("TXTR", ID_A, bytes(range(37)), mode=mode)
    pkg = Package.read(build_package([asset]))
    assert pkg.assets[0].data == asset.payload()
    assert pkg.assets[0].info.compression_mode == mode


def test_names_and_metadata():
    pkg = Package.read(build_package(simple_assets()))
    a, b, c = pkg.assets
    assert a.name is None and a.meta is None
    assert b.name == "meshes/crate"
    assert bytes(b.meta) == b"\x01\x02\x03"
    assert c.name == "scan_a"
    assert bytes(c.meta) == b"meta-c"


def test_chunk_skip_is_honoured():
    pkg = Package.read(build_package(simple_assets(), chunk_skip=8))
    assert [a.name for a in pkg] == [None, "meshes/crate", "scan_a"]
    assert bytes(pkg.assets[2].meta) == b"meta-c"


def test_big_endian_package():
    assets = simple_assets()
    pkg = Package.read(build_package(assets, BE), BE)
    assert [a.id for a in pkg] == [ID_A, ID_B, ID_C]
    assert pkg.assets[0].version == 2
    assert pkg.assets[0].other_version == 7
    assert pkg.assets[1].data == assets[1].payload(BE)


def test_compressed_end_to_end_size_check():
    good = FixtureAsset("MSHD", ID_B, b"x" * 20, mode=2)
    assert Package.read(build_package([good])).assets[0].data == good.payload()

    bad = FixtureAsset("MSHD", ID_B, b"x" * 20, mode=2, inner_size=18)
    with pytest.raises(CrossValidationError):
        Package.read(build_package([bad]))


@pytest.mark.parametrize(
    "override,field",
    [
        ({"inner_kind": "XXXX"}, "type"),
        ({"inner_version": 9}, "version"),
        ({"inner_other_version": 9}, "other_version"),
        ({"inner_size": 3}, "size"),
    ],
)
def test_cross_validation_mutations(override, field):
    asset = FixtureAsset("TXTR", ID_A, b"payload-bytes", **override)
    with pytest.raises(CrossValidationError) as exc:
        Package.read(build_package([asset]))
    assert exc.value.code == E_CROSS_VALIDATION
    assert exc.value.context["field"] == field
    assert str(ID_A) in exc.value.message


def test_payload_shorter_than_form_header_names_asset():
    asset = FixtureAsset("TXTR", ID_A, b"", raw=b"RFRM\x01\x02")
    with pytest.raises(StructureError) as exc:
        Package.read(build_package([asset]))
    assert exc.value.context["asset_id"] == str(ID_A)
    assert exc.value.context["available"] == 6
    assert str(ID_A) in exc.value.message


def test_unknown_chunk_rejected():
    data = build_package(simple_assets(), extra_chunks=[chunk("XYZZ", b"??")])
    with pytest.raises(UnknownSectionError) as exc:
        Package.read(data)
    assert exc.value.code == E_UNKNOWN_SECTION
    assert "XYZZ" in exc.value.message


def test_missing_directory():
    data = build_package([], with_directory=False)
    with pytest.raises(MissingDirectoryError):
        Package.read(data)


def test_empty_package():
    pkg = Package.read(build_package([]))
    assert len(pkg) == 0


def test_unsupported_compression_mode():
    asset = FixtureAsset("TXTR", ID_A, b"abcdefgh", mode=1)
    data = bytearray(build_package([asset]))
    # Overwrite the little-endian mode selector of the only payload
    stored = asset.stored()
    pos = bytes(data).index(stored)
    data[pos : pos + 4] = struct.pack("<I", 7)
    with pytest.raises(CompressionModeError) as exc:
        Package.read(bytes(data))
    assert exc.value.context["mode"] == 7
    assert str(ID_A) in exc.value.message


def test_invalid_utf8_name():
    asset = FixtureAsset("TXTR", ID_A, b"abc", name=b"\xff\xfe")
    with pytest.raises(EncodingError):
        Package.read(build_package([asset]))


def test_wrong_outer_form():
    data = bytearray(build_package(simple_assets()))
    data[20:24] = b"KCAB"
    with pytest.raises(StructureError):
        Package.read(bytes(data))


def test_truncated_package():
    data = build_package(simple_assets())
    with pytest.raises(StructureError):
        Package.read(data[:100])


def test_duplicate_ids_last_name_and_meta_win():
    assets = [
        FixtureAsset("TXTR", ID_A, b"one", name=b"first", meta=b"m1"),
        FixtureAsset("TXTR", ID_A, b"two", name=b"second", meta=b"m2"),
    ]
    pkg = Package.read(build_package(assets))
    assert len(pkg) == 2
    assert [a.name for a in pkg] == ["second", "second"]
    assert [bytes(a.meta) for a in pkg] == [b"m2", b"m2"]


def test_read_accepts_bytearray_and_little_is_default():
    data = bytearray(build_package(simple_assets()))
    pkg = Package.read(data, LE)
    assert pkg.assets[0].data.obj is data
    assert len(Package.read(data)) == 3


def test_detach_copies_payload():
    data = build_package(simple_assets())
    asset = Package.read(data).find(ID_C)
    owned = asset.detach()
    assert isinstance(owned.data, bytes)
    assert isinstance(owned.meta, bytes)
    assert owned.data == bytes(asset.data)
    assert owned.info == asset.info
    assert owned.info is not asset.info
