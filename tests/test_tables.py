import io
import struct

import pytest

from retropak.errors import CapacityError, StructureError, E_CAPACITY
from retropak.format import (
    AssetDirectory,
    AssetDirectoryEntry,
    AssetInfo,
    ChunkDescriptor,
    Endian,
    FormDescriptor,
    FourCC,
    MetadataTable,
    MetadataTableEntry,
    StringTable,
    StringTableEntry,
    parse_endian,
)
from retropak.format.tables import (
    pack_asset_directory,
    pack_asset_info,
    pack_metadata_table,
    pack_string_table,
    parse_asset_directory,
    parse_asset_info,
    parse_string_table,
    pack_uuid,
    parse_uuid,
)

from pak_fixtures import ID_A, ID_B, chunk, form, string_body

LE = Endian.LITTLE
BE = Endian.BIG


def test_fourcc_byte_order():
    tag = FourCC.from_str("PACK")
    assert tag.pack(LE) == b"KCAP"
    assert tag.pack(BE) == b"PACK"
    assert FourCC.unpack(b"KCAP", LE) == tag
    assert FourCC.unpack(b"PACK", BE) == tag
    assert str(tag.swap()) == "KCAP"


def test_fourcc_rejects_bad_length():
    with pytest.raises(ValueError):
        FourCC(b"ABC")


def test_parse_endian():
    assert parse_endian("little") is LE
    assert parse_endian("BE") is BE
    assert parse_endian(LE) is LE
    with pytest.raises(ValueError):
        parse_endian("middle")


def test_uuid_is_u128_in_file_order():
    assert pack_uuid(ID_A, BE) == ID_A.bytes
    assert pack_uuid(ID_A, LE) == ID_A.bytes[::-1]
    assert parse_uuid(ID_A.bytes[::-1], LE) == ID_A


def test_form_header_layout():
    raw = form("TXTR", b"body", 2, 5)
    desc = FormDescriptor.unpack(raw, LE)
    assert desc == FormDescriptor(FourCC.from_str("TXTR"), 2, 5, size=4)
    assert desc.pack(LE) == raw[:32]


def test_form_bad_magic_and_truncation():
    raw = bytearray(form("TXTR", b"body"))
    with pytest.raises(StructureError):
        FormDescriptor.unpack(bytes(raw[:31]), LE)
    raw[0:4] = b"FORM"
    with pytest.raises(StructureError):
        FormDescriptor.unpack(bytes(raw), LE)


def test_form_slice_checks_body_bounds():
    raw = form("TXTR", b"body", size=10)
    with pytest.raises(StructureError):
        FormDescriptor.slice(raw, LE)


def test_form_write_patches_size():
    buf = io.BytesIO()
    size = FormDescriptor(FourCC.from_str("TOCC"), 3, 3).write(
        buf, LE, lambda w: w.write(b"12345")
    )
    assert size == 5
    assert buf.getvalue() == form("TOCC", b"12345", 3, 3)


def test_chunk_write_and_slice():
    buf = io.BytesIO()
    ChunkDescriptor(FourCC.from_str("ADIR")).write(
        buf, BE, lambda w: w.write(b"xyz")
    )
    raw = buf.getvalue()
    assert raw == chunk("ADIR", b"xyz", BE)
    desc, data, rest = ChunkDescriptor.slice(raw + b"tail", BE)
    assert desc.size == 3 and desc.unk == 1 and desc.skip == 0
    assert bytes(data) == b"xyz"
    assert bytes(rest) == b"tail"


def test_chunk_skip_beyond_size():
    raw = bytearray(chunk("META", b"abcd"))
    struct.pack_into("<Q", raw, 16, 9)
    with pytest.raises(StructureError):
        ChunkDescriptor.slice(bytes(raw), LE)


def _entry(**kw):
    fields = dict(
        asset_type=FourCC.from_str("TXTR"),
        asset_id=ID_A,
        version=1,
        other_version=2,
        offset=128,
        decompressed_size=64,
        size=64,
    )
    fields.update(kw)
    return AssetDirectoryEntry(**fields)


def test_asset_directory_roundtrip_both_orders():
    directory = AssetDirectory([_entry(), _entry(asset_id=ID_B, size=40)])
    for endian in (LE, BE):
        raw = pack_asset_directory(directory, endian)
        assert len(raw) == directory.packed_size() == 4 + 2 * 52
        parsed = parse_asset_directory(raw, endian)
        assert parsed == directory
    assert parsed.entries[1].is_compressed
    assert not parsed.entries[0].is_compressed


def test_asset_directory_truncated():
    raw = pack_asset_directory(AssetDirectory([_entry()]), LE)
    with pytest.raises(StructureError):
        parse_asset_directory(raw[:-1], LE)


def test_directory_capacity():
    with pytest.raises(CapacityError) as exc:
        pack_asset_directory(AssetDirectory([_entry(version=2**32)]), LE)
    assert exc.value.code == E_CAPACITY
    with pytest.raises(CapacityError):
        pack_asset_directory(AssetDirectory([_entry(offset=2**64)]), LE)


def test_metadata_table_capacity():
    table = MetadataTable([MetadataTableEntry(ID_A, 2**32)])
    with pytest.raises(CapacityError):
        pack_metadata_table(table, LE)


def test_string_table_tag_is_swapped():
    table = StringTable(
        [StringTableEntry(FourCC.from_str("TXTR"), ID_A, b"tex")]
    )
    raw = pack_string_table(table, LE)
    assert raw == string_body([("TXTR", ID_A, b"tex")], LE)
    # Swapped, then stored little-endian: spelled forwards on disk
    assert raw[4:8] == b"TXTR"
    assert parse_string_table(raw, LE) == table


def test_string_table_truncated_name():
    raw = string_body([("TXTR", ID_A, b"texture")], LE)
    with pytest.raises(StructureError):
        parse_string_table(raw[:-2], LE)


def test_asset_info_unknown_offset():
    info = AssetInfo(id=ID_B, compression_mode=3, entry_idx=4)
    raw = pack_asset_info(info, BE)
    assert len(raw) == 32
    assert raw[-8:] == b"\xff" * 8
    assert parse_asset_info(raw, BE) == info
    known = AssetInfo(id=ID_B, orig_offset=96)
    assert parse_asset_info(pack_asset_info(known, LE), LE) == known


def test_asset_info_capacity():
    with pytest.raises(CapacityError):
        pack_asset_info(AssetInfo(id=ID_A, entry_idx=2**32), LE)
