"""Tests for table decoding and whole-package assembly."""

import pytest

from uasset.errors import OutOfBoundsError, UAssetError
from uasset.package import UAssetPackage, decode_package
from uasset.types import PropertyKind

from builders import EXPORT_STRIDE, PackageBuilder, i32


def _simple_package(**kwargs):
    pb = PackageBuilder(**kwargs)
    cls = pb.add_import("/Script/Engine", "Class", "Blueprint")
    w = pb.writer
    pb.add_export(cls, "MyAsset", w.int_prop("Health", 100) + w.str_prop("Title", "Hero") + w.none())
    return pb


def test_decode_simple_package():
    pkg = decode_package(_simple_package().build())

    assert len(pkg.imports) == 1
    imp = pkg.imports[0]
    assert imp.index == -1
    assert imp.class_package == "/Script/Engine"
    assert imp.class_name == "Class"
    assert imp.object_name == "Blueprint"

    export = pkg.exports[0]
    assert export.index == 1
    assert export.class_name == "Blueprint"
    assert export.object_name == "MyAsset"
    assert export.metadata == {"objectType": "Blueprint", "objectName": "MyAsset"}
    assert export.get("Health") == 100
    assert export.get("Title") == "Hero"
    assert export.stream_state == "terminated"
    assert export.error is None


def test_names_are_read_from_the_table():
    pkg = decode_package(_simple_package().build())
    assert pkg.names.resolve(0) == "None"
    assert "Health" in pkg.names.strings
    assert pkg.header.name_offset + len(pkg.names) <= pkg.size


def test_export_records_sit_on_fixed_stride():
    pb = PackageBuilder()
    cls = pb.add_import("/Script/Engine", "Class", "Texture2D")
    w = pb.writer
    for i in range(3):
        pb.add_export(cls, f"Tex{i}", w.int_prop("Index", i) + w.none())
    pkg = decode_package(pb.build())

    start = pkg.header.export_offset
    assert [e.record_offset for e in pkg.exports] == [start + i * EXPORT_STRIDE for i in range(3)]
    assert [e.get("Index") for e in pkg.exports] == [0, 1, 2]


def test_records_longer_than_stride_still_start_on_stride():
    # With template index and dependency counts a record needs more than the
    # stride; each record is still read from its own stride position
    pb = PackageBuilder(ue4=522)
    cls = pb.add_import("/Script/Engine", "Class", "StaticMesh")
    w = pb.writer
    for i in range(3):
        pb.add_export(cls, f"Mesh{i}", w.int_prop("LOD", i) + w.none())
    pkg = decode_package(pb.build())

    assert [e.object_name for e in pkg.exports] == ["Mesh0", "Mesh1", "Mesh2"]
    assert [e.get("LOD") for e in pkg.exports] == [0, 1, 2]
    assert pkg.exports[2].first_export_dependency == -1


def test_ue5_package():
    pb = _simple_package(ue4=522, ue5=1009, legacy=-8)
    pkg = decode_package(pb.build())
    assert pkg.header.ue5_version == 1009
    assert pkg.imports[0].package_name == "None"
    assert pkg.exports[0].package_guid == ""
    assert pkg.exports[0].get("Health") == 100


def test_class_index_zero_is_class():
    pb = PackageBuilder()
    pb.add_export(0, "SomeClass", pb.writer.none())
    pkg = decode_package(pb.build())
    assert pkg.exports[0].class_name == "Class"


def test_object_path_walks_outers():
    pb = PackageBuilder()
    outer = pb.add_import("/Script/CoreUObject", "Package", "/Game/Maps/Level")
    cls = pb.add_import("/Script/Engine", "Class", "World")
    pb.add_export(cls, "Level", pb.writer.none(), outer=outer)
    pkg = decode_package(pb.build())
    assert pkg.object_path(1) == "/Game/Maps/Level.Level"
    assert pkg.object_name(-2) == "World"
    assert pkg.resolve_object(0) is None


def test_empty_export_is_exhausted():
    pb = PackageBuilder()
    pb.add_export(0, "Empty", b"")
    pkg = decode_package(pb.build())
    assert pkg.exports[0].properties == []
    assert pkg.exports[0].stream_state == "exhausted"


def test_unknown_property_keeps_partial_result_and_siblings_decode():
    pb = PackageBuilder()
    w = pb.writer
    bad = w.int_prop("Kept", 1) + w.header("Weird", "MysteryProperty", 4) + i32(0) + w.none()
    pb.add_export(0, "Broken", bad)
    pb.add_export(0, "Fine", w.int_prop("Other", 2) + w.none())
    pkg = decode_package(pb.build())

    broken, fine = pkg.exports
    assert [p.name for p in broken.properties] == ["Kept"]
    assert broken.stream_state == "unknown-property"
    assert broken.error.kind == "UnknownProperty"
    assert broken.error.property_name == "Weird"
    assert broken.error.type_name == "MysteryProperty"
    assert broken.error.offset == broken.serial_offset + len(w.int_prop("Kept", 1))
    assert fine.get("Other") == 2
    assert fine.error is None


def test_serial_range_past_end_is_fatal_with_export_index():
    pb = PackageBuilder()
    pb.add_export(0, "Ok", pb.writer.none())
    pb.add_export(0, "Huge", pb.writer.none(), serial_size=1_000_000)
    with pytest.raises(OutOfBoundsError) as excinfo:
        decode_package(pb.build())
    assert excinfo.value.export_index == 2
    assert "export 2" in str(excinfo.value)


def test_property_overrunning_its_export_is_fatal():
    pb = PackageBuilder()
    w = pb.writer
    # Declares an int but the export range ends after the tag header
    pb.add_export(0, "Cut", w.header("Value", "IntProperty", 4))
    pb.add_export(0, "Next", w.int_prop("Value", 1) + w.none())
    with pytest.raises(OutOfBoundsError) as excinfo:
        decode_package(pb.build())
    assert excinfo.value.export_index == 1


def test_header_failures_abort_whole_decode():
    data = bytearray(_simple_package().build())
    data[0:4] = b"\x00\x00\x00\x00"
    with pytest.raises(UAssetError):
        decode_package(bytes(data))


def test_decode_is_idempotent():
    data = _simple_package().build()
    assert decode_package(data) == decode_package(data)


def test_decode_is_idempotent_with_export_errors():
    pb = PackageBuilder()
    w = pb.writer
    pb.add_export(0, "Broken", w.header("Weird", "MysteryProperty", 0) + w.none())
    data = pb.build()
    assert decode_package(data) == decode_package(data)


def test_property_kinds():
    pkg = decode_package(_simple_package().build())
    kinds = {p.name: p.kind for p in pkg.exports[0].properties}
    assert kinds == {"Health": PropertyKind.INT, "Title": PropertyKind.STRING}


def test_uasset_package_from_file(tmp_path, capsys):
    path = tmp_path / "MyAsset.uasset"
    path.write_bytes(_simple_package().build())

    pkg = UAssetPackage.from_file(str(path))
    assert pkg.get_exports_by_class("Blueprint")[0].object_name == "MyAsset"
    assert pkg.get_object_name(-1) == "Blueprint"
    assert pkg.get_import_by_index(-1).class_name == "Class"
    assert pkg.get_import_by_index(1) is None
    export = pkg.exports[0]
    assert len(pkg.get_export_data(export)) == export.serial_size

    pkg.dump_info()
    out = capsys.readouterr().out
    assert "Exports: 1" in out
    assert "UE4 504" in out
