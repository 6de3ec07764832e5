"""Tests for the tagged property stream decoder."""

import struct

import pytest

from uasset.errors import OutOfBoundsError
from uasset.properties import (
    ELEMENT_DECODERS, TYPE_DECODERS, DecodeContext, StreamState, decode_property_stream,
)
from uasset.reader import BinaryReader
from uasset.types import PropertyKind
from uasset import versions

from builders import Names, PropertyWriter, fname, fstring, i32, i64, u32

GUID_RAW = bytes(range(16))
GUID_B = "03020100-0706-0504-0b0a-09080f0e0d0c"


@pytest.fixture
def names():
    return Names()


@pytest.fixture
def w(names):
    return PropertyWriter(names)


def decode(names, data, ue4=504, ue5=0, decoders=None):
    ctx = DecodeContext(names.table(), ue4_version=ue4, ue5_version=ue5)
    return decode_property_stream(BinaryReader(data), ctx, decoders)


def values(result):
    return {p.name: p.value for p in result.properties}


# =============================================================================
# STREAM CONTROL
# =============================================================================

def test_terminator_first_yields_nothing(names, w):
    result = decode(names, w.none())
    assert result.state is StreamState.TERMINATED
    assert result.properties == []
    assert result.error is None


def test_bytes_after_terminator_are_not_visited(names, w):
    data = w.int_prop("A", 1) + w.none() + b"\xff" * 5
    result = decode(names, data)
    assert result.state is StreamState.TERMINATED
    assert values(result) == {"A": 1}
    assert result.end_offset == len(data) - 5


def test_range_consumed_without_terminator(names, w):
    result = decode(names, w.int_prop("A", 1))
    assert result.state is StreamState.EXHAUSTED
    assert values(result) == {"A": 1}


def test_short_zero_tail_is_padding(names, w):
    result = decode(names, w.int_prop("A", 1) + bytes(5))
    assert result.state is StreamState.EXHAUSTED
    assert values(result) == {"A": 1}


def test_zero_tag_terminates_when_none_is_name_zero(names, w):
    data = w.int_prop("A", 1) + bytes(8) + w.int_prop("B", 2) + w.none()
    result = decode(names, data)
    assert result.state is StreamState.TERMINATED
    assert values(result) == {"A": 1}
    assert result.end_offset == len(w.int_prop("A", 1)) + 8


@pytest.mark.parametrize("extra", [0, 1, 3, 9])
def test_zero_tag_skips_padding(extra):
    names = Names(first="Root")
    w = PropertyWriter(names)
    data = w.int_prop("A", 1) + bytes(8 + extra) + w.int_prop("B", 2) + w.none()
    result = decode(names, data)
    assert result.state is StreamState.TERMINATED
    assert values(result) == {"A": 1, "B": 2}


@pytest.mark.parametrize("code", [1, 2, 3, 4, 5, 10])
def test_entity_sentinel(names, w, code):
    sentinel = struct.pack("<II", 0, code) + i32(7) + i32(42) + GUID_RAW + i32(43) + bytes(16)
    data = sentinel + w.int_prop("After", 5) + w.none()
    result = decode(names, data)
    assert result.state is StreamState.TERMINATED
    assert values(result) == {
        "EntityReference[0].Id": 42,
        "EntityReference[0].Guid": GUID_B,
        "After": 5,
    }


def test_entity_sentinel_payload_is_fixed_size(names, w):
    sentinel = struct.pack("<II", 0, 1) + bytes(4 + 4 + 16 + 4 + 16)
    result = decode(names, sentinel + sentinel + w.none())
    assert result.end_offset == 2 * 52 + 8
    assert [p.name for p in result.properties] == [
        "EntityReference[0].Id", "EntityReference[0].Guid",
        "EntityReference[1].Id", "EntityReference[1].Guid",
    ]


def test_unknown_type_stops_with_partial_result(names, w):
    head = w.int_prop("A", 1)
    data = head + w.header("B", "MysteryProperty", 4) + i32(9) + w.int_prop("C", 3) + w.none()
    result = decode(names, data)
    assert result.state is StreamState.UNKNOWN_PROPERTY
    assert values(result) == {"A": 1}
    assert result.error.property_name == "B"
    assert result.error.type_name == "MysteryProperty"
    assert result.error.offset == len(head)


def test_unresolvable_name_stops(names, w):
    result = decode(names, w.int_prop("A", 1) + fname(999) + bytes(8))
    assert result.state is StreamState.UNKNOWN_PROPERTY
    assert values(result) == {"A": 1}


def test_truncated_payload_raises(names, w):
    data = w.header("A", "IntProperty", 4) + b"\x01"
    with pytest.raises(OutOfBoundsError):
        decode(names, data)


def test_property_guid_is_consumed(names, w):
    data = w.header("A", "IntProperty", 4, property_guid=GUID_RAW) + i32(11) + w.none()
    assert values(decode(names, data)) == {"A": 11}


def test_old_versions_have_no_flag_byte_or_struct_guid(names):
    w = PropertyWriter(names, property_guids=False, struct_guids=False)
    data = w.int_prop("A", 1) + w.struct("Loc", "IntPoint", i32(4) + i32(5)) + w.none()
    result = decode(names, data, ue4=400)
    assert values(result) == {"A": 1, "Loc.x": 4, "Loc.y": 5}


# =============================================================================
# SCALARS
# =============================================================================

def test_str_property(names, w):
    result = decode(names, w.str_prop("Title", "hello") + w.none())
    assert values(result) == {"Title": "hello"}
    assert result.properties[0].kind is PropertyKind.STRING


def test_str_property_declared_longer_than_text(names, w):
    payload = i32(8) + b"hello\x00\x00\x00"
    data = w.header("Title", "StrProperty", len(payload)) + payload + w.int_prop("Next", 1) + w.none()
    assert values(decode(names, data)) == {"Title": "hello", "Next": 1}


def test_bool_has_no_payload(names, w):
    data = w.bool_prop("bOn", True) + w.bool_prop("bOff", False) + w.int_prop("N", 3) + w.none()
    result = decode(names, data)
    assert values(result) == {"bOn": True, "bOff": False, "N": 3}
    assert result.properties[0].kind is PropertyKind.BOOL


def test_float_and_double(names, w):
    data = (w.float_prop("F", 0.5)
            + w.header("D", "DoubleProperty", 8) + struct.pack("<d", 2.25)
            + w.none())
    result = decode(names, data)
    assert values(result) == {"F": 0.5, "D": 2.25}
    assert {p.kind for p in result.properties} == {PropertyKind.FLOAT}


@pytest.mark.parametrize("type_name, payload, expected", [
    ("Int8Property", struct.pack("<b", -3), -3),
    ("Int16Property", struct.pack("<h", -300), -300),
    ("Int64Property", i64(-5), -5),
    ("UInt16Property", struct.pack("<H", 65000), 65000),
    ("UInt32Property", u32(4_000_000_000), 4_000_000_000),
    ("UInt64Property", struct.pack("<Q", 2**63), 2**63),
])
def test_integer_widths(names, w, type_name, payload, expected):
    data = w.header("V", type_name, len(payload)) + payload + w.none()
    assert values(decode(names, data)) == {"V": expected}


def test_name_and_object(names, w):
    data = w.name_prop("Socket", "hand_r") + w.object_prop("Mesh", -3) + w.none()
    assert values(decode(names, data)) == {"Socket": "hand_r", "Mesh": -3}


def test_byte_property_as_enum_name(names, w):
    data = w.enum_byte("Mode", "EMode", "EMode::Fast") + w.none()
    assert values(decode(names, data)) == {"Mode": "EMode::Fast"}


def test_byte_property_plain(names, w):
    data = w.header("Level", "ByteProperty", 1, sub=names.ref("None")) + b"\x07" + w.none()
    assert values(decode(names, data)) == {"Level": 7}


def test_enum_property(names, w):
    data = w.header("Dir", "EnumProperty", 8, sub=names.ref("EDir")) + names.ref("EDir::Up") + w.none()
    assert values(decode(names, data)) == {"Dir": "EDir::Up"}


def test_text_property_keeps_source_string(names, w):
    data = w.text("Label", "Hello World") + w.int_prop("Next", 1) + w.none()
    assert values(decode(names, data)) == {"Label": "Hello World", "Next": 1}


def test_text_property_unknown_history_consumes_declared_size(names, w):
    payload = u32(0) + b"\x03" + b"\xaa" * 6
    data = w.header("Label", "TextProperty", len(payload)) + payload + w.int_prop("Next", 1) + w.none()
    assert values(decode(names, data)) == {"Label": "", "Next": 1}


def test_soft_object_path(names, w):
    payload = names.ref("/Game/Meshes/Rock.Rock") + fstring("")
    data = w.header("Mesh", "SoftObjectProperty", len(payload)) + payload + w.none()
    assert values(decode(names, data)) == {"Mesh": "/Game/Meshes/Rock.Rock"}


def test_soft_object_path_ue5_with_sub_path(names, w):
    payload = names.ref("/Game/Maps/Level") + names.ref("Level") + fstring("PersistentLevel.Door")
    data = w.header("Target", "SoftObjectProperty", len(payload)) + payload + w.none()
    result = decode(names, data, ue4=522, ue5=1009)
    assert values(result) == {"Target": "/Game/Maps/Level.Level:PersistentLevel.Door"}


def test_delegate_is_kept_as_bytes(names, w):
    payload = i32(2) + names.ref("OnClicked")
    data = w.header("Handler", "DelegateProperty", len(payload)) + payload + w.none()
    result = decode(names, data)
    assert result.properties[0].kind is PropertyKind.BYTES
    assert result.properties[0].value == payload


# =============================================================================
# STRUCTS
# =============================================================================

def test_guid_struct(names, w):
    result = decode(names, w.struct("Id", "Guid", GUID_RAW) + w.none())
    assert values(result) == {"Id": GUID_B}
    assert result.properties[0].kind is PropertyKind.GUID


def test_vector_float(names, w):
    data = w.struct("Loc", "Vector", struct.pack("<fff", 1.0, 2.0, 3.0)) + w.none()
    assert values(decode(names, data)) == {"Loc.x": 1.0, "Loc.y": 2.0, "Loc.z": 3.0}


def test_vector_double_chosen_by_size(names, w):
    data = w.struct("Loc", "Vector", struct.pack("<ddd", 1.5, 2.5, 3.5)) + w.none()
    assert values(decode(names, data)) == {"Loc.x": 1.5, "Loc.y": 2.5, "Loc.z": 3.5}


def test_rotator(names, w):
    data = w.struct("Rot", "Rotator", struct.pack("<fff", 10.0, 20.0, 30.0)) + w.none()
    assert values(decode(names, data)) == {"Rot.pitch": 10.0, "Rot.yaw": 20.0, "Rot.roll": 30.0}


def test_color_is_bgra(names, w):
    data = w.struct("Tint", "Color", bytes([1, 2, 3, 4])) + w.none()
    assert values(decode(names, data)) == {"Tint.b": 1, "Tint.g": 2, "Tint.r": 3, "Tint.a": 4}


def test_box_nested_fields(names, w):
    payload = struct.pack("<ffffffB", 0, 0, 0, 1, 2, 3, 1)
    result = decode(names, w.struct("Bounds", "Box", payload) + w.none())
    got = values(result)
    assert got["Bounds.max.z"] == 3.0
    assert got["Bounds.is_valid"] == 1


def test_gameplay_tag_container(names, w):
    payload = i32(2) + names.ref("Ability.Fire") + names.ref("State.Stunned")
    data = w.struct("Tags", "GameplayTagContainer", payload) + w.none()
    assert values(decode(names, data)) == {"Tags[0]": "Ability.Fire", "Tags[1]": "State.Stunned"}


def test_unknown_struct_kept_as_exact_bytes(names, w):
    data = w.struct("Blob", "MyStruct", b"\x01\x02\x03") + w.int_prop("Next", 9) + w.none()
    result = decode(names, data)
    assert values(result) == {"Blob": b"\x01\x02\x03", "Next": 9}
    assert result.properties[0].kind is PropertyKind.BYTES


def test_native_struct_with_unexpected_size_is_kept_as_bytes(names, w):
    data = w.struct("Loc", "Vector", bytes(20)) + w.none()
    assert values(decode(names, data)) == {"Loc": bytes(20)}


# =============================================================================
# CONTAINERS
# =============================================================================

def test_int_array(names, w):
    data = w.array("Scores", "IntProperty", 3, i32(1) + i32(2) + i32(3)) + w.none()
    assert values(decode(names, data)) == {"Scores[0]": 1, "Scores[1]": 2, "Scores[2]": 3}


def test_string_array(names, w):
    data = w.array("Lines", "StrProperty", 2, fstring("a") + fstring("bc")) + w.none()
    assert values(decode(names, data)) == {"Lines[0]": "a", "Lines[1]": "bc"}


def test_empty_array(names, w):
    result = decode(names, w.array("Nothing", "IntProperty", 0, b"") + w.int_prop("N", 1) + w.none())
    assert values(result) == {"N": 1}


def test_enum_byte_array_holds_names(names, w):
    data = w.array("Modes", "ByteProperty", 2, names.ref("EMode::A") + names.ref("EMode::B")) + w.none()
    assert values(decode(names, data)) == {"Modes[0]": "EMode::A", "Modes[1]": "EMode::B"}


def test_struct_array_of_vectors(names, w):
    elements = [struct.pack("<fff", i, i + 1, i + 2) for i in range(2)]
    data = w.struct_array("Points", "Vector", elements) + w.none()
    got = values(decode(names, data))
    assert got["Points[0].x"] == 0.0
    assert got["Points[1].z"] == 3.0
    assert len(got) == 6


def test_struct_array_of_guids(names, w):
    data = w.struct_array("Ids", "Guid", [GUID_RAW, bytes(16)]) + w.none()
    got = values(decode(names, data))
    assert got == {"Ids[0]": GUID_B, "Ids[1]": "00000000-0000-0000-0000-000000000000"}


def test_struct_array_of_unknown_structs_kept_as_bytes(names, w):
    data = w.struct_array("Rows", "TableRow", [b"\x01\x02", b"\x03\x04"]) + w.int_prop("N", 1) + w.none()
    assert values(decode(names, data)) == {"Rows": b"\x01\x02\x03\x04", "N": 1}


def test_struct_array_before_inner_tag_kept_as_bytes(names):
    w = PropertyWriter(names, property_guids=False)
    elements = i32(1) + i32(2) + i32(3) + i32(4)
    payload = i32(2) + elements
    data = (w.header("Pts", "ArrayProperty", len(payload), sub=names.ref("StructProperty"))
            + payload + w.int_prop("After", 9) + w.none())
    result = decode(names, data, ue4=450)
    assert result.state is StreamState.TERMINATED
    assert values(result) == {"Pts": elements, "After": 9}


def test_array_of_undecodable_elements_kept_as_bytes(names, w):
    elements = i32(1) + bytes(8)
    data = w.array("Handlers", "DelegateProperty", 1, elements) + w.int_prop("N", 1) + w.none()
    result = decode(names, data)
    assert values(result) == {"Handlers": i32(1) + elements, "N": 1}


def test_map(names, w):
    entries = [(names.ref("fire"), i32(10)), (names.ref("ice"), i32(20))]
    data = w.map("Damage", "NameProperty", "IntProperty", entries) + w.none()
    assert values(decode(names, data)) == {
        "Damage[0].Key": "fire", "Damage[0].Value": 10,
        "Damage[1].Key": "ice", "Damage[1].Value": 20,
    }


def test_map_with_struct_values_kept_as_bytes(names, w):
    entries = [(i32(1), b"\x09" * 12)]
    data = w.map("Slots", "IntProperty", "StructProperty", entries) + w.int_prop("N", 1) + w.none()
    result = decode(names, data)
    assert result.properties[0].kind is PropertyKind.BYTES
    assert values(result)["N"] == 1


def test_set(names, w):
    payload = i32(0) + i32(2) + names.ref("A") + names.ref("B")
    data = w.header("Keys", "SetProperty", len(payload), sub=names.ref("NameProperty")) + payload + w.none()
    assert values(decode(names, data)) == {"Keys[0]": "A", "Keys[1]": "B"}


def test_every_element_decoder_has_a_type_decoder():
    assert set(ELEMENT_DECODERS) <= set(TYPE_DECODERS)


def test_context_defaults_to_latest_ue4_version(names):
    ctx = DecodeContext(names.table())
    assert ctx.ue4_version == versions.VER_UE4_LATEST
    assert ctx.has_inner_array_tag and ctx.has_struct_guid and ctx.has_property_guid
