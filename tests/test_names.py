"""Tests for NameTable."""

import struct

import pytest

from uasset.names import NameTable
from uasset.reader import BinaryReader

from builders import fstring


def _table():
    return NameTable.from_strings(["None", "Health", "Armor"])


@pytest.mark.parametrize("index", [-(2**31), -1, 3, 4, 1000, 2**31 - 1])
def test_resolve_out_of_range_is_empty(index):
    assert _table().resolve(index) == ""


def test_resolve_in_range():
    table = _table()
    assert table.resolve(0) == "None"
    assert table.resolve(2) == "Armor"


def test_resolve_fname_uses_low_word():
    table = _table()
    assert table.resolve_fname((7 << 32) | 1) == "Health"


def test_read_entries():
    data = b"pad!" + fstring("None") + struct.pack("<HH", 1, 2) + fstring("Mesh") + struct.pack("<HH", 3, 4)
    table = NameTable.read(BinaryReader(data), 4, 2)
    assert table.strings == ["None", "Mesh"]
    assert table[1].non_case_preserving_hash == 3
    assert table[1].case_preserving_hash == 4


def test_read_ends_inside_buffer():
    data = fstring("None") + struct.pack("<HH", 0, 0)
    reader = BinaryReader(data)
    NameTable.read(reader, 0, 1)
    assert reader.tell() <= len(data)


def test_index_of():
    assert _table().index_of("Armor") == 2
    assert _table().index_of("Missing") == -1


def test_equality():
    assert _table() == _table()
    assert _table() != NameTable.from_strings(["None"])
