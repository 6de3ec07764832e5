"""
Tagged property decoding.

A tagged property is laid out as:
  [name: 8][type: 8][size: int32][array_index: int32][type-specific fields]
  [has_guid: uint8][guid: 16 if has_guid][payload: size bytes]

Type-specific fields:
  StructProperty           struct name (8) + struct guid (16)
  ArrayProperty/SetProperty inner type (8)
  MapProperty              key type (8) + value type (8)
  ByteProperty/EnumProperty enum name (8)
  BoolProperty             the value itself (1), payload size is 0

This module reads the tag framing, decodes payloads by declared type and
walks an export's stream of tags until the "None" terminator.
Decoders must leave the reader on the first byte after the payload; the
stream loop never skips ahead using the declared size.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import OutOfBoundsError, UnknownPropertyError
from .names import NameTable
from .reader import BinaryReader
from .structs import FEntityReference, iter_fields, native_layout, read_record
from .types import GuidOrder, PropertyKind, PropertyValue, format_guid
from . import versions as v

INT = PropertyKind.INT
FLOAT = PropertyKind.FLOAT
BOOL = PropertyKind.BOOL
STRING = PropertyKind.STRING
BYTES = PropertyKind.BYTES
GUID = PropertyKind.GUID

# Text history types
TEXT_HISTORY_NONE = -1
TEXT_HISTORY_BASE = 0


@dataclass
class DecodeContext:
    """Everything a decoder needs besides the reader."""
    names: NameTable
    ue4_version: int = v.VER_UE4_LATEST
    ue5_version: int = 0
    export_index: Optional[int] = None

    @classmethod
    def from_header(cls, names: NameTable, header, export_index: Optional[int] = None):
        return cls(names, header.ue4_version, header.ue5_version, export_index)

    @property
    def has_struct_guid(self) -> bool:
        return self.ue4_version >= v.VER_UE4_STRUCT_GUID_IN_PROPERTY_TAG

    @property
    def has_inner_array_tag(self) -> bool:
        return self.ue4_version >= v.VER_UE4_INNER_ARRAY_TAG_INFO

    @property
    def has_property_guid(self) -> bool:
        return self.ue4_version >= v.VER_UE4_PROPERTY_GUID_IN_PROPERTY_TAG

    def read_name(self, reader: BinaryReader) -> str:
        """Read an 8-byte name reference and resolve it."""
        return self.names.resolve_fname(reader.read_uint64())


@dataclass
class PropertyTag:
    """Framing of one tagged property."""
    name: str
    type_name: str = ""
    size: int = 0
    array_index: int = 0
    struct_name: str = ""
    struct_guid: str = ""
    inner_type: str = ""
    value_type: str = ""
    enum_name: str = ""
    bool_value: bool = False
    property_guid: str = ""
    offset: int = 0
    value_offset: int = 0


TypeDecoder = Callable[[BinaryReader, DecodeContext, PropertyTag], List[PropertyValue]]
ElementDecoder = Callable[[BinaryReader, DecodeContext], Tuple[PropertyKind, Any]]


# =============================================================================
# TAG FRAMING
# =============================================================================

def read_tag_remainder(reader: BinaryReader, ctx: DecodeContext, name: str,
                       type_name: str, offset: int) -> PropertyTag:
    """Read the rest of a tag once its name and type are known.

    Raises UnknownPropertyError, before consuming anything further, when the
    type's framing is not known.
    """
    if type_name not in TYPE_DECODERS:
        raise UnknownPropertyError(name, type_name, offset, ctx.export_index)

    r = reader
    tag = PropertyTag(name=name, type_name=type_name, offset=offset)
    tag.size = r.read_int32()
    tag.array_index = r.read_int32()

    if type_name == "StructProperty":
        tag.struct_name = ctx.read_name(r)
        if ctx.has_struct_guid:
            tag.struct_guid = r.read_guid(GuidOrder.B)
    elif type_name in ("ArrayProperty", "SetProperty"):
        tag.inner_type = ctx.read_name(r)
    elif type_name == "MapProperty":
        tag.inner_type = ctx.read_name(r)
        tag.value_type = ctx.read_name(r)
    elif type_name in ("ByteProperty", "EnumProperty"):
        tag.enum_name = ctx.read_name(r)
    elif type_name == "BoolProperty":
        tag.bool_value = r.read_uint8() != 0

    if ctx.has_property_guid and r.read_uint8():
        tag.property_guid = r.read_guid(GuidOrder.B)

    tag.value_offset = r.tell()
    return tag


def read_tag_header(reader: BinaryReader, ctx: DecodeContext, name: str,
                    offset: int) -> PropertyTag:
    """Read a tag's framing; the reader sits just after the 8-byte name."""
    type_name = ctx.read_name(reader)
    return read_tag_remainder(reader, ctx, name, type_name, offset)


def decode_payload(reader: BinaryReader, ctx: DecodeContext, tag: PropertyTag) -> List[PropertyValue]:
    return TYPE_DECODERS[tag.type_name](reader, ctx, tag)


def decode_tagged_property(reader: BinaryReader, ctx: DecodeContext, name: str,
                           offset: int) -> List[PropertyValue]:
    """Generic decoder: frame the tag, then dispatch on its declared type."""
    tag = read_tag_header(reader, ctx, name, offset)
    return decode_payload(reader, ctx, tag)


def read_raw(reader: BinaryReader, tag: PropertyTag) -> List[PropertyValue]:
    """Retain exactly the declared payload as bytes."""
    reader.seek(tag.value_offset)
    return [PropertyValue(tag.name, BYTES, reader.read_bytes(tag.size), tag.type_name)]


# =============================================================================
# SCALARS
# =============================================================================

def _scalar(kind: PropertyKind, read: Callable[[BinaryReader], Any]) -> TypeDecoder:
    def decode(reader, ctx, tag):
        return [PropertyValue(tag.name, kind, read(reader), tag.type_name)]
    return decode


def decode_bool(reader, ctx, tag):
    return [PropertyValue(tag.name, BOOL, tag.bool_value, tag.type_name)]


def decode_byte(reader, ctx, tag):
    """Plain bytes by size; enum-backed bytes carry a name reference."""
    if tag.size == 1:
        value = reader.read_uint8()
    elif tag.size == 4:
        value = reader.read_int32()
    elif tag.size == 8:
        return [PropertyValue(tag.name, STRING, ctx.read_name(reader), tag.type_name)]
    else:
        return read_raw(reader, tag)
    return [PropertyValue(tag.name, INT, value, tag.type_name)]


def decode_name(reader, ctx, tag):
    return [PropertyValue(tag.name, STRING, ctx.read_name(reader), tag.type_name)]


def decode_object(reader, ctx, tag):
    return [PropertyValue(tag.name, INT, reader.read_int32(), tag.type_name)]


def read_soft_object_path(reader: BinaryReader, ctx: DecodeContext) -> str:
    """Soft path: asset path name(s) followed by a sub-path string."""
    if ctx.ue5_version >= v.VER_UE5_FSOFTOBJECTPATH_REMOVE_ASSET_PATH_FNAMES:
        package = ctx.read_name(reader)
        asset = ctx.read_name(reader)
        path = f"{package}.{asset}" if asset and asset != v.NONE_NAME else package
    else:
        path = ctx.read_name(reader)
    sub_path = reader.read_fstring()
    return f"{path}:{sub_path}" if sub_path else path


def decode_soft_object(reader, ctx, tag):
    return [PropertyValue(tag.name, STRING, read_soft_object_path(reader, ctx), tag.type_name)]


def read_text(reader: BinaryReader, ctx: DecodeContext) -> str:
    """Pull the display string out of an FText, or '' if none is recoverable."""
    reader.read_uint32()  # flags
    history = reader.read_int8()
    if history == TEXT_HISTORY_BASE:
        reader.read_fstring()  # namespace
        reader.read_fstring()  # key
        return reader.read_fstring()
    if history == TEXT_HISTORY_NONE:
        if reader.read_int32():
            return reader.read_fstring()
    return ""


def decode_text(reader, ctx, tag):
    """Keep the text's string; the rest of the payload is consumed unread."""
    payload = reader.slice(tag.size)
    try:
        text = read_text(payload, ctx)
    except OutOfBoundsError:
        text = ""
    return [PropertyValue(tag.name, STRING, text, tag.type_name)]


def decode_opaque(reader, ctx, tag):
    return read_raw(reader, tag)


# =============================================================================
# STRUCTS
# =============================================================================

def decode_guid_struct(reader, ctx, name, type_name, size):
    return [PropertyValue(name, GUID, reader.read_guid(GuidOrder.B), type_name)]


def decode_soft_path_struct(reader, ctx, name, type_name, size):
    return [PropertyValue(name, STRING, read_soft_object_path(reader, ctx), type_name)]


def decode_tag_container(reader, ctx, name, type_name, size):
    count = reader.read_int32()
    return [
        PropertyValue(f"{name}[{i}]", STRING, ctx.read_name(reader), type_name)
        for i in range(count)
    ]


# Struct name -> decoder(reader, ctx, name, type_name, size)
NAMED_STRUCT_DECODERS = {
    "Guid": decode_guid_struct,
    "SoftObjectPath": decode_soft_path_struct,
    "SoftClassPath": decode_soft_path_struct,
    "GameplayTagContainer": decode_tag_container,
}


def _native_fields(record, name: str, type_name: str) -> List[PropertyValue]:
    result = []
    for field_name, value in iter_fields(record):
        kind = FLOAT if isinstance(value, float) else INT
        result.append(PropertyValue(f"{name}.{field_name}", kind, value, type_name))
    return result


def decode_struct_value(reader: BinaryReader, ctx: DecodeContext, name: str,
                        struct_name: str, type_name: str, size: Optional[int]):
    """Decode one struct value, or return None if the struct is not modelled."""
    named = NAMED_STRUCT_DECODERS.get(struct_name)
    if named is not None:
        return named(reader, ctx, name, type_name, size)
    layout = native_layout(struct_name, size)
    if layout is not None:
        return _native_fields(read_record(reader, layout), name, type_name)
    return None


def decode_struct(reader, ctx, tag):
    values = decode_struct_value(reader, ctx, tag.name, tag.struct_name, tag.type_name, tag.size)
    if values is None:
        return read_raw(reader, tag)
    return values


# =============================================================================
# CONTAINERS
# =============================================================================

def _soft_element(reader, ctx):
    return STRING, read_soft_object_path(reader, ctx)


ELEMENT_DECODERS: Dict[str, ElementDecoder] = {
    "BoolProperty": lambda r, c: (BOOL, r.read_uint8() != 0),
    "Int8Property": lambda r, c: (INT, r.read_int8()),
    "Int16Property": lambda r, c: (INT, r.read_int16()),
    "IntProperty": lambda r, c: (INT, r.read_int32()),
    "Int64Property": lambda r, c: (INT, r.read_int64()),
    "UInt16Property": lambda r, c: (INT, r.read_uint16()),
    "UInt32Property": lambda r, c: (INT, r.read_uint32()),
    "UInt64Property": lambda r, c: (INT, r.read_uint64()),
    "ByteProperty": lambda r, c: (INT, r.read_uint8()),
    "FloatProperty": lambda r, c: (FLOAT, r.read_float()),
    "DoubleProperty": lambda r, c: (FLOAT, r.read_double()),
    "StrProperty": lambda r, c: (STRING, r.read_fstring()),
    "NameProperty": lambda r, c: (STRING, c.read_name(r)),
    "EnumProperty": lambda r, c: (STRING, c.read_name(r)),
    "ObjectProperty": lambda r, c: (INT, r.read_int32()),
    "ClassProperty": lambda r, c: (INT, r.read_int32()),
    "WeakObjectProperty": lambda r, c: (INT, r.read_int32()),
    "InterfaceProperty": lambda r, c: (INT, r.read_int32()),
    "SoftObjectProperty": _soft_element,
    "SoftClassProperty": _soft_element,
}


def _element_decoder(inner_type: str, tag: PropertyTag, count: int) -> Optional[ElementDecoder]:
    # Enum-backed byte arrays store names, not bytes
    if inner_type == "ByteProperty" and count > 0 and tag.size - 4 == count * 8:
        return ELEMENT_DECODERS["NameProperty"]
    return ELEMENT_DECODERS.get(inner_type)


def _read_struct_elements(reader, ctx, tag, count) -> List[PropertyValue]:
    """Array of structs: an inner tag describes the element struct.

    Older packages have no inner tag, so the element struct is unknown and
    the rest of the declared payload is kept as bytes.
    """
    if not ctx.has_inner_array_tag:
        data = reader.read_bytes(tag.value_offset + tag.size - reader.tell())
        return [PropertyValue(tag.name, BYTES, data, f"{tag.type_name}<StructProperty>")]

    inner_offset = reader.tell()
    inner_name = ctx.read_name(reader)
    inner = read_tag_header(reader, ctx, inner_name, inner_offset)
    struct_name = inner.struct_name

    named = NAMED_STRUCT_DECODERS.get(struct_name)
    element_size = inner.size // count if count > 0 and inner.size % count == 0 else None
    layout = native_layout(struct_name, element_size) if named is None else None

    if named is None and layout is None:
        data = reader.read_bytes(inner.size)
        return [PropertyValue(tag.name, BYTES, data, f"{tag.type_name}<{struct_name}>")]

    type_name = f"{tag.type_name}<{struct_name}>"
    values = []
    for i in range(count):
        element_name = f"{tag.name}[{i}]"
        if named is not None:
            values.extend(named(reader, ctx, element_name, type_name, element_size))
        else:
            values.extend(_native_fields(read_record(reader, layout), element_name, type_name))
    return values


def decode_array(reader, ctx, tag):
    count = reader.read_int32()
    if tag.inner_type == "StructProperty":
        return _read_struct_elements(reader, ctx, tag, count)

    element = _element_decoder(tag.inner_type, tag, count)
    if element is None:
        return read_raw(reader, tag)

    values = []
    type_name = f"{tag.type_name}<{tag.inner_type}>"
    for i in range(count):
        kind, value = element(reader, ctx)
        values.append(PropertyValue(f"{tag.name}[{i}]", kind, value, type_name))
    return values


def decode_set(reader, ctx, tag):
    element = ELEMENT_DECODERS.get(tag.inner_type)
    if element is None:
        return read_raw(reader, tag)

    removed = reader.read_int32()
    for _ in range(removed):
        element(reader, ctx)

    count = reader.read_int32()
    type_name = f"{tag.type_name}<{tag.inner_type}>"
    values = []
    for i in range(count):
        kind, value = element(reader, ctx)
        values.append(PropertyValue(f"{tag.name}[{i}]", kind, value, type_name))
    return values


def decode_map(reader, ctx, tag):
    key = ELEMENT_DECODERS.get(tag.inner_type)
    value = ELEMENT_DECODERS.get(tag.value_type)
    if key is None or value is None:
        return read_raw(reader, tag)

    removed = reader.read_int32()
    for _ in range(removed):
        key(reader, ctx)

    count = reader.read_int32()
    type_name = f"{tag.type_name}<{tag.inner_type},{tag.value_type}>"
    values = []
    for i in range(count):
        key_kind, key_value = key(reader, ctx)
        value_kind, value_value = value(reader, ctx)
        values.append(PropertyValue(f"{tag.name}[{i}].Key", key_kind, key_value, type_name))
        values.append(PropertyValue(f"{tag.name}[{i}].Value", value_kind, value_value, type_name))
    return values


# =============================================================================
# REGISTRY
# =============================================================================

TYPE_DECODERS: Dict[str, TypeDecoder] = {
    "BoolProperty": decode_bool,
    "Int8Property": _scalar(INT, BinaryReader.read_int8),
    "Int16Property": _scalar(INT, BinaryReader.read_int16),
    "IntProperty": _scalar(INT, BinaryReader.read_int32),
    "Int64Property": _scalar(INT, BinaryReader.read_int64),
    "UInt16Property": _scalar(INT, BinaryReader.read_uint16),
    "UInt32Property": _scalar(INT, BinaryReader.read_uint32),
    "UInt64Property": _scalar(INT, BinaryReader.read_uint64),
    "ByteProperty": decode_byte,
    "FloatProperty": _scalar(FLOAT, BinaryReader.read_float),
    "DoubleProperty": _scalar(FLOAT, BinaryReader.read_double),
    "StrProperty": _scalar(STRING, BinaryReader.read_fstring),
    "TextProperty": decode_text,
    "NameProperty": decode_name,
    "EnumProperty": decode_name,
    "ObjectProperty": decode_object,
    "ClassProperty": decode_object,
    "WeakObjectProperty": decode_object,
    "InterfaceProperty": decode_object,
    "SoftObjectProperty": decode_soft_object,
    "SoftClassProperty": decode_soft_object,
    "LazyObjectProperty": decode_opaque,
    "DelegateProperty": decode_opaque,
    "MulticastDelegateProperty": decode_opaque,
    "MulticastInlineDelegateProperty": decode_opaque,
    "MulticastSparseDelegateProperty": decode_opaque,
    "FieldPathProperty": decode_opaque,
    "StructProperty": decode_struct,
    "ArrayProperty": decode_array,
    "SetProperty": decode_set,
    "MapProperty": decode_map,
}


# =============================================================================
# STREAM
# =============================================================================

# Name-keyed decoder: (reader, ctx, property name, tag offset) -> values
NamedDecoder = Callable[[BinaryReader, DecodeContext, str, int], List[PropertyValue]]


class StreamState(Enum):
    DECODING = "decoding"
    TERMINATED = "terminated"
    UNKNOWN_PROPERTY = "unknown-property"
    EXHAUSTED = "exhausted"


@dataclass
class StreamResult:
    state: StreamState
    properties: List[PropertyValue] = field(default_factory=list)
    error: Optional[UnknownPropertyError] = None
    end_offset: int = 0


def read_entity_reference(reader: BinaryReader, ordinal: int) -> List[PropertyValue]:
    """Consume an entity sentinel payload, keeping the first id/guid pair."""
    record = read_record(reader, FEntityReference)
    prefix = f"EntityReference[{ordinal}]"
    return [
        PropertyValue(f"{prefix}.Id", INT, record.entity_id, "EntityReference"),
        PropertyValue(f"{prefix}.Guid", GUID, format_guid(record.guid, GuidOrder.B),
                      "EntityReference"),
    ]


def _is_trailing_padding(reader: BinaryReader) -> bool:
    tail = reader.peek_bytes(8)
    return len(tail) < 8 and not any(tail)


def decode_property_stream(reader: BinaryReader, ctx: DecodeContext,
                           name_decoders: Optional[Dict[str, NamedDecoder]] = None) -> StreamResult:
    """Walk tagged properties until the terminator or the reader's end bound.

    The reader should be bounded to the export's serial range (see
    ``BinaryReader.slice``) so no decoder can read past it. After every
    dispatch the loop resumes from wherever the decoder left the reader.

    Args:
        reader: Reader positioned at the first tag
        ctx: Name table and version counters
        name_decoders: Property-name keyed decoders consulted before the
            generic type-driven decoder

    Raises:
        OutOfBoundsError: a read ran past the end bound
    """
    name_decoders = name_decoders or {}
    result = StreamResult(StreamState.DECODING)
    entity_count = 0

    while result.state is StreamState.DECODING:
        if reader.remaining() <= 0:
            result.state = StreamState.EXHAUSTED
            break

        if _is_trailing_padding(reader):
            reader.skip_padding()
            continue

        tag_offset = reader.tell()
        tag = reader.read_uint64()

        if tag == 0:
            # An all-zero tag is the terminator when "None" is name 0
            if ctx.names.resolve(0) == v.NONE_NAME:
                result.state = StreamState.TERMINATED
                break
            reader.skip_padding()
            continue

        low, high = tag & 0xFFFFFFFF, tag >> 32
        if low == 0 and high in v.ENTITY_SENTINEL_CODES:
            result.properties.extend(read_entity_reference(reader, entity_count))
            entity_count += 1
            continue

        name = ctx.names.resolve(low)
        if name == v.NONE_NAME:
            result.state = StreamState.TERMINATED
            break

        try:
            if not name:
                raise UnknownPropertyError(f"#{low}", "", tag_offset, ctx.export_index)
            decoder = name_decoders.get(name, decode_tagged_property)
            result.properties.extend(decoder(reader, ctx, name, tag_offset))
        except UnknownPropertyError as e:
            result.error = e
            result.state = StreamState.UNKNOWN_PROPERTY

    result.end_offset = reader.tell()
    return result
