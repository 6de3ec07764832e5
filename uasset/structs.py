"""
Fixed-layout binary records.

Native (non-tagged) struct payloads and the entity reference record are
declared once here with construct. The BinaryReader still owns the
position: ``read_record`` takes exactly ``sizeof()`` bytes from it and
parses them.
"""

from typing import Dict, Iterator, Optional, Tuple

from construct import Bytes, Float32l, Float64l, Int8ul, Int32sl, Int64sl, Struct

from .reader import BinaryReader

# =============================================================================
# PRIMITIVE TYPES
# =============================================================================

FVector = Struct(
    "x" / Float32l,
    "y" / Float32l,
    "z" / Float32l,
)

FVector64 = Struct(
    "x" / Float64l,
    "y" / Float64l,
    "z" / Float64l,
)

FVector2D = Struct(
    "x" / Float32l,
    "y" / Float32l,
)

FVector2D64 = Struct(
    "x" / Float64l,
    "y" / Float64l,
)

FVector4 = Struct(
    "x" / Float32l,
    "y" / Float32l,
    "z" / Float32l,
    "w" / Float32l,
)

FVector4_64 = Struct(
    "x" / Float64l,
    "y" / Float64l,
    "z" / Float64l,
    "w" / Float64l,
)

FRotator = Struct(
    "pitch" / Float32l,
    "yaw" / Float32l,
    "roll" / Float32l,
)

FRotator64 = Struct(
    "pitch" / Float64l,
    "yaw" / Float64l,
    "roll" / Float64l,
)

FLinearColor = Struct(
    "r" / Float32l,
    "g" / Float32l,
    "b" / Float32l,
    "a" / Float32l,
)

# Stored BGRA
FColor = Struct(
    "b" / Int8ul,
    "g" / Int8ul,
    "r" / Int8ul,
    "a" / Int8ul,
)

FIntPoint = Struct(
    "x" / Int32sl,
    "y" / Int32sl,
)

FIntVector = Struct(
    "x" / Int32sl,
    "y" / Int32sl,
    "z" / Int32sl,
)

FBox = Struct(
    "min" / FVector,
    "max" / FVector,
    "is_valid" / Int8ul,
)

FBox64 = Struct(
    "min" / FVector64,
    "max" / FVector64,
    "is_valid" / Int8ul,
)

# Ticks (DateTime, Timespan)
FTicks = Struct(
    "ticks" / Int64sl,
)

FFrameNumber = Struct(
    "value" / Int32sl,
)

# =============================================================================
# PROPERTY STREAM RECORDS
# =============================================================================

# Follows an 8-byte tag whose low word is 0 and high word a sentinel code.
# Only the first id/guid pair is kept; the second pair repeats the next
# record and is consumed unread.
FEntityReference = Struct(
    "unknown" / Int32sl,
    "entity_id" / Int32sl,
    "guid" / Bytes(16),
    "lookahead_id" / Int32sl,
    "lookahead_guid" / Bytes(16),
)

# Struct name -> {declared payload size: layout}. Vector-like structs are
# stored with floats or, in large-world-coordinate packages, doubles; the
# declared size tells which.
NATIVE_STRUCTS: Dict[str, Dict[int, Struct]] = {
    "Vector": {12: FVector, 24: FVector64},
    "Vector2D": {8: FVector2D, 16: FVector2D64},
    "Vector4": {16: FVector4, 32: FVector4_64},
    "Quat": {16: FVector4, 32: FVector4_64},
    "Plane": {16: FVector4, 32: FVector4_64},
    "Rotator": {12: FRotator, 24: FRotator64},
    "LinearColor": {16: FLinearColor},
    "Color": {4: FColor},
    "IntPoint": {8: FIntPoint},
    "IntVector": {12: FIntVector},
    "Box": {25: FBox, 49: FBox64},
    "DateTime": {8: FTicks},
    "Timespan": {8: FTicks},
    "FrameNumber": {4: FFrameNumber},
}

# Element layouts for arrays of native structs, where no per-element size
# is declared
NATIVE_STRUCT_DEFAULTS: Dict[str, Struct] = {
    name: layouts[min(layouts)] for name, layouts in NATIVE_STRUCTS.items()
}


def native_layout(struct_name: str, size: Optional[int] = None) -> Optional[Struct]:
    """Layout for a native struct, chosen by declared size when given."""
    layouts = NATIVE_STRUCTS.get(struct_name)
    if layouts is None:
        return None
    if size is None:
        return NATIVE_STRUCT_DEFAULTS[struct_name]
    return layouts.get(size)


def read_record(reader: BinaryReader, layout: Struct):
    """Take ``layout.sizeof()`` bytes from the reader and parse them."""
    return layout.parse(reader.read_bytes(layout.sizeof()))


def iter_fields(container, prefix: str = "") -> Iterator[Tuple[str, object]]:
    """Flatten a parsed container into (dotted.name, value) pairs."""
    for key, value in container.items():
        if key.startswith("_"):
            continue
        name = f"{prefix}.{key}" if prefix else key
        if hasattr(value, "items"):
            yield from iter_fields(value, name)
        else:
            yield name, value
