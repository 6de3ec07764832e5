"""
Blueprint graph metadata properties.

Graph nodes, graphs and the Blueprint object itself carry a fixed set of
well-known properties (node position, node GUID, member references, input
bindings, graph lists...). Each name below maps to the declared type it is
expected to carry and a payload reader. Most shapes reuse the generic type
decoder; node GUIDs and nested reference structs read differently. A shape
only applies when the tag's declared type matches; anything else named
the same (a user variable called ``Category``, say) goes through the generic
type decoder.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List

from .properties import (
    GUID, TYPE_DECODERS, DecodeContext, NamedDecoder, PropertyTag,
    decode_payload, decode_property_stream, read_tag_remainder,
)
from .reader import BinaryReader
from .types import GuidOrder, PropertyValue

PayloadReader = Callable[[BinaryReader, DecodeContext, PropertyTag], List[PropertyValue]]


@dataclass(frozen=True)
class MetadataShape:
    """Expected framing of one metadata property and how to read it."""
    type_name: str
    read: PayloadReader
    struct_names: tuple = ()
    inner_type: str = ""

    def matches(self, tag: PropertyTag) -> bool:
        if tag.type_name != self.type_name:
            return False
        if self.struct_names and tag.struct_name not in self.struct_names:
            return False
        if self.inner_type and tag.inner_type != self.inner_type:
            return False
        return True


# =============================================================================
# PAYLOAD READERS
# =============================================================================

def read_node_guid(reader, ctx, tag):
    return [PropertyValue(tag.name, GUID, reader.read_guid(GuidOrder.B, upper=True), tag.type_name)]


def read_nested_struct(reader, ctx, tag):
    """Struct serialized as its own tagged stream, e.g. MemberReference.

    The nested stream is bounded by the declared size, so a field it cannot
    decode never shifts the outer stream.
    """
    nested = decode_property_stream(reader.slice(tag.size), ctx)
    return [
        PropertyValue(f"{tag.name}.{p.name}", p.kind, p.value, p.type_name)
        for p in nested.properties
    ]


# =============================================================================
# SHAPES
# =============================================================================

def _generic(type_name: str, **framing) -> MetadataShape:
    """Shape whose payload reads exactly like the generic decoder's."""
    return MetadataShape(type_name, TYPE_DECODERS[type_name], **framing)


INT_SHAPE = _generic("IntProperty")
BOOL_SHAPE = _generic("BoolProperty")
FLOAT_SHAPE = _generic("FloatProperty")
STRING_SHAPE = _generic("StrProperty")
TEXT_SHAPE = _generic("TextProperty")
NAME_SHAPE = _generic("NameProperty")
OBJECT_SHAPE = _generic("ObjectProperty")
ENUM_BYTE_SHAPE = _generic("ByteProperty")
GUID_SHAPE = MetadataShape("StructProperty", read_node_guid, struct_names=("Guid",))
MEMBER_REFERENCE_SHAPE = MetadataShape(
    "StructProperty", read_nested_struct, struct_names=("MemberReference",))
INPUT_KEY_SHAPE = MetadataShape(
    "StructProperty", read_nested_struct, struct_names=("Key", "InputChord"))
OBJECT_ARRAY_SHAPE = _generic("ArrayProperty", inner_type="ObjectProperty")
NAME_ARRAY_SHAPE = _generic("ArrayProperty", inner_type="NameProperty")
STRING_ARRAY_SHAPE = _generic("ArrayProperty", inner_type="StrProperty")


METADATA_SHAPES: Dict[str, MetadataShape] = {}


def _register(shape: MetadataShape, *names: str):
    for name in names:
        METADATA_SHAPES[name] = shape


_register(INT_SHAPE,
          "NodePosX", "NodePosY", "NodeWidth", "NodeHeight", "CommentDepth",
          "FontSize", "BlueprintSystemVersion", "ErrorType")
_register(BOOL_SHAPE,
          "bCommentBubbleVisible", "bCommentBubblePinned", "bCommentBubbleMakeVisible",
          "bColorCommentBubble", "bIsPureFunc", "bIsConstFunc", "bOverrideFunction",
          "bInternalEvent", "bConsumeInput", "bExecuteWhenPaused",
          "bOverrideParentBinding", "bControl", "bAlt", "bShift", "bCmd")
_register(FLOAT_SHAPE, "SavedZoomAmount")
_register(STRING_SHAPE, "NodeComment", "ErrorMsg", "BlueprintDescription")
_register(TEXT_SHAPE, "Category", "Keywords")
_register(NAME_SHAPE,
          "CustomFunctionName", "DelegatePropertyName", "InputActionName",
          "InputAxisName", "ComponentPropertyName", "VariableName", "AttachToName",
          "InternalVariableName", "FunctionName")
_register(OBJECT_SHAPE,
          "Graph", "Schema", "ParentClass", "GeneratedClass", "SkeletonGeneratedClass",
          "SimpleConstructionScript", "ComponentTemplate", "ComponentClass",
          "StructType", "TargetType", "TimelineTemplate", "DefaultSceneRootNode",
          "ThumbnailInfo")
_register(ENUM_BYTE_SHAPE,
          "AdvancedPinDisplay", "EnabledState", "BlueprintType", "InputKeyEvent", "MoveMode")
_register(GUID_SHAPE,
          "NodeGuid", "VariableGuid", "GraphGuid", "BlueprintGuid", "TimelineGuid",
          "InterfaceGuid")
_register(MEMBER_REFERENCE_SHAPE,
          "FunctionReference", "EventReference", "VariableReference", "DelegateReference")
_register(INPUT_KEY_SHAPE, "InputKey", "InputChord", "AxisKey")
_register(OBJECT_ARRAY_SHAPE,
          "UbergraphPages", "FunctionGraphs", "DelegateSignatureGraphs", "MacroGraphs",
          "EventGraphs", "Nodes", "RootNodes", "AllNodes", "ChildNodes",
          "ComponentTemplates", "Timelines", "SubGraphs")
_register(NAME_ARRAY_SHAPE, "ComponentTags")
_register(STRING_ARRAY_SHAPE, "HideCategories")


# =============================================================================
# REGISTRY
# =============================================================================

def make_decoder(shape: MetadataShape) -> NamedDecoder:
    def decode(reader, ctx, name, offset):
        type_name = ctx.read_name(reader)
        tag = read_tag_remainder(reader, ctx, name, type_name, offset)
        if not shape.matches(tag):
            return decode_payload(reader, ctx, tag)
        return shape.read(reader, ctx, tag)
    return decode


BLUEPRINT_DECODERS: Dict[str, NamedDecoder] = {
    name: make_decoder(shape) for name, shape in METADATA_SHAPES.items()
}
