"""
Shared data types for package decoding.

Every table and header structure decoded by the package reader is one of
these dataclasses; the property stream produces PropertyValue records.
"""

import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class GuidOrder(Enum):
    """Byte-group order used when rendering a 16-byte GUID.

    A: bytes exactly as stored in the file.
    B: four little-endian uint32 words, the engine's native FGuid layout.
    """
    A = "file-order"
    B = "uint32-words"


def format_guid(raw: bytes, order: GuidOrder = GuidOrder.A, upper: bool = False) -> str:
    """Render 16 bytes as 8-4-4-4-12 hex digits."""
    if len(raw) != 16:
        raise ValueError(f"GUID needs 16 bytes, got {len(raw)}")

    if order is GuidOrder.A:
        h = raw.hex()
        text = f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"
    else:
        a, b, c, d = struct.unpack("<IIII", raw)
        text = (
            f"{a:08x}-{b >> 16:04x}-{b & 0xFFFF:04x}-"
            f"{c >> 16:04x}-{c & 0xFFFF:04x}{d:08x}"
        )
    return text.upper() if upper else text


class PropertyKind(Enum):
    """Value kinds a decoded property can carry."""
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"
    GUID = "guid"


@dataclass(frozen=True)
class PropertyValue:
    """One decoded property (or one flattened element/field of one)."""
    name: str
    kind: PropertyKind
    value: Any
    type_name: str = ""


@dataclass
class EngineVersion:
    """Engine version composite (major.minor.patch-changelist+branch)."""
    major: int = 0
    minor: int = 0
    patch: int = 0
    changelist: int = 0
    branch: str = ""

    def __str__(self):
        return f"{self.major}.{self.minor}.{self.patch}-{self.changelist}+{self.branch}"


@dataclass
class CustomVersion:
    guid: str = ""
    version: int = 0


@dataclass
class GenerationInfo:
    export_count: int = 0
    name_count: int = 0


@dataclass
class PackageHeader:
    """Package file summary. Fields absent for a given version keep defaults."""
    tag: int = 0
    legacy_file_version: int = 0
    legacy_ue3_version: int = 0
    ue4_version: int = 0
    ue5_version: int = 0
    licensee_version: int = 0
    custom_versions: List[CustomVersion] = field(default_factory=list)
    total_header_size: int = 0
    folder_name: str = ""
    package_flags: int = 0
    name_count: int = 0
    name_offset: int = 0
    soft_object_paths_count: int = 0
    soft_object_paths_offset: int = 0
    localization_id: str = ""
    gatherable_text_count: int = 0
    gatherable_text_offset: int = 0
    export_count: int = 0
    export_offset: int = 0
    import_count: int = 0
    import_offset: int = 0
    depends_offset: int = 0
    soft_package_references_count: int = 0
    soft_package_references_offset: int = 0
    searchable_names_offset: int = 0
    thumbnail_table_offset: int = 0
    package_guid: str = ""
    persistent_guid: str = ""
    owner_persistent_guid: str = ""
    generations: List[GenerationInfo] = field(default_factory=list)
    saved_by_engine_version: Optional[EngineVersion] = None
    compatible_with_engine_version: Optional[EngineVersion] = None
    engine_changelist: int = 0
    compression_flags: int = 0
    compressed_chunk_count: int = 0
    package_source: int = 0
    additional_packages_to_cook_count: int = 0
    num_texture_allocations: int = 0
    asset_registry_data_offset: int = 0
    bulk_data_start_offset: int = 0
    world_tile_info_data_offset: int = 0
    chunk_ids: List[int] = field(default_factory=list)
    chunk_id: int = 0
    preload_dependency_count: int = -1
    preload_dependency_offset: int = 0
    names_referenced_from_export_data_count: int = 0
    payload_toc_offset: int = -1
    data_resource_offset: int = -1

    @property
    def is_ue5(self) -> bool:
        return self.ue5_version > 0


@dataclass(frozen=True)
class NameEntry:
    text: str
    non_case_preserving_hash: int = 0
    case_preserving_hash: int = 0


@dataclass
class ImportEntry:
    """Object defined in another package. Index is negative (-1 = first)."""
    index: int = 0
    class_package: str = ""
    class_name: str = ""
    outer_index: int = 0
    object_name: str = ""
    package_name: str = ""
    optional: bool = False


@dataclass(frozen=True)
class ExportError:
    """Why an export's property stream stopped early."""
    kind: str
    message: str
    offset: Optional[int] = None
    property_name: str = ""
    type_name: str = ""


@dataclass
class ExportEntry:
    """Object defined in this package. Index is 1-based positive."""
    index: int = 0
    record_offset: int = 0
    class_index: int = 0
    super_index: int = 0
    template_index: int = 0
    outer_index: int = 0
    object_name: str = ""
    class_name: str = ""
    object_flags: int = 0
    serial_size: int = 0
    serial_offset: int = 0
    forced_export: bool = False
    not_for_client: bool = False
    not_for_server: bool = False
    package_guid: str = ""
    package_flags: int = 0
    not_always_loaded_for_editor_game: bool = False
    is_asset: bool = False
    generate_public_hash: bool = False
    first_export_dependency: int = -1
    serialization_before_serialization_dependencies: int = 0
    create_before_serialization_dependencies: int = 0
    serialization_before_create_dependencies: int = 0
    create_before_create_dependencies: int = 0
    properties: List[PropertyValue] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)
    stream_state: str = ""
    error: Optional[ExportError] = None

    def get(self, name: str, default: Any = None) -> Any:
        """Value of the first property called ``name``."""
        for prop in self.properties:
            if prop.name == name:
                return prop.value
        return default


@dataclass(frozen=True)
class DecodedPackage:
    """Fully decoded package: header, name table, imports and exports."""
    header: PackageHeader
    names: Any  # NameTable
    imports: Tuple[ImportEntry, ...]
    exports: Tuple[ExportEntry, ...]
    size: int = 0

    def resolve_object(self, index: int) -> Optional[Any]:
        """Import for a negative index, export for a positive one, None for root."""
        if index < 0 and -index <= len(self.imports):
            return self.imports[-index - 1]
        if index > 0 and index <= len(self.exports):
            return self.exports[index - 1]
        return None

    def object_name(self, index: int) -> str:
        obj = self.resolve_object(index)
        return obj.object_name if obj is not None else ""

    def object_path(self, index: int) -> str:
        """Dotted outer chain of an object, outermost first."""
        parts = []
        seen = set()
        obj = self.resolve_object(index)
        while obj is not None and obj.index not in seen:
            seen.add(obj.index)
            parts.append(obj.object_name)
            obj = self.resolve_object(obj.outer_index)
        return ".".join(reversed(parts))

    def get_exports_by_class(self, class_name: str) -> List[ExportEntry]:
        return [e for e in self.exports if e.class_name == class_name]
