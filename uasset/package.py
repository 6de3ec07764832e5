"""
Package Reader.

Decodes a whole package: summary, name table, import table, export table,
then each export's tagged property stream.
"""

from typing import Dict, List, Optional

from .blueprint import BLUEPRINT_DECODERS
from .errors import OutOfBoundsError, UnknownPropertyError
from .names import NameTable
from .properties import DecodeContext, NamedDecoder, decode_property_stream
from .reader import BinaryReader
from .summary import check_table_offsets, read_package_header
from .types import (
    DecodedPackage, ExportEntry, ExportError, GuidOrder, ImportEntry, PackageHeader,
)
from . import versions as v


def read_import_table(reader: BinaryReader, header: PackageHeader,
                      names: NameTable) -> List[ImportEntry]:
    """Read the import table. Import indices are negative (-1 = first)."""
    r = reader
    r.seek(header.import_offset)
    ue4, ue5 = header.ue4_version, header.ue5_version

    imports = []
    for i in range(max(header.import_count, 0)):
        entry = ImportEntry(index=-(i + 1))
        entry.class_package = names.resolve_fname(r.read_uint64())
        entry.class_name = names.resolve_fname(r.read_uint64())
        entry.outer_index = r.read_int32()
        entry.object_name = names.resolve_fname(r.read_uint64())
        if ue4 >= v.VER_UE4_NON_OUTER_PACKAGE_IMPORT:
            entry.package_name = names.resolve_fname(r.read_uint64())
        if ue5 >= v.VER_UE5_OPTIONAL_RESOURCES:
            entry.optional = r.read_bool32()
        imports.append(entry)
    return imports


def read_export_record(reader: BinaryReader, header: PackageHeader, names: NameTable,
                       index: int, record_offset: int) -> ExportEntry:
    """Read one export record starting at ``record_offset``."""
    r = reader
    r.seek(record_offset)
    ue4, ue5 = header.ue4_version, header.ue5_version

    e = ExportEntry(index=index, record_offset=record_offset)
    e.class_index = r.read_int32()
    e.super_index = r.read_int32()
    if ue4 >= v.VER_UE4_TEMPLATEINDEX_IN_COOKED_EXPORTS:
        e.template_index = r.read_int32()
    e.outer_index = r.read_int32()
    e.object_name = names.resolve_fname(r.read_uint64())
    e.object_flags = r.read_uint32()

    # Assembled byte by byte
    e.serial_size = r.read_le64()
    e.serial_offset = r.read_le64()

    e.forced_export = r.read_bool32()
    e.not_for_client = r.read_bool32()
    e.not_for_server = r.read_bool32()
    if ue5 < v.VER_UE5_REMOVE_OBJECT_EXPORT_PACKAGE_GUID:
        e.package_guid = r.read_guid(GuidOrder.B)
    e.package_flags = r.read_uint32()

    if ue4 >= v.VER_UE4_LOAD_FOR_EDITOR_GAME:
        e.not_always_loaded_for_editor_game = r.read_bool32()
    if ue4 >= v.VER_UE4_COOKED_ASSETS_IN_EDITOR_SUPPORT:
        e.is_asset = r.read_bool32()
    if ue5 >= v.VER_UE5_OPTIONAL_RESOURCES:
        e.generate_public_hash = r.read_bool32()

    if ue4 >= v.VER_UE4_PRELOAD_DEPENDENCIES_IN_COOKED_EXPORTS:
        e.first_export_dependency = r.read_int32()
        e.serialization_before_serialization_dependencies = r.read_int32()
        e.create_before_serialization_dependencies = r.read_int32()
        e.serialization_before_create_dependencies = r.read_int32()
        e.create_before_create_dependencies = r.read_int32()
    return e


def read_export_table(reader: BinaryReader, header: PackageHeader,
                      names: NameTable) -> List[ExportEntry]:
    """Read the export table.

    Records sit on a fixed stride from the table start; where record i
    begins never depends on how much of record i-1 was read.
    """
    exports = []
    for i in range(max(header.export_count, 0)):
        record_offset = header.export_offset + i * v.EXPORT_RECORD_SIZE
        exports.append(read_export_record(reader, header, names, i + 1, record_offset))
    return exports


def get_class_name(class_index: int, imports: List[ImportEntry],
                   exports: List[ExportEntry]) -> str:
    """Get class name from class index (negative for imports)."""
    if class_index < 0:
        idx = -class_index - 1
        if idx < len(imports):
            return imports[idx].object_name
    elif class_index > 0:
        idx = class_index - 1
        if idx < len(exports):
            return exports[idx].object_name
        return ""
    return "Class"


def _export_error(error: UnknownPropertyError) -> ExportError:
    return ExportError(
        kind=error.kind,
        message=error.message,
        offset=error.offset,
        property_name=error.property_name,
        type_name=error.type_name,
    )


def decode_export_properties(reader: BinaryReader, export: ExportEntry, names: NameTable,
                             header: PackageHeader,
                             name_decoders: Optional[Dict[str, NamedDecoder]] = None):
    """Decode one export's property stream into ``export.properties``.

    Only bytes inside ``[serial_offset, serial_offset + serial_size)`` are
    visited. An unknown property leaves the export partially decoded with
    ``export.error`` set; bounds failures raise with the export index.
    """
    export.metadata = {"objectType": export.class_name, "objectName": export.object_name}
    ctx = DecodeContext.from_header(names, header, export.index)

    try:
        reader.seek(export.serial_offset)
        stream = reader.slice(export.serial_size)
        result = decode_property_stream(stream, ctx, name_decoders)
    except OutOfBoundsError as e:
        raise e.for_export(export.index) from e

    export.properties = result.properties
    export.stream_state = result.state.value
    export.error = _export_error(result.error) if result.error is not None else None


def decode_package(data: bytes,
                   name_decoders: Optional[Dict[str, NamedDecoder]] = None) -> DecodedPackage:
    """Decode a complete package from an in-memory buffer.

    Args:
        data: Entire package file contents
        name_decoders: Property-name keyed decoders; defaults to the
            Blueprint metadata registry

    Raises:
        FormatUnsupportedError, UnsupportedMetadataError, OutOfBoundsError
    """
    if name_decoders is None:
        name_decoders = BLUEPRINT_DECODERS

    reader = BinaryReader(data)
    header = read_package_header(reader)
    check_table_offsets(header, len(data))

    names = NameTable.read(reader, header.name_offset, header.name_count)
    imports = read_import_table(reader, header, names)
    exports = read_export_table(reader, header, names)

    for export in exports:
        export.class_name = get_class_name(export.class_index, imports, exports)

    for export in exports:
        decode_export_properties(reader, export, names, header, name_decoders)

    return DecodedPackage(header, names, tuple(imports), tuple(exports), len(data))


class UAssetPackage:
    """Decoded package file.

    Parses the file on construction and provides access to:
    - header: the package summary
    - names: the name table
    - imports: imported object references
    - exports: exported objects with class, range and decoded properties
    """

    def __init__(self, filepath: str):
        """Load and decode a package file.

        Args:
            filepath: Path to the .uasset file
        """
        self.filepath = filepath
        with open(filepath, "rb") as f:
            self.data = f.read()
        self.package = decode_package(self.data)

    @classmethod
    def from_file(cls, filepath: str) -> "UAssetPackage":
        return cls(filepath)

    @property
    def header(self) -> PackageHeader:
        return self.package.header

    @property
    def names(self) -> NameTable:
        return self.package.names

    @property
    def imports(self):
        return self.package.imports

    @property
    def exports(self):
        return self.package.exports

    def get_exports_by_class(self, class_name: str) -> List[ExportEntry]:
        """Get all exports of a specific class."""
        return self.package.get_exports_by_class(class_name)

    def get_export_data(self, export: ExportEntry) -> bytes:
        """Get raw serialized data for an export.

        Args:
            export: Export entry (from self.exports)

        Returns:
            Raw bytes of the export's serialized data
        """
        if export.serial_size <= 0:
            return b""
        return self.data[export.serial_offset : export.serial_offset + export.serial_size]

    def get_object_name(self, index: int) -> str:
        """Get object name from index (positive=export, negative=import)."""
        return self.package.object_name(index)

    def get_import_by_index(self, index: int) -> Optional[ImportEntry]:
        if index < 0:
            return self.package.resolve_object(index)
        return None

    def dump_info(self):
        """Print package summary information."""
        h = self.header
        print(f"Package: {self.filepath}")
        print(f"  Version: UE4 {h.ue4_version} / UE5 {h.ue5_version} / licensee {h.licensee_version}")
        if h.saved_by_engine_version is not None:
            print(f"  Saved by: {h.saved_by_engine_version}")
        print(f"  Names: {len(self.names)}")
        print(f"  Imports: {len(self.imports)}")
        print(f"  Exports: {len(self.exports)}")
        partial = [e for e in self.exports if e.error is not None]
        if partial:
            print(f"  Partially decoded exports: {len(partial)}")
