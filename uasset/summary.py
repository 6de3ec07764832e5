"""
Package header (file summary) decoder.

The summary is a fixed sequence of fields whose presence depends on the
legacy, UE4 and UE5 version counters read at its start. Order matters:
later gates use counters read earlier, so fields are read strictly in
sequence.
"""

from .errors import FormatUnsupportedError, OutOfBoundsError, UnsupportedMetadataError
from .reader import BinaryReader
from .types import CustomVersion, EngineVersion, GenerationInfo, GuidOrder, PackageHeader
from . import versions as v


def read_engine_version(reader: BinaryReader) -> EngineVersion:
    return EngineVersion(
        major=reader.read_uint16(),
        minor=reader.read_uint16(),
        patch=reader.read_uint16(),
        changelist=reader.read_uint32(),
        branch=reader.read_fstring(),
    )


def read_package_header(reader: BinaryReader) -> PackageHeader:
    """Decode the package summary starting at offset 0.

    Raises:
        FormatUnsupportedError: bad signature, compressed chunks, or
            additional packages to cook
        UnsupportedMetadataError: non-empty chunk id list
        OutOfBoundsError: header runs past the end of the buffer
    """
    r = reader
    r.seek(0)
    h = PackageHeader()

    # Signature
    h.tag = r.read_uint32()
    if h.tag == v.PACKAGE_FILE_TAG_SWAPPED:
        raise FormatUnsupportedError("big-endian packages are not supported", offset=0)
    if h.tag != v.PACKAGE_FILE_TAG:
        raise FormatUnsupportedError(f"invalid package signature: {h.tag:#010x}", offset=0)

    # Version counters
    h.legacy_file_version = r.read_int32()
    if h.legacy_file_version != v.LEGACY_NO_UE3_VERSION:
        h.legacy_ue3_version = r.read_int32()
    h.ue4_version = r.read_int32()
    if h.legacy_file_version <= v.LEGACY_HAS_UE5_VERSION:
        h.ue5_version = r.read_int32()
    h.licensee_version = r.read_int32()

    if h.legacy_file_version <= v.LEGACY_HAS_CUSTOM_VERSIONS:
        count = r.read_int32()
        for _ in range(count):
            guid = r.read_guid(GuidOrder.A)
            h.custom_versions.append(CustomVersion(guid, r.read_int32()))

    ue4 = h.ue4_version
    ue5 = h.ue5_version

    h.total_header_size = r.read_int32()
    h.folder_name = r.read_fstring()
    h.package_flags = r.read_uint32()
    h.name_count = r.read_int32()
    h.name_offset = r.read_int32()

    if ue5 >= v.VER_UE5_ADD_SOFTOBJECTPATH_LIST:
        h.soft_object_paths_count = r.read_int32()
        h.soft_object_paths_offset = r.read_int32()

    if ue4 >= v.VER_UE4_ADDED_PACKAGE_SUMMARY_LOCALIZATION_ID:
        h.localization_id = r.read_fstring()

    if ue4 >= v.VER_UE4_SERIALIZE_TEXT_IN_PACKAGES:
        h.gatherable_text_count = r.read_int32()
        h.gatherable_text_offset = r.read_int32()

    h.export_count = r.read_int32()
    h.export_offset = r.read_int32()
    h.import_count = r.read_int32()
    h.import_offset = r.read_int32()
    h.depends_offset = r.read_int32()

    if ue4 >= v.VER_UE4_ADD_STRING_ASSET_REFERENCES_MAP:
        h.soft_package_references_count = r.read_int32()
        h.soft_package_references_offset = r.read_int32()

    if ue4 >= v.VER_UE4_ADDED_SEARCHABLE_NAMES:
        h.searchable_names_offset = r.read_int32()

    h.thumbnail_table_offset = r.read_int32()
    h.package_guid = r.read_guid(GuidOrder.A)

    if ue4 >= v.VER_UE4_ADDED_PACKAGE_OWNER:
        h.persistent_guid = r.read_guid(GuidOrder.A)
        if ue4 < v.VER_UE4_NON_OUTER_PACKAGE_IMPORT:
            h.owner_persistent_guid = r.read_guid(GuidOrder.A)

    generation_count = r.read_int32()
    for _ in range(generation_count):
        h.generations.append(GenerationInfo(r.read_int32(), r.read_int32()))

    # Engine versions
    if ue4 >= v.VER_UE4_ENGINE_VERSION_OBJECT:
        h.saved_by_engine_version = read_engine_version(r)
    else:
        h.engine_changelist = r.read_int32()

    if ue4 >= v.VER_UE4_PACKAGE_SUMMARY_HAS_COMPATIBLE_ENGINE_VERSION:
        h.compatible_with_engine_version = read_engine_version(r)
    else:
        h.compatible_with_engine_version = h.saved_by_engine_version

    h.compression_flags = r.read_uint32()

    chunk_pos = r.tell()
    h.compressed_chunk_count = r.read_int32()
    if h.compressed_chunk_count > 0:
        raise FormatUnsupportedError(
            f"package is compressed ({h.compressed_chunk_count} chunks)", offset=chunk_pos
        )

    h.package_source = r.read_uint32()

    cook_pos = r.tell()
    h.additional_packages_to_cook_count = r.read_int32()
    if h.additional_packages_to_cook_count > 0:
        raise FormatUnsupportedError(
            f"package lists {h.additional_packages_to_cook_count} additional packages to cook",
            offset=cook_pos,
        )

    if h.legacy_file_version > v.LEGACY_TEXTURE_ALLOCATIONS_REMOVED:
        h.num_texture_allocations = r.read_int32()

    h.asset_registry_data_offset = r.read_int32()
    h.bulk_data_start_offset = r.read_int64()

    if ue4 >= v.VER_UE4_WORLD_LEVEL_INFO:
        h.world_tile_info_data_offset = r.read_int32()

    if ue4 >= v.VER_UE4_CHANGED_CHUNKID_TO_BE_AN_ARRAY_OF_CHUNKIDS:
        ids_pos = r.tell()
        chunk_id_count = r.read_int32()
        if chunk_id_count > 0:
            raise UnsupportedMetadataError(
                f"chunk id list has {chunk_id_count} entries", offset=ids_pos
            )
    elif ue4 >= v.VER_UE4_ADDED_CHUNKID_TO_ASSETDATA_AND_UPACKAGE:
        h.chunk_id = r.read_int32()

    if ue4 >= v.VER_UE4_PRELOAD_DEPENDENCIES_IN_COOKED_EXPORTS:
        h.preload_dependency_count = r.read_int32()
        h.preload_dependency_offset = r.read_int32()

    if ue5 >= v.VER_UE5_NAMES_REFERENCED_FROM_EXPORT_DATA:
        h.names_referenced_from_export_data_count = r.read_int32()

    if ue5 >= v.VER_UE5_PAYLOAD_TOC:
        h.payload_toc_offset = r.read_int64()

    if ue5 >= v.VER_UE5_DATA_RESOURCES:
        h.data_resource_offset = r.read_int32()

    return h


def check_table_offsets(header: PackageHeader, file_size: int):
    """Every table offset the decoder follows must land inside the file."""
    for field_name in ("name_offset", "import_offset", "export_offset",
                       "thumbnail_table_offset", "asset_registry_data_offset"):
        offset = getattr(header, field_name)
        if offset > file_size:
            raise OutOfBoundsError(offset, 0, file_size)
