"""
Package format constants.

Object-version thresholds are the engine's own enum values; a field gated on
one of them is present only when the header's counter is >= the threshold.
"""

# Package signature
PACKAGE_FILE_TAG = 0x9E2A83C1
PACKAGE_FILE_TAG_SWAPPED = 0xC1832A9E

# LegacyFileVersion gates (more negative = newer)
LEGACY_NO_UE3_VERSION = -4
LEGACY_HAS_CUSTOM_VERSIONS = -2
LEGACY_TEXTURE_ALLOCATIONS_REMOVED = -7
LEGACY_HAS_UE5_VERSION = -8

# EUnrealEngineObjectUE4Version
VER_UE4_WORLD_LEVEL_INFO = 224
VER_UE4_ADDED_CHUNKID_TO_ASSETDATA_AND_UPACKAGE = 278
VER_UE4_CHANGED_CHUNKID_TO_BE_AN_ARRAY_OF_CHUNKIDS = 326
VER_UE4_ENGINE_VERSION_OBJECT = 336
VER_UE4_LOAD_FOR_EDITOR_GAME = 365
VER_UE4_ADD_STRING_ASSET_REFERENCES_MAP = 384
VER_UE4_STRUCT_GUID_IN_PROPERTY_TAG = 441
VER_UE4_PACKAGE_SUMMARY_HAS_COMPATIBLE_ENGINE_VERSION = 444
VER_UE4_SERIALIZE_TEXT_IN_PACKAGES = 459
VER_UE4_COOKED_ASSETS_IN_EDITOR_SUPPORT = 485
VER_UE4_INNER_ARRAY_TAG_INFO = 500
VER_UE4_PROPERTY_GUID_IN_PROPERTY_TAG = 503
VER_UE4_ASSETREGISTRY_DEPENDENCYFLAGS = 506
VER_UE4_PRELOAD_DEPENDENCIES_IN_COOKED_EXPORTS = 507
VER_UE4_TEMPLATEINDEX_IN_COOKED_EXPORTS = 508
VER_UE4_ADDED_SEARCHABLE_NAMES = 510
VER_UE4_ADDED_PACKAGE_SUMMARY_LOCALIZATION_ID = 516
VER_UE4_ADDED_PACKAGE_OWNER = 518
VER_UE4_NON_OUTER_PACKAGE_IMPORT = 520
VER_UE4_CORRECT_LICENSEE_FLAG = 522

# Newest UE4 object version, assumed when no header is at hand
VER_UE4_LATEST = VER_UE4_CORRECT_LICENSEE_FLAG

# EUnrealEngineObjectUE5Version
VER_UE5_INITIAL_VERSION = 1000
VER_UE5_NAMES_REFERENCED_FROM_EXPORT_DATA = 1001
VER_UE5_PAYLOAD_TOC = 1002
VER_UE5_OPTIONAL_RESOURCES = 1003
VER_UE5_LARGE_WORLD_COORDINATES = 1004
VER_UE5_REMOVE_OBJECT_EXPORT_PACKAGE_GUID = 1005
VER_UE5_FSOFTOBJECTPATH_REMOVE_ASSET_PATH_FNAMES = 1007
VER_UE5_ADD_SOFTOBJECTPATH_LIST = 1008
VER_UE5_DATA_RESOURCES = 1009

# Export table records are read at a fixed stride from the table offset
EXPORT_RECORD_SIZE = 96

# Name that terminates a tagged-property stream
NONE_NAME = "None"

# High-word codes of an 8-byte tag that mark an entity reference record
ENTITY_SENTINEL_CODES = frozenset({1, 2, 3, 4, 5, 10})
