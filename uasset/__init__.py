"""
UAsset Package Utilities

Decoder for Unreal-style .uasset packages: summary, name table, import and
export tables, and each export's tagged property stream.
"""

from .errors import (
    FormatUnsupportedError,
    OutOfBoundsError,
    UAssetError,
    UnknownPropertyError,
    UnsupportedMetadataError,
)
from .names import NameTable
from .package import UAssetPackage, decode_package
from .reader import BinaryReader
from .types import (
    DecodedPackage,
    ExportEntry,
    GuidOrder,
    ImportEntry,
    PackageHeader,
    PropertyKind,
    PropertyValue,
)

__all__ = [
    'BinaryReader',
    'DecodedPackage',
    'ExportEntry',
    'FormatUnsupportedError',
    'GuidOrder',
    'ImportEntry',
    'NameTable',
    'OutOfBoundsError',
    'PackageHeader',
    'PropertyKind',
    'PropertyValue',
    'UAssetError',
    'UAssetPackage',
    'UnknownPropertyError',
    'UnsupportedMetadataError',
    'decode_package',
]
