"""
Asset registry data stored in the package.

Layout at ``header.asset_registry_data_offset``:
  int64 dependency data offset (UE4 >= 506)
  int32 object count
  per object: FString object path, FString class name, int32 tag count,
              tag count x (FString key, FString value)
"""

from dataclasses import dataclass, field
from typing import Dict, List

from .reader import BinaryReader
from .types import PackageHeader
from . import versions as v


@dataclass
class AssetRegistryEntry:
    object_path: str = ""
    class_name: str = ""
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class AssetRegistryData:
    dependency_data_offset: int = -1
    entries: List[AssetRegistryEntry] = field(default_factory=list)


def read_asset_registry(data: bytes, header: PackageHeader) -> AssetRegistryData:
    """Read the registry block; empty when the package declares none."""
    result = AssetRegistryData()
    if header.asset_registry_data_offset <= 0:
        return result

    r = BinaryReader(data)
    r.seek(header.asset_registry_data_offset)

    if header.ue4_version >= v.VER_UE4_ASSETREGISTRY_DEPENDENCYFLAGS:
        result.dependency_data_offset = r.read_int64()

    count = r.read_int32()
    for _ in range(max(count, 0)):
        entry = AssetRegistryEntry(object_path=r.read_fstring(), class_name=r.read_fstring())
        tag_count = r.read_int32()
        for _ in range(max(tag_count, 0)):
            key = r.read_fstring()
            entry.tags[key] = r.read_fstring()
        result.entries.append(entry)

    return result
