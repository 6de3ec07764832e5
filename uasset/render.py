"""
JSON projection of a decoded package.

Keys are camelCase to match the documented document layout; bytes values
render as lowercase hex, GUIDs and names as strings.
"""

import json
from dataclasses import fields
from typing import Any, Dict

from .types import (
    DecodedPackage, EngineVersion, ExportEntry, ImportEntry, PackageHeader, PropertyValue,
)


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _plain(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, EngineVersion):
        return str(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if hasattr(value, "__dataclass_fields__"):
        return {camel_case(f.name): _plain(getattr(value, f.name)) for f in fields(value)}
    return value


def header_to_dict(header: PackageHeader) -> Dict[str, Any]:
    return _plain(header)


def property_to_dict(prop: PropertyValue) -> Dict[str, Any]:
    return {"name": prop.name, "kind": prop.kind.value, "value": _plain(prop.value)}


def import_to_dict(entry: ImportEntry) -> Dict[str, Any]:
    return _plain(entry)


def export_to_dict(export: ExportEntry) -> Dict[str, Any]:
    result = {}
    for f in fields(export):
        if f.name in ("properties", "metadata", "error"):
            continue
        result[camel_case(f.name)] = _plain(getattr(export, f.name))
    result["metadata"] = dict(export.metadata)
    result["properties"] = [property_to_dict(p) for p in export.properties]
    result["error"] = _plain(export.error) if export.error is not None else None
    return result


def to_dict(package: DecodedPackage) -> Dict[str, Any]:
    return {
        "header": header_to_dict(package.header),
        "names": [
            {
                "text": e.text,
                "nonCasePreservingHash": e.non_case_preserving_hash,
                "casePreservingHash": e.case_preserving_hash,
            }
            for e in package.names
        ],
        "imports": [import_to_dict(i) for i in package.imports],
        "exports": [export_to_dict(e) for e in package.exports],
    }


def to_json(package: DecodedPackage, indent: int = 2) -> str:
    return json.dumps(to_dict(package), indent=indent)
