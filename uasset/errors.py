"""
Decode errors.

Everything derives from ValueError so callers that already guard package
parsing with ``except ValueError`` keep working.
"""

from typing import Optional


class UAssetError(ValueError):
    """Base class for package decode failures."""

    kind = "Error"

    def __init__(self, message: str, offset: Optional[int] = None,
                 export_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.export_index = export_index

    def __str__(self):
        parts = [f"{self.kind}: {self.message}"]
        if self.export_index is not None:
            parts.append(f"export {self.export_index}")
        if self.offset is not None:
            parts.append(f"offset 0x{self.offset:x}")
        return " | ".join(parts)


class OutOfBoundsError(UAssetError):
    """A read ran past the end of the buffer (or the current slice)."""

    kind = "OutOfBounds"

    def __init__(self, offset: int, requested: int, end: int,
                 export_index: Optional[int] = None):
        super().__init__(
            f"read of {requested} bytes would exceed boundary at {end}",
            offset=offset,
            export_index=export_index,
        )
        self.requested = requested
        self.end = end

    def for_export(self, export_index: int) -> "OutOfBoundsError":
        """Copy of this error tagged with the export that triggered it."""
        return OutOfBoundsError(self.offset, self.requested, self.end, export_index)


class FormatUnsupportedError(UAssetError):
    """Package uses a layout this decoder declines to handle."""

    kind = "FormatUnsupported"


class UnsupportedMetadataError(UAssetError):
    """Header carries a non-empty sub-record that is not modelled."""

    kind = "UnsupportedMetadata"


class UnknownPropertyError(UAssetError):
    """Property stream reached a tag it cannot frame.

    Never raised out of decode_package: the stream decoder stops and the
    error is attached to the export alongside its partial properties.
    """

    kind = "UnknownProperty"

    def __init__(self, property_name: str, type_name: str, offset: int,
                 export_index: Optional[int] = None):
        super().__init__(
            f"no decoder for property {property_name!r} of type {type_name!r}",
            offset=offset,
            export_index=export_index,
        )
        self.property_name = property_name
        self.type_name = type_name
