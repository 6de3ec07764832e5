"""
Package thumbnail table.

Layout at ``header.thumbnail_table_offset``:
  int32 count
  per entry: FString class name, FString object path, int32 file offset

Layout at each file offset:
  int32 width, int32 height (negative = JPEG, positive = PNG),
  int32 data size, data bytes
"""

import io
import os
from typing import List, Optional

from PIL import Image

from .reader import BinaryReader
from .types import PackageHeader


class Thumbnail:
    """A single thumbnail image stored in the package."""

    def __init__(self, class_name: str, object_path: str, file_offset: int,
                 width: int = 0, height: int = 0, is_jpeg: bool = False, data: bytes = b""):
        self.class_name = class_name
        self.object_path = object_path
        self.file_offset = file_offset
        self.width = width
        self.height = height
        self.is_jpeg = is_jpeg
        self.data = data

    @property
    def extension(self) -> str:
        return "jpg" if self.is_jpeg else "png"

    def image(self) -> Optional[Image.Image]:
        """Decode the stored payload to a PIL Image."""
        if not self.data:
            return None
        img = Image.open(io.BytesIO(self.data))
        img.load()
        return img

    def save(self, output_dir: str) -> Optional[str]:
        """Write the raw payload as ``<object>.<ext>``; returns the path."""
        if not self.data:
            return None
        os.makedirs(output_dir, exist_ok=True)
        stem = self.object_path.replace("/", "_").replace(".", "_") or "thumbnail"
        path = os.path.join(output_dir, f"{stem}.{self.extension}")
        with open(path, "wb") as f:
            f.write(self.data)
        return path


def read_thumbnails(data: bytes, header: PackageHeader) -> List[Thumbnail]:
    """Read the thumbnail index and each thumbnail's payload.

    Returns an empty list when the package has no thumbnail table.
    """
    if header.thumbnail_table_offset <= 0:
        return []

    r = BinaryReader(data)
    r.seek(header.thumbnail_table_offset)

    entries = []
    count = r.read_int32()
    for _ in range(max(count, 0)):
        class_name = r.read_fstring()
        object_path = r.read_fstring()
        file_offset = r.read_int32()
        entries.append(Thumbnail(class_name, object_path, file_offset))

    for thumb in entries:
        r.seek(thumb.file_offset)
        thumb.width = r.read_int32()
        height = r.read_int32()
        thumb.is_jpeg = height < 0
        thumb.height = abs(height)
        size = r.read_int32()
        thumb.data = r.read_bytes(size) if size > 0 else b""

    return entries
