"""
Binary Reader for package files.

Provides bounds-checked little-endian reads over an in-memory buffer,
including the engine's length-prefixed strings, GUIDs and the manual
64-bit assembly used for export serial ranges.
"""

import struct
from typing import Optional

from .errors import OutOfBoundsError
from .types import GuidOrder, format_guid


class BinaryReader:
    """Binary data reader with package format support.

    The reader owns a position inside ``[0, end)`` of a shared buffer.
    Positions are always absolute buffer offsets, including for readers
    produced by ``slice``.
    """

    def __init__(self, data: bytes, offset: int = 0, end: Optional[int] = None):
        self.data = data
        self.pos = offset
        self.end = len(data) if end is None else end

    def seek(self, pos: int):
        """Seek to absolute position."""
        if pos < 0 or pos > self.end:
            raise OutOfBoundsError(pos, 0, self.end)
        self.pos = pos

    def tell(self) -> int:
        """Return current position."""
        return self.pos

    def remaining(self) -> int:
        """Return remaining bytes."""
        return self.end - self.pos

    def _take(self, count: int) -> bytes:
        if count < 0 or self.pos + count > self.end:
            raise OutOfBoundsError(self.pos, count, self.end)
        result = self.data[self.pos : self.pos + count]
        self.pos += count
        return result

    def read_bytes(self, count: int) -> bytes:
        """Read raw bytes (an owned copy)."""
        return bytes(self._take(count))

    def peek_bytes(self, count: int) -> bytes:
        """Return up to ``count`` bytes without moving."""
        return bytes(self.data[self.pos : min(self.pos + count, self.end)])

    def read_int8(self) -> int:
        return struct.unpack("<b", self._take(1))[0]

    def read_uint8(self) -> int:
        return struct.unpack("<B", self._take(1))[0]

    def read_int16(self) -> int:
        return struct.unpack("<h", self._take(2))[0]

    def read_uint16(self) -> int:
        return struct.unpack("<H", self._take(2))[0]

    def read_int32(self) -> int:
        return struct.unpack("<i", self._take(4))[0]

    def read_uint32(self) -> int:
        return struct.unpack("<I", self._take(4))[0]

    def read_int64(self) -> int:
        return struct.unpack("<q", self._take(8))[0]

    def read_uint64(self) -> int:
        return struct.unpack("<Q", self._take(8))[0]

    def read_float(self) -> float:
        return struct.unpack("<f", self._take(4))[0]

    def read_double(self) -> float:
        return struct.unpack("<d", self._take(8))[0]

    def read_le64(self) -> int:
        """Read a signed 64-bit value assembled byte by byte, least significant first.

        Export serial sizes and offsets go through this rather than a native
        8-byte unpack so the byte order and sign handling are explicit.
        """
        raw = self._take(8)
        value = 0
        for shift, byte in enumerate(raw):
            value |= byte << (8 * shift)
        if value & (1 << 63):
            value -= 1 << 64
        return value

    def read_fstring(self) -> str:
        """Read a length-prefixed string (FString).

        Format:
        - int32 length L
        - L > 0: L single-byte characters including a trailing NUL
        - L < 0: -L two-byte characters including a trailing NUL pair;
          each unit is narrowed to its low byte, so text outside Latin-1
          comes back altered
        - L == 0: empty string
        """
        length = self.read_int32()
        if length == 0:
            return ""
        if length > 0:
            raw = self._take(length)[:-1]
            return raw.split(b"\x00", 1)[0].decode("latin-1")

        raw = self._take(-length * 2)[:-2]
        chars = []
        for i in range(0, len(raw), 2):
            unit = raw[i] | (raw[i + 1] << 8)
            if unit == 0:
                break
            chars.append(chr(unit & 0xFF))
        return "".join(chars)

    def read_guid_bytes(self) -> bytes:
        """Read a GUID as its raw 16 bytes."""
        return self.read_bytes(16)

    def read_guid(self, order: GuidOrder = GuidOrder.A, upper: bool = False) -> str:
        """Read a 16-byte GUID and render it in the requested byte order."""
        return format_guid(self.read_guid_bytes(), order, upper)

    def read_bool32(self) -> bool:
        return self.read_int32() != 0

    def skip_padding(self) -> int:
        """Advance over a run of zero bytes.

        Stops on the first non-zero byte (left unread) or at the end bound.
        Returns the number of bytes skipped.
        """
        start = self.pos
        while self.pos < self.end:
            if self.data[self.pos] != 0:
                break
            self.pos += 1
        return self.pos - start

    def slice(self, size: int) -> "BinaryReader":
        """Reader bounded to the next ``size`` bytes; this reader moves past them."""
        if size < 0 or self.pos + size > self.end:
            raise OutOfBoundsError(self.pos, size, self.end)
        sub = BinaryReader(self.data, self.pos, self.pos + size)
        self.pos += size
        return sub

