"""Hex/ASCII dump of byte ranges, for reverse-engineering unknown properties."""

from typing import List


def hexdump_lines(data: bytes, base_offset: int = 0, width: int = 16) -> List[str]:
    """Format ``data`` as ``offset  hex bytes  |ascii|`` lines.

    Offsets are shown relative to ``base_offset`` so a slice of a file can
    be dumped with its file positions.
    """
    lines = []
    for start in range(0, len(data), width):
        chunk = data[start : start + width]
        hex_part = chunk.hex(" ").ljust(width * 3 - 1)
        ascii_part = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in chunk)
        lines.append(f"{base_offset + start:08x}  {hex_part}  |{ascii_part}|")
    return lines


def hexdump(data: bytes, base_offset: int = 0, width: int = 16) -> str:
    return "\n".join(hexdump_lines(data, base_offset, width))
