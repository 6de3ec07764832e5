"""
Name table.

Every other structure in a package names things by index into this table.
"""

from typing import Iterator, List, Sequence

from .reader import BinaryReader
from .types import NameEntry


class NameTable:
    """Ordered, immutable list of name entries with total index resolution.

    An index outside the table resolves to an empty string instead of
    raising; real packages contain stale indices and the decoder keeps
    going past them.
    """

    def __init__(self, entries: Sequence[NameEntry] = ()):
        self._entries = tuple(entries)

    @classmethod
    def from_strings(cls, texts: Sequence[str]) -> "NameTable":
        return cls([NameEntry(t) for t in texts])

    @classmethod
    def read(cls, reader: BinaryReader, offset: int, count: int) -> "NameTable":
        """Read ``count`` entries starting at ``offset``."""
        reader.seek(offset)
        entries = []
        for _ in range(max(count, 0)):
            text = reader.read_fstring()
            non_case = reader.read_uint16()
            case = reader.read_uint16()
            entries.append(NameEntry(text, non_case, case))
        return cls(entries)

    def resolve(self, index: int) -> str:
        if 0 <= index < len(self._entries):
            return self._entries[index].text
        return ""

    def resolve_fname(self, value: int) -> str:
        """Resolve an 8-byte name reference; only the low 32 bits index the table."""
        return self.resolve(value & 0xFFFFFFFF)

    def index_of(self, text: str) -> int:
        """Index of ``text`` or -1."""
        for i, entry in enumerate(self._entries):
            if entry.text == text:
                return i
        return -1

    @property
    def entries(self):
        return self._entries

    @property
    def strings(self) -> List[str]:
        return [e.text for e in self._entries]

    def __len__(self):
        return len(self._entries)

    def __iter__(self) -> Iterator[NameEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> NameEntry:
        return self._entries[index]

    def __eq__(self, other):
        return isinstance(other, NameTable) and self._entries == other._entries

    def __hash__(self):
        return hash(self._entries)

    def __repr__(self):
        return f"NameTable({len(self._entries)} names)"
