"""Definitions shared by the indexer, the index store and the extractor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Optional

from tarix.errors import DuplicateMemberError

# Size of a tar header block; member data is padded to a multiple of it
BLOCK_SIZE = 512
# Hex characters kept from the md5 digest of a member path
KEY_LENGTH = 16

INDEX_HEADER = ("key", "start", "size")
# Historical name; the index is CSV, not JSON
INDEX_SUFFIX = ".index.json"


def padded_size(size: int, block_size: int = BLOCK_SIZE) -> int:
    """Round a payload size up to the archive's block granularity."""
    return (size + block_size - 1) // block_size * block_size


@dataclass(frozen=True)
class FileIndexEntry:
    """Location of a member inside the archive.

    Args:
        start (int): Absolute offset of the member's header block.
        size (int): Logical (unpadded) payload length.
    """

    start: int
    size: int

    @property
    def data_start(self) -> int:
        return self.start + BLOCK_SIZE

    @property
    def data_end(self) -> int:
        return self.data_start + self.size


class ArchiveIndex(Mapping[str, FileIndexEntry]):
    """Mapping of member keys to their location in the archive.

    Entries can only be added, never replaced or removed;
    adding a key twice raises a DuplicateMemberError.
    """

    def __init__(self) -> None:
        self._files: Dict[str, FileIndexEntry] = {}

    def add(
        self, key: str, entry: FileIndexEntry, *, path: Optional[str] = None
    ) -> None:
        if key in self._files:
            raise DuplicateMemberError(key, path)
        self._files[key] = entry

    def __getitem__(self, key: str) -> FileIndexEntry:
        return self._files[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self._files.values())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(files={len(self)}, bytes={self.total_size})"


__all__ = [
    "BLOCK_SIZE",
    "KEY_LENGTH",
    "INDEX_HEADER",
    "INDEX_SUFFIX",
    "padded_size",
    "FileIndexEntry",
    "ArchiveIndex",
]
