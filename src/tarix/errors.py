"""Errors raised while indexing or extracting from tar archives."""

from __future__ import annotations

from typing import Optional

from relic.core.errors import MismatchError, RelicToolError


class TarixError(RelicToolError):
    """Base class for all errors raised by tarix."""


class ArchiveIOError(TarixError):
    """The archive could not be opened or read."""

    def __init__(self, operation: str, path: str):
        super().__init__(operation, path)
        self.operation = operation
        self.path = path

    def __str__(self) -> str:
        return f"Failed to {self.operation} tar file `{self.path}`"


class IndexIOError(ArchiveIOError):
    """The index file could not be opened, read or written."""

    def __str__(self) -> str:
        return f"Failed to {self.operation} index file `{self.path}`"


class ArchiveHeaderError(TarixError):
    """A tar header could not be parsed; the archive is corrupt or truncated."""

    def __init__(self, path: str, offset: int, reason: str):
        super().__init__(path, offset, reason)
        self.path = path
        self.offset = offset
        self.reason = reason

    def __str__(self) -> str:
        return f"Error reading tar header in `{self.path}` at byte {self.offset}: {self.reason}"


class IndexFormatError(TarixError):
    """A row of the index file is malformed."""

    def __init__(self, path: str, line: Optional[int], reason: str):
        super().__init__(path, line, reason)
        self.path = path
        self.line = line
        self.reason = reason

    def __str__(self) -> str:
        where = f"`{self.path}`" if self.line is None else f"`{self.path}` line {self.line}"
        return f"Invalid index file {where}: {self.reason}"


class DuplicateMemberError(TarixError):
    """Two members map to the same key; either a duplicate path or a hash collision."""

    def __init__(self, key: str, path: Optional[str] = None):
        super().__init__(key, path)
        self.key = key
        self.path = path

    def __str__(self) -> str:
        if self.path is None:
            return f"Duplicate key `{self.key}`"
        return f"Duplicate file path found for path `{self.path}`: {self.key}"


class MemberNotFoundError(TarixError, KeyError):
    """The member's key is not in the index.

    Only the hashed key is known; the original path cannot be recovered from an index.
    """

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"File {self.key} not found in index"


class ShortReadError(MismatchError[int], TarixError):
    """Fewer bytes were available than the index promised."""

    def __init__(self, received: int, expected: int):
        super().__init__("member size", received, expected)


__all__ = [
    "TarixError",
    "ArchiveIOError",
    "IndexIOError",
    "ArchiveHeaderError",
    "IndexFormatError",
    "DuplicateMemberError",
    "MemberNotFoundError",
    "ShortReadError",
]
