"""Random access to archive members through a previously built index."""

from __future__ import annotations

import logging
import os
import threading
from typing import Any, BinaryIO, Optional

from fs import open_fs
from fs.errors import FSError
from relic.core.lazyio import BinaryWindow, read_chunks
from relic.core.logmsg import BraceMessage

from tarix.definitions import BLOCK_SIZE, ArchiveIndex, FileIndexEntry
from tarix.errors import ArchiveIOError, MemberNotFoundError, ShortReadError, TarixError
from tarix.hashtools import member_key
from tarix.store import load_index

logger = logging.getLogger(__name__)


def resolve_offset(index: ArchiveIndex, member_path: str) -> FileIndexEntry:
    """Find a member's location, keyed exactly as the indexer keyed it.

    :raises MemberNotFoundError: The member's key is not in the index; the error names the key, not the path.
    """
    key = member_key(member_path)
    try:
        return index[key]
    except KeyError:
        raise MemberNotFoundError(key) from None


def read_member(handle: BinaryIO, start: int, size: int) -> bytes:
    """Read exactly `size` bytes of member data; `start` is the member's header offset.

    :raises ShortReadError: The archive ended before `size` bytes were read.
    """
    data = b"".join(read_chunks(handle, start + BLOCK_SIZE, size))
    if len(data) != size:
        raise ShortReadError(len(data), size)
    return data


def _open_archive(archive_path: str) -> BinaryIO:
    try:
        return open(archive_path, "rb")
    except OSError as err:
        raise ArchiveIOError("open", archive_path) from err


def extract_member(archive_path: str, index_path: str, member_path: str) -> bytes:
    index = load_index(index_path)
    entry = resolve_offset(index, member_path)
    with _open_archive(archive_path) as handle:
        try:
            return read_member(handle, entry.start, entry.size)
        except OSError as err:
            raise ArchiveIOError("read", archive_path) from err


def extract_member_to(
    archive_path: str, index_path: str, member_path: str, output_path: str
) -> int:
    """Extract a member to a file; the file is only created once the data has been read.

    Missing parent directories of `output_path` are created.

    :returns: The number of bytes written.
    :rtype: int
    """
    data = extract_member(archive_path, index_path, member_path)
    out_dir, out_name = os.path.split(os.path.abspath(output_path))
    try:
        with open_fs(out_dir, writeable=True, create=True) as out_fs:
            out_fs.writebytes(out_name, data)
    except FSError as err:
        raise TarixError(f"Failed to write output file `{output_path}`: {err}") from err
    return len(data)


class TarixHandle:
    """An open archive paired with its loaded index, for repeated lookups.

    The handle owns the archive file and closes it on `close` or on leaving a `with` block.
    Seek-then-read is serialized with a lock, so one handle may be shared between threads;
    the windows returned by `open_member` share the file position and are not thread safe.
    """

    def __init__(self, archive_path: str, index: ArchiveIndex):
        self.archive_path = archive_path
        self.index = index
        self._handle: Optional[BinaryIO] = None
        self._lock = threading.Lock()

    @classmethod
    def open(cls, archive_path: str, index_path: str) -> TarixHandle:
        handle = cls(archive_path, load_index(index_path))
        handle.open_archive()
        return handle

    def open_archive(self) -> None:
        if self._handle is None:
            self._handle = _open_archive(self.archive_path)
            logger.debug(
                BraceMessage(
                    "Opened `{0}` ({1} indexed files)", self.archive_path, len(self.index)
                )
            )

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    @property
    def closed(self) -> bool:
        return self._handle is None

    def _archive(self) -> BinaryIO:
        if self._handle is None:
            raise TarixError(f"Tar file `{self.archive_path}` is not open")
        return self._handle

    def entry(self, member_path: str) -> FileIndexEntry:
        return resolve_offset(self.index, member_path)

    def __contains__(self, member_path: object) -> bool:
        return isinstance(member_path, str) and member_key(member_path) in self.index

    def read(self, member_path: str) -> bytes:
        entry = self.entry(member_path)
        with self._lock:
            try:
                return read_member(self._archive(), entry.start, entry.size)
            except OSError as err:
                raise ArchiveIOError("read", self.archive_path) from err

    def open_member(self, member_path: str) -> BinaryIO:
        entry = self.entry(member_path)
        return BinaryWindow(
            self._archive(), entry.data_start, entry.size, name=member_path
        )

    def __enter__(self) -> TarixHandle:
        self.open_archive()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


__all__ = [
    "resolve_offset",
    "read_member",
    "extract_member",
    "extract_member_to",
    "TarixHandle",
]
