"""Builds an ArchiveIndex with a single sequential pass over a tar archive."""

from __future__ import annotations

import logging
import os
import tarfile
from typing import BinaryIO, Callable, Optional

from relic.core.logmsg import BraceMessage

from tarix.definitions import (
    BLOCK_SIZE,
    INDEX_SUFFIX,
    ArchiveIndex,
    FileIndexEntry,
    padded_size,
)
from tarix.errors import ArchiveHeaderError, ArchiveIOError
from tarix.hashtools import clean_path, hash_path
from tarix.store import save_index

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# Sparse members are typed REGTYPE under PAX, so the sparse map is checked separately
_REGULAR_TYPES = (tarfile.REGTYPE, tarfile.AREGTYPE)


def default_index_path(archive_path: str) -> str:
    return archive_path + INDEX_SUFFIX


def is_regular_member(member: tarfile.TarInfo) -> bool:
    return member.type in _REGULAR_TYPES and member.sparse is None


def _check_end_of_archive(handle: BinaryIO, path: str, offset: int) -> None:
    # tarfile stops quietly at an unreadable header past the first member;
    # anything other than zero blocks or EOF there is corruption
    handle.seek(offset)
    block = handle.read(BLOCK_SIZE)
    if block.count(0) != len(block):
        raise ArchiveHeaderError(path, offset, "invalid header")


def _scan(
    handle: BinaryIO,
    path: str,
    total: int,
    on_progress: Optional[ProgressCallback],
) -> ArchiveIndex:
    index = ArchiveIndex()
    try:
        archive = tarfile.open(
            fileobj=handle, mode="r:", encoding="utf-8", errors="surrogateescape"
        )
    except tarfile.TarError as err:
        raise ArchiveHeaderError(path, 0, str(err)) from err

    with archive:
        while True:
            try:
                member = archive.next()
            except tarfile.TarError as err:
                raise ArchiveHeaderError(path, archive.offset, str(err)) from err
            if member is None:
                break

            # The block directly before the data; extension headers (PAX, GNU long names) precede it
            header_pos = member.offset_data - BLOCK_SIZE
            cursor = header_pos + BLOCK_SIZE + padded_size(member.size)

            if is_regular_member(member):
                cleaned = clean_path(member.name)
                index.add(
                    hash_path(cleaned),
                    FileIndexEntry(start=header_pos, size=member.size),
                    path=cleaned,
                )

            # TarFile caches every TarInfo it parses; only the index is kept
            archive.members = []

            if on_progress is not None:
                on_progress(min(cursor, total), total)

        end = archive.offset

    _check_end_of_archive(handle, path, end)
    if on_progress is not None:
        on_progress(total, total)
    return index


def build_index(
    archive_path: str, on_progress: Optional[ProgressCallback] = None
) -> ArchiveIndex:
    """Scan a tar archive once and record the header offset and size of every regular file.

    :param archive_path: Path to an uncompressed tar archive.
    :type archive_path: str

    :param on_progress: Called with (bytes consumed, archive size) after every entry.
    :type on_progress: Optional[ProgressCallback], optional

    :raises ArchiveIOError: The archive could not be opened or read.
    :raises ArchiveHeaderError: A header is malformed or the archive is truncated.
    :raises DuplicateMemberError: Two regular files share the same key.

    :returns: The index of the archive's regular files.
    :rtype: ArchiveIndex
    """
    logger.debug(BraceMessage("Indexing `{0}`", archive_path))
    try:
        handle = open(archive_path, "rb")
    except OSError as err:
        raise ArchiveIOError("open", archive_path) from err

    with handle:
        try:
            total = os.fstat(handle.fileno()).st_size
            if total == 0:
                index = ArchiveIndex()
            else:
                index = _scan(handle, archive_path, total, on_progress)
        except OSError as err:
            raise ArchiveIOError("read", archive_path) from err

    logger.debug(
        BraceMessage("Indexed {0} files in `{1}`", len(index), archive_path)
    )
    return index


def create_index(
    archive_path: str,
    index_path: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> ArchiveIndex:
    """Build the index of an archive and save it; nothing is written if the build fails."""
    if index_path is None:
        index_path = default_index_path(archive_path)
    index = build_index(archive_path, on_progress=on_progress)
    save_index(index, index_path)
    return index


__all__ = [
    "ProgressCallback",
    "default_index_path",
    "is_regular_member",
    "build_index",
    "create_index",
]
