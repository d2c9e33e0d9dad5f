"""Reads and writes the flat CSV representation of an ArchiveIndex.

The file has a single header row (`key,start,size`) followed by one row per entry.
Row order is not significant.
"""

from __future__ import annotations

import csv
import logging
import re
from typing import List

from relic.core.logmsg import BraceMessage

from tarix.definitions import INDEX_HEADER, ArchiveIndex, FileIndexEntry
from tarix.errors import DuplicateMemberError, IndexFormatError, IndexIOError

logger = logging.getLogger(__name__)

_INT64_MAX = 2**63 - 1
_DECIMAL = re.compile(r"\+?[0-9]+")


def _parse_int64(value: str, name: str, path: str, line: int) -> int:
    if _DECIMAL.fullmatch(value) is None:
        raise IndexFormatError(path, line, f"invalid {name} value `{value}`")
    result = int(value)
    if result > _INT64_MAX:
        raise IndexFormatError(path, line, f"{name} value `{value}` out of range")
    return result


def _parse_row(row: List[str], path: str, line: int) -> FileIndexEntry:
    if len(row) != len(INDEX_HEADER):
        raise IndexFormatError(
            path, line, f"expected {len(INDEX_HEADER)} columns, got {len(row)}"
        )
    _, start, size = row
    return FileIndexEntry(
        start=_parse_int64(start, "start", path, line),
        size=_parse_int64(size, "size", path, line),
    )


def save_index(index: ArchiveIndex, path: str) -> None:
    try:
        with open(path, "w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle, lineterminator="\n")
            writer.writerow(INDEX_HEADER)
            for key, entry in index.items():
                writer.writerow((key, entry.start, entry.size))
    except OSError as err:
        raise IndexIOError("write", path) from err
    logger.debug(BraceMessage("Saved {0} entries to `{1}`", len(index), path))


def load_index(path: str) -> ArchiveIndex:
    """Load an index written by save_index.

    The header row is required but not validated. Keys are taken verbatim.
    `start` and `size` must be non-negative decimal integers no larger than 2**63 - 1;
    a sign is only accepted as a leading `+`, so negative values are rejected.
    Any malformed row, or a key repeated within the file, aborts the load.

    :raises IndexIOError: The file could not be read.
    :raises IndexFormatError: The file is not a valid index.
    """
    index = ArchiveIndex()
    try:
        with open(path, "r", newline="", encoding="utf-8") as handle:
            reader = csv.reader(handle)
            if next(reader, None) is None:
                raise IndexFormatError(path, None, "missing header row")
            for row in reader:
                if not row:  # blank line
                    continue
                entry = _parse_row(row, path, reader.line_num)
                try:
                    index.add(row[0], entry)
                except DuplicateMemberError as err:
                    raise IndexFormatError(
                        path, reader.line_num, f"duplicate key `{row[0]}`"
                    ) from err
    except OSError as err:
        raise IndexIOError("read", path) from err
    except (csv.Error, UnicodeDecodeError) as err:
        raise IndexFormatError(path, None, str(err)) from err
    logger.debug(BraceMessage("Loaded {0} entries from `{1}`", len(index), path))
    return index


__all__ = ["save_index", "load_index"]
