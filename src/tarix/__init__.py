"""
Random access to the members of large tar archives through a precomputed offset index
"""
from tarix.definitions import ArchiveIndex, FileIndexEntry, BLOCK_SIZE
from tarix.extractor import (
    TarixHandle,
    extract_member,
    extract_member_to,
    read_member,
    resolve_offset,
)
from tarix.hashtools import member_key
from tarix.indexer import build_index, create_index
from tarix.store import load_index, save_index

__version__ = "1.0.0"

__all__ = [
    "ArchiveIndex",
    "FileIndexEntry",
    "BLOCK_SIZE",
    "TarixHandle",
    "build_index",
    "create_index",
    "save_index",
    "load_index",
    "resolve_offset",
    "read_member",
    "extract_member",
    "extract_member_to",
    "member_key",
]
