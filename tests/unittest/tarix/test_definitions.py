import pytest

from tarix.definitions import (
    BLOCK_SIZE,
    ArchiveIndex,
    FileIndexEntry,
    padded_size,
)
from tarix.errors import DuplicateMemberError


@pytest.mark.parametrize(
    ["size", "expected"],
    [(0, 0), (1, 512), (13, 512), (511, 512), (512, 512), (513, 1024), (2000, 2048)],
)
def test_padded_size(size: int, expected: int):
    assert padded_size(size) == expected


def test_file_index_entry_data_range():
    entry = FileIndexEntry(start=1024, size=13)
    assert entry.data_start == 1024 + BLOCK_SIZE
    assert entry.data_end == 1024 + BLOCK_SIZE + 13


class TestArchiveIndex:
    def test_empty(self):
        index = ArchiveIndex()
        assert len(index) == 0
        assert index.total_size == 0
        assert "0123456789abcdef" not in index

    def test_add(self):
        index = ArchiveIndex()
        index.add("aaaaaaaaaaaaaaaa", FileIndexEntry(0, 13))
        index.add("bbbbbbbbbbbbbbbb", FileIndexEntry(1024, 15))
        assert len(index) == 2
        assert index["bbbbbbbbbbbbbbbb"] == FileIndexEntry(1024, 15)
        assert index.total_size == 28
        assert set(index) == {"aaaaaaaaaaaaaaaa", "bbbbbbbbbbbbbbbb"}

    @pytest.mark.parametrize("path", [None, "file.txt"])
    def test_add_duplicate(self, path):
        index = ArchiveIndex()
        index.add("aaaaaaaaaaaaaaaa", FileIndexEntry(0, 13))
        with pytest.raises(DuplicateMemberError) as exc_info:
            index.add("aaaaaaaaaaaaaaaa", FileIndexEntry(1024, 15), path=path)
        assert exc_info.value.key == "aaaaaaaaaaaaaaaa"
        assert exc_info.value.path == path
        # the first entry is never overwritten
        assert index["aaaaaaaaaaaaaaaa"] == FileIndexEntry(0, 13)

    def test_read_only(self):
        index = ArchiveIndex()
        with pytest.raises(TypeError):
            index["aaaaaaaaaaaaaaaa"] = FileIndexEntry(0, 0)  # type: ignore
