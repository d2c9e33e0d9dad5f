import io
import os
import tarfile
import tempfile
from typing import Dict, Iterable, Optional, Tuple, Union

# name -> contents; None adds a directory entry
TarMembers = Union[Dict[str, Optional[bytes]], Iterable[Tuple[str, Optional[bytes]]]]

SCENARIO = {
    "file1.txt": b"Hello, World!",
    "file2.txt": b"This is a test.",
    "file3.txt": b"Another file.",
}


class TempFileHandle:
    def __init__(self, suffix: Optional[str] = None):
        with tempfile.NamedTemporaryFile("x", suffix=suffix, delete=False) as h:
            self._filename = h.name

    @property
    def path(self):
        return self._filename

    def open(self, mode: str):
        return open(self._filename, mode)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for path in (self._filename, self._filename + ".index.json"):
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass


def add_file(tar: tarfile.TarFile, name: str, data: bytes) -> None:
    info = tarfile.TarInfo(name)
    info.size = len(data)
    info.mode = 0o644
    tar.addfile(info, io.BytesIO(data))


def add_dir(tar: tarfile.TarFile, name: str) -> None:
    info = tarfile.TarInfo(name)
    info.type = tarfile.DIRTYPE
    info.mode = 0o755
    tar.addfile(info)


def add_symlink(tar: tarfile.TarFile, name: str, target: str) -> None:
    info = tarfile.TarInfo(name)
    info.type = tarfile.SYMTYPE
    info.linkname = target
    tar.addfile(info)


def write_tar(
    path: str, members: TarMembers, tar_format: int = tarfile.USTAR_FORMAT
) -> None:
    items = members.items() if isinstance(members, dict) else members
    with tarfile.open(path, "w", format=tar_format) as tar:
        for name, data in items:
            if data is None:
                add_dir(tar, name)
            else:
                add_file(tar, name, data)
