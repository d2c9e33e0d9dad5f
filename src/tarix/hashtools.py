import hashlib
import posixpath

from tarix.definitions import KEY_LENGTH

# Tar member names are stored as raw bytes; keep undecodable bytes intact when hashing
_PATH_ENCODING = "utf-8"
_PATH_ERRORS = "surrogateescape"


def clean_path(path: str) -> str:
    """Lexically canonicalize a member path.

    Repeated separators and '.' segments are removed, '..' is resolved lexically,
    trailing separators are dropped and an empty path becomes '.'.
    """
    if not path:
        return "."
    cleaned = posixpath.normpath(path)
    # normpath keeps a leading '//' (POSIX allows it to be special); tar names never need it
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def hash_path(path: str) -> str:
    hasher = hashlib.md5(
        path.encode(_PATH_ENCODING, _PATH_ERRORS), usedforsecurity=False
    )
    return hasher.hexdigest()[:KEY_LENGTH]


def member_key(path: str) -> str:
    """The index key of a member; the indexer and the extractor must both derive keys here."""
    return hash_path(clean_path(path))


__all__ = ["clean_path", "hash_path", "member_key"]
