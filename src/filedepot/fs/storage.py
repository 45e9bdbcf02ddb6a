"""
Flat file store.

Directory structure:
    <storage_root>/<filename>

Every stored file lives directly in the root directory; the filename is its
only identifier. Subdirectories that happen to exist under the root are not
part of the store.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, NamedTuple

from .naming import candidate_names


DEFAULT_CHUNK_SIZE = 65536  # 64 KB

# O_BINARY only exists on Windows
_EXCLUSIVE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)


class FileStat(NamedTuple):
    """Filesystem facts about a stored file."""
    name: str
    path: Path
    size_bytes: int
    created_at: datetime
    modified_at: datetime


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _file_stat(name: str, path: Path, st: os.stat_result) -> FileStat:
    created = getattr(st, "st_birthtime", None) or st.st_ctime
    return FileStat(
        name=name,
        path=path,
        size_bytes=st.st_size,
        created_at=_timestamp(created),
        modified_at=_timestamp(st.st_mtime),
    )


class FileStore:
    """
    Access to the flat directory of stored files.

    All filesystem calls go through this class. Names that are not bare
    basenames (path separators, ``.`` or ``..``) never refer to a stored file.
    """

    def __init__(self, root: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize the store.

        Args:
            root: The storage root directory. It does not need to exist yet.
            chunk_size: Buffer size for streaming reads and writes.
        """
        self._root = Path(root).resolve()
        self._chunk_size = chunk_size

    @property
    def root(self) -> Path:
        """Get the storage root directory."""
        return self._root

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def ensure_root(self) -> Path:
        """
        Create the storage root if needed.

        Raises:
            OSError: If the directory cannot be created.
        """
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    @staticmethod
    def is_valid_name(name: str) -> bool:
        """Check whether a name can address a file directly under the root."""
        if not name or name in (".", ".."):
            return False
        return not any(sep in name for sep in ("/", "\\", "\x00"))

    def path_for(self, name: str) -> Path:
        """
        Get the path of a stored file.

        Raises:
            ValueError: If the name is not a bare basename.
        """
        if not self.is_valid_name(name):
            raise ValueError(f"Invalid filename: {name!r}")
        return self._root / name

    def exists(self, name: str) -> bool:
        """
        Check whether a name is taken in the store.

        Any directory entry counts, so a subdirectory blocks its name too.
        """
        if not self.is_valid_name(name):
            return False
        return os.path.lexists(self._root / name)

    def is_file(self, name: str) -> bool:
        """
        Check whether a name refers to a stored regular file.

        Symlinks never count, wherever they point.
        """
        if not self.is_valid_name(name):
            return False
        path = self._root / name
        return path.is_file() and not path.is_symlink()

    def create_exclusive(self, desired: str) -> tuple[str, BinaryIO]:
        """
        Create a new empty file under the first free variant of a name.

        Creation uses O_EXCL, so two concurrent callers asking for the same
        name always end up with different files.

        Args:
            desired: A sanitized basename.

        Returns:
            (stored_name, handle) with the handle open for binary writing.

        Raises:
            OSError: If the file cannot be created for a reason other than a
                name collision.
        """
        self.ensure_root()
        for candidate in candidate_names(desired):
            try:
                fd = os.open(self.path_for(candidate), _EXCLUSIVE_FLAGS, 0o644)
            except FileExistsError:
                continue
            return candidate, os.fdopen(fd, "wb")
        raise AssertionError("unreachable")  # pragma: no cover

    def write_stream(self, handle: BinaryIO, source: BinaryIO) -> int:
        """
        Copy a source stream into an open handle in chunks.

        Returns:
            Number of bytes written.
        """
        written = 0
        while True:
            chunk = source.read(self._chunk_size)
            if not chunk:
                break
            handle.write(chunk)
            written += len(chunk)
        handle.flush()
        return written

    def open_read(self, name: str) -> BinaryIO:
        """
        Open a stored file for binary reading.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        return self.path_for(name).open("rb")

    def scan(self) -> list[FileStat]:
        """
        Stat every regular file directly under the root. Symlinks are skipped.

        Returns:
            Entries in directory order; [] if the root does not exist.

        Raises:
            OSError: If the root exists but cannot be read.
        """
        try:
            entries = list(os.scandir(self._root))
        except FileNotFoundError:
            return []

        results: list[FileStat] = []
        for entry in entries:
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                st = entry.stat(follow_symlinks=False)
            except FileNotFoundError:
                # Deleted between scandir and stat
                continue
            results.append(_file_stat(entry.name, Path(entry.path), st))
        return results

    def remove(self, name: str) -> None:
        """
        Delete a stored file.

        Raises:
            FileNotFoundError: If the file does not exist.
            OSError: If the file cannot be removed.
        """
        self.path_for(name).unlink()

    def discard(self, name: str) -> None:
        """Delete a file if present, ignoring a missing file."""
        try:
            self.remove(name)
        except FileNotFoundError:
            pass
