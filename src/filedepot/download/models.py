"""
Models for listing, exporting and deleting stored files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Generator, Iterator, Optional

from filedepot.fs import ArchiveEntry, iter_zip_stream
from filedepot.fs.archive_zip import DEFAULT_CHUNK_SIZE, DEFAULT_COMPRESS_LEVEL


@dataclass(frozen=True)
class StoredFile:
    """A file currently in the store."""
    name: str
    size_bytes: int
    created_at: datetime
    modified_at: datetime
    extension: str     # Lower-cased, with leading dot, or ""


@dataclass
class SingleFileExport:
    """
    Export of exactly one file, streamed as-is.

    The file is opened when the export is prepared. Iterating the chunks
    closes it at the end; close() may be called at any time.
    """
    filename: str
    size_bytes: int
    handle: BinaryIO
    chunk_size: int = DEFAULT_CHUNK_SIZE

    media_type = "application/octet-stream"

    def iter_chunks(self) -> Iterator[bytes]:
        try:
            while True:
                chunk = self.handle.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        self.handle.close()


@dataclass
class ArchiveExport:
    """
    Export of several files as one zip archive built while streaming.
    """
    archive_name: str
    entries: list[ArchiveEntry]
    compress_level: int = DEFAULT_COMPRESS_LEVEL
    chunk_size: int = DEFAULT_CHUNK_SIZE
    _stream: Optional[Generator[bytes, None, None]] = field(default=None, init=False, repr=False)

    media_type = "application/zip"

    @property
    def filename(self) -> str:
        return self.archive_name

    def iter_chunks(self) -> Iterator[bytes]:
        self._stream = iter_zip_stream(
            self.entries,
            compress_level=self.compress_level,
            chunk_size=self.chunk_size,
        )
        return self._stream

    def close(self) -> None:
        # Releases the source file and zip writer of a stream cut short
        if self._stream is not None:
            self._stream.close()


@dataclass(frozen=True)
class FailedDeletion:
    """A file that could not be deleted."""
    filename: str
    error: str


@dataclass
class DeletionOutcome:
    """Result of deleting one batch of files."""
    deleted: list[str] = field(default_factory=list)
    failed: list[FailedDeletion] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.deleted) or not self.failed

    @property
    def message(self) -> str:
        if self.deleted:
            return f"Successfully deleted {len(self.deleted)} file(s)"
        return "No files were deleted"
