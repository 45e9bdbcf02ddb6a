"""
Streaming zip archives for multi-file downloads.

The archive is produced on demand: iterating the stream writes the next
piece of the archive into a small in-memory sink and hands it out, so memory
use stays bounded by the chunk size no matter how large the archive gets.
Because the sink is not seekable, zipfile writes a data descriptor after
each entry instead of patching the local header.
"""

from __future__ import annotations

import io
import time
import zipfile
from pathlib import Path
from typing import Generator, Iterable, NamedTuple


# Maximum DEFLATE compression
DEFAULT_COMPRESS_LEVEL = 9

DEFAULT_CHUNK_SIZE = 65536  # 64 KB


class ArchiveEntry(NamedTuple):
    """A file to be added to an archive."""
    name: str         # Entry name inside the archive
    path: Path        # Source file on disk


def generate_archive_name() -> str:
    """
    Generate a timestamped archive filename.

    Format: download_{epoch milliseconds}.zip
    """
    return f"download_{int(time.time() * 1000)}.zip"


class _ChunkSink(io.RawIOBase):
    """Write-only, non-seekable buffer drained by the stream generator."""

    def __init__(self):
        super().__init__()
        self._chunks: list[bytes] = []
        self._offset = 0

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        self._chunks.append(bytes(data))
        self._offset += len(data)
        return len(data)

    def tell(self) -> int:
        return self._offset

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def _entry_info(entry: ArchiveEntry, compress_level: int) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo.from_file(entry.path, arcname=entry.name, strict_timestamps=False)
    info.compress_type = zipfile.ZIP_DEFLATED
    if hasattr(zipfile.ZipInfo, "compress_level"):
        info.compress_level = compress_level
    else:
        # Before Python 3.13 the per-entry level is only settable privately
        info._compresslevel = compress_level
    return info


def iter_zip_stream(
    entries: Iterable[ArchiveEntry],
    *,
    compress_level: int = DEFAULT_COMPRESS_LEVEL,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Generator[bytes, None, None]:
    """
    Yield a zip archive of the given files piece by piece.

    Nothing is read or written until the first chunk is requested. The
    central directory is emitted after the last entry. Closing the iterator
    early releases the open source file and abandons the archive.

    Args:
        entries: Files to archive, in order. May be empty.
        compress_level: zlib compression level (0-9).
        chunk_size: Read size for source files.

    Yields:
        Non-empty byte strings that concatenate to a valid zip file.

    Raises:
        OSError: If a source file cannot be read.
    """
    sink = _ChunkSink()
    with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED, compresslevel=compress_level) as zf:
        for entry in entries:
            info = _entry_info(entry, compress_level)
            with entry.path.open("rb") as src, zf.open(info, mode="w") as dest:
                while True:
                    chunk = src.read(chunk_size)
                    if not chunk:
                        break
                    dest.write(chunk)
                    data = sink.drain()
                    if data:
                        yield data
            data = sink.drain()
            if data:
                yield data

    data = sink.drain()
    if data:
        yield data
