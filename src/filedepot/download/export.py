"""
Export of stored files as a single download.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional, Union

from filedepot.errors import FilesNotFoundError, StorageUnavailableError
from filedepot.fs import ArchiveEntry, FileStore, generate_archive_name
from filedepot.fs.archive_zip import DEFAULT_COMPRESS_LEVEL

from .listing import list_files
from .models import ArchiveExport, SingleFileExport


logger = logging.getLogger(__name__)

Export = Union[SingleFileExport, ArchiveExport]


def parse_name_list(values: Optional[Iterable[str]]) -> list[str]:
    """
    Flatten comma-delimited and repeated name parameters.

    Entries are trimmed; empty entries are dropped.

    Examples:
        ["a.txt,b.txt", " c.txt "] -> ["a.txt", "b.txt", "c.txt"]
    """
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]

    names: list[str] = []
    for value in values:
        for part in str(value).split(","):
            part = part.strip()
            if part:
                names.append(part)
    return names


def _unique(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


def prepare_export(
    store: FileStore,
    selection: Optional[Iterable[str]] = None,
    *,
    compress_level: int = DEFAULT_COMPRESS_LEVEL,
) -> Export:
    """
    Resolve a selection of names to something that can be streamed.

    No bytes are sent before every requested file is known to exist, so a
    download either contains everything that was asked for or nothing.

    Args:
        store: The file store.
        selection: Requested names, or None/empty for every stored file.
        compress_level: zlib level used when an archive is built.

    Returns:
        SingleFileExport for exactly one name, otherwise ArchiveExport (which
        has no entries when the store is empty and nothing was selected).

    Raises:
        FilesNotFoundError: If any requested name is not a stored file.
        StorageUnavailableError: If the store cannot be listed.
    """
    names = _unique(selection or [])
    if not names:
        names = [f.name for f in list_files(store)]

    missing = [name for name in names if not store.is_file(name)]
    if missing:
        raise FilesNotFoundError(missing)

    if len(names) == 1:
        name = names[0]
        try:
            handle = store.open_read(name)
        except FileNotFoundError:
            raise FilesNotFoundError([name]) from None
        except OSError as exc:
            raise StorageUnavailableError(f"Failed to open {name}: {exc.strerror or exc}") from exc
        size_bytes = os.fstat(handle.fileno()).st_size
        logger.info("Exporting file %s (%d bytes)", name, size_bytes)
        return SingleFileExport(
            filename=name,
            size_bytes=size_bytes,
            handle=handle,
            chunk_size=store.chunk_size,
        )

    archive_name = generate_archive_name()
    logger.info("Exporting %d file(s) as %s", len(names), archive_name)
    return ArchiveExport(
        archive_name=archive_name,
        entries=[ArchiveEntry(name=name, path=store.path_for(name)) for name in names],
        compress_level=compress_level,
        chunk_size=store.chunk_size,
    )
