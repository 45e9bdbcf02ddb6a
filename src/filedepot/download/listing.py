"""
Listing of stored files.
"""

from __future__ import annotations

from urllib.parse import quote

from filedepot.errors import StorageUnavailableError
from filedepot.fs import FileStore, split_filename

from .models import StoredFile


BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def list_files(store: FileStore) -> list[StoredFile]:
    """
    List every file in the store.

    Args:
        store: The file store.

    Returns:
        StoredFile entries sorted by name (code point order). Empty if the
        store directory has never been created.

    Raises:
        StorageUnavailableError: If the store directory cannot be read.
    """
    try:
        stats = store.scan()
    except OSError as exc:
        raise StorageUnavailableError(f"Failed to read file store: {exc.strerror or exc}") from exc

    files = [
        StoredFile(
            name=st.name,
            size_bytes=st.size_bytes,
            created_at=st.created_at,
            modified_at=st.modified_at,
            extension=split_filename(st.name)[1].lower(),
        )
        for st in stats
    ]
    return sorted(files, key=lambda f: f.name)


def format_bytes(size_bytes: int) -> str:
    """
    Format a byte count for display using base-1024 units.

    Examples: 0 -> "0 Bytes", 1024 -> "1 KB", 12636 -> "12.34 KB".
    """
    if size_bytes == 0:
        return "0 Bytes"

    value = float(size_bytes)
    unit = 0
    while value >= 1024 and unit < len(BYTE_UNITS) - 1:
        value /= 1024
        unit += 1

    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {BYTE_UNITS[unit]}"


def download_url(name: str) -> str:
    """Get the export URL that downloads a single stored file."""
    return f"/download?filenames={quote(name, safe='')}"
