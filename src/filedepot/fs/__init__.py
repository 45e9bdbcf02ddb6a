"""
File system utilities for the shared file store.

Provides:
- Flat store access (storage.py)
- Collision-free file naming (naming.py)
- Streaming zip archives for downloads (archive_zip.py)
"""

from .storage import FileStore, FileStat
from .naming import normalize_filename, sanitize_filename, split_filename, resolve_filename
from .archive_zip import ArchiveEntry, generate_archive_name, iter_zip_stream

__all__ = [
    "FileStore",
    "FileStat",
    "normalize_filename",
    "sanitize_filename",
    "split_filename",
    "resolve_filename",
    "ArchiveEntry",
    "generate_archive_name",
    "iter_zip_stream",
]
