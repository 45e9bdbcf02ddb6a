"""
Listing, export and deletion of stored files.

Provides:
- list_files: catalog of the store, sorted by name
- prepare_export: one file as-is, or several as a streamed zip archive
- delete_files: batch deletion with per-file results
- Download API router
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .models import StoredFile, SingleFileExport, ArchiveExport, DeletionOutcome, FailedDeletion
from .listing import list_files, format_bytes, download_url
from .export import prepare_export, parse_name_list
from .deletion import delete_files

if TYPE_CHECKING:
    from fastapi import APIRouter  # pragma: no cover


def create_download_router(**kwargs: Any) -> "APIRouter":
    """
    Lazily import FastAPI router to keep non-web imports lightweight.
    """
    from .api import create_download_router as _create_download_router

    return _create_download_router(**kwargs)

__all__ = [
    "StoredFile",
    "SingleFileExport",
    "ArchiveExport",
    "DeletionOutcome",
    "FailedDeletion",
    "list_files",
    "format_bytes",
    "download_url",
    "prepare_export",
    "parse_name_list",
    "delete_files",
    "create_download_router",
]
