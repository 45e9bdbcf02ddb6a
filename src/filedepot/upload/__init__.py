"""
File ingestion.

Provides:
- UploadPart / FileMetadata / IngestionOutcome models
- ingest_files: persist an upload batch under collision-free names
- Upload API router
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .models import UploadPart, FileMetadata, FailedUpload, IngestionOutcome
from .operations import ingest_files, store_part

if TYPE_CHECKING:
    from fastapi import APIRouter  # pragma: no cover


def create_upload_router(**kwargs: Any) -> "APIRouter":
    """
    Lazily import FastAPI router to keep non-web imports lightweight.
    """
    from .api import create_upload_router as _create_upload_router

    return _create_upload_router(**kwargs)

__all__ = [
    "UploadPart",
    "FileMetadata",
    "FailedUpload",
    "IngestionOutcome",
    "ingest_files",
    "store_part",
    "create_upload_router",
]
