"""
API routes for uploading files.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import BaseModel

from filedepot.errors import BatchTooLargeError, EmptyBatchError
from filedepot.fs import FileStore

from .models import FileMetadata, UploadPart
from .operations import ingest_files


class FileMetadataOut(BaseModel):
    originalName: str
    storedName: str
    path: str
    size: int
    mimetype: str


class FailedUploadOut(BaseModel):
    filename: str
    error: str


class UploadFilesOut(BaseModel):
    """Response for an upload batch."""
    message: str
    filesData: List[FileMetadataOut]
    failed: Optional[List[FailedUploadOut]] = None


def _metadata_out(meta: FileMetadata) -> FileMetadataOut:
    return FileMetadataOut(
        originalName=meta.original_name,
        storedName=meta.stored_name,
        path=str(meta.path),
        size=meta.size_bytes,
        mimetype=meta.media_type,
    )


def create_upload_router(
    *,
    get_store: Callable[[], FileStore],
    get_max_files: Callable[[], int],
    get_principal: Callable[..., str],
) -> APIRouter:
    """
    Create the upload API router.

    Args:
        get_store: Dependency returning the file store for a request.
        get_max_files: Dependency returning the upload batch ceiling.
        get_principal: Dependency returning the caller's principal.

    Returns:
        FastAPI router with upload endpoints.
    """
    router = APIRouter(prefix="/upload", tags=["upload"], dependencies=[Depends(get_principal)])

    @router.post("/files", response_model=UploadFilesOut, response_model_exclude_none=True,
                 status_code=status.HTTP_201_CREATED)
    def upload_files(
        files: Optional[List[UploadFile]] = File(None, alias="fileOrFiles"),
        store: FileStore = Depends(get_store),
        max_files: int = Depends(get_max_files),
    ) -> UploadFilesOut:
        """
        Upload one or more files in a single multipart request.

        Names that already exist get a numbered suffix, e.g. report(1).pdf.
        """
        if not files:
            raise EmptyBatchError("At least one file must be uploaded")
        # Rejected before any part is touched
        if len(files) > max_files:
            raise BatchTooLargeError(len(files), max_files)

        parts = [
            UploadPart(
                desired_name=upload.filename or "",
                stream=upload.file,
                declared_size=upload.size,
                media_type=upload.content_type or "application/octet-stream",
            )
            for upload in files
        ]
        outcome = ingest_files(store, parts, max_files=max_files)

        return UploadFilesOut(
            message=outcome.message,
            filesData=[_metadata_out(meta) for meta in outcome.files],
            failed=[FailedUploadOut(filename=f.filename, error=f.error) for f in outcome.failed] or None,
        )

    return router
