"""
API routes for listing, downloading and deleting stored files.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Union
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, field_validator
from starlette.background import BackgroundTask

from filedepot.fs import FileStore

from .deletion import delete_files
from .export import Export, parse_name_list, prepare_export
from .listing import download_url, format_bytes, list_files
from .models import SingleFileExport, StoredFile


# Characters encodeURIComponent leaves alone
_DISPOSITION_SAFE = "!~*'()"


class FileEntryOut(BaseModel):
    name: str
    size: str
    sizeBytes: int
    created: str
    modified: str
    extension: str
    downloadUrl: str


class ListFilesOut(BaseModel):
    """Response for the file listing."""
    success: bool
    count: int
    files: List[FileEntryOut]


class DeleteFilesIn(BaseModel):
    """Request body for deleting files, as a list or a comma-delimited string."""
    filepaths: Union[List[str], str]

    @field_validator("filepaths", mode="before")
    @classmethod
    def _split_names(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            return parse_name_list([value])
        if isinstance(value, list):
            return [name for name in (str(v).strip() for v in value) if name]
        return value


class FailedDeletionOut(BaseModel):
    filename: str
    error: str


class DeleteFilesOut(BaseModel):
    """Response for deleting files."""
    success: bool
    message: str
    deleted: List[str]
    failed: Optional[List[FailedDeletionOut]] = None


def _entry_out(stored: StoredFile) -> FileEntryOut:
    return FileEntryOut(
        name=stored.name,
        size=format_bytes(stored.size_bytes),
        sizeBytes=stored.size_bytes,
        created=stored.created_at.isoformat(),
        modified=stored.modified_at.isoformat(),
        extension=stored.extension,
        downloadUrl=download_url(stored.name),
    )


def content_disposition(filename: str) -> str:
    return f'attachment; filename="{quote(filename, safe=_DISPOSITION_SAFE)}"'


def _streaming_response(export: Export) -> StreamingResponse:
    headers = {"Content-Disposition": content_disposition(export.filename)}
    if isinstance(export, SingleFileExport):
        headers["Content-Length"] = str(export.size_bytes)

    return StreamingResponse(
        export.iter_chunks(),
        media_type=export.media_type,
        headers=headers,
        background=BackgroundTask(export.close),
    )


def create_download_router(
    *,
    get_store: Callable[[], FileStore],
    get_compress_level: Callable[[], int],
    get_principal: Callable[..., str],
) -> APIRouter:
    """
    Create the download API router.

    Args:
        get_store: Dependency returning the file store for a request.
        get_compress_level: Dependency returning the zip compression level.
        get_principal: Dependency returning the caller's principal.

    Returns:
        FastAPI router with list, download and delete endpoints.
    """
    router = APIRouter(prefix="/download", tags=["download"], dependencies=[Depends(get_principal)])

    @router.get("/list", response_model=ListFilesOut)
    def get_file_list(store: FileStore = Depends(get_store)) -> ListFilesOut:
        """List every stored file, sorted by name."""
        files = list_files(store)
        return ListFilesOut(
            success=True,
            count=len(files),
            files=[_entry_out(f) for f in files],
        )

    @router.get("")
    def download_files(
        filenames: Optional[List[str]] = Query(None),
        store: FileStore = Depends(get_store),
        compress_level: int = Depends(get_compress_level),
    ) -> StreamingResponse:
        """
        Download files.

        One name streams the file itself, several names stream a zip
        archive. Without names every stored file is downloaded.
        """
        export = prepare_export(store, parse_name_list(filenames), compress_level=compress_level)
        return _streaming_response(export)

    @router.delete("", response_model=DeleteFilesOut, response_model_exclude_none=True)
    def remove_files(body: DeleteFilesIn, store: FileStore = Depends(get_store)) -> DeleteFilesOut:
        """
        Delete files by name.

        Succeeds when at least one file was deleted; names that could not be
        deleted are reported in ``failed``.
        """
        outcome = delete_files(store, body.filepaths)
        return DeleteFilesOut(
            success=outcome.success,
            message=outcome.message,
            deleted=outcome.deleted,
            failed=[FailedDeletionOut(filename=f.filename, error=f.error) for f in outcome.failed] or None,
        )

    return router
