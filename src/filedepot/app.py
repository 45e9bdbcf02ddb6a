from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from . import config
from .auth import create_principal_dependency
from .download import create_download_router
from .errors import (
    BatchTooLargeError,
    DeletionFailedError,
    EmptyBatchError,
    FilesNotFoundError,
    FileStoreError,
    IngestionFailedError,
    StorageUnavailableError,
)
from .fs import FileStore
from .logging_config import setup_logging
from .settings import SettingsStore
from .settings.api import create_settings_router, resolve_storage_root
from .upload import create_upload_router


logger = logging.getLogger(__name__)


def _error_response(request: Request, status_code: int, code: str, exc: Exception, **extra) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    log = logger.error if status_code >= 500 else logger.warning
    log(f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code, **extra})


def _failures_out(failures) -> list[dict[str, str]]:
    return [{"filename": f.filename, "error": f.error} for f in failures]


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(EmptyBatchError)
    async def empty_batch_handler(request: Request, exc: EmptyBatchError):
        return _error_response(request, status.HTTP_400_BAD_REQUEST, "EMPTY_BATCH", exc)

    @app.exception_handler(BatchTooLargeError)
    async def batch_too_large_handler(request: Request, exc: BatchTooLargeError):
        return _error_response(request, status.HTTP_400_BAD_REQUEST, "BATCH_TOO_LARGE", exc, limit=exc.limit)

    @app.exception_handler(FilesNotFoundError)
    async def files_not_found_handler(request: Request, exc: FilesNotFoundError):
        return _error_response(request, status.HTTP_404_NOT_FOUND, "FILES_NOT_FOUND", exc, missing=exc.names)

    @app.exception_handler(StorageUnavailableError)
    async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
        return _error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, "STORAGE_UNAVAILABLE", exc)

    @app.exception_handler(DeletionFailedError)
    async def deletion_failed_handler(request: Request, exc: DeletionFailedError):
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "DELETION_FAILED",
            exc,
            success=False,
            deleted=exc.outcome.deleted,
            failed=_failures_out(exc.outcome.failed),
        )

    @app.exception_handler(IngestionFailedError)
    async def ingestion_failed_handler(request: Request, exc: IngestionFailedError):
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INGESTION_FAILED",
            exc,
            failed=_failures_out(exc.outcome.failed),
        )

    @app.exception_handler(FileStoreError)
    async def file_store_error_handler(request: Request, exc: FileStoreError):
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", exc)


def create_app(*, config_path: Optional[Path] = None, base_dir: Optional[Path] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config_path: Settings file. Defaults to FILEDEPOT_CONFIG.
        base_dir: Directory relative storage roots are resolved against.
            Defaults to FILEDEPOT_BASE_DIR or the working directory.
    """
    base_dir = Path(base_dir or config.BASE_DIR).resolve()
    store = SettingsStore(path=Path(config_path or config.CONFIG_PATH))

    def get_store() -> FileStore:
        settings = store.load()
        root = resolve_storage_root(settings.storage_root, base_dir=base_dir)
        return FileStore(root, chunk_size=settings.chunk_size)

    def get_max_files() -> int:
        return store.load().max_upload_files

    def get_compress_level() -> int:
        return store.load().compress_level

    get_principal = create_principal_dependency(store)

    app = FastAPI(title="filedepot", description="Shared file store with upload, listing, export and deletion")
    app.include_router(
        create_upload_router(get_store=get_store, get_max_files=get_max_files, get_principal=get_principal)
    )
    app.include_router(
        create_download_router(get_store=get_store, get_compress_level=get_compress_level, get_principal=get_principal)
    )
    app.include_router(create_settings_router(store=store, base_dir=base_dir, get_principal=get_principal))
    register_exception_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}] "
            f"[principal={getattr(request.state, 'principal', None) or 'anonymous'}]"
        )
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health")
    def health_check() -> dict[str, str]:
        return {"status": "healthy", "service": "filedepot"}

    app.state.settings_store = store
    app.state.base_dir = base_dir
    return app


setup_logging("filedepot")

app = create_app()


def main() -> None:
    """
    Start the server with uvicorn.
    """
    uvicorn.run("filedepot.app:app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
