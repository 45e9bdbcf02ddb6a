from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .models import GlobalSettings
from .store import SettingsStore


class StorageRootIn(BaseModel):
    storage_root: str = Field(min_length=1)


class SettingsOut(BaseModel):
    storage_root: str
    resolved_storage_root: str
    max_upload_files: int
    chunk_size: int
    compress_level: int
    auth_required: bool  # The token itself is never returned


def resolve_storage_root(storage_root: str, *, base_dir: Path) -> Path:
    raw = storage_root.strip()
    if not raw:
        raise ValueError("Storage root must not be empty")

    p = Path(raw).expanduser()
    if not p.is_absolute():
        p = (base_dir / p).resolve()
    return p


def ensure_dir_writable(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ValueError(f"Cannot create directory: {exc}") from exc

    if not path.is_dir():
        raise ValueError("Storage root is not a directory")

    try:
        with tempfile.NamedTemporaryFile(prefix=".filedepot_write_test_", dir=str(path), delete=True):
            pass
    except PermissionError as exc:
        raise ValueError("Storage root is not writable") from exc
    except OSError as exc:
        raise ValueError(f"Cannot write to storage root: {exc}") from exc


def _public_settings(settings: GlobalSettings, *, base_dir: Path) -> SettingsOut:
    return SettingsOut(
        storage_root=settings.storage_root,
        resolved_storage_root=str(resolve_storage_root(settings.storage_root, base_dir=base_dir)),
        max_upload_files=settings.max_upload_files,
        chunk_size=settings.chunk_size,
        compress_level=settings.compress_level,
        auth_required=settings.auth_required(),
    )


def create_settings_router(
    *, store: SettingsStore, base_dir: Path, get_principal: Callable[..., str]
) -> APIRouter:
    router = APIRouter(prefix="/api/settings", tags=["settings"], dependencies=[Depends(get_principal)])

    @router.get("", response_model=SettingsOut)
    def get_settings() -> SettingsOut:
        return _public_settings(store.load(), base_dir=base_dir)

    @router.post("/storage-root", response_model=SettingsOut)
    def set_storage_root(body: StorageRootIn) -> SettingsOut:
        try:
            root = resolve_storage_root(body.storage_root, base_dir=base_dir)
            ensure_dir_writable(root)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        updated = store.set_storage_root(root)
        return _public_settings(updated, base_dir=base_dir)

    return router
