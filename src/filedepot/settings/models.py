from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


DEFAULT_STORAGE_ROOT = "uploads"
DEFAULT_MAX_UPLOAD_FILES = 10
DEFAULT_CHUNK_SIZE = 65536
DEFAULT_COMPRESS_LEVEL = 9


def _bounded_int(value: Any, *, default: int, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < low or number > high:
        return default
    return number


@dataclass
class GlobalSettings:
    storage_root: str = DEFAULT_STORAGE_ROOT
    max_upload_files: int = DEFAULT_MAX_UPLOAD_FILES
    chunk_size: int = DEFAULT_CHUNK_SIZE
    compress_level: int = DEFAULT_COMPRESS_LEVEL
    access_token: Optional[str] = None

    def auth_required(self) -> bool:
        return bool(self.access_token and self.access_token.strip())

    def to_persist_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": 1,
            "storage_root": self.storage_root,
            "max_upload_files": self.max_upload_files,
            "chunk_size": self.chunk_size,
            "compress_level": self.compress_level,
        }
        if self.access_token:
            data["access_token"] = self.access_token
        return data

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "GlobalSettings":
        storage_root = str(data.get("storage_root", DEFAULT_STORAGE_ROOT) or DEFAULT_STORAGE_ROOT)

        raw_token = data.get("access_token")
        access_token = str(raw_token).strip() if raw_token else None

        return cls(
            storage_root=storage_root,
            max_upload_files=_bounded_int(
                data.get("max_upload_files"), default=DEFAULT_MAX_UPLOAD_FILES, low=1, high=1000
            ),
            chunk_size=_bounded_int(
                data.get("chunk_size"), default=DEFAULT_CHUNK_SIZE, low=1024, high=16 * 1024 * 1024
            ),
            compress_level=_bounded_int(
                data.get("compress_level"), default=DEFAULT_COMPRESS_LEVEL, low=0, high=9
            ),
            access_token=access_token or None,
        )
