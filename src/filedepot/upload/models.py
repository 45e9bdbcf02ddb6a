"""
Models for file ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional, Union


@dataclass
class UploadPart:
    """
    One incoming file of an upload batch.

    The transport layer fills this in from a multipart body part.
    """
    desired_name: Union[str, bytes]
    stream: BinaryIO
    declared_size: Optional[int] = None
    media_type: str = "application/octet-stream"


@dataclass(frozen=True)
class FileMetadata:
    """Metadata of a successfully stored file."""
    original_name: str
    stored_name: str
    path: Path
    size_bytes: int
    media_type: str


@dataclass(frozen=True)
class FailedUpload:
    """A part that could not be stored."""
    filename: str
    error: str


@dataclass
class IngestionOutcome:
    """Result of ingesting one upload batch."""
    files: list[FileMetadata] = field(default_factory=list)
    failed: list[FailedUpload] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{len(self.files)} file(s) uploaded successfully."

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)
