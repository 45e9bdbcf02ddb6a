"""Exception classes for the file store."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .download.models import DeletionOutcome
    from .upload.models import IngestionOutcome


class FileStoreError(Exception):
    """
    Base exception class for all file store errors.
    """
    pass


class EmptyBatchError(FileStoreError):
    """
    Raised when a caller supplies zero files to ingest or delete.
    """
    pass


class BatchTooLargeError(FileStoreError):
    """
    Raised when an upload batch carries more parts than the configured ceiling.
    """

    def __init__(self, count: int, limit: int):
        super().__init__(f"At most {limit} files may be uploaded at once, got {count}")
        self.count = count
        self.limit = limit


class FilesNotFoundError(FileStoreError):
    """
    Raised when one or more requested files do not exist in the store.
    """

    def __init__(self, names: list[str]):
        super().__init__(f"Files not found: {', '.join(names)}")
        self.names = list(names)


class StorageUnavailableError(FileStoreError):
    """
    Raised when the store directory cannot be accessed for a reason other
    than being absent.
    """
    pass


class DeletionFailedError(FileStoreError):
    """
    Raised when every file in a deletion batch failed.
    """

    def __init__(self, outcome: "DeletionOutcome"):
        super().__init__("No files were deleted")
        self.outcome = outcome


class IngestionFailedError(FileStoreError):
    """
    Raised when every file in an upload batch failed to persist.
    """

    def __init__(self, outcome: "IngestionOutcome"):
        super().__init__("No files were uploaded")
        self.outcome = outcome
