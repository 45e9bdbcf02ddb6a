"""
Ingestion of uploaded files into the store.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from filedepot.errors import BatchTooLargeError, EmptyBatchError, IngestionFailedError
from filedepot.fs import FileStore
from filedepot.fs.naming import normalize_filename, sanitize_filename

from .models import FailedUpload, FileMetadata, IngestionOutcome, UploadPart


logger = logging.getLogger(__name__)


def store_part(store: FileStore, part: UploadPart) -> FileMetadata:
    """
    Persist a single upload part under a collision-free name.

    A partially written file is removed again if copying fails.

    Raises:
        OSError: If the file cannot be created or written.
    """
    original_name = normalize_filename(part.desired_name)
    stored_name, handle = store.create_exclusive(sanitize_filename(original_name))

    try:
        with handle:
            size_bytes = store.write_stream(handle, part.stream)
    except BaseException:
        store.discard(stored_name)
        raise

    return FileMetadata(
        original_name=original_name,
        stored_name=stored_name,
        path=store.path_for(stored_name),
        size_bytes=size_bytes,
        media_type=part.media_type,
    )


def ingest_files(
    store: FileStore,
    parts: Sequence[UploadPart],
    *,
    max_files: Optional[int] = None,
) -> IngestionOutcome:
    """
    Store a batch of uploaded files.

    Each part is handled independently and in input order. A failing part
    never rolls back parts that were already stored.

    Args:
        store: The file store.
        parts: The upload batch.
        max_files: Batch ceiling, or None for no limit.

    Returns:
        IngestionOutcome with metadata of the stored files and the failures.

    Raises:
        EmptyBatchError: If the batch is empty.
        BatchTooLargeError: If the batch exceeds max_files.
        IngestionFailedError: If no part could be stored.
    """
    if not parts:
        raise EmptyBatchError("At least one file must be uploaded")
    if max_files is not None and len(parts) > max_files:
        raise BatchTooLargeError(len(parts), max_files)

    outcome = IngestionOutcome()
    for part in parts:
        try:
            outcome.files.append(store_part(store, part))
        except OSError as exc:
            name = normalize_filename(part.desired_name)
            logger.warning("Failed to store upload %s: %s", name, exc)
            outcome.failed.append(FailedUpload(filename=name, error=exc.strerror or str(exc)))

    if not outcome.files:
        raise IngestionFailedError(outcome)

    if len(outcome.files) == 1:
        logger.info("Stored one file: %s", outcome.files[0].stored_name)
    else:
        logger.info(
            "Stored %d files: %s",
            len(outcome.files),
            ", ".join(f.stored_name for f in outcome.files),
        )

    return outcome
