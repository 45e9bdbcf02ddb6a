"""
Batch deletion of stored files.
"""

from __future__ import annotations

import logging
from typing import Sequence

from filedepot.errors import DeletionFailedError, EmptyBatchError
from filedepot.fs import FileStore

from .models import DeletionOutcome, FailedDeletion


logger = logging.getLogger(__name__)

NOT_FOUND = "not found"


def delete_files(store: FileStore, names: Sequence[str]) -> DeletionOutcome:
    """
    Delete a batch of stored files.

    Every name is handled on its own: a missing or undeletable file is
    recorded in ``failed`` and the remaining names are still processed.

    Args:
        store: The file store.
        names: Names of the files to delete.

    Returns:
        DeletionOutcome listing deleted and failed names.

    Raises:
        EmptyBatchError: If no names were given.
        DeletionFailedError: If not a single file was deleted.
    """
    if not names:
        raise EmptyBatchError("At least one file name is required")

    outcome = DeletionOutcome()
    for name in names:
        if not store.is_file(name):
            outcome.failed.append(FailedDeletion(filename=name, error=NOT_FOUND))
            continue

        try:
            store.remove(name)
        except FileNotFoundError:
            outcome.failed.append(FailedDeletion(filename=name, error=NOT_FOUND))
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", name, exc)
            outcome.failed.append(FailedDeletion(filename=name, error=exc.strerror or str(exc)))
        else:
            outcome.deleted.append(name)

    if not outcome.deleted:
        raise DeletionFailedError(outcome)

    logger.info(
        "Deleted %d file(s), %d failed: %s",
        len(outcome.deleted),
        len(outcome.failed),
        ", ".join(outcome.deleted),
    )
    return outcome
