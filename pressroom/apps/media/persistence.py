"""Writing a primary object and its derivative as a pair.

There is no transaction across two storage writes, so the pair is written in
a fixed order (main, then derivative) and a failed derivative write removes
the main object again. The rollback is best-effort: if it fails too, the
derivative write error is still the one the caller sees.
"""

from __future__ import annotations

import logging

from pressroom.apps.media.cleanup import best_effort
from pressroom.apps.media.errors import StorageWriteFailure
from pressroom.apps.media.storage import StorageDriver
from pressroom.apps.media.types import PendingObject, StoredObject

logger = logging.getLogger(__name__)


def _put(driver: StorageDriver, directory: str, pending: PendingObject) -> StoredObject:
    try:
        return driver.put(directory, pending.file_name, pending.data, pending.content_type)
    except StorageWriteFailure:
        raise
    except Exception as exc:
        raise StorageWriteFailure(f"Could not store {pending.file_name}: {exc}") from exc


def write_pair(
    driver: StorageDriver,
    directory: str,
    main: PendingObject,
    derivative: PendingObject,
) -> tuple[StoredObject, StoredObject]:
    """
    Store ``main`` then ``derivative`` through ``driver``.

    Returns:
        The stored main and derivative objects, in that order.

    Raises:
        StorageWriteFailure: if either write fails. When the derivative write
            fails, the main object from this call has already been deleted
            (or the deletion attempt logged).
    """
    stored_main = _put(driver, directory, main)

    try:
        stored_derivative = _put(driver, directory, derivative)
    except StorageWriteFailure:
        logger.warning(
            "Derivative write failed; rolling back %s",
            stored_main.key,
            extra={"storage_backend": str(driver.backend)},
        )
        best_effort(
            driver.delete,
            directory,
            main.file_name,
            description=f"rollback of {stored_main.key}",
        )
        raise

    return stored_main, stored_derivative
