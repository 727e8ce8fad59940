"""Removing stored media.

Deletion doesn't know which derivative naming scheme produced an asset, so it
removes the primary object plus every plausible derivative: the explicitly
known name if the caller has one, ``{stem}-thumb{ext}`` and
``{stem}-thumb.webp``. Missing objects are not errors, which makes deleting
twice harmless.
"""

from __future__ import annotations

import logging

from pressroom.apps.media.cleanup import best_effort
from pressroom.apps.media.errors import StorageConfigurationError
from pressroom.apps.media.naming import (
    derivative_candidates,
    resolve_stored_name,
    split_stored_name,
)
from pressroom.apps.media.storage import DRIVER_ALIASES, LocalStorageDriver, get_driver_for_backend
from pressroom.apps.media.types import MediaAsset, StorageBackend

logger = logging.getLogger(__name__)


def parse_backend_tag(tag: StorageBackend | str | None) -> StorageBackend | None:
    """Map a stored backend tag to a backend; ``None`` if unrecognised.

    Any tag starting with ``local`` counts as local storage.
    """
    if isinstance(tag, StorageBackend):
        return tag
    value = (tag or "").strip().lower()
    if value.startswith("local"):
        return StorageBackend.LOCAL
    return DRIVER_ALIASES.get(value)


def deletion_targets(stored_name: str, derivative_name: str | None = None) -> list[str]:
    """Relative paths to delete for an asset: primary first, then derivatives."""
    primary = resolve_stored_name(stored_name)
    known = resolve_stored_name(derivative_name) if derivative_name else None
    return list(dict.fromkeys([primary, *derivative_candidates(primary, known)]))


def delete_media(
    storage_backend: StorageBackend | str | None,
    stored_name: str | None,
    derivative_name: str | None = None,
) -> None:
    """
    Delete an asset's primary object and its derivative(s).

    Never raises for objects that are already gone. Object storage errors
    (including missing configuration) are logged and swallowed.
    """
    if not stored_name:
        return

    backend = parse_backend_tag(storage_backend)
    if backend is None:
        logger.warning("Unknown storage backend %r; not deleting %s", storage_backend, stored_name)
        return

    targets = deletion_targets(stored_name, derivative_name)

    if backend is StorageBackend.LOCAL:
        driver = LocalStorageDriver()
        for name in targets:
            driver.delete(*split_stored_name(name))
        logger.info("Deleted local media %s", targets[0], extra={"candidates": targets})
        return

    try:
        driver = get_driver_for_backend(backend)
    except StorageConfigurationError:
        logger.error("Could not delete %s from object storage", targets[0], exc_info=True)
        return

    for name in targets:
        best_effort(driver.delete, *split_stored_name(name), description=f"deletion of {name}")
    logger.info("Deleted object storage media %s", targets[0], extra={"candidates": targets})


def delete_asset(asset: MediaAsset) -> None:
    """Delete everything ``asset`` describes."""
    delete_media(asset.storage_backend, asset.stored_name, asset.derivative_name)
