"""Storage drivers: local filesystem and S3-compatible object storage.

Both drivers implement the same two calls::

    put(directory, file_name, data, content_type) -> StoredObject
    delete(directory, file_name) -> None

Which driver handles a given upload is decided per media kind:
``MEDIA_IMAGE_STORAGE_DRIVER`` / ``MEDIA_VIDEO_STORAGE_DRIVER`` when set,
otherwise ``MEDIA_STORAGE_DRIVER``. Object storage settings are validated
when the driver is built, so a misconfiguration fails before any upload
bytes are read.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from pressroom.apps.media.cleanup import best_effort
from pressroom.apps.media.errors import StorageConfigurationError, StorageWriteFailure
from pressroom.apps.media.naming import (
    join_public_url,
    local_public_path,
    normalize_base_url,
    normalize_directory,
    object_key,
)
from pressroom.apps.media.types import MediaKind, StorageBackend, StoredObject

logger = logging.getLogger(__name__)

DRIVER_ALIASES: dict[str, StorageBackend] = {
    "local": StorageBackend.LOCAL,
    "object-storage": StorageBackend.OBJECT_STORAGE,
    "r2": StorageBackend.OBJECT_STORAGE,
    "s3": StorageBackend.OBJECT_STORAGE,
}

KIND_DRIVER_SETTINGS: dict[MediaKind, str] = {
    MediaKind.IMAGE: "MEDIA_IMAGE_STORAGE_DRIVER",
    MediaKind.VIDEO: "MEDIA_VIDEO_STORAGE_DRIVER",
}


def _setting(name: str) -> str:
    return str(getattr(settings, name, "") or "").strip()


class StorageDriver(Protocol):
    backend: StorageBackend

    def put(self, directory: str, file_name: str, data: bytes, content_type: str) -> StoredObject:
        ...

    def delete(self, directory: str, file_name: str) -> None:
        ...


# ---------------------------------------------------------------------------
# Local filesystem
# ---------------------------------------------------------------------------


class LocalStorageDriver:
    """Writes under a publicly served root; URLs are root-relative paths."""

    backend = StorageBackend.LOCAL

    def __init__(self, root: Path | str | None = None):
        self.root = Path(root if root is not None else settings.MEDIA_PUBLIC_ROOT)

    def path_for(self, directory: str, file_name: str) -> Path:
        return self.root / normalize_directory(directory) / file_name

    def put(self, directory: str, file_name: str, data: bytes, content_type: str) -> StoredObject:
        directory = normalize_directory(directory)
        target = self.path_for(directory, file_name)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            best_effort(target.unlink, missing_ok=True, description=f"removal of partial {target}")
            raise StorageWriteFailure(f"Could not write {target}: {exc}") from exc

        logger.debug("Wrote %s (%d bytes, %s)", target, len(data), content_type)
        return StoredObject(
            key=object_key(directory, file_name),
            url=local_public_path(directory, file_name),
        )

    def delete(self, directory: str, file_name: str) -> None:
        """Remove the file; a file that is already gone is not an error."""
        self.path_for(directory, file_name).unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Object storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ObjectStorageConfig:
    bucket: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str
    region: str = "auto"


def default_endpoint(account_id: str) -> str:
    """Cloudflare R2 endpoint for an account id; empty without one."""
    if not account_id:
        return ""
    return f"https://{account_id}.r2.cloudflarestorage.com"


def get_object_storage_config() -> ObjectStorageConfig:
    """
    Read and validate object storage settings.

    Returns:
        The resolved configuration. The endpoint falls back to the R2
        endpoint derived from ``OBJECT_STORAGE_ACCOUNT_ID``; the public base
        URL falls back to ``{endpoint}/{bucket}``.

    Raises:
        StorageConfigurationError: naming every required setting that is empty.
    """
    bucket = _setting("OBJECT_STORAGE_BUCKET")
    access_key_id = _setting("OBJECT_STORAGE_ACCESS_KEY_ID")
    secret_access_key = _setting("OBJECT_STORAGE_SECRET_ACCESS_KEY")
    endpoint = _setting("OBJECT_STORAGE_ENDPOINT") or default_endpoint(
        _setting("OBJECT_STORAGE_ACCOUNT_ID")
    )

    missing = []
    if not bucket:
        missing.append("OBJECT_STORAGE_BUCKET")
    if not endpoint:
        missing.append("OBJECT_STORAGE_ENDPOINT (or OBJECT_STORAGE_ACCOUNT_ID)")
    if not access_key_id:
        missing.append("OBJECT_STORAGE_ACCESS_KEY_ID")
    if not secret_access_key:
        missing.append("OBJECT_STORAGE_SECRET_ACCESS_KEY")

    if missing:
        msg = f"Object storage settings not configured: {', '.join(missing)}"
        raise StorageConfigurationError(msg)

    endpoint = normalize_base_url(endpoint)
    public_base_url = normalize_base_url(
        _setting("OBJECT_STORAGE_PUBLIC_BASE_URL") or f"{endpoint}/{bucket}"
    )

    return ObjectStorageConfig(
        bucket=bucket,
        endpoint=endpoint,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        public_base_url=public_base_url,
        region=_setting("OBJECT_STORAGE_REGION") or "auto",
    )


_client_lock = threading.Lock()
_client: Any | None = None


def get_object_storage_client(config: ObjectStorageConfig) -> Any:
    """Return the process-wide S3 client, creating it on first use.

    boto3 clients are thread-safe, so one instance is shared by every call.
    """
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = boto3.client(
                    "s3",
                    region_name=config.region,
                    endpoint_url=config.endpoint,
                    aws_access_key_id=config.access_key_id,
                    aws_secret_access_key=config.secret_access_key,
                )
                logger.info("Created object storage client for %s", config.endpoint)
    return _client


def reset_object_storage_client() -> None:
    """Drop the shared client so the next call builds a new one."""
    global _client
    with _client_lock:
        _client = None


class ObjectStorageDriver:
    """Stores objects in one bucket; key is ``directory/file_name``."""

    backend = StorageBackend.OBJECT_STORAGE

    def __init__(self, config: ObjectStorageConfig, client: Any | None = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_object_storage_client(self.config)
        return self._client

    def put(self, directory: str, file_name: str, data: bytes, content_type: str) -> StoredObject:
        key = object_key(normalize_directory(directory), file_name)
        try:
            self.client.put_object(
                Bucket=self.config.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageWriteFailure(
                f"Could not upload {key} to bucket {self.config.bucket}: {exc}"
            ) from exc

        logger.debug("Uploaded %s (%d bytes, %s)", key, len(data), content_type)
        return StoredObject(key=key, url=join_public_url(self.config.public_base_url, key))

    def delete(self, directory: str, file_name: str) -> None:
        # S3 DeleteObject succeeds for keys that don't exist.
        self.client.delete_object(
            Bucket=self.config.bucket,
            Key=object_key(normalize_directory(directory), file_name),
        )


# ---------------------------------------------------------------------------
# Driver selection
# ---------------------------------------------------------------------------


def parse_backend(value: str, *, source: str = "storage driver") -> StorageBackend:
    backend = DRIVER_ALIASES.get(value.strip().lower())
    if backend is None:
        choices = ", ".join(sorted(DRIVER_ALIASES))
        raise StorageConfigurationError(f"Unknown {source} {value!r}; expected one of: {choices}")
    return backend


def resolve_backend(kind: MediaKind) -> StorageBackend:
    """Backend configured for ``kind``: per-kind override, then the global default."""
    setting_name = KIND_DRIVER_SETTINGS[kind]
    raw = _setting(setting_name)
    if not raw:
        setting_name = "MEDIA_STORAGE_DRIVER"
        raw = _setting(setting_name) or StorageBackend.LOCAL.value
    return parse_backend(raw, source=setting_name)


def get_driver_for_backend(backend: StorageBackend) -> StorageDriver:
    if backend is StorageBackend.OBJECT_STORAGE:
        return ObjectStorageDriver(get_object_storage_config())
    return LocalStorageDriver()


def get_storage_driver(kind: MediaKind) -> StorageDriver:
    return get_driver_for_backend(resolve_backend(kind))
