"""Value types passed between the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class StorageBackend(StrEnum):
    LOCAL = "local"
    OBJECT_STORAGE = "object-storage"


class MediaKind(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class ImageVariant:
    """An encoded webp buffer and its pixel dimensions."""

    data: bytes
    width: int
    height: int

    @property
    def byte_size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ImageVariants:
    main: ImageVariant
    thumbnail: ImageVariant


@dataclass(frozen=True)
class VideoMetadata:
    """First-video-stream properties; all ``None`` when probing failed."""

    width: int | None = None
    height: int | None = None
    duration_seconds: float | None = None


@dataclass(frozen=True)
class VideoVariants:
    """Original video bytes (never re-encoded) plus the webp poster."""

    data: bytes
    extension: str
    metadata: VideoMetadata
    poster: ImageVariant

    @property
    def byte_size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PendingObject:
    """A buffer waiting to be written under ``file_name``."""

    file_name: str
    data: bytes
    content_type: str


@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str


@dataclass(frozen=True)
class MediaAsset:
    """Descriptor of an ingested asset.

    Returned to the caller, which owns persisting it. ``derivative_*`` fields
    describe the thumbnail (images) or the poster (videos) and are always
    populated, so read paths never need to guess the derivative location.
    """

    stored_name: str
    primary_url: str
    storage_backend: StorageBackend
    kind: MediaKind
    mime_type: str
    byte_size: int
    width: int | None
    height: int | None
    duration_seconds: float | None
    derivative_name: str
    derivative_url: str
    derivative_byte_size: int
    derivative_width: int | None
    derivative_height: int | None

    @property
    def thumbnail_url(self) -> str:
        return self.derivative_url
