"""Media ingestion entry point.

``ingest_media`` takes an uploaded file, dispatches on its declared mime
type to the image or video processor, names and stores the two outputs, and
returns a :class:`MediaAsset` describing them. Saving that descriptor is the
caller's job.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pressroom.apps.media.constants import WEBP_CONTENT_TYPE
from pressroom.apps.media.errors import UnsupportedMediaType
from pressroom.apps.media.image_processing import process_image
from pressroom.apps.media.naming import (
    generate_base_name,
    image_file_names,
    normalize_directory,
    video_file_names,
)
from pressroom.apps.media.persistence import write_pair
from pressroom.apps.media.storage import StorageDriver, get_storage_driver
from pressroom.apps.media.types import MediaAsset, MediaKind, PendingObject
from pressroom.apps.media.video_processing import ExtractFrameFn, ProbeFn, process_video
from pressroom.logging import bind_log_context, reset_log_context

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile

logger = logging.getLogger(__name__)


def classify_mime_type(mime_type: str | None) -> MediaKind:
    """Map a declared mime type to the pipeline that handles it."""
    normalized = (mime_type or "").split(";")[0].strip().lower()
    if normalized.startswith("image/"):
        return MediaKind.IMAGE
    if normalized.startswith("video/"):
        return MediaKind.VIDEO
    raise UnsupportedMediaType(mime_type)


def _read_upload(upload: UploadedFile) -> bytes:
    # Always seek to start in case the file has been read already.
    try:
        upload.seek(0)
    except (OSError, AttributeError, ValueError):
        pass
    return upload.read()


def ingest_media(
    upload: UploadedFile,
    directory: str | None = None,
    *,
    probe: ProbeFn | None = None,
    extract_frame: ExtractFrameFn | None = None,
) -> MediaAsset:
    """
    Process and store an uploaded image or video.

    The mime type is checked and the storage driver resolved before the
    upload is read, so an unsupported type or a storage misconfiguration
    fails without touching the bytes.

    Args:
        upload: The uploaded file (``content_type`` and ``name`` are used).
        directory: Target subdirectory; defaults to ``uploads``.
        probe: Replacement for the ffprobe metadata probe (tests).
        extract_frame: Replacement for the ffmpeg frame extraction (tests).

    Raises:
        UnsupportedMediaType: for anything but ``image/*`` and ``video/*``.
        StorageConfigurationError: if the selected driver isn't configured.
        ProcessingFailure: if an image can't be decoded or encoded.
        PosterExtractionFailure: if a video poster can't be produced.
        StorageWriteFailure: if either object can't be written.
    """
    mime_type = (getattr(upload, "content_type", "") or "").split(";")[0].strip().lower()
    kind = classify_mime_type(mime_type)
    target_directory = normalize_directory(directory)
    driver = get_storage_driver(kind)

    token = bind_log_context(media_kind=kind.value, storage_backend=driver.backend.value)
    try:
        data = _read_upload(upload)
        if kind is MediaKind.IMAGE:
            asset = _ingest_image(driver, target_directory, data)
        else:
            asset = _ingest_video(
                driver,
                target_directory,
                data,
                mime_type,
                getattr(upload, "name", None),
                probe=probe,
                extract_frame=extract_frame,
            )

        logger.info(
            "Stored %s %s",
            kind.value,
            asset.stored_name,
            extra={
                "byte_size": asset.byte_size,
                "derivative_name": asset.derivative_name,
                "derivative_byte_size": asset.derivative_byte_size,
            },
        )
        return asset
    finally:
        reset_log_context(token)


def _ingest_image(driver: StorageDriver, directory: str, data: bytes) -> MediaAsset:
    variants = process_image(data)
    main_name, thumb_name = image_file_names(generate_base_name())

    stored_main, stored_thumb = write_pair(
        driver,
        directory,
        PendingObject(main_name, variants.main.data, WEBP_CONTENT_TYPE),
        PendingObject(thumb_name, variants.thumbnail.data, WEBP_CONTENT_TYPE),
    )

    return MediaAsset(
        stored_name=stored_main.key,
        primary_url=stored_main.url,
        storage_backend=driver.backend,
        kind=MediaKind.IMAGE,
        mime_type=WEBP_CONTENT_TYPE,
        byte_size=variants.main.byte_size,
        width=variants.main.width,
        height=variants.main.height,
        duration_seconds=None,
        derivative_name=stored_thumb.key,
        derivative_url=stored_thumb.url,
        derivative_byte_size=variants.thumbnail.byte_size,
        derivative_width=variants.thumbnail.width,
        derivative_height=variants.thumbnail.height,
    )


def _ingest_video(
    driver: StorageDriver,
    directory: str,
    data: bytes,
    mime_type: str,
    original_name: str | None,
    *,
    probe: ProbeFn | None,
    extract_frame: ExtractFrameFn | None,
) -> MediaAsset:
    variants = process_video(
        data, mime_type, original_name, probe=probe, extract_frame=extract_frame
    )
    video_name, poster_file_name = video_file_names(generate_base_name(), variants.extension)

    stored_video, stored_poster = write_pair(
        driver,
        directory,
        PendingObject(video_name, variants.data, mime_type),
        PendingObject(poster_file_name, variants.poster.data, WEBP_CONTENT_TYPE),
    )

    return MediaAsset(
        stored_name=stored_video.key,
        primary_url=stored_video.url,
        storage_backend=driver.backend,
        kind=MediaKind.VIDEO,
        mime_type=mime_type,
        byte_size=variants.byte_size,
        width=variants.metadata.width,
        height=variants.metadata.height,
        duration_seconds=variants.metadata.duration_seconds,
        derivative_name=stored_poster.key,
        derivative_url=stored_poster.url,
        derivative_byte_size=variants.poster.byte_size,
        derivative_width=variants.poster.width,
        derivative_height=variants.poster.height,
    )
