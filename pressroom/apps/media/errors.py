"""Exceptions raised by the media pipeline.

Every fatal failure reaches the caller as one of the ``MediaPipelineError``
subclasses below, with the underlying library/OS error chained as
``__cause__``. ``ProbeFailure`` is the exception: the video processor
catches it and carries on without metadata.
"""

from __future__ import annotations


class MediaPipelineError(Exception):
    """Base class for media ingestion/storage errors."""


class UnsupportedMediaType(MediaPipelineError):
    """Declared mime type is neither ``image/*`` nor ``video/*``."""

    def __init__(self, mime_type: str | None):
        self.mime_type = mime_type
        super().__init__(f"Unsupported media type: {mime_type or '(none)'}")


class ProcessingFailure(MediaPipelineError):
    """An image could not be decoded, resized or re-encoded."""


class ProbeFailure(MediaPipelineError):
    """ffprobe failed or returned unusable output."""


class PosterExtractionFailure(MediaPipelineError):
    """No poster frame could be produced for a video."""


class StorageWriteFailure(MediaPipelineError):
    """Writing an object to the storage backend failed."""


class StorageConfigurationError(MediaPipelineError):
    """Storage or tool configuration is missing or invalid."""


class MediaToolNotFound(StorageConfigurationError):
    """ffmpeg/ffprobe could not be located."""

    def __init__(self, tool: str, searched: list[str]):
        self.tool = tool
        self.searched = searched
        locations = ", ".join(searched) if searched else "(nothing to search)"
        super().__init__(f"{tool} not found; searched: {locations}")
