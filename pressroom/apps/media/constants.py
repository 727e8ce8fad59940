"""Media type configuration shared by the processors and the naming rules."""

from __future__ import annotations

# Resize-to-fit boxes (width, height); sources are never upscaled.
MAIN_MAX_SIZE = (1920, 1080)
THUMB_MAX_SIZE = (720, 360)
WEBP_QUALITY = 90

WEBP_CONTENT_TYPE = "image/webp"
WEBP_EXTENSION = ".webp"

THUMBNAIL_SUFFIX = "-thumb"
DEFAULT_DIRECTORY = "uploads"

DEFAULT_VIDEO_EXTENSION = ".mp4"

# Container extensions for declared video types. Checked before ``mimetypes``,
# whose answers vary by platform (e.g. ``.m1v`` for video/mpeg).
VIDEO_EXTENSIONS_BY_MIME: dict[str, str] = {
    "video/mp4": ".mp4",
    "video/quicktime": ".mov",
    "video/webm": ".webm",
    "video/x-matroska": ".mkv",
    "video/x-m4v": ".m4v",
    "video/x-msvideo": ".avi",
    "video/ogg": ".ogv",
    "video/mpeg": ".mpeg",
    "video/3gpp": ".3gp",
}
