"""File naming and public path conventions.

Pure functions only: nothing here touches the filesystem or the network.

Derivatives are named by inserting ``-thumb`` before the extension of the
primary file. Image thumbnails keep the primary's ``.webp`` extension; video
posters are forced to ``.webp``. Because of that, a thumbnail URL can be
computed from a ``.webp`` primary URL alone (see ``derive_thumbnail_url``),
while for videos only the descriptor's explicit ``derivative_url`` is
authoritative.
"""

from __future__ import annotations

import posixpath
import re
import time
import uuid

from pressroom.apps.media.constants import DEFAULT_DIRECTORY, THUMBNAIL_SUFFIX, WEBP_EXTENSION

_QUERY_OR_FRAGMENT = re.compile(r"[?#]")
_URL_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def generate_base_name(now_ms: int | None = None) -> str:
    """Return a collision-resistant ``{unix_millis}-{uuid4}`` name without extension."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{now_ms}-{uuid.uuid4()}"


def thumbnail_name(file_name: str) -> str:
    """Insert the thumbnail suffix before the extension, keeping the extension."""
    stem, ext = posixpath.splitext(file_name)
    return f"{stem}{THUMBNAIL_SUFFIX}{ext}"


def poster_name(file_name: str) -> str:
    """Insert the thumbnail suffix and force a ``.webp`` extension."""
    stem, _ext = posixpath.splitext(file_name)
    return f"{stem}{THUMBNAIL_SUFFIX}{WEBP_EXTENSION}"


def image_file_names(base_name: str) -> tuple[str, str]:
    """Return ``(main, thumbnail)`` file names for an image ingest."""
    main = f"{base_name}{WEBP_EXTENSION}"
    return main, thumbnail_name(main)


def video_file_names(base_name: str, extension: str) -> tuple[str, str]:
    """Return ``(video, poster)`` file names for a video ingest."""
    main = f"{base_name}{extension}"
    return main, poster_name(main)


def derivative_candidates(stored_name: str, known: str | None = None) -> list[str]:
    """Names a derivative of ``stored_name`` may have been stored under.

    The explicitly known name comes first, then the two conventional forms.
    Duplicates are dropped, order is preserved.
    """
    candidates = [known, thumbnail_name(stored_name), poster_name(stored_name)]
    return list(dict.fromkeys(name for name in candidates if name))


def derive_thumbnail_url(url: str | None) -> str | None:
    """Compute the thumbnail URL of a ``.webp`` primary URL.

    Any query string or fragment is split off before inspecting the last path
    segment and re-appended afterwards. Returns ``None`` when the final
    segment's extension is not exactly ``.webp`` (all videos, for instance):
    the convention doesn't apply there.

    >>> derive_thumbnail_url("/uploads/2024/abc.webp?v=2")
    '/uploads/2024/abc-thumb.webp?v=2'
    """
    if not url:
        return None

    match = _QUERY_OR_FRAGMENT.search(url)
    path_part, suffix = (url[: match.start()], url[match.start() :]) if match else (url, "")

    head, sep, file_name = path_part.rpartition("/")
    if not file_name:
        return None
    if posixpath.splitext(file_name)[1] != WEBP_EXTENSION:
        return None

    thumb = thumbnail_name(file_name)
    new_path = f"{head}/{thumb}" if sep else thumb
    return f"{new_path}{suffix}"


def thumbnail_url_for(url: str | None, derivative_url: str | None = None) -> str | None:
    """Prefer a persisted derivative URL; fall back to the naming convention."""
    return derivative_url or derive_thumbnail_url(url)


def normalize_directory(directory: str | None) -> str:
    """Clean a caller-supplied target directory.

    Surrounding whitespace and slashes are stripped, empty segments collapse,
    and an empty result falls back to ``uploads``. Parent references are
    rejected.
    """
    segments = [part for part in (directory or "").strip().split("/") if part not in {"", "."}]
    if ".." in segments:
        raise ValueError(f"Directory may not contain '..': {directory!r}")
    return "/".join(segments) or DEFAULT_DIRECTORY


def object_key(directory: str, file_name: str) -> str:
    return posixpath.join(directory, file_name)


def local_public_path(directory: str, file_name: str) -> str:
    """Public URL path of a file written by the local driver."""
    return f"/{object_key(directory, file_name)}"


def normalize_base_url(value: str) -> str:
    """Return an absolute base URL without trailing slashes.

    Scheme-less values (``cdn.example.com``) are assumed to be https.
    """
    trimmed = value.strip()
    if not trimmed:
        return trimmed
    if not _URL_SCHEME.match(trimmed):
        trimmed = f"https://{trimmed.lstrip('/')}"
    return trimmed.rstrip("/")


def join_public_url(base_url: str, key: str) -> str:
    return f"{normalize_base_url(base_url)}/{key.lstrip('/')}"


def resolve_stored_name(stored_name: str) -> str:
    """Return the full relative path of a stored name.

    Older descriptors stored bare file names for the default directory;
    those resolve under ``uploads/``.
    """
    cleaned = stored_name.strip().lstrip("/")
    if "/" not in cleaned:
        return object_key(DEFAULT_DIRECTORY, cleaned)
    return cleaned


def split_stored_name(stored_name: str) -> tuple[str, str]:
    """Split a relative path into ``(directory, file_name)``."""
    directory, file_name = posixpath.split(resolve_stored_name(stored_name))
    return directory, file_name
