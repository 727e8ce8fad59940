"""Video variant processing.

Videos are stored exactly as uploaded. Processing only produces what sits
next to them:

- metadata (width, height, duration) from ffprobe; a probe failure is logged
  and the metadata is left empty rather than failing the upload
- a poster: the frame at t=0 extracted with ffmpeg, rendered like an image's
  main variant (webp, fit within 1920x1080)

All scratch files live in a per-call temporary directory that is removed on
every exit path.
"""

from __future__ import annotations

import json
import logging
import mimetypes
import re
import shutil
import subprocess
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Any

from pressroom.apps.media.binaries import FFMPEG, FFPROBE, run_tool
from pressroom.apps.media.cleanup import best_effort
from pressroom.apps.media.constants import DEFAULT_VIDEO_EXTENSION, VIDEO_EXTENSIONS_BY_MIME
from pressroom.apps.media.errors import (
    MediaToolNotFound,
    PosterExtractionFailure,
    ProbeFailure,
    ProcessingFailure,
)
from pressroom.apps.media.image_processing import render_main_variant
from pressroom.apps.media.types import VideoMetadata, VideoVariants

logger = logging.getLogger(__name__)

ProbeFn = Callable[[Path], VideoMetadata]
ExtractFrameFn = Callable[[Path, Path], bytes]

_EXTENSION_CHARS = re.compile(r"[^a-z0-9]")
_KNOWN_VIDEO_EXTENSIONS = frozenset(VIDEO_EXTENSIONS_BY_MIME.values())


@contextmanager
def scoped_temp_dir(prefix: str = "pressroom-video-") -> Iterator[Path]:
    """Yield a fresh temporary directory and remove it afterwards, whatever happens."""
    path = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield path
    finally:
        best_effort(shutil.rmtree, path, description=f"removal of scratch directory {path}")


def video_extension(original_name: str | None, mime_type: str | None) -> str:
    """
    Pick the container extension for a stored video.

    The uploaded file name wins when its suffix is a known video container;
    then the declared mime type; then ``.mp4``.
    """
    if original_name:
        suffix = _EXTENSION_CHARS.sub("", PurePosixPath(original_name).suffix.lower())
        if f".{suffix}" in _KNOWN_VIDEO_EXTENSIONS:
            return f".{suffix}"

    mime = (mime_type or "").split(";")[0].strip().lower()
    if mime in VIDEO_EXTENSIONS_BY_MIME:
        return VIDEO_EXTENSIONS_BY_MIME[mime]
    if mime:
        guessed = mimetypes.guess_extension(mime)
        if guessed:
            return guessed
    return DEFAULT_VIDEO_EXTENSION


def _positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _duration(value: Any) -> float | None:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return round(seconds, 3) if seconds >= 0 else None


def probe_video(path: Path) -> VideoMetadata:
    """
    Read the first video stream's dimensions and the duration with ffprobe.

    Duration comes from the stream when it reports one, else from the container.

    Raises:
        ProbeFailure: if ffprobe is missing, fails, or reports no video stream.
    """
    args = [
        "-v",
        "error",
        "-select_streams",
        "v:0",
        "-show_entries",
        "stream=width,height,duration:format=duration",
        "-of",
        "json",
        str(path),
    ]
    try:
        result = run_tool(FFPROBE, args)
        payload = json.loads(result.stdout or "{}")
    except (MediaToolNotFound, subprocess.CalledProcessError, json.JSONDecodeError, OSError) as exc:
        raise ProbeFailure(f"ffprobe failed for {path.name}: {exc}") from exc

    if not isinstance(payload, dict):
        raise ProbeFailure(f"ffprobe returned unexpected output for {path.name}")
    streams = payload.get("streams") or []
    if not streams:
        raise ProbeFailure(f"No video stream found in {path.name}")

    stream = streams[0]
    duration = _duration(stream.get("duration"))
    if duration is None:
        duration = _duration((payload.get("format") or {}).get("duration"))

    return VideoMetadata(
        width=_positive_int(stream.get("width")),
        height=_positive_int(stream.get("height")),
        duration_seconds=duration,
    )


def extract_poster_frame(source: Path, output: Path) -> bytes:
    """
    Extract the frame at t=0 into ``output`` and return its bytes.

    ``output`` is deleted once read.

    Raises:
        PosterExtractionFailure: if ffmpeg fails or writes nothing.
        MediaToolNotFound: if ffmpeg can't be located.
    """
    args = [
        "-hide_banner",
        "-loglevel",
        "error",
        "-y",
        "-ss",
        "0",
        "-i",
        str(source),
        "-frames:v",
        "1",
        str(output),
    ]
    try:
        run_tool(FFMPEG, args)
        still = output.read_bytes()
    except (subprocess.CalledProcessError, OSError) as exc:
        raise PosterExtractionFailure(f"Could not extract poster frame: {exc}") from exc
    finally:
        best_effort(output.unlink, missing_ok=True, description=f"removal of {output.name}")

    if not still:
        raise PosterExtractionFailure("ffmpeg produced an empty poster frame")
    return still


def process_video(
    data: bytes,
    mime_type: str,
    original_name: str | None = None,
    *,
    probe: ProbeFn | None = None,
    extract_frame: ExtractFrameFn | None = None,
) -> VideoVariants:
    """
    Probe an uploaded video and render its poster.

    Args:
        data: The raw upload; returned untouched in the result.
        mime_type: Declared ``video/*`` type, used for the extension fallback.
        original_name: Uploaded file name, used only for its extension.
        probe: Replacement for :func:`probe_video` (tests).
        extract_frame: Replacement for :func:`extract_poster_frame` (tests).

    Raises:
        PosterExtractionFailure: if no poster can be produced.
        MediaToolNotFound: if ffmpeg can't be located.
    """
    probe_fn = probe or probe_video
    extract_fn = extract_frame or extract_poster_frame
    extension = video_extension(original_name, mime_type)

    with scoped_temp_dir() as workdir:
        source = workdir / f"source{extension}"
        try:
            source.write_bytes(data)
        except OSError as exc:
            raise ProcessingFailure(f"Could not stage video for processing: {exc}") from exc

        try:
            metadata = probe_fn(source)
        except ProbeFailure as exc:
            logger.warning("Continuing without video metadata: %s", exc)
            metadata = VideoMetadata()

        still = extract_fn(source, workdir / "poster.png")
        try:
            poster = render_main_variant(still)
        except ProcessingFailure as exc:
            raise PosterExtractionFailure(f"Could not encode poster frame: {exc}") from exc

    logger.debug(
        "process_video: %d bytes, %sx%s, duration=%s, poster=%sx%s",
        len(data),
        metadata.width,
        metadata.height,
        metadata.duration_seconds,
        poster.width,
        poster.height,
    )
    return VideoVariants(data=data, extension=extension, metadata=metadata, poster=poster)
