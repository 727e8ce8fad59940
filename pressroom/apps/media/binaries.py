"""Locating and running ffmpeg/ffprobe.

Each tool is resolved once per process, on first use, in this order:

1. the Django setting (``FFMPEG_PATH`` / ``FFPROBE_PATH``)
2. the environment variable of the same name
3. ``PATH`` lookup
4. well-known install locations

The first candidate that exists on disk wins and is cached for every later
call. If none exists, :class:`MediaToolNotFound` is raised (and nothing is
cached, so installing the tool fixes a running process).
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
from collections.abc import Sequence
from pathlib import Path

from django.conf import settings

from pressroom.apps.media.errors import MediaToolNotFound

logger = logging.getLogger(__name__)

FFMPEG = "ffmpeg"
FFPROBE = "ffprobe"

# Tool name -> setting / environment variable holding an explicit path
TOOL_PATH_SETTINGS = {
    FFMPEG: "FFMPEG_PATH",
    FFPROBE: "FFPROBE_PATH",
}

KNOWN_INSTALL_DIRS = (
    Path("/usr/local/bin"),
    Path("/usr/bin"),
    Path("/opt/homebrew/bin"),
    Path("/opt/local/bin"),
)

_resolved: dict[str, str] = {}
_resolve_lock = threading.Lock()


def _candidates(tool: str) -> list[str]:
    setting_name = TOOL_PATH_SETTINGS[tool]
    candidates = [
        str(getattr(settings, setting_name, "") or "").strip(),
        os.environ.get(setting_name, "").strip(),
        shutil.which(tool) or "",
        *(str(directory / tool) for directory in KNOWN_INSTALL_DIRS),
    ]
    return list(dict.fromkeys(path for path in candidates if path))


def resolve_binary(tool: str) -> str:
    """
    Return the path of ``tool`` ("ffmpeg" or "ffprobe").

    Raises:
        MediaToolNotFound: if no candidate location exists.
    """
    cached = _resolved.get(tool)
    if cached:
        return cached

    with _resolve_lock:
        cached = _resolved.get(tool)
        if cached:
            return cached

        searched = _candidates(tool)
        for candidate in searched:
            if Path(candidate).is_file():
                _resolved[tool] = candidate
                logger.info("Resolved %s at %s", tool, candidate)
                return candidate

    raise MediaToolNotFound(tool, searched)


def reset_binary_cache() -> None:
    """Forget resolved tool paths."""
    with _resolve_lock:
        _resolved.clear()


def run_tool(tool: str, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
    """
    Run ffmpeg/ffprobe with ``args`` and wait for it to exit.

    There is no timeout; callers needing bounded latency wrap the call.

    Raises:
        MediaToolNotFound: if the tool can't be located.
        subprocess.CalledProcessError: on a non-zero exit status.
        OSError: if the process can't be started.
    """
    cmd = [resolve_binary(tool), *args]
    logger.debug("Running command: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd, check=True, capture_output=True, text=True, errors="replace"
        )
    except subprocess.CalledProcessError as e:
        logger.warning("%s exited with code %d", tool, e.returncode)
        if e.stderr:
            logger.warning("%s stderr: %s", tool, e.stderr.strip())
        raise

    if result.stderr:
        logger.debug("%s stderr: %s", tool, result.stderr.strip())
    return result
