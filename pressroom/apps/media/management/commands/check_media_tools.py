"""Check that ffmpeg and ffprobe can be resolved and run."""

from __future__ import annotations

import subprocess

from django.core.management.base import BaseCommand

from pressroom.apps.media.binaries import FFMPEG, FFPROBE, run_tool
from pressroom.apps.media.errors import MediaToolNotFound


class Command(BaseCommand):
    help = "Resolve ffmpeg/ffprobe the way the video pipeline does and print their versions"

    def handle(self, *args, **options):
        self._check_tool(FFMPEG)
        self._check_tool(FFPROBE)

    def _check_tool(self, tool: str):
        try:
            result = run_tool(tool, ["-version"])
        except MediaToolNotFound as exc:
            self.stdout.write(self.style.ERROR(f"✗ {exc}"))
            return
        except (subprocess.CalledProcessError, OSError) as exc:  # pragma: no cover
            self.stdout.write(self.style.ERROR(f"✗ {tool} returned error: {exc}"))
            return

        first_line = result.stdout.splitlines()[0] if result.stdout else ""
        self.stdout.write(self.style.SUCCESS(f"✓ {tool} available: {first_line}"))
