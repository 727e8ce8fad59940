"""Run a local file through the media pipeline and print the descriptor."""

from __future__ import annotations

import json
import mimetypes
from dataclasses import asdict
from pathlib import Path

from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management.base import BaseCommand, CommandError

from pressroom.apps.media.errors import MediaPipelineError
from pressroom.apps.media.ingest import ingest_media


class Command(BaseCommand):
    help = "Ingest an image or video file and print the resulting media descriptor as JSON."

    def add_arguments(self, parser):
        parser.add_argument("path", help="Path of the image or video to ingest.")
        parser.add_argument(
            "-d",
            "--directory",
            default=None,
            help="Target subdirectory (default: uploads).",
        )
        parser.add_argument(
            "-m",
            "--mime-type",
            dest="mime_type",
            default=None,
            help="Declared mime type; guessed from the file name when omitted.",
        )

    def handle(self, *args, **options):
        path = Path(options["path"])
        if not path.is_file():
            raise CommandError(f"File not found: {path}")

        mime_type = options["mime_type"] or mimetypes.guess_type(path.name)[0]
        if not mime_type:
            raise CommandError(f"Could not guess a mime type for {path.name}; pass --mime-type")

        upload = SimpleUploadedFile(path.name, path.read_bytes(), content_type=mime_type)
        try:
            asset = ingest_media(upload, options["directory"])
        except MediaPipelineError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(json.dumps(asdict(asset), indent=2))
