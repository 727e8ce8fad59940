"""Delete a stored asset and its derivatives."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from pressroom.apps.media.deletion import delete_media, parse_backend_tag


class Command(BaseCommand):
    help = "Delete a stored media object and every derivative that may belong to it."

    def add_arguments(self, parser):
        parser.add_argument("backend", help="Storage backend tag (local or object-storage).")
        parser.add_argument("stored_name", help="Stored name, e.g. uploads/123-abc.webp")
        parser.add_argument(
            "--derivative",
            dest="derivative_name",
            default=None,
            help="Known derivative name, if the descriptor recorded one.",
        )

    def handle(self, *args, **options):
        backend = parse_backend_tag(options["backend"])
        if backend is None:
            raise CommandError(f"Unknown storage backend: {options['backend']}")

        delete_media(backend, options["stored_name"], options["derivative_name"])
        self.stdout.write(self.style.SUCCESS(f"Deleted {options['stored_name']} ({backend})"))
