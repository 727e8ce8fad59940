import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class MediaConfig(AppConfig):
    name = "pressroom.apps.media"
    label = "media"
    verbose_name = "Media pipeline"

    def ready(self):
        """Let Pillow decode HEIC/HEIF uploads (iPhone photos)."""
        try:
            from pillow_heif import register_heif_opener

            register_heif_opener()
        except Exception:
            logger.warning("HEIF support unavailable; HEIC uploads will be rejected", exc_info=True)
        else:
            logger.debug("Registered HEIF opener")
