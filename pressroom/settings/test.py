import os
import tempfile
from pathlib import Path

# Not a real secret - tests don't need cryptographic security
os.environ.setdefault("SECRET_KEY", "test-key-not-secret")  # pragma: allowlist secret

from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Never write into the repository's public/ directory from tests
MEDIA_PUBLIC_ROOT = Path(tempfile.gettempdir()) / "pressroom-test-public"

MEDIA_STORAGE_DRIVER = "local"
MEDIA_IMAGE_STORAGE_DRIVER = ""
MEDIA_VIDEO_STORAGE_DRIVER = ""

# Suppress app logs during tests
# Tests verify behavior through assertions, not log inspection
LOGGING["loggers"]["pressroom"]["level"] = "CRITICAL"  # type: ignore[index]  # noqa: F405
