"""Base Django settings."""

from __future__ import annotations

from pathlib import Path

from decouple import Csv, config

REPO_ROOT = Path(__file__).resolve().parent.parent.parent
BASE_DIR = REPO_ROOT

SECRET_KEY = config("SECRET_KEY", default="dev-secret-key")
DEBUG = config("DEBUG", default=False, cast=bool)
ALLOWED_HOSTS = config("ALLOWED_HOSTS", default="localhost,127.0.0.1", cast=Csv())

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "pressroom.apps.media",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": REPO_ROOT / "db.sqlite3",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------------------------------------------------------------------------
# Media storage
# ---------------------------------------------------------------------------

# Publicly served directory for the local driver; "/uploads/x.webp" maps to
# MEDIA_PUBLIC_ROOT / "uploads" / "x.webp".
MEDIA_PUBLIC_ROOT = Path(config("MEDIA_PUBLIC_ROOT", default=str(REPO_ROOT / "public")))

# "local" or "object-storage" ("r2" and "s3" are accepted aliases).
MEDIA_STORAGE_DRIVER = config("STORAGE_DRIVER", default="local")
# Per-kind overrides; empty means "use MEDIA_STORAGE_DRIVER".
MEDIA_IMAGE_STORAGE_DRIVER = config("IMAGE_STORAGE_DRIVER", default="")
MEDIA_VIDEO_STORAGE_DRIVER = config("VIDEO_STORAGE_DRIVER", default="")

# S3-compatible object storage (Cloudflare R2, MinIO, AWS S3, ...)
OBJECT_STORAGE_BUCKET = config("OBJECT_STORAGE_BUCKET", default="")
OBJECT_STORAGE_ENDPOINT = config("OBJECT_STORAGE_ENDPOINT", default="")
OBJECT_STORAGE_ACCOUNT_ID = config("OBJECT_STORAGE_ACCOUNT_ID", default="")
OBJECT_STORAGE_ACCESS_KEY_ID = config("OBJECT_STORAGE_ACCESS_KEY_ID", default="")
OBJECT_STORAGE_SECRET_ACCESS_KEY = config("OBJECT_STORAGE_SECRET_ACCESS_KEY", default="")
OBJECT_STORAGE_PUBLIC_BASE_URL = config("OBJECT_STORAGE_PUBLIC_BASE_URL", default="")
OBJECT_STORAGE_REGION = config("OBJECT_STORAGE_REGION", default="auto")

# Explicit locations for the video tools; empty means "look them up".
FFMPEG_PATH = config("FFMPEG_PATH", default="")
FFPROBE_PATH = config("FFPROBE_PATH", default="")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = config("LOG_LEVEL", default="WARNING").upper()
APP_LOG_LEVEL = config("APP_LOG_LEVEL", default="INFO").upper()
LOG_FORMAT = config("LOG_FORMAT", default="json")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "media_context": {"()": "pressroom.logging.MediaContextFilter"},
    },
    "formatters": {
        "json": {"()": "pressroom.logging.JsonFormatter"},
        "dev": {"()": "pressroom.logging.DevFormatter"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": LOG_FORMAT,
            "filters": ["media_context"],
        },
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "pressroom": {"handlers": ["console"], "level": APP_LOG_LEVEL, "propagate": False},
        "botocore": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "django": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
