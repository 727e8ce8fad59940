"""Development settings."""

from __future__ import annotations

from copy import deepcopy

from .base import *  # noqa
from .base import LOGGING as BASE_LOGGING

LOGGING = deepcopy(BASE_LOGGING)

DEBUG = True

# Human-readable logs with extras appended
LOGGING["handlers"]["console"]["formatter"] = "dev"
LOGGING["loggers"]["pressroom"]["level"] = "DEBUG"
