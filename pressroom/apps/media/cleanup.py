"""Best-effort cleanup.

Rollback deletes, scratch-directory removal and object-storage deletion must
never replace the error (or result) the caller is about to see. They all go
through :func:`best_effort`: attempt, log on failure, report success as a bool.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


def best_effort(action: Callable[..., Any], *args: Any, description: str, **kwargs: Any) -> bool:
    """Call ``action(*args, **kwargs)``; log and swallow any exception.

    Returns True if the action completed.
    """
    try:
        action(*args, **kwargs)
    except Exception:
        logger.warning("Best-effort %s failed", description, exc_info=True)
        return False
    return True
