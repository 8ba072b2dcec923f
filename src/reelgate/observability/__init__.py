"""Reelgate observability module - structured logging and Prometheus metrics.

Usage:
    from reelgate.observability import get_logger

    logger = get_logger(__name__)
    logger.info("video_task_submitted", provider=provider, task_id=task_id)
"""

from __future__ import annotations

from reelgate.observability.logging import configure_logging, get_logger, truncate_payload

__all__ = [
    "configure_logging",
    "get_logger",
    "init_observability",
    "truncate_payload",
]

_OBSERVABILITY_INITIALIZED = False


def init_observability() -> None:
    """Initialize logging for the process (idempotent).

    Not run on import, so library callers keep their own logging configuration.
    """
    global _OBSERVABILITY_INITIALIZED
    if _OBSERVABILITY_INITIALIZED:
        return
    from reelgate.config import settings

    configure_logging(settings.log_level)
    _OBSERVABILITY_INITIALIZED = True
