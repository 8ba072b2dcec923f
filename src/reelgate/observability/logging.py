from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, MutableMapping

import structlog

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_MAX_LOGGED_STRING = 200
_MAX_LOGGED_ITEMS = 10


def _add_request_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    request_id = request_id_var.get("")
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with JSON output and contextvar support."""

    timestamper = structlog.processors.TimeStamper(fmt="iso")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            _add_request_id,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a configured structlog logger."""

    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)


def get_request_id() -> str:
    """Return the current request ID from contextvars."""

    return request_id_var.get("")


def truncate_payload(value: Any) -> Any:
    """Return a log-safe copy of a vendor payload.

    Strings over 200 chars are cut (inline base64 images are the usual culprit)
    and lists over 10 items collapse to a length marker.
    """
    if isinstance(value, str):
        if len(value) > _MAX_LOGGED_STRING:
            return f"{value[:_MAX_LOGGED_STRING]}...[truncated {len(value)} chars]"
        return value
    if isinstance(value, (list, tuple)):
        if len(value) > _MAX_LOGGED_ITEMS:
            return f"[array length {len(value)}]"
        return [truncate_payload(item) for item in value]
    if isinstance(value, dict):
        return {key: truncate_payload(item) for key, item in value.items()}
    return value


logger = get_logger("reelgate")
