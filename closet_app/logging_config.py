"""Structured JSON logging for the closet canvas service.

Every record carries the correlation id of the composer operation that
produced it. User identifiers and image references are scrubbed before a
record is serialised.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import time
import uuid
from typing import Any, Dict, Iterator

CORRELATION_ID: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}
_SENSITIVE_KEYS = frozenset({"user", "user_id", "email", "image", "image_ref", "image_url"})
_EMAIL = re.compile(r"[\w.\-+]+@[\w\-]+(\.[\w\-]+)+")
_URL_PREFIXES = ("http://", "https://", "file://", "data:")
_HANDLER_NAME = "closet-json"


def _scrub_text(value: str) -> str:
    if value.lower().startswith(_URL_PREFIXES):
        return "[redacted-url]"
    return _EMAIL.sub("[redacted-email]", value)


def redact_for_log(payload: Any) -> Any:
    """Return a JSON-safe copy of ``payload`` with sensitive values masked."""

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _scrub_text(payload)
    if isinstance(payload, dict):
        return {
            key: "[redacted]" if key in _SENSITIVE_KEYS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set)):
        return [redact_for_log(item) for item in payload]
    return _scrub_text(str(payload))


class JsonFormatter(logging.Formatter):
    """One JSON object per line: fixed envelope plus the record's extras."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", message),
            "message": message,
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and key not in payload
        }
        payload.update(redact_for_log(extras))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: int | str | None = None) -> None:
    """Install the JSON handler on the root logger, replacing an earlier one."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level or os.getenv("LOG_LEVEL", "INFO"))


def get_logger(name: str) -> logging.Logger:
    """Module logger; installs the JSON handler on first use."""

    if not any(h.get_name() == _HANDLER_NAME for h in logging.getLogger().handlers):
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Bind ``correlation_id`` (or the current one, or a fresh one) and return it."""

    resolved = correlation_id or CORRELATION_ID.get() or uuid.uuid4().hex
    if resolved != CORRELATION_ID.get():
        CORRELATION_ID.set(resolved)
    return resolved


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the block and restore the previous one after."""

    token = CORRELATION_ID.set(correlation_id or CORRELATION_ID.get() or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with ``fields`` as scrubbed structured extras."""

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={**redact_for_log(fields), "event": event, "correlation_id": correlation_id},
    )


@contextlib.contextmanager
def operation_context(name: str, **attributes: Any) -> Iterator[str]:
    """Scope a correlation id around a composer operation and log its outcome."""

    logger = logging.getLogger(__name__)
    with correlation_context(attributes.pop("correlation_id", None)) as correlation_id:
        started = time.perf_counter()
        try:
            yield correlation_id
        except Exception as exc:
            log_event(
                logger,
                logging.DEBUG,
                "operation_failed",
                operation=name,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                error_type=type(exc).__name__,
                **attributes,
            )
            raise
        log_event(
            logger,
            logging.DEBUG,
            "operation_finished",
            operation=name,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            **attributes,
        )


__all__ = [
    "CORRELATION_ID",
    "JsonFormatter",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
