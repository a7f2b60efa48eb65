"""Structured JSON logger for imagedrop.

This is the diagnostic sink for the plugin: every error folded into an
image node is also written here, so operators can see upload failures
without inspecting editor documents.  Each record is a single-line JSON
object.

Typical structured output::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "ERROR",
     "logger": "imagedrop.pipeline", "message": "upload failed",
     "op": "upload", "key": "9f1c...", "code": "UPLOAD_STATUS_ERROR",
     "status_code": 500}

Usage::

    from imagedrop.observability import get_logger

    log = get_logger("imagedrop.pipeline")
    log.info("placeholder inserted", extra={"extra_fields": {"key": key}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from imagedrop.errors import ImageDropError

# Keys every record carries, in output order.  ``op``, ``key`` and ``code``
# are ``null`` when the record is not about an operation, node or error.
_BASE_KEYS = ("ts", "level", "logger", "message")
_NODE_KEYS = ("op", "key", "code")


def _error_fields(error: ImageDropError) -> dict[str, Any]:
    fields: dict[str, Any] = {"code": _plain(error.code), "message": error.message}
    if error.context:
        fields["context"] = error.context
    return fields


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _json_default(value: Any) -> Any:
    if isinstance(value, ImageDropError):
        return _error_fields(value)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys: ``ts`` (ISO-8601 UTC), ``level``, ``logger``,
    ``message``, ``op``, ``key`` and ``code``.  Fields passed as
    ``extra={"extra_fields": {...}}`` are merged into the top-level object
    but never replace ``ts``, ``level``, ``logger`` or ``message``.
    :class:`~imagedrop.errors.ImageDropError` values are written as
    ``{"code", "message", "context"}`` objects.  When the record carries
    an ``ImageDropError`` as its exception and no explicit ``code`` field,
    the error's code fills ``code``.
    """

    def format(self, record: logging.LogRecord) -> str:
        extra_fields: dict[str, Any] = getattr(record, "extra_fields", None) or {}

        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _NODE_KEYS:
            log_entry[name] = _plain(extra_fields.get(name))
        for name, value in extra_fields.items():
            if name not in _BASE_KEYS and name not in _NODE_KEYS:
                log_entry[name] = value

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
            if isinstance(exc, ImageDropError) and log_entry["code"] is None:
                log_entry["code"] = _plain(exc.code)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=_json_default)


# One handler per logger name, so repeated ``get_logger`` calls never
# stack handlers.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "imagedrop",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"imagedrop"``.
    level:
        Minimum log level, as an ``int`` or a case-insensitive name.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        A logger with a :class:`StructuredFormatter` handler attached.
        Repeated calls with the same *name* return the same logger and
        do **not** add duplicate handlers.
    """
    logger = logging.getLogger(name)
    if name in _configured_loggers:
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    _configured_loggers.add(name)
    return logger
