"""JSON log lines for limiter decisions and store failures.

The limiter and the stores attach structured ``extra`` fields to the records
they emit (``entity``, ``granularity``, ``used`` and ``limit`` on exceeded
checks; ``operation`` and ``error`` on store failures). The handler installed
here keeps those fields as top-level JSON keys and fills the missing ones with
``null`` so every line has the same shape.
"""

from __future__ import annotations

import logging
import os

try:  # pragma: no cover - optional dependency for structured logs
    from pythonjsonlogger.json import JsonFormatter
except ImportError:  # pragma: no cover
    JsonFormatter = None  # type: ignore[assignment,misc]

LIMITER_FIELDS = ("entity", "granularity", "used", "limit", "operation", "error")

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(service)s %(message)s " + " ".join(
    f"%({field})s" for field in LIMITER_FIELDS
)
_DEFAULT_SERVICE = "window-limiter"

_handler: logging.Handler | None = None


class _LimiterContextFilter(logging.Filter):
    """Stamp the service name and default every limiter field to ``None``."""

    def __init__(self, service: str | None):
        super().__init__()
        self.service = service or _DEFAULT_SERVICE

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = self.service
        for field in LIMITER_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, None)
        return True


def _build_formatter() -> logging.Formatter:
    if JsonFormatter is None:
        return logging.Formatter(fmt=_FORMAT)
    return JsonFormatter(_FORMAT)


def configure_logging(service_name: str | None = None) -> logging.Handler:
    """Install the limiter's JSON stderr handler on the root logger.

    The level comes from ``LOG_LEVEL`` (default ``INFO``). While a handler is
    installed, later calls return it unchanged; handlers added by the host
    process are left alone.
    """
    global _handler
    if _handler is not None:
        return _handler

    root = logging.getLogger()
    root.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter())
    handler.addFilter(_LimiterContextFilter(service_name))
    root.addHandler(handler)
    _handler = handler
    return handler


def reset_logging() -> None:
    """Remove the handler installed by :func:`configure_logging`."""
    global _handler
    if _handler is not None:
        logging.getLogger().removeHandler(_handler)
        _handler.close()
    _handler = None
