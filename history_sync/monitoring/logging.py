"""Structured logging with context injection.

Features:
- console handler
- JSON logs optional (easy ingestion)
- context injection (job_id/upload/detected_type) without needing a big framework
"""

from __future__ import annotations

import json
import logging
import sys
import time
from typing import Any

ROOT_LOGGER = "history_sync"
CONTEXT_FIELDS = ("job_id", "upload", "detected_type")

# ---------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": time.time(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in CONTEXT_FIELDS:
            if hasattr(record, k):
                base[k] = getattr(record, k)

        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)

        payload = getattr(record, "payload", None)
        if isinstance(payload, dict):
            base["payload"] = payload

        return json.dumps(base, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Format log records as human-readable text."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [record.levelname, record.name]

        ctx = [
            f"{k}={getattr(record, k)}"
            for k in CONTEXT_FIELDS
            if getattr(record, k, None)
        ]
        if ctx:
            parts.append("[" + " ".join(ctx) + "]")

        parts.append(record.getMessage())
        s = " ".join(parts)

        if record.exc_info:
            s += "\n" + self.formatException(record.exc_info)

        return s


# ---------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------


def setup_logging(level: str = "INFO", *, json_logs: bool = False) -> logging.Logger:
    """Configure the package logger; safe to call more than once."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    # Prevent duplicate handlers in repeated calls
    for h in list(logger.handlers):
        if getattr(h, "_history_sync_handler", False):
            logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logger.level)
    handler.setFormatter(JsonFormatter() if json_logs else TextFormatter())
    handler._history_sync_handler = True
    logger.addHandler(handler)
    return logger


def setup_from_settings(settings) -> logging.Logger:
    """Configure logging from ``Settings.LOG_LEVEL`` / ``Settings.JSON_LOGS``."""
    return setup_logging(settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)


# ---------------------------------------------------------------------
# Context injection
# ---------------------------------------------------------------------


class ContextAdapter(logging.LoggerAdapter):
    """Inject context fields into log records."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        merged = dict(self.extra)
        merged.update(extra)
        kwargs["extra"] = merged
        return msg, kwargs


def with_context(logger: logging.Logger, **context: Any) -> ContextAdapter:
    """Create a context adapter carrying the non-empty ``context`` values."""
    extra = {k: v for k, v in context.items() if v is not None}
    return ContextAdapter(logger, extra)
