"""
Structured key=value logging for Cepho.

A line looks like:

    timestamp=... level=INFO logger=cepho.core.review_pipeline message="Review transition applied" item_id=... action=submit_first_review

The review item or provider a line concerns is promoted right after the
message so log searches can filter on it; any other context follows.
"""

import logging
import sys
from typing import Any

from pydantic import ValidationError

from cepho.core.config import get_settings

# Context promoted ahead of free-form fields, in this order
CONTEXT_FIELDS = ("item_id", "provider")


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(c.isspace() for c in text) or "=" in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


class StructuredFormatter(logging.Formatter):
    """Renders a record as space-separated key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value

        fields.update(getattr(record, "extra_data", None) or {})

        line = " ".join(f"{key}={_format_value(value)}" for key, value in fields.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def level_for_env(env: str) -> int:
    """DEBUG while developing, INFO everywhere else."""
    return logging.DEBUG if env == "dev" else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Logger writing structured lines to stdout.

    The level follows CEPHO_ENV. Before the Supabase settings exist (e.g.
    at import time in a fresh shell) the logger starts at INFO.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)

    try:
        env = get_settings().CEPHO_ENV
    except ValidationError:
        env = "prod"
    logger.setLevel(level_for_env(env))

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **context: Any) -> None:
    """
    Log ``msg`` with context fields.

    ``item_id`` and ``provider`` are promoted; everything else is appended
    as extra key=value pairs.
    """
    extra: dict[str, Any] = {name: context.pop(name) for name in CONTEXT_FIELDS if name in context}
    extra["extra_data"] = context
    logger.log(level, msg, extra=extra)
