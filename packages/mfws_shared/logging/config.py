"""Logging setup for applications embedding the client.

``configure_logging`` installs one stdout handler on the root logger and
tags it by name, so calling it again swaps that handler instead of stacking
another. Handlers installed by the host application are left alone.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from . import fields
from .context import bind_context, get_context

HANDLER_NAME = "mfws"


class ContextFilter(logging.Filter):
    """Attach the bound structured context to each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = get_context()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record with the bound context merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
            **_record_context(record),
        }
        if record.exc_info:
            payload[fields.EXCEPTION] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """``key=value`` pairs after the message; values with spaces are quoted."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _record_context(record)
        if not context:
            return line
        pairs = (f"{key}={_quote(value)}" for key, value in sorted(context.items()))
        return f"{line} {' '.join(pairs)}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
) -> logging.Handler:
    """Install (or replace) the named stdout handler and return it."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
        existing.close()

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setLevel(level.upper())
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())
    root.addHandler(handler)
    root.setLevel(level.upper())

    bind_context(**{fields.SERVICE: service or None, fields.ENVIRONMENT: environment or None})
    return handler


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a standard-library logger; records pick up the bound context."""
    return logging.getLogger(name)


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    context = getattr(record, "context", None)
    return dict(context) if isinstance(context, dict) else {}


def _quote(value: object) -> str:
    text = str(value)
    return json.dumps(text) if " " in text or text == "" else text
