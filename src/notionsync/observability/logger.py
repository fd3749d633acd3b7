"""JSON-lines logging for notionsync.

Each record becomes one JSON object on one line, e.g.::

    {"ts": "2026-10-19T08:00:00.000000+00:00", "level": "WARNING",
     "logger": "notionsync.transport", "message": "Rate limited by Notion API",
     "method": "GET", "path": "/blocks/abc/children", "attempt": 1}

Structured fields travel in ``extra={"extra_fields": {...}}``::

    log = get_logger("notionsync.materializer")
    log.warning("child fetch failed", extra={"extra_fields": {"block_id": bid}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Render a :class:`logging.LogRecord` as a single-line JSON object.

    Guaranteed keys are ``ts`` (UTC, ISO-8601), ``level``, ``logger`` and
    ``message``.  ``extra_fields`` are merged at the top level; exception
    and stack traces are added under ``exception`` / ``stack_info``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "extra_fields", None) or {})

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


# Names that already carry our handler; keeps get_logger idempotent.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "notionsync",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Return a logger that writes :class:`StructuredFormatter` output.

    Parameters
    ----------
    name:
        Logger name, conventionally ``"notionsync.<area>"``.
    level:
        Initial level, as an ``int`` or a case-insensitive name.
    stream:
        Handler stream; defaults to ``sys.stderr``.

    Repeated calls with the same *name* return the same logger without
    stacking handlers.  The logger does not propagate, so a configured
    root logger does not print every record twice.
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
