"""Structured logging configuration.

Every workflow log line is about one translation item. The orchestrator passes
the item's identity and the state/action involved through `extra=`; those are
promoted to top-level JSON fields so log lines can be filtered per item or per
transition. Anything else passed in `extra=` is nested under "extra".
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

# Attributes every LogRecord carries; `message`/`asctime` are set by formatters.
_RECORD_ATTRS: frozenset[str] = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}

# Promoted to the top level, in this order, when present.
WORKFLOW_FIELDS: tuple[str, ...] = (
    "item_id",
    "key",
    "action",
    "state",
    "from_state",
    "to_state",
    "step",
    "automatic",
)

# Chatty third-party loggers held at WARNING unless the root is stricter.
QUIET_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "uvicorn.access")


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line with workflow fields lifted."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = vars(record)
        for name in WORKFLOW_FIELDS:
            if fields.get(name) is not None:
                payload[name] = _plain(fields[name])

        # Automatic runs execute in tasks named after the item.
        task = fields.get("taskName")
        if task:
            payload["task"] = task

        extra = {
            key: _plain(value)
            for key, value in fields.items()
            if key not in _RECORD_ATTRS and key not in WORKFLOW_FIELDS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str, *, stream: TextIO | None = None) -> None:
    """Send JSON logs to `stream` (stderr by default), replacing existing handlers."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.WARNING))
