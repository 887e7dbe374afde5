"""Structured logging configuration.

Uses standard library logging. Engine modules pass instance/step context via
`extra={...}`; the JSON formatter promotes the correlation ids and groups the
rest under `extra`.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

_RESERVED_LOG_RECORD_ATTRS: set[str] = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Identifiers the engine attaches to most records; promoted to top-level keys
# so log pipelines can filter one instance's trail without digging into `extra`.
CORRELATION_FIELDS: tuple[str, ...] = ("workflow_id", "instance_id", "step_id", "action_id")


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Correlation ids (see `CORRELATION_FIELDS`) sit next to the message; any
    other `extra={...}` values are grouped under `extra`. Values json can't
    encode (paths, datetimes, enums) are rendered with `str`.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        fields = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_")
        }

        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CORRELATION_FIELDS:
            if key in fields:
                payload[key] = fields.pop(key)
        if fields:
            payload["extra"] = fields

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str, *, json_output: bool = True) -> None:
    """Configure root logging, structured JSON by default."""

    root = logging.getLogger()

    # Remove any existing handlers to avoid duplicate logs when re-configuring.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root.addHandler(handler)
    root.setLevel(level.upper())
