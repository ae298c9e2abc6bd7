"""JSON-lines logging for the static host.

Each record is written to stdout as one JSON object: timestamp, level and
logger name, the message (or the keys of a dict message), then whatever the
call site passed through `extra=`.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any

LOG_LEVEL_ENV = "LOG_LEVEL"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

# Attributes the logging module sets on every record, plus the ones filled in
# during formatting and uvicorn's colourised copy of the message.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "color_message"}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in vars(record).items() if key not in _STANDARD_ATTRS}


class JsonFormatter(logging.Formatter):
    """Serialize a record to a single JSON line.

    `ts`, `level` and `logger` always reflect the record itself; an extra or a
    dict-message key with the same name is dropped.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
        }
        if isinstance(record.msg, dict):
            fields = {**_extras(record), **record.msg}
        else:
            fields = {"message": record.getMessage(), **_extras(record)}
        if record.exc_info:
            fields["exc_info"] = self.formatException(record.exc_info)

        for key, value in fields.items():
            payload.setdefault(key, value)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _resolve_level(level: str | int | None) -> int:
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.strip().upper(), logging.INFO)


def setup_logging(level: str | int | None = None) -> None:
    """Send root and uvicorn logging to stdout as JSON lines.

    `level` defaults to $LOG_LEVEL. A root logger that already has handlers
    (a reload, pytest's capture) is left as it is.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(resolved)

    for name in UVICORN_LOGGERS:
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.setLevel(resolved)
        uv_logger.propagate = True


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or __name__)
