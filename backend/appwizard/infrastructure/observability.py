"""Structured Logging — one line per pipeline step, JSON in production.

Invariants:
    - Every JSON line has timestamp, level, logger and message
    - Pipeline extras (request_id, change_index, stage, ...) are copied only when set
    - Text format shows request_id and stage inline when present
    - setup_logging installs exactly one handler per process; later calls only
      adjust the level (FastAPI lifespan and warm function invocations both call it)
"""

import json
import logging
from datetime import datetime, timezone

PIPELINE_FIELDS = (
    "request_id", "change_index", "change_type", "stage",
    "location", "item_name", "error_code", "object_key",
    "lines_processed", "lines_replaced", "path",
)


def _pipeline_extras(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in PIPELINE_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """Single-line JSON records for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_pipeline_extras(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines for local runs: `time LEVEL name [req stage] message`."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s%(tags)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        tags = [
            str(record.__dict__[key])
            for key in ("request_id", "stage")
            if record.__dict__.get(key) is not None
        ]
        record.tags = f" [{' '.join(tags)}]" if tags else ""
        return super().format(record)


_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the root logger for JSON ("json") or text output."""
    global _handler
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if _handler is not None:
        return
    _handler = logging.StreamHandler()
    _handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    logging.root.addHandler(_handler)
