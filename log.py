"""Structured logging for fastdict.

Every lookup logs its query, mode and timing, so the JSON-lines output can be
grepped per query. Queries are clipped to LOG_QUERY_MAX characters.
Set FASTDICT_LOG_LEVEL env var to control verbosity (DEBUG/INFO/WARNING/ERROR).
Set FASTDICT_LOG_FORMAT=text for `key=value` lines instead of JSON.
"""
import logging
import json
import os
import sys
from typing import Any

LOG_QUERY_MAX = 80

EXTRA_FIELDS = (
    "component", "query", "mode", "model", "chunks", "duration_ms",
    "count", "endpoint", "status_code", "ip", "path",
)


def clip_query(query: str) -> str:
    if len(query) <= LOG_QUERY_MAX:
        return query
    return query[:LOG_QUERY_MAX] + "…"


def record_extras(record: logging.LogRecord) -> dict:
    """Collect the known `extra=` fields present on a record."""
    extras = {}
    for key in EXTRA_FIELDS:
        val = getattr(record, key, None)
        if val is None:
            continue
        if key == "query":
            val = clip_query(str(val))
        extras[key] = val
    return extras


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["error"] = str(record.exc_info[1])
            entry["error_type"] = type(record.exc_info[1]).__name__
        entry.update(record_extras(record))
        return json.dumps(entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines: `12:00:01 [INFO] fastdict.lookup: lookup complete query='apple' chunks=5`."""

    def __init__(self):
        super().__init__("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v!r}" for k, v in extras.items() if k != "component")
        return line.rstrip()


def get_logger(name: str = "fastdict") -> logging.Logger:
    """Get or create a structured logger.

    Usage:
        from log import get_logger
        logger = get_logger("fastdict.lookup")
        logger.info("lookup complete", extra={"component": "lookup", "query": "apple", "chunks": 5})
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        level = os.environ.get("FASTDICT_LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))

        handler = logging.StreamHandler(sys.stderr)
        if os.environ.get("FASTDICT_LOG_FORMAT", "json") == "text":
            handler.setFormatter(TextFormatter())
        else:
            handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    return logger
