# src/logging/logger.py — v2
"""Logger factory, formatters and credential redaction.

Every handler installed by setup_logging() carries a RedactionFilter, so a
provider key that slips into a message (an SDK error string, a Gemini URL
with ``?key=``) is masked before it reaches any sink.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any

from stowvision.logging.context import get_context

ROOT_LOGGER = "stowvision"
REDACTED = "***"

# Libraries that log full request URLs at DEBUG.
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")

_SECRET_PATTERNS = (
    re.compile(r"(?<=[?&]key=)[^&\s\"']+"),
    re.compile(r"(?<=Bearer )[A-Za-z0-9._\-]+"),
    re.compile(r"\bsk-[A-Za-z0-9_\-]{8,}"),
    re.compile(r"\bAIza[A-Za-z0-9_\-]{20,}"),
    re.compile(r"\b(local|kms):[A-Za-z0-9+/=:]{16,}"),
)


def redact(text: str) -> str:
    """Mask API keys, bearer tokens and secret envelopes in text."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


class RedactionFilter(logging.Filter):
    """Rewrites the rendered message with secrets masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg, record.args = cleaned, None
        return True


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with request context under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """``time [LEVEL] logger [operation] (household=...) - message``."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        head = f"{_timestamp()[:19].replace('T', ' ')} [{record.levelname:8s}] {record.name}"
        if ctx.operation:
            head += f" [{ctx.operation}]"
        if ctx.household_id:
            head += f" (household={ctx.household_id})"
        return f"{head} - {record.getMessage()}"


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> None:
    """Configure the ``stowvision`` logger tree.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: "json" or "text".
        log_file: Optional rotating log file (stderr only when None).
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from stowvision.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(log_file, rotation=rotation, retention=retention)
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(RedactionFilter())
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
