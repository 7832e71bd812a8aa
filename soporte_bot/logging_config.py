"""Structured logging: one JSON object per line on stdout.

Call sites attach data with ``extra={"context": {...}}``. Code that works on a
single conversation uses ``ConversationLogger``, which puts the customer number
into every record's context and accepts a ``context=`` keyword directly.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        # datetimes in context fall back to str()
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"soporte.{name}")


class ConversationLogger(logging.LoggerAdapter):
    """Logger bound to one WhatsApp number."""

    def __init__(self, name: str, number: str):
        super().__init__(get_logger(name), {"number": number})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = {**self.extra, **kwargs.pop("context", {})}
        kwargs["extra"] = {**kwargs.get("extra", {}), "context": context}
        return msg, kwargs
