"""Structured JSON logging with trace_id support."""
from __future__ import annotations

import contextvars
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

# Context variable for trace_id
trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "trace_id", default=""
)


class JSONFormatter(logging.Formatter):
    """Custom JSON log formatter."""

    def __init__(self, service_name: str = "unknown") -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service_name": self.service_name,
            "trace_id": trace_id_var.get(""),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry)


def setup_logging(
    service_name: str,
    level: str = "INFO",
    logger_name: str | None = None,
) -> logging.Logger:
    """Configure structured JSON logging for a service.

    Args:
        service_name: Name of the service for log entries.
        level: Log level string (e.g. "INFO", "DEBUG").
        logger_name: Logger to configure.  Defaults to *service_name*;
            pass a package name (e.g. ``"src.flutter_sdk"``) so that
            module loggers created with ``getLogger(__name__)`` inherit
            the handler.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name or service_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter(service_name=service_name))
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def new_trace_id() -> str:
    """Bind a fresh trace_id to the current context and return it."""
    trace_id = str(uuid.uuid4())
    trace_id_var.set(trace_id)
    return trace_id
