"""
Structured logging for the analysis lifecycle.

Every record carries event_type, level, ISO timestamp and the module name;
lifecycle events add job_id / file_name / status. Long string values are
truncated so a base64 payload or a raw backend body can never flood the log.

Imports only structlog and the stdlib; no guardaio imports (avoids cycles).
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = (os.getenv("GUARDAIO_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# json (default) for services; anything else renders for a terminal
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

MAX_VALUE_CHARS = 512


def _stamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's 'event' becomes event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def _truncate_long_values(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, value in event_dict.items():
        if isinstance(value, str) and len(value) > MAX_VALUE_CHARS:
            event_dict[key] = f"{value[:MAX_VALUE_CHARS]}...(+{len(value) - MAX_VALUE_CHARS} chars)"
    return event_dict


def _renderer() -> Any:
    if LOG_FORMAT == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_structlog(level: int = LOG_LEVEL_VALUE) -> None:
    """Configure structlog for the process. Called once on import."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            _stamp,
            _event_type,
            _truncate_long_values,
            _renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger; first positional argument is the event type:

        logger = get_logger(__name__)
        logger.info("analysis_complete", job_id=job.id, status="safe", confidence=97)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_job(job_id: str) -> structlog.BoundLogger:
    """Logger with job_id bound to every call."""
    return get_logger("guardaio.job").bind(job_id=job_id)
