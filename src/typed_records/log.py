"""Structured logging configuration."""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.stdlib import BoundLogger

run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)


def _add_run_id(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add the current run id unless the event already carries one."""
    event_dict.setdefault("run_id", run_id_var.get() or "unknown")
    return event_dict


def generate_run_id() -> str:
    """Generate a short id for a pipeline run."""
    return uuid.uuid4().hex[:8]


def bind_run(logger: BoundLogger, run_id: str) -> BoundLogger:
    """Return ``logger`` with ``run_id`` bound to every event."""
    return logger.bind(run_id=run_id)


def configure_logging(level: str = "WARNING", console_format: str = "text") -> None:
    """Configure stdlib logging and structlog.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR).
        console_format: ``text`` for human-readable output, ``json`` for one
            JSON object per line.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    if console_format not in ("text", "json"):
        raise ValueError(f"Unknown log format: {console_format}")

    logging.basicConfig(level=numeric_level, stream=sys.stderr, format="%(message)s", force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_run_id,
            structlog.processors.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if console_format == "json" else structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
