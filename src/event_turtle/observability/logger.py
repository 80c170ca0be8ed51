"""Structured logging with turtle_id support.

Uses structlog for structured logging with JSON or console output.
While a command is being handled every log entry carries the id of the
turtle it addresses.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

# Context var for turtle_id propagation
_turtle_id: ContextVar[str] = ContextVar("turtle_id", default="")


def get_turtle_id() -> str:
    """Get the turtle id bound to the current context ("" if none)."""
    return _turtle_id.get()


@contextmanager
def bind_turtle_id(turtle_id: str) -> Iterator[None]:
    """Bind *turtle_id* to every log entry emitted inside the block."""
    token = _turtle_id.set(turtle_id)
    try:
        yield
    finally:
        _turtle_id.reset(token)


def _add_turtle_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add turtle_id when one is bound."""
    tid = _turtle_id.get()
    if tid:
        event_dict["turtle_id"] = tid
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "console",
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for machine consumption, "console" for humans.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        _add_turtle_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)
