"""Structured logging configuration for TeamDash.

This module configures structlog with support for:
- JSON and console output formats
- File rotation based on size
- Correlation IDs propagated from incoming HTTP requests
- Project and assignment context binding

structlog handles event emission; Python's stdlib logging supplies the
handlers (stdout stream or rotating file). Rendering happens in a
``structlog.stdlib.ProcessorFormatter`` on the handler, so records from
stdlib loggers (uvicorn, SQLAlchemy) get the same format.

Example usage:
    >>> from teamdash.config import LoggingConfig
    >>> from teamdash.logging import setup_logging, get_logger, bind_project_context
    >>>
    >>> setup_logging(LoggingConfig(level="INFO", format="json"))
    >>> logger = get_logger(__name__)
    >>> bind_project_context(project_id="5b0c...", assignment_id="a41e...")
    >>> logger.info("assignment_accepted", candidate_id="c9d2...")
"""

from __future__ import annotations

import contextvars
import logging
import logging.handlers
import sys
from typing import Any

import structlog

from teamdash.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add correlation_id to log event if set in context.

    Args:
        logger: Logger instance (unused, required by structlog protocol)
        method_name: Log method name (unused, required by structlog protocol)
        event_dict: Current event dictionary to augment

    Returns:
        Event dictionary with correlation_id added if available
    """
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID for current context."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return _correlation_id.get()


def bind_project_context(project_id: str, assignment_id: str | None = None) -> None:
    """Bind project (and optionally assignment) identifiers to subsequent logs.

    The identifiers are stored in structlog contextvars, so they stay scoped
    to the current async task.

    Args:
        project_id: Project identifier to bind
        assignment_id: Optional resource assignment identifier to bind
    """
    context: dict[str, str] = {"project_id": project_id}
    if assignment_id is not None:
        context["assignment_id"] = assignment_id
    structlog.contextvars.bind_contextvars(**context)


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog with the given configuration.

    Sets up JSON or console rendering, optional file rotation, timestamp,
    level and logger-name processors, contextvars merging and correlation IDs.

    Args:
        config: Logging configuration from TeamDashConfig

    Example:
        >>> from pathlib import Path
        >>> setup_logging(LoggingConfig(format="json", file=Path("/var/log/teamdash.log")))
        >>> setup_logging(LoggingConfig(level="DEBUG", format="console"))
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler: logging.Handler
    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            filename=config.file,
            maxBytes=config.rotation_size_mb * 1024 * 1024,
            backupCount=config.retention_count,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    shared_processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        # project_id / assignment_id from bind_project_context
        structlog.contextvars.merge_contextvars,
        add_correlation_id,
        structlog.processors.StackInfoRenderer(),
    ]

    render_processors: list[Any] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if config.format == "json":
        # Tracebacks go inside the JSON object, never after it
        render_processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        render_processors.append(structlog.dev.ConsoleRenderer())

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=render_processors,
        )
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger instance
    """
    return structlog.get_logger(name)
