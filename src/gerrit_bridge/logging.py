"""Structured logging configuration for Gerrit Bridge.

This module configures structlog with support for:
- JSON and console output formats
- File rotation based on size
- Revision context binding (project, change and revision ids)

The logging system integrates structlog with Python's stdlib logging
for handlers (file rotation), while using structlog exclusively for
actual log emission.

Example usage:
    >>> from gerrit_bridge.config import LoggingConfig
    >>> from gerrit_bridge.logging import setup_logging, get_logger, bind_revision_context
    >>>
    >>> setup_logging(LoggingConfig(level="INFO", format="json"))
    >>> logger = get_logger(__name__)
    >>> bind_revision_context(project="tools/sonar", change_id="I8473b95", revision_id="3")
    >>> logger.info("review_published", comments=4)
"""

from __future__ import annotations

import logging
import logging.handlers
import sys

import structlog

from gerrit_bridge.config import LoggingConfig


def bind_revision_context(project: str, change_id: str, revision_id: str) -> None:
    """Bind the revision under review to all subsequent logs.

    Args:
        project: Gerrit project name
        change_id: Change identifier
        revision_id: Revision (patch set) identifier
    """
    structlog.contextvars.bind_contextvars(
        project=project, change_id=change_id, revision_id=revision_id
    )


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog with the given configuration.

    Args:
        config: Logging configuration from BridgeConfig
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            filename=config.file,
            maxBytes=config.rotation_size_mb * 1024 * 1024,
            backupCount=config.retention_count,
            encoding="utf-8",
        )
    else:
        # stderr keeps command output on stdout machine-readable
        handler = logging.StreamHandler(sys.stderr)

    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:  # console
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
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
