"""
Structured logging configuration.

The engine never configures logging on import; the CLI (or an embedding
application) calls setup_logging() once. Until then structlog falls back to
its own defaults and records are still emitted.
"""
import logging
import os
import sys

import structlog
from structlog.types import Processor

LOG_LEVEL_ENV = "LIFT_METRICS_LOG_LEVEL"
LOG_FORMAT_ENV = "LIFT_METRICS_LOG_FORMAT"


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level name; defaults to $LIFT_METRICS_LOG_LEVEL or WARNING
        fmt: "json" for machine-readable output, anything else for console
    """
    level = (level or os.environ.get(LOG_LEVEL_ENV, "WARNING")).upper()
    fmt = fmt or os.environ.get(LOG_FORMAT_ENV, "console")

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stderr keeps --json output on stdout clean
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
