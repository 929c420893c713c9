"""
mockcheck — Structured Logging

All logging via structlog. Every log entry carries the emitting component
as ``system`` (``mockcheck.extractor``, ``mockcheck.verifier``, ...).
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from mockcheck.config import LoggingConfig


def setup_logging(config: LoggingConfig, stream: Any = None) -> logging.Handler:
    """
    Configure structured logging for mockcheck and the host test run.

    ``stream`` defaults to stdout; pytest captures it per test. Returns the
    handler installed on the ``mockcheck`` logger, replacing any earlier one.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Any
    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    mockcheck_logger = logging.getLogger("mockcheck")
    mockcheck_logger.handlers.clear()
    mockcheck_logger.addHandler(handler)
    mockcheck_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    return handler
