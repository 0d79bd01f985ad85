"""
Structured logging configuration for the crypto signals service.

Call ``setup_logging()`` once at process startup; every later
``get_logger()`` or ``logging.getLogger()`` call then emits key-value
log lines through the same ``structlog`` formatter.

Usage::

    from signals_lib.core.logging_config import setup_logging, get_logger

    setup_logging(service="signals-api")
    logger = get_logger("scanner")

    logger.info("scan_complete", candidates=37, explosions=4)
    # => 2025-06-01T14:23:01Z [info] scan_complete  candidates=37 explosions=4 service=signals-api

LOG_FORMAT=console (default) prints coloured, human-friendly output.
LOG_FORMAT=json prints one JSON object per line.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

_NOISY_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
)


def setup_logging(
    *,
    service: str = "signals",
    level: str | None = None,
    log_format: str | None = None,
) -> None:
    """Configure ``structlog`` and stdlib ``logging`` for the whole process.

    Parameters
    ----------
    service:
        Name bound to every log event.
    level:
        Root log level.  Falls back to the ``LOG_LEVEL`` env var, then
        ``"INFO"``.
    log_format:
        ``"console"`` or ``"json"``.  Falls back to the ``LOG_FORMAT`` env
        var, then ``"console"``.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if log_format is None:
        log_format = os.getenv("LOG_FORMAT", "console")
    level = level.upper()
    log_format = log_format.lower()

    numeric_level = getattr(logging, level, logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            pad_event_to=30,
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    # stdlib records (uvicorn, httpx) go through the same formatter
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service)


def get_logger(
    name: str | None = None, **initial_binds: Any
) -> structlog.stdlib.BoundLogger:
    """Return a structured logger, optionally bound with extra context.

    >>> logger = get_logger("scanner", interval="1h")
    >>> logger.info("scan_started", tickers=1800)
    """
    log = structlog.get_logger(name)
    if initial_binds:
        log = log.bind(**initial_binds)
    return log
