"""structlog setup shared by the API server and the `lvuln` CLI."""

import logging
import sys
from typing import TextIO

import structlog

from layervuln.core.config import get_settings

_configured = False


def _renderer(debug: bool) -> list[structlog.types.Processor]:
    if debug:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]


def configure_logging(force: bool = False, stream: TextIO | None = None) -> None:
    """Set up structlog and the stdlib root logger once per process.

    Events carry an ISO timestamp, level and logger name. Debug mode renders
    them for a terminal, otherwise one JSON object per line. Output goes to
    stdout unless *stream* is given; the CLI passes stderr so its own output
    stays machine-readable. *force* reconfigures an already configured process.
    """
    global _configured
    if _configured and not force:
        return

    settings = get_settings()
    level = logging.getLevelName(settings.log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_renderer(settings.app_debug),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        # add_logger_name needs stdlib loggers underneath
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn logs through the stdlib root logger
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=level,
        force=force,
    )
    _configured = True


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)
