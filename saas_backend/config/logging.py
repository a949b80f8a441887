"""structlog configuration for the HTTP service.

Two output modes:
- Production: JSON lines to stderr, ERROR level and above only.
- Other environments: console-rendered output at the configured level.
"""

from __future__ import annotations

import logging
import sys

import structlog

from .settings import AppSettings


def logging_configure(settings: AppSettings) -> None:
    """Configure structlog processors and route stdlib loggers through them.

    Safe to call repeatedly; the root handler is replaced on each call.

    Args:
        settings: Validated runtime settings that select level and renderer.
    """

    render_processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if settings.is_production:
        level = logging.ERROR
        render_processors.extend([structlog.processors.format_exc_info, structlog.processors.JSONRenderer()])
    else:
        level = logging.getLevelName(settings.log_level)
        render_processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=render_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # uvicorn ships its own handlers; funnel everything through the root one.
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(max(level, logging.INFO))
