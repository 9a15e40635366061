from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union

import structlog


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    json_logs: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure structlog for the process.

    Call this once from the entrypoint; library code only ever uses
    structlog.get_logger().
    """
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"unknown log level: {name}")

    if stream is None:
        stream = sys.stderr

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
