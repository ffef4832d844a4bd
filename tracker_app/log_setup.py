"""
Diagnostic logger construction.

Builds a structlog logger instance that is handed to every component
explicitly. Nothing here touches structlog's global configuration, so
two pipelines in one process (or a test) can log to different places.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Optional, TextIO

import structlog


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def build_logger(
    level: str = "INFO",
    json_output: bool = False,
    stream: Optional[TextIO] = None,
):
    """
    Create a bound structlog logger.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ...)
        json_output: Render JSON lines instead of the console format
        stream: Output stream (stdout when omitted); the caller owns it

    Returns:
        A structlog BoundLogger filtering below ``level``
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    return structlog.wrap_logger(
        structlog.PrintLogger(file=stream or sys.stdout),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
        cache_logger_on_first_use=True,
    )


@contextmanager
def diagnostic_logger(settings):
    """
    Process logger built from application settings.

    Writes to ``settings.diagnostic_log_path`` when set, closing the file
    on exit, and to stdout otherwise.
    """
    path = settings.diagnostic_log_path
    stream = open(path, "a", encoding="utf-8") if path else sys.stdout
    try:
        yield build_logger(
            level=settings.log_level,
            json_output=settings.log_json,
            stream=stream,
        )
    finally:
        if stream is not sys.stdout:
            stream.close()
