"""Logging setup for the sfscan command line.

Library modules only create module-level stdlib loggers. This module
routes their records through structlog, rendered as console text or as
one JSON object per line (SFSCAN_LOG_LEVEL, SFSCAN_LOG_FORMAT).
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from sfscan.core.config import config


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    color: bool = False,
) -> None:
    """Install a structlog-rendered stderr handler on the ``sfscan`` logger.

    Args:
        level: Log level name (defaults to config.log_level)
        log_format: "text" or "json" (defaults to config.log_format)
        color: Whether to use colors in text mode
    """
    level = (level or config.log_level).upper()
    log_format = log_format or config.log_format
    shared_processors = _shared_processors()

    if log_format == "json":
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [
            structlog.dev.ConsoleRenderer(
                colors=color,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    # Records from stdlib loggers run through the same processors
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger("sfscan")
    root.handlers = [handler]
    root.setLevel(level)
    root.propagate = False
