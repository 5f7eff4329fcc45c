"""
Logging setup for walletview.

Modules log through loguru directly (`from loguru import logger`). The CLI
calls configure_logging() once; stdlib loggers (httpx, httpcore) are routed
into the same sink through InterceptHandler.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}: {message}"


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module so {name} is meaningful
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _stderr_sink(message: str) -> None:
    # Resolve sys.stderr per write; click's test runner swaps it out
    sys.stderr.write(message)


def configure_logging(level: str = "WARNING", colorize: bool = False) -> None:
    """Install a single stderr sink at `level` and intercept stdlib logging."""
    logger.remove()
    logger.add(_stderr_sink, level=level.upper(), format=LOG_FORMAT, colorize=colorize)
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
