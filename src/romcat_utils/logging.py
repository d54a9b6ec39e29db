"""Logging utilities built on top of :mod:`loguru`."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {thread.name} | {message}"


class LoguruHandler(logging.Handler):
    """Forward standard-library records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure loguru sinks and the standard logging bridge."""

    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if log_file is not None:
        logger.add(log_file, level="DEBUG", format=LOG_FORMAT, rotation="1 MB", retention=3)
    logging.basicConfig(handlers=[LoguruHandler()], level=level, force=True)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a standard-library logger tied to loguru."""

    return logging.getLogger(name or "romcat")
