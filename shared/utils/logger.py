"""
Logging setup shared by every module.

Loggers write to stdout and, when LOG_TO_FILE is set, to LOG_FILE as well.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _file_handler(path: Path, formatter: logging.Formatter, level: str) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the application's handlers attached.

    Args:
        name: Logger name (usually __name__ of the module)
        level: Level override; defaults to settings.LOG_LEVEL

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = level or settings.LOG_LEVEL
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        logger.addHandler(_file_handler(Path(settings.LOG_FILE), formatter, level))

    return logger


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """
    Log an error, its direct cause and (in DEBUG) the traceback.

    Args:
        logger: Logger instance
        error: Exception that occurred
        context: Where the error occurred, e.g. "Schema compilation failed"
    """
    message = f"{type(error).__name__}: {error}"
    if context:
        message = f"{context}: {message}"
    if error.__cause__ is not None:
        message += f" (caused by {type(error.__cause__).__name__}: {error.__cause__})"
    logger.error(message)

    if settings.DEBUG:
        logger.error("Full traceback:", exc_info=error)
