"""
Centralized logging configuration for the application.
Provides structured logging with proper formatting and handlers.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional

DEFAULT_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[%(filename)s:%(lineno)d] - %(message)s"
)

# Packages whose module loggers (logging.getLogger(__name__)) share the
# application handlers
APP_LOGGER_NAMES = ("api", "scheduling", "db")


def _build_handlers(
    level: int,
    log_file: Optional[str],
    log_dir: str,
    max_bytes: int,
    backup_count: int,
    format_string: str,
) -> list:
    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    # Console handler (always)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    if log_file:
        log_dir_path = Path(log_dir)
        log_dir_path.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_dir_path / log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    return handlers


def setup_logging(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: str = "logs",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Setup structured logging for a module.

    Args:
        name: Logger name (typically __name__)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path (relative to log_dir)
        log_dir: Directory for log files
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
        format_string: Custom format string (optional)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)

    for handler in _build_handlers(
        level, log_file, log_dir, max_bytes, backup_count, format_string or DEFAULT_FORMAT
    ):
        logger.addHandler(handler)

    return logger


def configure_app_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "booking.log",
    log_dir: str = "logs",
    logger_names: Iterable[str] = APP_LOGGER_NAMES,
) -> None:
    """
    Attach the application handlers to every top-level package logger.

    Called once at server startup so that module loggers in the scheduling
    engine and the storage client write to the same console and file.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    handlers = _build_handlers(
        level, log_file, log_dir, 10 * 1024 * 1024, 5, DEFAULT_FORMAT
    )

    for name in logger_names:
        logger = logging.getLogger(name)
        if logger.handlers:
            continue
        logger.setLevel(level)
        for handler in handlers:
            logger.addHandler(handler)
