"""Logging configuration for the candidate analysis service."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAMESPACE = 'candidate_analysis'
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    level: Union[int, str] = logging.INFO,
    console: bool = True,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the namespace logger for the service.

    Args:
        level: Logging level, as an int or a name like "INFO"
        console: Whether to log to stdout (Cloud Functions picks this up)
        log_file: Optional file to log to as well
        format_string: Custom log format string

    Returns:
        The configured namespace logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates on warm starts
    logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger under the service namespace."""
    return logging.getLogger(f'{LOGGER_NAMESPACE}.{name}')
