"""
Logging configuration for the archive search indexer.
"""

import logging
import os
import sys
from typing import Optional


def setup_logger(
    name: str = "archive_search",
    level: int = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up and return a logger instance.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_file: Optional file path for logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Called again after import (e.g. by IndexBuilder with the configured
    # level): retune existing handlers instead of stacking new ones
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        known_files = {getattr(h, "baseFilename", None) for h in logger.handlers}
        if log_file and os.path.abspath(log_file) not in known_files:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        return logger

    # Console handler on stderr; stdout is reserved for the CLI summary
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Default logger instance — created once at import time
logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a child logger for a specific module.

    Child loggers (e.g. "archive_search.builder") propagate to the package
    logger, so they share its handlers while still naming the stage that
    produced each message.

    Args:
        module_name: Name of the module (e.g., 'walker', 'builder')

    Returns:
        Child logger instance
    """
    return logging.getLogger(f"archive_search.{module_name}")
