"""Centralized logging configuration for the taskboard application.

This module provides a standardized logging setup with:
- File-based logging with rotation
- Configurable log levels via environment variable
- Structured log format with timestamps
- Automatic log directory creation
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


# Log file configuration
LOG_DIR = Path.home() / ".taskboard" / "logs"
LOG_FILE = LOG_DIR / "taskboard.log"

# Log format configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation configuration
MAX_BYTES = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5


def setup_logging(
    log_level: Optional[str] = None,
    use_textual_handler: bool = False,
    log_dir: Optional[Path] = None,
) -> None:
    """Initialize application logging with file rotation.

    Creates the log directory if it doesn't exist and configures a rotating
    file handler for all application logs. The board UI owns the terminal, so
    nothing is written to stderr.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                  If None, reads from TASKBOARD_LOG_LEVEL environment variable.
                  Defaults to INFO if not specified.
        use_textual_handler: If True, also send records to the Textual devtools
                            console (``textual run --dev``).
        log_dir: Override the log directory (defaults to ~/.taskboard/logs)

    Example:
        >>> setup_logging()  # Uses default INFO level
        >>> setup_logging(log_level="DEBUG")  # Override to DEBUG
        >>> setup_logging(use_textual_handler=True)  # Dev mode
    """
    if log_level is None:
        log_level = os.getenv("TASKBOARD_LOG_LEVEL", "INFO").upper()
    else:
        log_level = log_level.upper()

    numeric_level = getattr(logging, log_level, None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
        log_level = "INFO"

    directory = log_dir or LOG_DIR
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / LOG_FILE.name

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    textual_enabled = False
    if use_textual_handler:
        from textual.logging import TextualHandler

        textual_handler = TextualHandler()
        textual_handler.setLevel(numeric_level)
        textual_handler.setFormatter(formatter)
        root_logger.addHandler(textual_handler)
        textual_enabled = True

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8"
    )
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(
        f"Logging initialized: level={log_level}, "
        f"file={log_file}, "
        f"textual_handler={textual_enabled}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Module name, typically __name__

    Returns:
        Logger instance configured with the module name

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Board loaded")
    """
    return logging.getLogger(name)
