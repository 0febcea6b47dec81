#!/usr/bin/env python3
"""
TVDB Provider Utilities Module

This module provides the logging setup shared by every component of the provider.
It keeps the logging configuration in one place so the API layer, the services and
the TheTVDB client all emit the same structured format.

Functions:
    setup_logging: Configure logging with rotation and custom formatting
    get_logger: Retrieve existing logger instances by name

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path

LOGGER_NAME = "tvdb_provider"


class BracketFormatter(logging.Formatter):
    """
    Log formatter that uses brackets for structured, readable output.

    Produces lines such as:
    `[2025-01-15 10:30:45 UTC] [system] [INFO] [tvdb_provider.metadata] Fetching tvdb-show-152831`
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(
            record.created,
            tz=timezone.utc
        ).strftime('%Y-%m-%d %H:%M:%S UTC')

        # Request handlers may attach the calling client as `user`
        user = getattr(record, 'user', 'system')

        message = f"[{timestamp}] [{user}] [{record.levelname}] [{record.name}] {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(log_level: str = "INFO", log_dir: str = "/app/logs") -> logging.Logger:
    """
    Set up logging with rotation and custom formatting.

    Configures the `tvdb_provider` logger with a console handler and a rotating
    file handler (10MB per file, 5 backups). Child loggers such as
    `tvdb_provider.metadata` inherit these handlers.

    Args:
        log_level (str): Python logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir (str): Directory where `tvdb_provider.log` is written. Created if missing.

    Returns:
        logging.Logger: The configured application logger

    Raises:
        ValueError: If log_level is not a valid Python logging level
        PermissionError: If the log directory cannot be created

    Note:
        Calling this more than once replaces the handlers instead of stacking
        duplicates, so tests and reloads are safe.
    """
    valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    log_level_upper = log_level.upper()
    if log_level_upper not in valid_levels:
        raise ValueError(f"Invalid log level '{log_level}'. Must be one of: {valid_levels}")

    numeric_level = getattr(logging, log_level_upper)

    log_path = Path(log_dir)
    try:
        log_path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(f"Cannot create log directory '{log_dir}': {e}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(BracketFormatter())
    logger.addHandler(console_handler)

    log_file_path = log_path / "tvdb_provider.log"
    try:
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file_path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8',
            mode='a'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(BracketFormatter())
        logger.addHandler(file_handler)
    except PermissionError as e:
        logger.error(f"Cannot create log file '{log_file_path}': {e}")
        logger.warning("Continuing with console logging only")

    # Requests are logged by our own middleware
    logging.getLogger("uvicorn.access").disabled = True

    logger.info(f"Logging at {log_level_upper} to console and {log_file_path} ({len(logger.handlers)} handlers)")
    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance by name.

    Component loggers use dotted names below the application logger
    (`tvdb_provider.tvdb`, `tvdb_provider.metadata`, `tvdb_provider.api`) so they
    inherit the handlers installed by setup_logging().

    Args:
        name (str): Logger name to retrieve. Defaults to the application logger.

    Returns:
        logging.Logger: Logger instance
    """
    return logging.getLogger(name)
