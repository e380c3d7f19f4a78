"""Logging configuration for the persistence harness command-line interface."""

import logging
from enum import Enum


LOGGER_NAME = "persistence_harness"


class LoggerType(Enum):
    """Enum for different logger types."""
    NULL = "null"
    CONSOLE = "console"


def create_null_logger() -> logging.Logger:
    """Create a null logger that discards all messages.

    Returns:
        Logger with NullHandler
    """
    logger = logging.getLogger(f"{LOGGER_NAME}.null")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


def create_console_logger(level: str = "INFO") -> logging.Logger:
    """Configure the package logger to write to the console.

    Harness modules log to children of this logger, so their warnings (for
    example about contexts left open) reach the console too.

    Args:
        level: Logging level name

    Returns:
        The package logger with a single console handler
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    logger.addHandler(console_handler)
    return logger


def logger_factory(logger_type: LoggerType = LoggerType.CONSOLE, level: str = "INFO") -> logging.Logger:
    """Factory function to create different types of loggers.

    Args:
        logger_type: Type of logger to create
        level: Logging level for the console logger

    Returns:
        Configured logger instance based on type
    """
    if logger_type == LoggerType.NULL:
        return create_null_logger()
    elif logger_type == LoggerType.CONSOLE:
        return create_console_logger(level)
    else:
        raise ValueError(f"Unknown logger type: {logger_type}")
