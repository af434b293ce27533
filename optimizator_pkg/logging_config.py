"""Structured logging configuration for Optimizator."""

import logging
import sys
from datetime import datetime
from typing import Optional

# Emits one DEBUG line per Nelder-Mead iteration
ITERATION_LOGGER = "optimizator.optimizer"


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured log entries with timestamp, module, level, and message."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        line = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    trace_iterations: bool = False,
) -> logging.Logger:
    """Set up structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs (if None, logs to stderr)
        trace_iterations: Keep the per-iteration optimizer trace at DEBUG level;
            otherwise the optimizer logger is held at INFO or above

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("optimizator")
    level_value = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level_value)

    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    iteration_logger = logging.getLogger(ITERATION_LOGGER)
    if trace_iterations:
        iteration_logger.setLevel(logging.NOTSET)
    else:
        iteration_logger.setLevel(max(level_value, logging.INFO))

    return logger


def get_logger(name: str = "optimizator") -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Logger name (typically module name)

    Returns:
        Logger instance
    """
    return logging.getLogger(f"optimizator.{name}")
