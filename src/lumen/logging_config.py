"""Logging configuration for lumen."""

import logging

from lumen.config import LOG_FORMAT, LOG_LEVEL


def setup_logging(level: str | None = None, name: str = "lumen") -> logging.Logger:
    """Attach a console handler to the package logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to LUMEN_LOG_LEVEL.
        name: Logger name to configure.

    Returns:
        Configured logger instance.
    """
    if level is None:
        level = LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(numeric_level)

    return logger
