"""
Logging helpers.

Only the ``recfilter`` package logger owns handlers. Module loggers obtained
with ``get_logger(__name__)`` propagate to it, so one ``set_level`` call
controls the whole library.
"""

import logging
import sys
from typing import Dict, Optional, Union


PACKAGE_LOGGER = "recfilter"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured: Dict[str, logging.Logger] = {}

Level = Union[int, str]


def _to_level(level: Level) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def _handler(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: Level = "WARNING",
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure a logger with a stderr handler and an optional file handler.

    Existing handlers on the logger are replaced.

    Args:
        name: Logger name
        level: Level name or number
        format_string: Record format, defaults to ``LOG_FORMAT``
        log_file: Also append records to this file
    """
    fmt = format_string or LOG_FORMAT
    logger = logging.getLogger(name)
    logger.setLevel(_to_level(level))
    logger.handlers.clear()

    logger.addHandler(_handler(logging.StreamHandler(sys.stderr), fmt))
    if log_file:
        logger.addHandler(_handler(logging.FileHandler(log_file), fmt))

    _configured[name] = logger
    return logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Return a logger, configuring the package logger on first use."""
    logger = _configured.get(name)
    if logger is not None:
        return logger

    if not name.startswith(PACKAGE_LOGGER + "."):
        return setup_logger(name)

    if PACKAGE_LOGGER not in _configured:
        setup_logger(PACKAGE_LOGGER)
    logger = _configured[name] = logging.getLogger(name)
    return logger


def set_level(level: Level, name: str = PACKAGE_LOGGER) -> None:
    get_logger(name).setLevel(_to_level(level))


class LogContext:
    """
    Temporarily change a logger's level.

    Example:
        >>> with LogContext(get_logger(), "DEBUG"):
        ...     engine.filter(records, expression)
    """

    def __init__(self, logger: logging.Logger, level: Level):
        self.logger = logger
        self.level = _to_level(level)
        self._saved: Optional[int] = None

    def __enter__(self) -> logging.Logger:
        self._saved = self.logger.level
        self.logger.setLevel(self.level)
        return self.logger

    def __exit__(self, *exc_info) -> None:
        self.logger.setLevel(self._saved)
