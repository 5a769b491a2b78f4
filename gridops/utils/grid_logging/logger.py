"""
Logging infrastructure for gridops.

Provides structured logging with configurable levels, colour output through
colorlog and optional file logging. Loggers are created once per name and
reconfigured in place when the global settings change.
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import ClassVar

import colorlog

_FORMAT = "%(asctime)s - %(name)-20s - %(levelname)-8s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class GridFormatter(logging.Formatter):
    """Formatter with optional colours and source location."""

    def __init__(self, use_colors: bool = False, include_location: bool = False):
        self.use_colors = use_colors
        self.include_location = include_location

        format_str = _FORMAT
        if self.include_location:
            format_str += " [%(filename)s:%(lineno)d]"

        if self.use_colors:
            self.colored_formatter = colorlog.ColoredFormatter(
                "%(log_color)s" + format_str,
                datefmt=_DATEFMT,
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "red,bg_white",
                },
            )

        super().__init__(format_str, datefmt=_DATEFMT)

    def format(self, record):
        if self.use_colors:
            return self.colored_formatter.format(record)
        return super().format(record)


class GridLogger:
    """
    Central logging manager for gridops.

    Thread Safety:
        Logger creation uses double-checked locking so that operator code
        running on worker threads can call get_logger() concurrently without
        installing duplicate handlers.
    """

    _instance = None
    _lock: ClassVar[threading.Lock] = threading.Lock()
    _loggers: ClassVar[dict[str, logging.Logger]] = {}
    _log_level = logging.INFO
    _log_to_file = False
    _log_file_path: Path | None = None
    _use_colors = True
    _include_location = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def configure(
        cls,
        level: str | int = "INFO",
        log_to_file: bool = False,
        log_file_path: str | Path | None = None,
        use_colors: bool = True,
        include_location: bool = False,
    ):
        """
        Configure global logging settings.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_to_file: Whether to log to file
            log_file_path: Path to log file, defaults to ./logs/gridops.log
            use_colors: Use coloured terminal output
            include_location: Include file location in log messages
        """
        with cls._lock:
            if isinstance(level, str):
                cls._log_level = getattr(logging, level.upper())
            else:
                cls._log_level = level

            cls._log_to_file = log_to_file
            cls._use_colors = use_colors
            cls._include_location = include_location

            if log_to_file:
                cls._log_file_path = Path(log_file_path) if log_file_path else Path.cwd() / "logs" / "gridops.log"
                cls._log_file_path.parent.mkdir(parents=True, exist_ok=True)

            for logger in cls._loggers.values():
                cls._setup_logger(logger)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get or create a logger for the specified module.

        Args:
            name: Logger name (typically __name__ from calling module)

        Returns:
            Configured logger instance
        """
        if name in cls._loggers:
            return cls._loggers[name]

        with cls._lock:
            if name not in cls._loggers:
                logger = logging.getLogger(name)
                if not logger.handlers:
                    cls._setup_logger(logger)
                cls._loggers[name] = logger

        return cls._loggers[name]

    @classmethod
    def _setup_logger(cls, logger: logging.Logger):
        logger.handlers.clear()
        logger.setLevel(cls._log_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(GridFormatter(use_colors=cls._use_colors, include_location=cls._include_location))
        console_handler.setLevel(cls._log_level)
        logger.addHandler(console_handler)

        if cls._log_to_file and cls._log_file_path:
            file_handler = logging.FileHandler(cls._log_file_path)
            file_handler.setFormatter(GridFormatter(use_colors=False, include_location=cls._include_location))
            file_handler.setLevel(cls._log_level)
            logger.addHandler(file_handler)

        logger.propagate = False


def get_logger(name: str = "gridops") -> logging.Logger:
    """Get a configured logger, typically ``get_logger(__name__)``."""
    return GridLogger.get_logger(name)


def configure_logging(**kwargs):
    """
    Configure global logging settings.

    Keyword Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to file
        log_file_path: Path to log file
        use_colors: Use coloured terminal output
        include_location: Include file location in messages
    """
    GridLogger.configure(**kwargs)
