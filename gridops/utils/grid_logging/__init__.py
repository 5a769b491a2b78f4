"""
Logging utilities for gridops.

Usage:
    >>> from gridops.utils.grid_logging import get_logger, configure_logging
    >>> configure_logging(level="DEBUG", use_colors=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("Resolving differencing methods")
"""

from __future__ import annotations

from .logger import GridFormatter, GridLogger, configure_logging, get_logger

__all__ = [
    "GridFormatter",
    "GridLogger",
    "configure_logging",
    "get_logger",
]
