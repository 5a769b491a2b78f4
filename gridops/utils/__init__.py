"""Utilities shared by the gridops operator layers."""

from __future__ import annotations

from gridops.utils.grid_logging import configure_logging, get_logger
from gridops.utils.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    GridOpsError,
    LocationError,
    StencilUnderReadError,
    UnsatisfiableRequestError,
    report_fatal,
    set_fatal_error_hook,
)
from gridops.utils.parallel import LineExecutor, chunk_slices

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "GridOpsError",
    "LineExecutor",
    "LocationError",
    "StencilUnderReadError",
    "UnsatisfiableRequestError",
    "chunk_slices",
    "configure_logging",
    "get_logger",
    "report_fatal",
    "set_fatal_error_hook",
]
