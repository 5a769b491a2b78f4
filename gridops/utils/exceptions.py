"""
Exception classes for gridops with structured, actionable error messages.

Two families of failure exist:

- Soft misconfiguration (unknown scheme names, methods missing from a table)
  never raises; the registry falls back and logs a diagnostic.
- Fatal conditions (a request no registered kernel can satisfy, a stencil that
  would read past the populated ghost cells) are routed through
  :func:`report_fatal`, which logs, invokes the registered error hook and
  raises.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, NoReturn

from gridops.utils.grid_logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)


class GridOpsError(Exception):
    """
    Base exception for gridops errors with context and suggestions.

    The rendered message carries the operator name, an optional suggested
    action, an error code and any diagnostic key/value pairs.
    """

    def __init__(
        self,
        message: str,
        operator_name: str | None = None,
        suggested_action: str | None = None,
        error_code: str | None = None,
        diagnostic_data: dict[str, Any] | None = None,
    ):
        self.operator_name = operator_name or "gridops"
        self.suggested_action = suggested_action
        self.error_code = error_code
        self.diagnostic_data = diagnostic_data or {}

        full_message = f"[{self.operator_name}] {message}"

        if self.suggested_action:
            full_message += f"\nSuggestion: {self.suggested_action}"

        if self.error_code:
            full_message += f"\nError Code: {self.error_code}"

        if self.diagnostic_data:
            full_message += "\nDiagnostic Information:"
            for key, value in self.diagnostic_data.items():
                full_message += f"\n   - {key}: {value}"

        super().__init__(full_message)


class UnsatisfiableRequestError(GridOpsError):
    """Raised when no registered kernel can honour a derivative request."""

    def __init__(
        self,
        reason: str,
        operator_name: str | None = None,
        axis: str | None = None,
        method: str | None = None,
        suggested_action: str | None = None,
    ):
        diagnostic_data: dict[str, Any] = {}
        if axis is not None:
            diagnostic_data["axis"] = axis
        if method is not None:
            diagnostic_data["method"] = method

        super().__init__(
            message=reason,
            operator_name=operator_name,
            suggested_action=suggested_action,
            error_code="UNSATISFIABLE_REQUEST",
            diagnostic_data=diagnostic_data,
        )


class StencilUnderReadError(GridOpsError):
    """Raised when a stencil's half-width exceeds the ghost width of its axis."""

    def __init__(self, axis: str, half_width: int, ghost_width: int, operator_name: str | None = None):
        self.half_width = half_width
        self.ghost_width = ghost_width
        super().__init__(
            message=f"Stencil of half-width {half_width} would read beyond {ghost_width} ghost cell(s) along {axis}",
            operator_name=operator_name,
            suggested_action=f"Allocate at least {half_width} ghost cell(s) along {axis} or select a narrower scheme",
            error_code="STENCIL_UNDER_READ",
            diagnostic_data={"axis": axis, "half_width": half_width, "ghost_width": ghost_width},
        )


class ConfigurationError(GridOpsError):
    """Raised when differencing configuration is invalid or re-initialised."""

    def __init__(self, parameter_name: str, provided_value: Any, reason: str, operator_name: str | None = None):
        super().__init__(
            message=f"Invalid configuration for '{parameter_name}': {reason}",
            operator_name=operator_name,
            error_code="INVALID_CONFIGURATION",
            diagnostic_data={
                "parameter": parameter_name,
                "provided_value": str(provided_value),
                "provided_type": type(provided_value).__name__,
            },
        )


class DimensionMismatchError(GridOpsError):
    """Raised when array dimensions don't match the mesh."""

    def __init__(
        self,
        array_name: str,
        provided_shape: tuple,
        expected_shape: tuple | str,
        operator_name: str | None = None,
    ):
        super().__init__(
            message=f"Dimension mismatch for {array_name}",
            operator_name=operator_name,
            suggested_action=f"Reshape {array_name} to {expected_shape} including ghost cells",
            error_code="DIMENSION_MISMATCH",
            diagnostic_data={"provided_shape": str(provided_shape), "expected_shape": str(expected_shape)},
        )


class LocationError(GridOpsError):
    """Raised when fields at different cell locations are combined."""

    def __init__(self, left: str, right: str, operation: str):
        super().__init__(
            message=f"Cannot apply '{operation}' to fields at {left} and {right}",
            suggested_action="Interpolate one operand with interp_to() first",
            error_code="LOCATION_MISMATCH",
        )


# =============================================================================
# Fatal Error Hook
# =============================================================================

_hook_lock = threading.Lock()
_fatal_error_hook: Callable[[GridOpsError], None] | None = None


def set_fatal_error_hook(hook: Callable[[GridOpsError], None] | None) -> None:
    """
    Install the callable invoked before a fatal error is raised.

    The hook receives the error and may record it, abort the job or tear down
    communicators. Passing None removes any installed hook.
    """
    global _fatal_error_hook
    with _hook_lock:
        _fatal_error_hook = hook


def report_fatal(error: GridOpsError) -> NoReturn:
    """Log a fatal error, invoke the installed hook, then raise the error."""
    logger.critical(str(error))
    with _hook_lock:
        hook = _fatal_error_hook
    if hook is not None:
        hook(error)
    raise error


__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "GridOpsError",
    "LocationError",
    "StencilUnderReadError",
    "UnsatisfiableRequestError",
    "report_fatal",
    "set_fatal_error_hook",
]
