"""
Differential operators built on the stencil, reconstruction and spectral layers.

Usage:
    >>> from gridops.operators.differential import DerivativeEngine
    >>> engine = DerivativeEngine(mesh)
    >>> dfdx = engine.ddx(f)
"""

from __future__ import annotations

from gridops.operators.differential.derivatives import DerivativeEngine, get_default_engine, set_default_engine
from gridops.operators.differential.linear import NONLINEAR_METHODS, DerivativeOperator

__all__ = [
    "NONLINEAR_METHODS",
    "DerivativeEngine",
    "DerivativeOperator",
    "get_default_engine",
    "set_default_engine",
]
