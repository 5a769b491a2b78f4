"""
Differential operators for fields on logically rectangular meshes.

Layers, bottom-up:
    stencils/        stencil windows and fixed-coefficient kernels
    reconstruction/  WENO, limiters and PPM
    registry         scheme tables and name resolution
    location         cell-location planning
    applicator       grid-wide kernel application
    spectral         FFT derivatives along z
    interpolation    moves between cell locations
    differential/    the DerivativeEngine surface

``differential`` is imported from the top-level package, after the
configuration layer it depends on.
"""

from __future__ import annotations

from gridops.operators.applicator import Applicator, check_ghost_width, output_region
from gridops.operators.interpolation import interp_to
from gridops.operators.location import LocationPlan, plan_advection, plan_derivative
from gridops.operators.registry import DiffMethod, OperatorClass, Scheme, SchemeKind, SchemeTable, describe_method
from gridops.operators.spectral import SpectralBufferPool, SpectralDifferentiator

__all__ = [
    "Applicator",
    "DiffMethod",
    "LocationPlan",
    "OperatorClass",
    "Scheme",
    "SchemeKind",
    "SchemeTable",
    "SpectralBufferPool",
    "SpectralDifferentiator",
    "check_ghost_width",
    "describe_method",
    "interp_to",
    "output_region",
    "plan_advection",
    "plan_derivative",
]
