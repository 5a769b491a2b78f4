"""
Stencil windows and fixed-coefficient finite difference kernels.

Usage:
    >>> from gridops.operators.stencils import StencilLayout, extract_stencil, first_c4
"""

from __future__ import annotations

from gridops.operators.stencils.finite_difference import (
    first_c2,
    first_c4,
    first_s2,
    first_stag_c2,
    first_stag_c4,
    flux_c2,
    flux_c4,
    flux_stag_u1,
    flux_u1,
    fourth_c2,
    second_c2,
    second_c4,
    second_stag_c4,
    upwind_c2,
    upwind_c4,
    upwind_stag_u1,
    upwind_u1,
    upwind_u4,
)
from gridops.operators.stencils.stencil import (
    Stencil,
    StencilLayout,
    extract_stencil,
    layout_between,
    read_offsets,
    stencil_offsets,
)

__all__ = [
    "Stencil",
    "StencilLayout",
    "extract_stencil",
    "first_c2",
    "first_c4",
    "first_s2",
    "first_stag_c2",
    "first_stag_c4",
    "flux_c2",
    "flux_c4",
    "flux_stag_u1",
    "flux_u1",
    "fourth_c2",
    "layout_between",
    "read_offsets",
    "second_c2",
    "second_c4",
    "second_stag_c4",
    "stencil_offsets",
    "upwind_c2",
    "upwind_c4",
    "upwind_stag_u1",
    "upwind_u1",
    "upwind_u4",
]
