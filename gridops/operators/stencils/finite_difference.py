"""
Fixed-coefficient finite difference kernels.

Kernels map a :class:`~gridops.operators.stencils.stencil.Stencil` to the
un-normalised derivative: first-derivative kernels return ``h * df/dx``,
second-derivative kernels ``h**2 * d2f/dx2`` and fourth-derivative kernels
``h**4 * d4f/dx4``. Upwind kernels return ``h * v df/dx`` and flux kernels
``h * d(vf)/dx``. The applicator divides by the local spacing.

Conceptual Hierarchy:
    Stencils (this module)
        ↓ (fixed coefficients)
    Reconstruction (operators/reconstruction/)
        ↓ (adaptive weighting, limiters)
    Registry (operators/registry.py)
        ↓ (name -> kernel tables)
    Differential Operators (operators/differential/)

Mathematical Background:
    C2 first:   (f[i+1] - f[i-1]) / 2h                               Error: O(h²)
    C4 first:   (8f[i+1] - 8f[i-1] + f[i-2] - f[i+2]) / 12h          Error: O(h⁴)
    C2 second:  (f[i+1] - 2f[i] + f[i-1]) / h²                       Error: O(h²)
    C4 second:  (-f[i+2] + 16f[i+1] - 30f[i] + 16f[i-1] - f[i-2]) / 12h²

Usage:
    >>> s = extract_stencil(data, axis=0, positions=slice(2, 34), transverse=(slice(None),))
    >>> dfdx = first_c4(s) / h
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from gridops.operators.stencils.stencil import Stencil


def _sign(x: NDArray) -> NDArray:
    """+1 where ``x > 0``, -1 elsewhere (zero counts as negative)."""
    return np.where(x > 0, 1.0, -1.0)


# =============================================================================
# First Derivatives (centred)
# =============================================================================


def first_c2(f: Stencil) -> NDArray:
    """Second-order central difference, ``(p - m) / 2``."""
    return 0.5 * (f.p - f.m)


def first_c4(f: Stencil) -> NDArray:
    """Fourth-order central difference."""
    return (8.0 * f.p - 8.0 * f.m + f.mm - f.pp) / 12.0


def first_s2(f: Stencil) -> NDArray:
    """
    Fourth-order central difference with added fourth-derivative smoothing.

    Formula: C4 + sign(c) * (pp - 4p + 6c - 4m + mm) / 12

    The dissipation term has the magnitude of the C4 truncation error but the
    sign of the local value, damping grid-scale oscillations.
    """
    result = first_c4(f)
    result += _sign(f.c) * (f.pp - 4.0 * f.p + 6.0 * f.c - 4.0 * f.m + f.mm) / 12.0
    return result


# =============================================================================
# Second and Fourth Derivatives (centred)
# =============================================================================


def second_c2(f: Stencil) -> NDArray:
    """Second-order second derivative, exact for quadratics."""
    return f.p + f.m - 2.0 * f.c


def second_c4(f: Stencil) -> NDArray:
    """Fourth-order second derivative, exact for polynomials up to degree five."""
    return (-f.pp + 16.0 * f.p - 30.0 * f.c + 16.0 * f.m - f.mm) / 12.0


def fourth_c2(f: Stencil) -> NDArray:
    """Second-order fourth derivative, ``pp - 4p + 6c - 4m + mm``."""
    return f.pp - 4.0 * f.p + 6.0 * f.c - 4.0 * f.m + f.mm


# =============================================================================
# Upwind Advection v df/dx (centred)
# =============================================================================


def upwind_u1(v: Stencil, f: Stencil) -> NDArray:
    """First-order upwinding on the sign of ``v`` at the centre."""
    return np.where(v.c >= 0.0, v.c * (f.c - f.m), v.c * (f.p - f.c))


def upwind_c2(v: Stencil, f: Stencil) -> NDArray:
    return v.c * 0.5 * (f.p - f.m)


def upwind_c4(v: Stencil, f: Stencil) -> NDArray:
    return v.c * first_c4(f)


def upwind_u4(v: Stencil, f: Stencil) -> NDArray:
    """
    Fourth-order upwind-biased advection.

    Uses the ``mm`` side for ``v >= 0`` and the ``pp`` side otherwise.
    """
    positive = (4.0 * f.p - 12.0 * f.m + 2.0 * f.mm + 6.0 * f.c) / 12.0
    negative = (-4.0 * f.m + 12.0 * f.p - 2.0 * f.pp - 6.0 * f.c) / 12.0
    return v.c * np.where(v.c >= 0.0, positive, negative)


# =============================================================================
# Flux Divergence d(vf)/dx (centred)
# =============================================================================


def flux_u1(v: Stencil, f: Stencil) -> NDArray:
    """
    First-order upwind flux difference.

    Face velocities are averaged from the neighbouring centres; the face value
    of ``f`` is taken from the upwind cell.
    """
    vs = 0.5 * (v.m + v.c)
    result = np.where(vs >= 0.0, vs * f.m, vs * f.c)
    vs = 0.5 * (v.c + v.p)
    result -= np.where(vs >= 0.0, vs * f.c, vs * f.p)
    return -result


def flux_c2(v: Stencil, f: Stencil) -> NDArray:
    return 0.5 * (v.p * f.p - v.m * f.m)


def flux_c4(v: Stencil, f: Stencil) -> NDArray:
    return (8.0 * v.p * f.p - 8.0 * v.m * f.m + v.mm * f.mm - v.pp * f.pp) / 12.0


# =============================================================================
# Staggered Kernels
# =============================================================================
# Staggered windows have no centre: m and p straddle the output point at
# half a cell, mm and pp at one and a half cells.


def first_stag_c2(f: Stencil) -> NDArray:
    return f.p - f.m


def first_stag_c4(f: Stencil) -> NDArray:
    return (27.0 * (f.p - f.m) - (f.pp - f.mm)) / 24.0


def second_stag_c4(f: Stencil) -> NDArray:
    return (f.pp + f.mm - f.p - f.m) / 2.0


def upwind_stag_u1(v: Stencil, f: Stencil) -> NDArray:
    """
    First-order upwind advection with ``v`` on the faces around the output point.

    Computes ``d(vf)/dx - f dv/dx`` with upwinded face fluxes; ``f`` is a
    centred window at the output location.
    """
    result = np.where(v.m >= 0.0, v.m * f.m, v.m * f.c)
    result -= np.where(v.p >= 0.0, v.p * f.c, v.p * f.p)
    result = -result
    result -= f.c * (v.p - v.m)
    return result


def flux_stag_u1(v: Stencil, f: Stencil) -> NDArray:
    """First-order upwind flux difference with ``v`` on the faces."""
    result = np.where(v.p >= 0.0, v.p * f.c, v.p * f.p)
    result -= np.where(v.m >= 0.0, v.m * f.m, v.m * f.c)
    return result


__all__ = [
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
    "second_c2",
    "second_c4",
    "second_stag_c4",
    "upwind_c2",
    "upwind_c4",
    "upwind_stag_u1",
    "upwind_u1",
    "upwind_u4",
]
