"""
Weighted essentially non-oscillatory (WENO) derivative kernels.

Provides nonlinearly weighted first derivatives that fall back to one-sided
stencils where the field is not smooth:

- ``cweno2_first``: second-order central WENO blending the left, right and
  central two-point differences.
- ``weno3_upwind``: third-order WENO advection ``v df/dx`` biased by the sign
  of ``v``.
- ``cweno3_first``: third-order central WENO obtained by Lax-Friedrichs flux
  splitting of ``df/dx`` into two WENO3 advection terms.

Mathematical Background:
    Smoothness indicators measure local curvature; candidate stencils that
    cross a steep gradient receive weights of order ``IS**-2`` and are
    effectively discarded. ``WENO_SMALL`` regularises the indicators so that
    constant data yields finite weights.

References:
    - Jiang & Shu (1996): Efficient Implementation of Weighted ENO Schemes
    - Levy, Puppo & Russo (1999): Central WENO schemes for hyperbolic systems
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from gridops.operators.stencils.stencil import Stencil

if TYPE_CHECKING:
    from numpy.typing import NDArray

WENO_SMALL = 1.0e-8


def cweno2_first(f: Stencil) -> NDArray:
    """
    Second-order central WENO first derivative.

    Parameters
    ----------
    f : Stencil
        Centred window with ``m``, ``c`` and ``p``.

    Returns
    -------
    NDArray
        ``h * df/dx``.

    Notes
    -----
    Weights are ``0.25/(eps+IS_l)**2``, ``0.25/(eps+IS_r)**2`` and
    ``0.5/(eps+IS_c)**2`` with ``IS_l = (c-m)**2``, ``IS_r = (p-c)**2`` and
    ``IS_c = 13/3 (p-2c+m)**2 + (p-m)**2 / 4``.
    """
    dc = 0.5 * (f.p - f.m)
    dl = f.c - f.m
    dr = f.p - f.c

    isl = dl**2
    isr = dr**2
    isc = (13.0 / 3.0) * (f.p - 2.0 * f.c + f.m) ** 2 + 0.25 * (f.p - f.m) ** 2

    al = 0.25 / (WENO_SMALL + isl) ** 2
    ar = 0.25 / (WENO_SMALL + isr) ** 2
    ac = 0.5 / (WENO_SMALL + isc) ** 2

    return (al * dl + ar * dr + ac * dc) / (al + ar + ac)


def weno3_upwind(v: Stencil, f: Stencil) -> NDArray:
    """
    Third-order WENO advection ``v df/dx``.

    Parameters
    ----------
    v : Stencil
        Velocity window; only ``c`` is read.
    f : Stencil
        Centred five-point window of the advected field.

    Returns
    -------
    NDArray
        ``h * v df/dx``.
    """
    curvature = (f.p - 2.0 * f.c + f.m) ** 2
    central = 0.5 * (f.p - f.m)

    r_left = (WENO_SMALL + (f.c - 2.0 * f.m + f.mm) ** 2) / (WENO_SMALL + curvature)
    w_left = 1.0 / (1.0 + 2.0 * r_left**2)
    left = central - 0.5 * w_left * (-f.mm + 3.0 * f.m - 3.0 * f.c + f.p)

    r_right = (WENO_SMALL + (f.pp - 2.0 * f.p + f.c) ** 2) / (WENO_SMALL + curvature)
    w_right = 1.0 / (1.0 + 2.0 * r_right**2)
    right = central - 0.5 * w_right * (-f.m + 3.0 * f.c - 3.0 * f.p + f.pp)

    return v.c * np.where(v.c > 0.0, left, right)


def cweno3_first(f: Stencil) -> NDArray:
    """
    Third-order central WENO first derivative by flux splitting.

    With ``a = max |f|`` over the window, ``df/dx`` is split as
    ``0.5 d(f+a)/dx + 0.5 d(f-a)/dx`` and each half is advected with the
    matching upwind bias, so both halves see a velocity of constant sign.
    """
    ma = f.max_abs()
    half = np.full_like(ma, 0.5)
    right_moving = weno3_upwind(Stencil(c=half), f.map(lambda a: a + ma))
    left_moving = weno3_upwind(Stencil(c=-half), f.map(lambda a: ma - a))
    return right_moving + left_moving


__all__ = ["WENO_SMALL", "cweno2_first", "cweno3_first", "weno3_upwind"]
