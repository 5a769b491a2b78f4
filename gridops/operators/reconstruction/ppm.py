"""
Piecewise parabolic method (PPM) advection.

Reconstructs a limited parabola in every cell, then evaluates
``v df/dx ~ v (F(i+1/2) - F(i-1/2)) / h`` with each face value taken from
the upwind cell. The face interpolation and extremum-preserving limiter
follow Colella & Sekora (2008); the face values are taken in the limit of a
vanishing time step, giving a spatial operator.

The window reaches three cells on each side of the output point, so PPM
needs three ghost cells along non-periodic axes.

References:
    - Colella & Woodward (1984): The piecewise parabolic method
    - Colella & Sekora (2008): A limiter for PPM that preserves accuracy at
      smooth extrema
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

PPM_HALF_WIDTH = 3
PPM_LIMIT = 1.25


def _limited_curvature(d2a: NDArray, *others: NDArray) -> NDArray:
    """``sign(d2a) * min(|d2a|, C|others|)`` where all curvatures agree in sign, else zero."""
    sign = np.sign(d2a)
    same = np.ones(d2a.shape, dtype=bool)
    magnitude = np.abs(d2a)
    for other in others:
        same &= np.sign(other) == sign
        magnitude = np.minimum(magnitude, PPM_LIMIT * np.abs(other))
    return np.where(same, sign * magnitude, 0.0)


def _face(a: dict[int, NDArray], k: int) -> NDArray:
    """Limited value on the face between cells ``k`` and ``k+1``."""
    face = (7.0 / 12.0) * (a[k] + a[k + 1]) - (1.0 / 12.0) * (a[k - 1] + a[k + 2])

    d2a = 3.0 * (a[k] - 2.0 * face + a[k + 1])
    d2a_left = a[k - 1] - 2.0 * a[k] + a[k + 1]
    d2a_right = a[k] - 2.0 * a[k + 1] + a[k + 2]
    limited = _limited_curvature(d2a, d2a_left, d2a_right)

    outside = (face - a[k]) * (a[k + 1] - face) < 0.0
    return np.where(outside, 0.5 * (a[k] + a[k + 1]) - limited / 3.0, face)


def _cell_states(a: dict[int, NDArray], j: int) -> tuple[NDArray, NDArray]:
    """Limited ``(a_minus, a_plus)`` edge values of the parabola in cell ``j``."""
    c = a[j]
    am = _face(a, j - 1)
    ap = _face(a, j)

    # Smooth or genuine extremum: rescale both edges by the limited curvature.
    extremum = ((ap - c) * (c - am) <= 0.0) | ((a[j - 1] - c) * (c - a[j + 1]) <= 0.0)
    d2a = 6.0 * (ap + am) - 12.0 * c
    d2a_centre = a[j - 1] - 2.0 * c + a[j + 1]
    d2a_left = a[j - 2] - 2.0 * a[j - 1] + c
    d2a_right = c - 2.0 * a[j + 1] + a[j + 2]
    limited = _limited_curvature(d2a, d2a_centre, d2a_left, d2a_right)
    ratio = np.zeros_like(d2a)
    np.divide(limited, d2a, out=ratio, where=d2a != 0.0)
    am_ext = c + (am - c) * ratio
    ap_ext = c + (ap - c) * ratio

    # Monotone cell: pull in an edge whose parabola would overshoot.
    alpha_p = ap - c
    alpha_m = am - c
    total = alpha_p + alpha_m
    safe_total = np.where(total != 0.0, total, 1.0)

    delta = a[j + 1] - c
    s = np.where(delta >= 0.0, 1.0, -1.0)
    overshoot_p = (np.abs(alpha_p) >= 2.0 * np.abs(alpha_m)) & (total != 0.0)
    overshoot_p &= s * (-(alpha_p**2) / (4.0 * safe_total)) >= s * delta
    root = np.sqrt(np.maximum(delta**2 - delta * alpha_m, 0.0))
    alpha_p_new = np.where(overshoot_p, -2.0 * delta - 2.0 * s * root, alpha_p)

    delta = a[j - 1] - c
    s = np.where(delta >= 0.0, 1.0, -1.0)
    overshoot_m = (np.abs(alpha_m) >= 2.0 * np.abs(alpha_p)) & (total != 0.0)
    overshoot_m &= s * (-(alpha_m**2) / (4.0 * safe_total)) >= s * delta
    root = np.sqrt(np.maximum(delta**2 - delta * alpha_p, 0.0))
    alpha_m_new = np.where(overshoot_m, -2.0 * delta - 2.0 * s * root, alpha_m)

    am = np.where(extremum, am_ext, c + alpha_m_new)
    ap = np.where(extremum, ap_ext, c + alpha_p_new)
    return am, ap


def ppm_advection(v: dict[int, NDArray], f: dict[int, NDArray]) -> NDArray:
    """
    PPM advection ``h * v df/dx``.

    Args:
        v: Velocity window keyed by offset, offsets ``-1`` and ``0`` required
        f: Advected field window keyed by offset, offsets ``-3`` to ``3``

    Returns:
        Un-normalised advection term at offset 0.
    """
    states = {j: _cell_states(f, j) for j in (-1, 0, 1)}

    # upwind face values at i-1/2 and i+1/2
    face_minus = np.where(v[-1] >= 0.0, states[-1][1], states[0][0])
    face_plus = np.where(v[0] >= 0.0, states[0][1], states[1][0])

    return v[0] * (face_plus - face_minus)


__all__ = ["PPM_HALF_WIDTH", "PPM_LIMIT", "ppm_advection"]
