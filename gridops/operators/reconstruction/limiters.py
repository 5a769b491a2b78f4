"""
Slope limiters and limited flux schemes.

- ``minmod``, ``superbee``, ``van_leer``: classical TVD limiter functions.
- ``nnd_flux``: the NND scheme (Non-oscillatory, containing No free
  parameters and Dissipative) for the flux divergence ``d(vf)/dx``.
- ``kt_face_states`` and ``kt_flux_difference``: the Kurganov-Tadmor central
  scheme with MUSCL reconstruction and a superbee limiter.

References:
    - Zhang, Zhuang & Zhang (2011): NND scheme, arXiv:1010.4135
    - Kurganov & Tadmor (2000): New high-resolution central schemes for
      nonlinear conservation laws and convection-diffusion equations
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from gridops.operators.stencils.stencil import Stencil


# =============================================================================
# Limiter Functions
# =============================================================================


def minmod(a: NDArray, b: NDArray) -> NDArray:
    """Smaller magnitude of ``a`` and ``b`` when they share a sign, otherwise zero."""
    return np.where(a * b > 0.0, np.sign(a) * np.minimum(np.abs(a), np.abs(b)), 0.0)


def superbee(r: NDArray) -> NDArray:
    """Superbee limiter ``max(0, min(2r, 1), min(r, 2))``."""
    return np.maximum(0.0, np.maximum(np.minimum(2.0 * r, 1.0), np.minimum(r, 2.0)))


def van_leer(r: NDArray) -> NDArray:
    """Van Leer limiter ``(r + |r|) / (1 + |r|)``."""
    return (r + np.abs(r)) / (1.0 + np.abs(r))


def slope_ratio(numerator: NDArray, denominator: NDArray) -> NDArray:
    """``numerator / denominator`` with zero where the denominator vanishes."""
    out = np.zeros(np.broadcast(numerator, denominator).shape)
    np.divide(numerator, denominator, out=out, where=denominator != 0.0)
    return out


# =============================================================================
# NND Flux Scheme
# =============================================================================


def nnd_flux(v: Stencil, f: Stencil) -> NDArray:
    """
    NND flux difference ``h * d(vf)/dx``.

    The flux ``vf`` is split into right-moving ``f+ = (v+|v|)/2 f`` and
    left-moving ``f- = (v-|v|)/2 f`` parts; each is reconstructed to the cell
    faces from its upwind side with a minmod-limited slope.
    """

    def split(vel, val):
        return 0.5 * (vel + np.abs(vel)) * val, 0.5 * (vel - np.abs(vel)) * val

    fp, fm = split(v.c, f.c)
    fp1, fm1 = split(v.p, f.p)
    fp_1, fm_1 = split(v.m, f.m)
    _, fm2 = split(v.pp, f.pp)
    fp_2, _ = split(v.mm, f.mm)

    # left and right states at i+1/2
    flp = fp + 0.5 * minmod(fp1 - fp, fp - fp_1)
    frp = fm1 - 0.5 * minmod(fm1 - fm, fm2 - fm1)

    # left and right states at i-1/2
    flm = fp_1 + 0.5 * minmod(fp - fp_1, fp_1 - fp_2)
    frm = fm - 0.5 * minmod(fm - fm_1, fm1 - fm)

    return (flp + frp) - (flm + frm)


# =============================================================================
# Kurganov-Tadmor MUSCL Scheme
# =============================================================================


def kt_face_states(f: Stencil) -> tuple[NDArray, NDArray, NDArray, NDArray]:
    """
    Superbee-limited MUSCL states at the faces of the centre cell.

    Returns:
        ``(left_plus, right_plus, left_minus, right_minus)``: the states on
        the left and right of the ``i+1/2`` face, then of the ``i-1/2`` face.
    """
    phi = superbee(slope_ratio(f.c - f.m, f.p - f.c))
    phi_m = superbee(slope_ratio(f.m - f.mm, f.c - f.m))
    phi_p = superbee(slope_ratio(f.p - f.c, f.pp - f.p))

    left_plus = f.c + 0.5 * phi * (f.p - f.c)
    right_plus = f.p - 0.5 * phi_p * (f.pp - f.p)
    left_minus = f.m + 0.5 * phi_m * (f.c - f.m)
    right_minus = f.c - 0.5 * phi * (f.p - f.c)
    return left_plus, right_plus, left_minus, right_minus


def kt_flux_difference(flux: Stencil, u: Stencil, vmax: NDArray | float) -> NDArray:
    """
    Kurganov-Tadmor numerical flux difference ``F(i-1/2) - F(i+1/2)``.

    Args:
        flux: Window of the physical flux ``F(u)``
        u: Window of the conserved quantity
        vmax: Maximum local wave speed used for the dissipation term

    Returns:
        ``-h * dF/dx``, the contribution to ``h * du/dt``.
    """
    ulp, urp, ulm, urm = kt_face_states(u)
    flp, frp, flm, frm = kt_face_states(flux)

    f_minus = 0.5 * (frm + flm - vmax * (urm - ulm))
    f_plus = 0.5 * (frp + flp - vmax * (urp - ulp))
    return f_minus - f_plus


__all__ = [
    "kt_face_states",
    "kt_flux_difference",
    "minmod",
    "nnd_flux",
    "slope_ratio",
    "superbee",
    "van_leer",
]
