"""
Adaptive reconstruction: WENO weighting, slope limiters and PPM.

These kernels sit between the fixed-coefficient stencils and the registry;
their weights depend on the local data.
"""

from __future__ import annotations

from gridops.operators.reconstruction.limiters import (
    kt_face_states,
    kt_flux_difference,
    minmod,
    nnd_flux,
    superbee,
    van_leer,
)
from gridops.operators.reconstruction.ppm import PPM_HALF_WIDTH, ppm_advection
from gridops.operators.reconstruction.weno import WENO_SMALL, cweno2_first, cweno3_first, weno3_upwind

__all__ = [
    "PPM_HALF_WIDTH",
    "WENO_SMALL",
    "cweno2_first",
    "cweno3_first",
    "kt_face_states",
    "kt_flux_difference",
    "minmod",
    "nnd_flux",
    "ppm_advection",
    "superbee",
    "van_leer",
    "weno3_upwind",
]
