"""
Cell-location resolution for derivative requests.

Given the location of the input, the requested output location and the axis
of differentiation, decide which table family to use, where the raw result
lives and which interpolations surround the kernel call. Planning is pure;
the engine carries out the plan.

State machine for a derivative along axis ``A`` with face location ``Alow``:

- staggering disabled, or ``in == out``: centred table at ``in``;
- ``Centre -> Alow`` or ``Alow -> Centre``: staggered table, result at ``out``;
- ``Alow -> other``: staggered table to Centre, then interpolate to ``out``;
- ``Blow -> anything`` (another axis' face): interpolate the input to Centre
  and plan again from Centre;
- ``Centre -> Blow``: centred table at Centre, then interpolate to ``out``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from gridops.core.location import Axis, CellLocation
from gridops.operators.stencils.stencil import StencilLayout, layout_between


@dataclass(frozen=True)
class LocationPlan:
    """
    How to evaluate one derivative with respect to cell locations.

    Attributes:
        staggered: Use the staggered table family
        layout: Stencil layout for the differenced field (first/second
            derivatives) or for the velocity (upwind/flux)
        input_location: Location the differenced input must be moved to first
        velocity_location: Location the velocity must be moved to first
            (upwind/flux only)
        result_location: Location of the kernel output
        output_location: Final location after interpolation
    """

    staggered: bool
    layout: StencilLayout
    input_location: CellLocation
    result_location: CellLocation
    output_location: CellLocation
    velocity_location: CellLocation | None = None


def _target(inloc: CellLocation, outloc: CellLocation | None) -> CellLocation:
    if outloc is None or outloc is CellLocation.DEFAULT:
        return inloc
    return outloc


def plan_derivative(
    axis: Axis,
    inloc: CellLocation,
    outloc: CellLocation | None,
    stagger_grids: bool,
) -> LocationPlan:
    """Plan a first or second derivative along ``axis``."""
    outloc = _target(inloc, outloc)

    if not stagger_grids or outloc is inloc:
        return LocationPlan(False, StencilLayout.CENTRED, inloc, inloc, inloc)

    low = axis.low
    if (inloc, outloc) in ((CellLocation.CENTRE, low), (low, CellLocation.CENTRE)):
        return LocationPlan(True, layout_between(inloc, outloc, axis), inloc, outloc, outloc)

    if inloc is low:
        return LocationPlan(True, StencilLayout.STAGGER_UP, inloc, CellLocation.CENTRE, outloc)

    if inloc is not CellLocation.CENTRE:
        plan = plan_derivative(axis, CellLocation.CENTRE, outloc, stagger_grids)
        return replace(plan, input_location=CellLocation.CENTRE)

    return LocationPlan(False, StencilLayout.CENTRED, inloc, inloc, outloc)


def plan_advection(
    axis: Axis,
    vloc: CellLocation,
    floc: CellLocation,
    outloc: CellLocation | None,
    stagger_grids: bool,
) -> LocationPlan:
    """
    Plan an upwind or flux term ``v d/dA f`` along ``axis``.

    The advected field is never moved; the result is produced at its
    location. A velocity on the faces along ``axis`` around a centred field
    (or centred around a face field) selects the staggered tables; any other
    mismatch interpolates the velocity to the field's location.
    """
    outloc = _target(floc, outloc)

    if not stagger_grids:
        return LocationPlan(False, StencilLayout.CENTRED, floc, floc, floc, velocity_location=vloc)

    if vloc is floc:
        return LocationPlan(False, StencilLayout.CENTRED, floc, floc, outloc, velocity_location=vloc)

    low = axis.low
    if (vloc, floc) in ((low, CellLocation.CENTRE), (CellLocation.CENTRE, low)):
        return LocationPlan(True, layout_between(vloc, floc, axis), floc, floc, outloc, velocity_location=vloc)

    return LocationPlan(False, StencilLayout.CENTRED, floc, floc, outloc, velocity_location=floc)


__all__ = ["LocationPlan", "plan_advection", "plan_derivative"]
