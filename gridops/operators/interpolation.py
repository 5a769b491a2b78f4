"""
Interpolation between cell locations.

Moves a field between cell centres and the lower faces along one axis with
a four-point (fourth-order) or two-point (second-order) midpoint formula:

    order 4:  (9 (m + p) - (mm + pp)) / 16
    order 2:  (m + p) / 2

A move between faces of two different axes goes through the cell centre.
Every point whose window lies inside storage is filled, ghost points
included, so a staggered result can be moved back without an intermediate
exchange; the remaining edge points are zero.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from gridops.core.location import CellLocation, as_location
from gridops.operators.applicator import check_ghost_width
from gridops.operators.stencils.stencil import layout_between, read_offsets, stencil_offsets

if TYPE_CHECKING:
    from gridops.core.field import Field


def _midpoint(window: dict, order: int):
    if order == 4:
        return (9.0 * (window["m"] + window["p"]) - (window["mm"] + window["pp"])) / 16.0
    return 0.5 * (window["m"] + window["p"])


def interp_to(field: Field, location: CellLocation | str, order: int = 4) -> Field:
    """
    Interpolate ``field`` to ``location``.

    Args:
        field: Field to move
        location: Target location; DEFAULT returns the field unchanged
        order: 4 or 2

    Returns:
        Field at ``location`` (the input itself when no move is needed).

    Raises:
        ValueError: If ``order`` is not 2 or 4
        StencilUnderReadError: If the axis has fewer ghost cells than the
            formula's half-width
    """
    if order not in (2, 4):
        raise ValueError(f"Interpolation order must be 2 or 4, got {order}")

    location = as_location(location)
    source = field.location
    if location is CellLocation.DEFAULT or location is source:
        return field

    if source is not CellLocation.CENTRE and location is not CellLocation.CENTRE:
        return interp_to(interp_to(field, CellLocation.CENTRE, order), location, order)

    axis = location.axis if location.is_staggered else source.axis
    if field.ndim < axis + 1:
        # 2D fields are uniform in z
        return field.with_data(field.data.copy(), location)

    mesh = field.mesh
    width = 2 if order == 4 else 1
    check_ghost_width(mesh, axis, width, operator_name="interp_to")

    layout = layout_between(source, location, axis)
    offsets = stencil_offsets(layout, width)
    grid = mesh.axis(axis)

    if grid.periodic:
        positions = slice(0, grid.n)
        period = grid.n
    else:
        positions = slice(-min(offsets.values()), grid.size - max(offsets.values()))
        period = None

    transverse = tuple(slice(None) for dim in range(field.ndim) if dim != axis)
    window = read_offsets(field.data, axis, positions, transverse, offsets, period)

    result = np.zeros(field.shape)
    index = [slice(None)] * field.ndim
    index[axis] = positions
    result[tuple(index)] = _midpoint(window, order)

    if grid.periodic:
        closure = [slice(None)] * field.ndim
        first = [slice(None)] * field.ndim
        closure[axis] = grid.n
        first[axis] = 0
        result[tuple(closure)] = result[tuple(first)]

    return field.with_data(result, location)


__all__ = ["interp_to"]
