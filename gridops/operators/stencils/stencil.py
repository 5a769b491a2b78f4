"""
Stencil windows and their extraction from field storage.

A stencil is the neighbourhood of field values a kernel reads at one output
point. Every member is an array covering a whole block of output points, so a
kernel written in elementwise numpy evaluates an entire chunk of grid lines
at once.

Layouts:
    CENTRED:      mm=f[i-2]  m=f[i-1]  c=f[i]  p=f[i+1]  pp=f[i+2]
    STAGGER_DOWN: mm=f[i-2]  m=f[i-1]          p=f[i]    pp=f[i+1]
                  (input at centres, output on the lower face of cell i)
    STAGGER_UP:   mm=f[i-1]  m=f[i]            p=f[i+1]  pp=f[i+2]
                  (input on lower faces, output at the centre of cell i)

Along a periodic axis indices wrap modulo the number of owned points; along
any other axis they read the ghost cells, which must already be valid.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from gridops.core.location import Axis, CellLocation

if TYPE_CHECKING:
    from collections.abc import Callable

    from numpy.typing import NDArray


class StencilLayout(Enum):
    CENTRED = "centred"
    STAGGER_DOWN = "stagger_down"
    STAGGER_UP = "stagger_up"

    @property
    def staggered(self) -> bool:
        return self is not StencilLayout.CENTRED


_OFFSETS = {
    StencilLayout.CENTRED: {"mm": -2, "m": -1, "c": 0, "p": 1, "pp": 2},
    StencilLayout.STAGGER_DOWN: {"mm": -2, "m": -1, "p": 0, "pp": 1},
    StencilLayout.STAGGER_UP: {"mm": -1, "m": 0, "p": 1, "pp": 2},
}


@dataclass(frozen=True)
class Stencil:
    """Neighbourhood values around a block of output points; absent members are None."""

    mm: NDArray | None = None
    m: NDArray | None = None
    c: NDArray | None = None
    p: NDArray | None = None
    pp: NDArray | None = None

    def map(self, func: Callable[[NDArray], NDArray]) -> Stencil:
        """Apply ``func`` to every present member."""
        return Stencil(**{name: None if value is None else func(value) for name, value in self._members()})

    def _members(self):
        return (("mm", self.mm), ("m", self.m), ("c", self.c), ("p", self.p), ("pp", self.pp))

    def max_abs(self) -> NDArray:
        """Pointwise maximum of ``|value|`` over the present members."""
        return np.max(np.abs([value for _, value in self._members() if value is not None]), axis=0)


def stencil_offsets(layout: StencilLayout, width: int) -> dict[str, int]:
    """
    Members of ``layout`` needed by a kernel of half-width ``width``.

    Width-1 staggered kernels use only ``m`` and ``p``; width-1 centred
    kernels use ``m``, ``c`` and ``p``.

    >>> stencil_offsets(StencilLayout.STAGGER_UP, 1)
    {'m': 0, 'p': 1}
    """
    offsets = _OFFSETS[layout]
    if width >= 2:
        return dict(offsets)
    return {name: offsets[name] for name in ("m", "c", "p") if name in offsets}


def layout_between(source: CellLocation, target: CellLocation, axis: Axis) -> StencilLayout:
    """Layout that reads values at ``source`` to produce values at ``target`` along ``axis``."""
    if source is CellLocation.CENTRE and target is axis.low:
        return StencilLayout.STAGGER_DOWN
    if source is axis.low and target is CellLocation.CENTRE:
        return StencilLayout.STAGGER_UP
    return StencilLayout.CENTRED


def read_offsets(
    data: NDArray,
    axis: int,
    positions: slice,
    transverse: tuple[slice, ...],
    offsets: dict[str, int],
    period: int | None = None,
) -> dict[str, NDArray]:
    """
    Gather shifted copies of ``data`` for a block of output points.

    Args:
        data: Field storage
        axis: Axis along which the window extends
        positions: Output indices along ``axis``
        transverse: Slices selecting the block on the other axes, in array
            order with ``axis`` omitted
        offsets: Name to index offset
        period: Number of owned points when ``axis`` is periodic

    Returns:
        Name to array of shape equal to the output block
    """
    index = list(transverse)
    index.insert(axis, slice(None))
    block = data[tuple(index)]
    base = np.arange(positions.start, positions.stop)

    window = {}
    for name, offset in offsets.items():
        src = base + offset
        if period is not None:
            src = src % period
        window[name] = np.take(block, src, axis=axis)
    return window


def extract_stencil(
    data: NDArray,
    axis: int,
    positions: slice,
    transverse: tuple[slice, ...],
    layout: StencilLayout = StencilLayout.CENTRED,
    width: int = 2,
    period: int | None = None,
) -> Stencil:
    """Extract the members of ``layout`` a width-``width`` kernel reads; see :func:`read_offsets`."""
    return Stencil(**read_offsets(data, axis, positions, transverse, stencil_offsets(layout, width), period))


__all__ = [
    "Stencil",
    "StencilLayout",
    "extract_stencil",
    "layout_between",
    "read_offsets",
    "stencil_offsets",
]
