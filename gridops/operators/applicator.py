"""
Grid-wide application of stencil kernels.

The applicator drives a kernel over every grid line of a field's owned
region along one axis. The region is split into chunks of lines on the
first transverse axis; each chunk extracts its stencils as whole arrays,
evaluates the kernel and writes its own slice of the result, so chunks can
run concurrently on the line executor.

Output region for a derivative along axis ``A``:
    - along ``A``: the owned points (``[ghost, ghost+n)``, or ``[0, n)`` on a
      periodic axis, whose closure point is then copied from index 0);
    - along other non-periodic axes: the owned points, or every stored point
      when ``include_boundary`` is set (needed when the result is
      differentiated again along that axis);
    - along other periodic axes: every stored point.

Points outside the region are zero.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from gridops.core.location import Axis
from gridops.operators.stencils.stencil import StencilLayout, extract_stencil
from gridops.utils.exceptions import StencilUnderReadError, report_fatal
from gridops.utils.grid_logging import get_logger
from gridops.utils.parallel import LineExecutor

if TYPE_CHECKING:
    from collections.abc import Callable

    from numpy.typing import NDArray

    from gridops.core.field import Field
    from gridops.core.mesh import Mesh
    from gridops.operators.registry import Scheme

logger = get_logger(__name__)


def output_region(mesh: Mesh, axis: Axis, ndim: int, include_boundary: bool = False) -> tuple[slice, ...]:
    """Slices, one per array dimension, selecting the points a derivative along ``axis`` fills."""
    region = []
    for dim in range(ndim):
        grid = mesh.axis(Axis(dim))
        if dim == axis or not (grid.periodic or include_boundary):
            region.append(slice(grid.start, grid.end))
        else:
            region.append(slice(0, grid.size))
    return tuple(region)


def check_ghost_width(mesh: Mesh, axis: Axis, width: int, operator_name: str | None = None) -> None:
    """Fail if a stencil of half-width ``width`` would read past the ghost cells of ``axis``."""
    grid = mesh.axis(axis)
    if not grid.periodic and width > grid.ghost:
        report_fatal(StencilUnderReadError(axis.label, width, grid.ghost, operator_name=operator_name))


class Applicator:
    """
    Evaluates kernels over the owned region of a mesh.

    Args:
        mesh: Mesh supplying layout and spacing
        executor: Line executor used to run chunks concurrently
    """

    def __init__(self, mesh: Mesh, executor: LineExecutor | None = None):
        self.mesh = mesh
        self.executor = executor or LineExecutor(1)

    def _spacing(self, axis: Axis, region: tuple[slice, ...]) -> NDArray | float:
        spacing = self.mesh.spacing(axis)
        if axis is Axis.Z:
            return spacing
        block = spacing[region[0], region[1]]
        return block[..., None] if len(region) == 3 else block

    def apply_window(
        self,
        axis: Axis,
        ndim: int,
        width: int,
        evaluate: Callable[[slice, tuple[slice, ...]], NDArray],
        power: int = 1,
        include_boundary: bool = False,
        operator_name: str | None = None,
    ) -> NDArray:
        """
        Run ``evaluate(positions, transverse)`` over the output region.

        Args:
            axis: Axis of differentiation
            ndim: Dimensionality of the result (2 or 3)
            width: Largest offset ``evaluate`` reads along ``axis``
            evaluate: Returns the un-normalised kernel output for the block of
                points at ``positions`` along ``axis`` and ``transverse`` on the
                other axes (array order, ``axis`` omitted)
            power: The output is divided by ``spacing**power``; 0 disables it
            include_boundary: Fill transverse ghost rows as well
            operator_name: Name used in diagnostics

        Returns:
            Array of the full storage shape, zero outside the region.
        """
        check_ghost_width(self.mesh, axis, width, operator_name)

        mesh = self.mesh
        shape = mesh.shape3d if ndim == 3 else mesh.shape2d
        region = output_region(mesh, axis, ndim, include_boundary)
        result = np.zeros(shape)

        chunk_dim = 1 if axis == 0 else 0
        positions = region[axis]

        def run_chunk(worker: int, chunk: slice) -> None:
            block = list(region)
            block[chunk_dim] = chunk
            transverse = tuple(s for dim, s in enumerate(block) if dim != axis)
            values = evaluate(positions, transverse)
            if power:
                values = values / self._spacing(axis, tuple(block)) ** power
            result[tuple(block)] = values

        chunked = region[chunk_dim]
        self.executor.map_chunks(run_chunk, chunked.start, chunked.stop)

        grid = mesh.axis(axis)
        if grid.periodic:
            closure = [slice(None)] * ndim
            first = [slice(None)] * ndim
            closure[axis] = grid.n
            first[axis] = 0
            result[tuple(closure)] = result[tuple(first)]

        logger.debug(f"{operator_name or 'kernel'} along {axis.label}: region {region}")
        return result

    def apply(
        self,
        field: Field,
        scheme: Scheme,
        axis: Axis,
        layout: StencilLayout = StencilLayout.CENTRED,
        power: int = 1,
        include_boundary: bool = False,
        operator_name: str | None = None,
    ) -> NDArray:
        """Apply a single-field stencil kernel (first, second or fourth derivative)."""
        period = self._period(axis)

        def evaluate(positions, transverse):
            stencil = extract_stencil(field.data, axis, positions, transverse, layout, scheme.width, period)
            return scheme.kernel(stencil)

        return self.apply_window(axis, field.ndim, scheme.width, evaluate, power, include_boundary, operator_name)

    def apply_pair(
        self,
        v: Field,
        f: Field,
        scheme: Scheme,
        axis: Axis,
        v_layout: StencilLayout = StencilLayout.CENTRED,
        include_boundary: bool = False,
        operator_name: str | None = None,
    ) -> NDArray:
        """
        Apply an upwind or flux kernel ``kernel(v_stencil, f_stencil)``.

        The velocity is read in ``v_layout`` and the advected field in the
        centred layout. 2D operands of a 3D term are broadcast over z.
        """
        period = self._period(axis)
        ndim = max(v.ndim, f.ndim)
        v_data = broadcast_to_ndim(v.data, self.mesh, ndim)
        f_data = broadcast_to_ndim(f.data, self.mesh, ndim)

        def evaluate(positions, transverse):
            vs = extract_stencil(v_data, axis, positions, transverse, v_layout, scheme.width, period)
            fs = extract_stencil(f_data, axis, positions, transverse, StencilLayout.CENTRED, scheme.width, period)
            return scheme.kernel(vs, fs)

        return self.apply_window(axis, ndim, scheme.width, evaluate, 1, include_boundary, operator_name)

    def _period(self, axis: Axis) -> int | None:
        grid = self.mesh.axis(axis)
        return grid.n if grid.periodic else None


def broadcast_to_ndim(data: NDArray, mesh: Mesh, ndim: int) -> NDArray:
    """View of a 2D array broadcast over z when a 3D operand is needed."""
    if data.ndim < ndim:
        return np.broadcast_to(data[..., None], mesh.shape3d)
    return data


__all__ = ["Applicator", "broadcast_to_ndim", "check_ghost_width", "output_region"]
