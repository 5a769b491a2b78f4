"""
Mesh metadata consumed by the differential operators.

The mesh is geometry, not numerics: per-axis point counts, ghost widths,
periodicity and precomputed spacing. X and Y spacing are 2D metric arrays
over ``(x, y)`` including ghost cells; Z spacing is a single scalar because
z is the periodic, uniform direction.

Storage convention along each axis:

- non-periodic: ``n + 2*ghost`` points, owned points at ``[ghost, ghost+n)``;
- periodic: ``n + 1`` points, owned points at ``[0, n)`` and the last point a
  duplicate of the first (periodic closure). Periodic axes carry no ghosts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from gridops.core.location import Axis, CellLocation
from gridops.utils.exceptions import DimensionMismatchError

if TYPE_CHECKING:
    from numpy.typing import NDArray


@dataclass(frozen=True)
class AxisGrid:
    """Point layout along one axis."""

    n: int
    ghost: int = 0
    periodic: bool = False

    def __post_init__(self):
        if self.n < 1:
            raise ValueError(f"Axis must own at least one point, got n={self.n}")
        if self.ghost < 0:
            raise ValueError(f"Ghost width must be non-negative, got {self.ghost}")
        if self.periodic and self.ghost:
            raise ValueError("Periodic axes do not carry ghost cells")

    @property
    def size(self) -> int:
        """Number of stored points."""
        return self.n + 1 if self.periodic else self.n + 2 * self.ghost

    @property
    def start(self) -> int:
        """First owned index."""
        return 0 if self.periodic else self.ghost

    @property
    def end(self) -> int:
        """One past the last owned index."""
        return self.start + self.n


@dataclass(frozen=True, eq=False)
class Mesh:
    """
    Logically rectangular mesh with ghost cells on the non-periodic axes.

    Attributes:
        x, y, z: Point layout per axis
        dx, dy: Spacing arrays of shape ``(x.size, y.size)``
        dz: Uniform spacing along z
        d1_dx, d1_dy: Second-derivative correction coefficients for
            non-uniform spacing, ``-(d2x/di2) / (dx/di)**2``; None when uniform
        origin: Physical coordinate of the first owned point on each axis
    """

    x: AxisGrid
    y: AxisGrid
    z: AxisGrid
    dx: NDArray
    dy: NDArray
    dz: float
    d1_dx: NDArray | None = None
    d1_dy: NDArray | None = None
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self):
        shape = self.shape2d
        for name in ("dx", "dy", "d1_dx", "d1_dy"):
            value = getattr(self, name)
            if value is None:
                continue
            arr = np.full(shape, float(value)) if np.ndim(value) == 0 else np.asarray(value, dtype=float)
            if arr.shape != shape:
                raise DimensionMismatchError(name, arr.shape, shape, operator_name="Mesh")
            object.__setattr__(self, name, arr)
        if self.dz <= 0:
            raise ValueError(f"dz must be positive, got {self.dz}")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def uniform(
        cls,
        nx: int,
        ny: int,
        nz: int,
        lengths: tuple[float, float, float] = (1.0, 1.0, 2 * np.pi),
        ghosts: tuple[int, int] = (2, 2),
        origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
        periodic_z: bool = True,
    ) -> Mesh:
        """
        Build a uniform mesh with ``nx*ny*nz`` owned points.

        Args:
            nx, ny, nz: Owned points per axis
            lengths: Domain length per axis (``dx = lx / nx``)
            ghosts: Ghost widths along x and y
            origin: Coordinate of the first owned point per axis
            periodic_z: Whether z is periodic; a non-periodic z gets the
                x ghost width

        Example:
            >>> mesh = Mesh.uniform(32, 4, 16, ghosts=(2, 1))
            >>> mesh.shape3d
            (36, 6, 17)
        """
        x = AxisGrid(nx, ghosts[0])
        y = AxisGrid(ny, ghosts[1])
        z = AxisGrid(nz, periodic=True) if periodic_z else AxisGrid(nz, ghosts[0])
        shape = (x.size, y.size)
        return cls(
            x=x,
            y=y,
            z=z,
            dx=np.full(shape, lengths[0] / nx),
            dy=np.full(shape, lengths[1] / ny),
            dz=lengths[2] / nz,
            origin=origin,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def axis(self, axis: Axis) -> AxisGrid:
        return (self.x, self.y, self.z)[axis]

    @property
    def shape2d(self) -> tuple[int, int]:
        return (self.x.size, self.y.size)

    @property
    def shape3d(self) -> tuple[int, int, int]:
        return (self.x.size, self.y.size, self.z.size)

    @property
    def zlength(self) -> float:
        """Period of the z direction."""
        return self.z.n * self.dz

    @property
    def non_uniform(self) -> bool:
        return self.d1_dx is not None or self.d1_dy is not None

    def spacing(self, axis: Axis) -> NDArray | float:
        """Spacing along ``axis``: a ``(ngx, ngy)`` array for x and y, a scalar for z."""
        if axis is Axis.X:
            return self.dx
        if axis is Axis.Y:
            return self.dy
        return self.dz

    def correction(self, axis: Axis) -> NDArray | None:
        """Non-uniform second-derivative coefficient along ``axis``."""
        if axis is Axis.X:
            return self.d1_dx
        if axis is Axis.Y:
            return self.d1_dy
        return None

    def coordinates(self, location: CellLocation = CellLocation.CENTRE) -> tuple[NDArray, NDArray, NDArray]:
        """
        Coordinates of every stored point, broadcastable to ``shape3d``.

        Coordinates are integrated from the spacing along the first y row (x)
        and first x column (y), so they are exact for uniform meshes and
        consistent with stretched meshes whose spacing is separable. Staggered
        locations are shifted by half a cell towards the lower face.
        """
        dx_line = self.dx[:, 0]
        dy_line = self.dy[0, :]
        xs = _integrate(dx_line, self.x.start) + self.origin[0]
        ys = _integrate(dy_line, self.y.start) + self.origin[1]
        zs = (np.arange(self.z.size) - self.z.start) * self.dz + self.origin[2]

        if location is CellLocation.XLOW:
            xs = xs - 0.5 * dx_line
        elif location is CellLocation.YLOW:
            ys = ys - 0.5 * dy_line
        elif location is CellLocation.ZLOW:
            zs = zs - 0.5 * self.dz

        return xs[:, None, None], ys[None, :, None], zs[None, None, :]


def _integrate(spacing: NDArray, start: int) -> NDArray:
    """Cell-centre positions from cell widths, zero at index ``start``."""
    edges = np.concatenate(([0.0], np.cumsum(spacing)))
    centres = 0.5 * (edges[:-1] + edges[1:])
    return centres - centres[start]


__all__ = ["AxisGrid", "Mesh"]
