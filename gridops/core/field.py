"""
Grid fields: a numpy array tagged with its mesh and cell location.

A ``Field`` owns an array of shape ``mesh.shape2d`` (axisymmetric fields with
no z dependence) or ``mesh.shape3d``. Ghost cells are part of the array; the
operators assume they have been populated by the caller's exchange step
before any derivative is requested.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from gridops.core.location import CellLocation, as_location
from gridops.utils.exceptions import DimensionMismatchError, LocationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from numpy.typing import ArrayLike, NDArray

    from gridops.core.mesh import Mesh


class Field:
    """
    Bounds-aware field container.

    Args:
        data: Values including ghost cells, shape ``mesh.shape2d`` or ``mesh.shape3d``
        mesh: Mesh the values live on
        location: Cell location of the values (DEFAULT is stored as CENTRE)

    Example:
        >>> mesh = Mesh.uniform(8, 4, 16)
        >>> f = Field.zeros(mesh)
        >>> (f + 1.0).data.shape
        (12, 8, 17)
    """

    __array_priority__ = 100

    def __init__(self, data: ArrayLike, mesh: Mesh, location: CellLocation | str = CellLocation.CENTRE):
        data = np.asarray(data, dtype=float)
        if data.shape not in (mesh.shape2d, mesh.shape3d):
            expected = f"{mesh.shape2d} or {mesh.shape3d}"
            raise DimensionMismatchError("field data", data.shape, expected, operator_name="Field")
        location = as_location(location)
        self.data = data
        self.mesh = mesh
        self.location = CellLocation.CENTRE if location is CellLocation.DEFAULT else location

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def zeros(cls, mesh: Mesh, ndim: int = 3, location: CellLocation | str = CellLocation.CENTRE) -> Field:
        shape = mesh.shape3d if ndim == 3 else mesh.shape2d
        return cls(np.zeros(shape), mesh, location)

    @classmethod
    def from_function(
        cls,
        mesh: Mesh,
        func: Callable[[NDArray, NDArray, NDArray], ArrayLike],
        location: CellLocation | str = CellLocation.CENTRE,
        ndim: int = 3,
    ) -> Field:
        """
        Sample ``func(x, y, z)`` at every stored point, ghost cells included.

        For ``ndim == 2`` the function is evaluated on the ``z = origin`` plane.
        """
        location = as_location(location)
        if location is CellLocation.DEFAULT:
            location = CellLocation.CENTRE
        x, y, z = mesh.coordinates(location)
        if ndim == 2:
            z = z[..., :1]
        values = np.broadcast_to(func(x, y, z), (mesh.x.size, mesh.y.size, z.shape[-1]))
        data = np.array(values[..., 0] if ndim == 2 else values, dtype=float)
        return cls(data, mesh, location)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def shape(self) -> tuple[int, ...]:
        return self.data.shape

    @property
    def is3d(self) -> bool:
        return self.data.ndim == 3

    def copy(self) -> Field:
        return Field(self.data.copy(), self.mesh, self.location)

    def with_data(self, data: NDArray, location: CellLocation | None = None) -> Field:
        """New field on the same mesh, at ``location`` or this field's location."""
        return Field(data, self.mesh, location or self.location)

    def interior(self) -> NDArray:
        """View of the owned points only."""
        m = self.mesh
        index = (slice(m.x.start, m.x.end), slice(m.y.start, m.y.end))
        if self.is3d:
            index += (slice(m.z.start, m.z.end),)
        return self.data[index]

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _operand(self, other, operation: str):
        if isinstance(other, Field):
            if other.mesh is not self.mesh:
                raise ValueError(f"Cannot apply '{operation}' to fields on different meshes")
            if other.location is not self.location:
                raise LocationError(self.location.value, other.location.value, operation)
            if self.is3d and not other.is3d:
                return other.data[..., None]
            return other.data
        return other

    def __add__(self, other) -> Field:
        return self._binary(other, np.add, "+")

    def __radd__(self, other) -> Field:
        return self._binary(other, np.add, "+")

    def __sub__(self, other) -> Field:
        return self._binary(other, np.subtract, "-")

    def __rsub__(self, other) -> Field:
        return Field(other - self.data, self.mesh, self.location)

    def __mul__(self, other) -> Field:
        return self._binary(other, np.multiply, "*")

    def __rmul__(self, other) -> Field:
        return self._binary(other, np.multiply, "*")

    def __truediv__(self, other) -> Field:
        return self._binary(other, np.divide, "/")

    def __neg__(self) -> Field:
        return Field(-self.data, self.mesh, self.location)

    def _binary(self, other, ufunc, symbol: str) -> Field:
        left = self.data
        right = self._operand(other, symbol)
        if isinstance(other, Field) and other.is3d and not self.is3d:
            left = left[..., None]
        return Field(ufunc(left, right), self.mesh, self.location)

    def __repr__(self) -> str:
        return f"Field(shape={self.shape}, location={self.location.value})"


__all__ = ["Field"]
