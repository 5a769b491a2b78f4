"""
Derivative operators as scipy LinearOperators.

Wraps a linear derivative (first, second or fourth derivative, or upwind
advection with a frozen velocity) so it can be handed to scipy's iterative
solvers or assembled into a sparse matrix.

Operator Shape:
    Input:  field values including ghost cells, flattened to ``(N,)``
    Output: derivative, flattened to ``(N,)``; points outside the owned
            region are zero
    Shape:  ``(N, N)`` with ``N = prod(mesh.shape3d)`` (or ``shape2d``)

Only schemes whose weights are independent of the data are linear; WENO,
smoothing, PPM and NND schemes are rejected.

Usage:
    >>> op = DerivativeOperator(engine, "second", Axis.X)
    >>> d2f = op @ f.data.ravel()
    >>> matrix = op.as_scipy_sparse()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import numpy as np
import scipy.sparse as sparse
from scipy.sparse.linalg import LinearOperator

from gridops.core.field import Field
from gridops.core.location import Axis, CellLocation, as_location
from gridops.operators.registry import DiffMethod, OperatorClass, table_for

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from gridops.operators.differential.derivatives import DerivativeEngine

NONLINEAR_METHODS = frozenset({DiffMethod.W2, DiffMethod.W3, DiffMethod.S2, DiffMethod.PPM, DiffMethod.NND})

_CLASSES = {
    "first": OperatorClass.FIRST,
    "second": OperatorClass.SECOND,
    "upwind": OperatorClass.UPWIND,
}


class DerivativeOperator(LinearOperator):
    """
    Linear derivative operator on one mesh.

    Args:
        engine: Engine supplying mesh, methods and executor
        operator: "first", "second", "fourth" or "upwind"
        axis: Axis of differentiation
        ndim: 3 for full fields, 2 for fields without z dependence
        method: Scheme override (default: configured scheme)
        velocity: Frozen velocity, required for "upwind"
        location: Cell location of the input field

    Raises:
        ValueError: If the operator is unknown, the velocity is missing or
            the scheme is nonlinear
    """

    def __init__(
        self,
        engine: DerivativeEngine,
        operator: Literal["first", "second", "fourth", "upwind"],
        axis: Axis,
        ndim: int = 3,
        method: DiffMethod | str | None = None,
        velocity: Field | None = None,
        location: CellLocation | str = CellLocation.CENTRE,
    ):
        if operator not in ("first", "second", "fourth", "upwind"):
            raise ValueError(f"Unknown operator: {operator}. Use 'first', 'second', 'fourth' or 'upwind'.")
        if operator == "upwind" and velocity is None:
            raise ValueError("The upwind operator needs a velocity field")

        if operator != "fourth":
            op_class = _CLASSES[operator]
            table = table_for(op_class)
            if method is None:
                resolved = engine.methods.for_axis(axis).method(op_class)
            elif isinstance(method, DiffMethod):
                resolved = method
            else:
                resolved = table.resolve(method)
            if resolved in NONLINEAR_METHODS:
                raise ValueError(f"{resolved.value} is a nonlinear scheme and cannot form a LinearOperator")
            method = resolved

        self.engine = engine
        self.operator = operator
        self.axis = Axis(axis)
        self.method = method
        self.velocity = velocity
        self.location = as_location(location)
        self.field_shape = engine.mesh.shape3d if ndim == 3 else engine.mesh.shape2d

        n = int(np.prod(self.field_shape))
        super().__init__(shape=(n, n), dtype=np.float64)

    def _apply(self, f: Field) -> Field:
        engine = self.engine
        if self.operator == "first":
            return engine.first(f, self.axis, method=self.method)
        if self.operator == "second":
            return engine.second(f, self.axis, method=self.method)
        if self.operator == "fourth":
            return engine.fourth(f, self.axis)
        return engine.upwind(self.velocity, f, self.axis, method=self.method)

    def _matvec(self, x: NDArray) -> NDArray:
        f = Field(np.asarray(x, dtype=float).reshape(self.field_shape), self.engine.mesh, self.location)
        return self._apply(f).data.ravel()

    def __call__(self, f: Field | NDArray) -> Field:
        """Apply to a field, preserving its shape."""
        if not isinstance(f, Field):
            f = Field(f, self.engine.mesh, self.location)
        if f.shape != self.field_shape:
            raise ValueError(f"Field shape {f.shape} doesn't match expected {self.field_shape}")
        return self._apply(f)

    def as_scipy_sparse(self, max_grid_size: int = 100_000) -> sparse.csr_matrix:
        """
        Assemble the operator as a CSR matrix by probing with unit vectors.

        Raises:
            ValueError: If the grid has more than ``max_grid_size`` points
        """
        n = self.shape[0]
        if n > max_grid_size:
            raise ValueError(f"Grid size {n} exceeds max_grid_size={max_grid_size}; use the matrix-free operator")

        rows, cols, values = [], [], []
        unit = np.zeros(n)
        for j in range(n):
            unit[j] = 1.0
            column = self._matvec(unit)
            unit[j] = 0.0
            nonzero = np.flatnonzero(column)
            rows.append(nonzero)
            cols.append(np.full(nonzero.shape, j))
            values.append(column[nonzero])

        return sparse.csr_matrix(
            (np.concatenate(values), (np.concatenate(rows), np.concatenate(cols))),
            shape=(n, n),
        )

    def __repr__(self) -> str:
        method = self.method.value if isinstance(self.method, DiffMethod) else "C2"
        return f"DerivativeOperator({self.operator}, axis={self.axis.label}, method={method}, shape={self.shape})"


__all__ = ["NONLINEAR_METHODS", "DerivativeOperator"]
