"""Core data types: cell locations, mesh metadata and fields."""

from __future__ import annotations

from gridops.core.field import Field
from gridops.core.location import Axis, CellLocation, as_location
from gridops.core.mesh import AxisGrid, Mesh

__all__ = ["Axis", "AxisGrid", "CellLocation", "Field", "Mesh", "as_location"]
