"""
Cell locations and grid axes.

A field value sits either at a cell centre or on the lower face of the cell
along one axis (the value stored at index ``i`` of an ``XLOW`` field lives at
``x_i - dx/2``).
"""

from __future__ import annotations

from enum import Enum


class CellLocation(str, Enum):
    """Where on the cell a field's values are stored."""

    CENTRE = "centre"
    XLOW = "xlow"
    YLOW = "ylow"
    ZLOW = "zlow"
    DEFAULT = "default"  # same as the input field

    @property
    def is_staggered(self) -> bool:
        return self in (CellLocation.XLOW, CellLocation.YLOW, CellLocation.ZLOW)

    @property
    def axis(self) -> Axis | None:
        """The axis along which this location is shifted, or None."""
        return _LOW_TO_AXIS.get(self)


class Axis(int, Enum):
    """Grid axes; the value is the array dimension."""

    X = 0
    Y = 1
    Z = 2

    @property
    def low(self) -> CellLocation:
        """The face location staggered along this axis."""
        return _AXIS_TO_LOW[self]

    @property
    def label(self) -> str:
        return self.name


_AXIS_TO_LOW = {Axis.X: CellLocation.XLOW, Axis.Y: CellLocation.YLOW, Axis.Z: CellLocation.ZLOW}
_LOW_TO_AXIS = {low: axis for axis, low in _AXIS_TO_LOW.items()}


def as_location(value: CellLocation | str | None) -> CellLocation:
    """Coerce a location name or None (meaning DEFAULT) to a CellLocation."""
    if value is None:
        return CellLocation.DEFAULT
    if isinstance(value, CellLocation):
        return value
    return CellLocation(str(value).lower())


__all__ = ["Axis", "CellLocation", "as_location"]
