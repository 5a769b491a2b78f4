"""
Differencing configuration.

A :class:`DifferencingConfig` names the scheme for each operator class on
each axis, e.g. in YAML::

    ddx:
      first: C4
      second: C4
      upwind: W3
    ddz:
      first: FFT
    stagger_grids: true

Names are resolved once, at engine construction, into an immutable
:class:`DifferencingMethods`; operators never consult the configuration
again, so concurrent operator calls see a consistent set of schemes.
Unknown names fall back with a logged diagnostic. FFT is only available on
the periodic z axis; requesting it for x or y is fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gridops.core.location import Axis
from gridops.operators.registry import DiffMethod, OperatorClass, describe_method, table_for
from gridops.utils.exceptions import UnsatisfiableRequestError, report_fatal
from gridops.utils.grid_logging import get_logger

logger = get_logger(__name__)

SPECTRAL_AXES = frozenset({Axis.Z})


class AxisSchemes(BaseModel):
    """
    Scheme names for one axis.

    Attributes
    ----------
    first, second, upwind, flux : str
        Short scheme codes (case-insensitive). Empty selects the table default.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    first: str = ""
    second: str = ""
    upwind: str = ""
    flux: str = ""

    @field_validator("first", "second", "upwind", "flux", mode="before")
    @classmethod
    def normalise_name(cls, value: object) -> str:
        """Strip and upper-case scheme names; None means default."""
        if value is None:
            return ""
        return str(value).strip().upper()

    def name_for(self, op_class: OperatorClass) -> str:
        return getattr(self, op_class.value)


class DifferencingConfig(BaseModel):
    """
    Configuration of the derivative engine.

    Attributes
    ----------
    ddx, ddy, ddz : AxisSchemes
        Scheme names per axis.
    stagger_grids : bool
        Honour cell locations and use staggered kernels (default: False).
    interpolation_order : Literal[2, 4]
        Order of location interpolation (default: 4).
    spectral_cutoff : float
        Modes above ``spectral_cutoff * nz`` are attenuated (default: 0.4).
    spectral_attenuation : float
        Scale applied to attenuated modes (default: 1e-10).
    num_workers : int
        Concurrent line chunks per operator call (default: 1).
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    ddx: AxisSchemes = Field(default_factory=AxisSchemes)
    ddy: AxisSchemes = Field(default_factory=AxisSchemes)
    ddz: AxisSchemes = Field(default_factory=AxisSchemes)
    stagger_grids: bool = Field(default=False, alias="StaggerGrids")
    interpolation_order: Literal[2, 4] = 4
    spectral_cutoff: float = Field(default=0.4, gt=0, le=1.0)
    spectral_attenuation: float = Field(default=1.0e-10, ge=0, le=1.0)
    num_workers: int = Field(default=1, ge=1)

    def section(self, axis: Axis) -> AxisSchemes:
        return (self.ddx, self.ddy, self.ddz)[axis]


@dataclass(frozen=True)
class AxisMethods:
    """Resolved methods for one axis, centred and staggered."""

    first: DiffMethod
    second: DiffMethod
    upwind: DiffMethod
    flux: DiffMethod
    first_stag: DiffMethod
    second_stag: DiffMethod
    upwind_stag: DiffMethod
    flux_stag: DiffMethod

    def method(self, op_class: OperatorClass, staggered: bool = False) -> DiffMethod:
        name = f"{op_class.value}_stag" if staggered else op_class.value
        return getattr(self, name)


@dataclass(frozen=True)
class DifferencingMethods:
    """Immutable result of resolving a :class:`DifferencingConfig`."""

    x: AxisMethods
    y: AxisMethods
    z: AxisMethods
    stagger_grids: bool = False

    def for_axis(self, axis: Axis) -> AxisMethods:
        return (self.x, self.y, self.z)[axis]


def check_spectral_axis(axis: Axis, method: DiffMethod, operator_name: str | None = None) -> None:
    """Fail if a spectral method is requested on an axis without FFT support."""
    if method is DiffMethod.FFT and axis not in SPECTRAL_AXES:
        report_fatal(
            UnsatisfiableRequestError(
                f"FFT cannot be used in {axis.label}",
                operator_name=operator_name,
                axis=axis.label,
                method=method.value,
                suggested_action=f"Select C2, C4, W2, W3 or S2 for dd{axis.label.lower()}",
            )
        )


def _resolve_axis(axis: Axis, section: AxisSchemes, stagger_grids: bool) -> AxisMethods:
    logger.info(f"Setting {axis.label} differencing methods")
    resolved: dict[str, DiffMethod] = {}
    for op_class in OperatorClass:
        name = section.name_for(op_class)
        method = table_for(op_class).resolve(name)
        if op_class in (OperatorClass.FIRST, OperatorClass.SECOND):
            check_spectral_axis(axis, method, operator_name="resolve_differencing")
        resolved[op_class.value] = method
        logger.info(f"  {op_class.value.capitalize():<7}: {describe_method(method)}")

    for op_class in OperatorClass:
        table = table_for(op_class, staggered=True)
        if not stagger_grids:
            resolved[f"{op_class.value}_stag"] = table.default.method
            continue
        method = table.resolve(section.name_for(op_class))
        resolved[f"{op_class.value}_stag"] = method
        logger.info(f"  Staggered {op_class.value:<7}: {describe_method(method)}")

    return AxisMethods(**resolved)


def resolve_differencing(config: DifferencingConfig | None = None) -> DifferencingMethods:
    """
    Resolve scheme names into immutable per-axis methods.

    Raises:
        UnsatisfiableRequestError: If FFT is selected for a first or second
            derivative on a non-spectral axis
    """
    config = config or DifferencingConfig()
    return DifferencingMethods(
        x=_resolve_axis(Axis.X, config.ddx, config.stagger_grids),
        y=_resolve_axis(Axis.Y, config.ddy, config.stagger_grids),
        z=_resolve_axis(Axis.Z, config.ddz, config.stagger_grids),
        stagger_grids=config.stagger_grids,
    )


__all__ = [
    "SPECTRAL_AXES",
    "AxisMethods",
    "AxisSchemes",
    "DifferencingConfig",
    "DifferencingMethods",
    "check_spectral_axis",
    "resolve_differencing",
]
