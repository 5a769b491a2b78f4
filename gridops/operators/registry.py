"""
Differencing scheme registry.

Maps short scheme codes (``"C2"``, ``"W3"``, ``"FFT"`` ...) to kernels, one
ordered table per operator class and grid alignment. The first entry of each
table is its default and the fallback for any method the table does not
implement.

Tables:
    ===========  ===================================  ===============
    class        centred                              staggered
    ===========  ===================================  ===============
    first        C2, W2, W3, C4, S2, FFT              C2, C4
    second       C2, C4, FFT                          C4
    upwind       U1, C2, U4, W3, C4, PPM              U1
    flux         SPLIT, U1, C2, C4, NND               SPLIT, U1
    ===========  ===================================  ===============

Entries are tagged with a :class:`SchemeKind`: ``STENCIL`` entries carry a
kernel and its half-width, ``SPECTRAL`` entries are evaluated by the spectral
differentiator, ``SPLIT`` flux entries are composed from upwind and first
derivative calls and ``PPM`` entries use the wide-window PPM reconstruction.

Usage:
    >>> scheme = FIRST.lookup(FIRST.resolve("c4"))
    >>> scheme.method, scheme.width
    (<DiffMethod.C4: 'C4'>, 2)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from gridops.operators.reconstruction.limiters import nnd_flux
from gridops.operators.reconstruction.ppm import PPM_HALF_WIDTH
from gridops.operators.reconstruction.weno import cweno2_first, cweno3_first, weno3_upwind
from gridops.operators.stencils import finite_difference as fd
from gridops.utils.exceptions import UnsatisfiableRequestError, report_fatal
from gridops.utils.grid_logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

logger = get_logger(__name__)


class DiffMethod(str, Enum):
    """Differencing scheme codes, in name-resolution order."""

    U1 = "U1"
    C2 = "C2"
    W2 = "W2"
    W3 = "W3"
    C4 = "C4"
    U4 = "U4"
    S2 = "S2"
    FFT = "FFT"
    NND = "NND"
    SPLIT = "SPLIT"
    PPM = "PPM"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    DiffMethod.U1: "First order upwinding",
    DiffMethod.C2: "Second order central",
    DiffMethod.W2: "Second order WENO",
    DiffMethod.W3: "Third order WENO",
    DiffMethod.C4: "Fourth order central",
    DiffMethod.U4: "Fourth order upwinding",
    DiffMethod.S2: "Smoothing 2nd order",
    DiffMethod.FFT: "FFT",
    DiffMethod.NND: "NND",
    DiffMethod.SPLIT: "Split into upwind and central",
    DiffMethod.PPM: "Piecewise Parabolic Method",
}


def describe_method(method: DiffMethod) -> str:
    """Human-readable name, e.g. ``"Fourth order central (C4)"``."""
    return f"{method.description} ({method.value})"


class SchemeKind(Enum):
    STENCIL = "stencil"
    SPECTRAL = "spectral"
    SPLIT = "split"
    PPM = "ppm"


class OperatorClass(str, Enum):
    FIRST = "first"
    SECOND = "second"
    UPWIND = "upwind"
    FLUX = "flux"


@dataclass(frozen=True)
class Scheme:
    """
    One registry entry.

    Attributes:
        method: Scheme code
        kind: How the applicator evaluates the entry
        kernel: Stencil kernel for STENCIL entries, None otherwise
        width: Stencil half-width, the ghost depth the kernel reads
    """

    method: DiffMethod
    kind: SchemeKind = SchemeKind.STENCIL
    kernel: Callable[..., Any] | None = None
    width: int = 0

    @property
    def label(self) -> str:
        return describe_method(self.method)


class SchemeTable:
    """
    Ordered scheme table with fallback lookup and name resolution.

    Args:
        name: Table name used in diagnostics
        schemes: Entries; the first is the default
    """

    def __init__(self, name: str, schemes: Sequence[Scheme]):
        self.name = name
        self._schemes = tuple(schemes)
        self._by_method = {scheme.method: scheme for scheme in self._schemes}

    def __iter__(self) -> Iterator[Scheme]:
        return iter(self._schemes)

    def __len__(self) -> int:
        return len(self._schemes)

    def __repr__(self) -> str:
        return f"SchemeTable({self.name!r}, [{', '.join(m.value for m in self.methods)}])"

    @property
    def methods(self) -> tuple[DiffMethod, ...]:
        return tuple(scheme.method for scheme in self._schemes)

    @property
    def default(self) -> Scheme:
        """First entry; an empty table cannot satisfy any request."""
        if not self._schemes:
            report_fatal(
                UnsatisfiableRequestError(
                    f"No differencing scheme is registered in the {self.name} table",
                    operator_name="SchemeTable",
                )
            )
        return self._schemes[0]

    def is_implemented(self, method: DiffMethod) -> bool:
        return method in self._by_method

    def lookup(self, method: DiffMethod) -> Scheme:
        """Entry for ``method``, or the default entry with a warning if absent."""
        scheme = self._by_method.get(method)
        if scheme is None:
            scheme = self.default
            logger.warning(f"{describe_method(method)} is not available for {self.name}; using {scheme.label}")
        return scheme

    def resolve(self, name: str) -> DiffMethod:
        """
        Resolve a user-supplied scheme name to a method this table implements.

        Resolution order: empty name gives the default; a case-insensitive
        exact match among implemented methods wins; otherwise the last
        implemented method sharing the first letter is used ("Type match");
        otherwise the default ("No match"). Never raises.
        """
        label = name.strip().upper()
        if not label:
            return self.default.method

        type_match: DiffMethod | None = None
        for method in DiffMethod:
            if method.value[0] == label[0] and self.is_implemented(method):
                type_match = method
                if method.value == label:
                    return method

        if type_match is None:
            fallback = self.default.method
            logger.warning(f"No match for '{name}' -> {describe_method(fallback)}")
            return fallback

        logger.warning(f"Type match for '{name}' -> {describe_method(type_match)}")
        return type_match


# =============================================================================
# Tables
# =============================================================================

FIRST = SchemeTable(
    "first derivative",
    [
        Scheme(DiffMethod.C2, kernel=fd.first_c2, width=1),
        Scheme(DiffMethod.W2, kernel=cweno2_first, width=1),
        Scheme(DiffMethod.W3, kernel=cweno3_first, width=2),
        Scheme(DiffMethod.C4, kernel=fd.first_c4, width=2),
        Scheme(DiffMethod.S2, kernel=fd.first_s2, width=2),
        Scheme(DiffMethod.FFT, kind=SchemeKind.SPECTRAL),
    ],
)

SECOND = SchemeTable(
    "second derivative",
    [
        Scheme(DiffMethod.C2, kernel=fd.second_c2, width=1),
        Scheme(DiffMethod.C4, kernel=fd.second_c4, width=2),
        Scheme(DiffMethod.FFT, kind=SchemeKind.SPECTRAL),
    ],
)

UPWIND = SchemeTable(
    "upwind",
    [
        Scheme(DiffMethod.U1, kernel=fd.upwind_u1, width=1),
        Scheme(DiffMethod.C2, kernel=fd.upwind_c2, width=1),
        Scheme(DiffMethod.U4, kernel=fd.upwind_u4, width=2),
        Scheme(DiffMethod.W3, kernel=weno3_upwind, width=2),
        Scheme(DiffMethod.C4, kernel=fd.upwind_c4, width=2),
        Scheme(DiffMethod.PPM, kind=SchemeKind.PPM, width=PPM_HALF_WIDTH),
    ],
)

FLUX = SchemeTable(
    "flux",
    [
        Scheme(DiffMethod.SPLIT, kind=SchemeKind.SPLIT),
        Scheme(DiffMethod.U1, kernel=fd.flux_u1, width=1),
        Scheme(DiffMethod.C2, kernel=fd.flux_c2, width=1),
        Scheme(DiffMethod.C4, kernel=fd.flux_c4, width=2),
        Scheme(DiffMethod.NND, kernel=nnd_flux, width=2),
    ],
)

FIRST_STAGGERED = SchemeTable(
    "staggered first derivative",
    [
        Scheme(DiffMethod.C2, kernel=fd.first_stag_c2, width=1),
        Scheme(DiffMethod.C4, kernel=fd.first_stag_c4, width=2),
    ],
)

SECOND_STAGGERED = SchemeTable(
    "staggered second derivative",
    [Scheme(DiffMethod.C4, kernel=fd.second_stag_c4, width=2)],
)

UPWIND_STAGGERED = SchemeTable(
    "staggered upwind",
    [Scheme(DiffMethod.U1, kernel=fd.upwind_stag_u1, width=1)],
)

FLUX_STAGGERED = SchemeTable(
    "staggered flux",
    [
        Scheme(DiffMethod.SPLIT, kind=SchemeKind.SPLIT),
        Scheme(DiffMethod.U1, kernel=fd.flux_stag_u1, width=1),
    ],
)

FOURTH = Scheme(DiffMethod.C2, kernel=fd.fourth_c2, width=2)

TABLES: dict[tuple[OperatorClass, bool], SchemeTable] = {
    (OperatorClass.FIRST, False): FIRST,
    (OperatorClass.SECOND, False): SECOND,
    (OperatorClass.UPWIND, False): UPWIND,
    (OperatorClass.FLUX, False): FLUX,
    (OperatorClass.FIRST, True): FIRST_STAGGERED,
    (OperatorClass.SECOND, True): SECOND_STAGGERED,
    (OperatorClass.UPWIND, True): UPWIND_STAGGERED,
    (OperatorClass.FLUX, True): FLUX_STAGGERED,
}


def table_for(op_class: OperatorClass, staggered: bool = False) -> SchemeTable:
    return TABLES[(op_class, staggered)]


__all__ = [
    "FIRST",
    "FIRST_STAGGERED",
    "FLUX",
    "FLUX_STAGGERED",
    "FOURTH",
    "SECOND",
    "SECOND_STAGGERED",
    "TABLES",
    "UPWIND",
    "UPWIND_STAGGERED",
    "DiffMethod",
    "OperatorClass",
    "Scheme",
    "SchemeKind",
    "SchemeTable",
    "describe_method",
    "table_for",
]
