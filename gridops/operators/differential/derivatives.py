"""
Derivative engine: the public differential operator surface.

The engine binds a mesh to a resolved, immutable set of differencing methods
and exposes first, second and fourth derivatives, mixed derivatives, upwind
advection ``v d/dx f`` and flux divergence ``d/dx (v f)`` along each axis.

Each call:
    1. plans cell locations (interpolating inputs where needed),
    2. selects a scheme (configured default or per-call override; unknown
       names fall back with a warning, FFT off the z axis is fatal),
    3. evaluates it through the stencil applicator or the spectral
       differentiator, line chunks running on the shared executor,
    4. interpolates the result to the requested output location.

Usage:
    >>> mesh = Mesh.uniform(32, 8, 16, ghosts=(2, 2))
    >>> config = DifferencingConfig(ddx={"first": "C4"}, ddz={"first": "FFT"})
    >>> with DerivativeEngine(mesh, config) as engine:
    ...     f = Field.from_function(mesh, lambda x, y, z: np.sin(z))
    ...     dfdz = engine.ddz(f)
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from gridops.config.differencing import (
    DifferencingConfig,
    DifferencingMethods,
    check_spectral_axis,
    resolve_differencing,
)
from gridops.core.field import Field
from gridops.core.location import Axis, CellLocation, as_location
from gridops.operators import interpolation
from gridops.operators.applicator import Applicator, broadcast_to_ndim
from gridops.operators.location import plan_advection, plan_derivative
from gridops.operators.reconstruction.limiters import kt_flux_difference
from gridops.operators.reconstruction.ppm import PPM_HALF_WIDTH, ppm_advection
from gridops.operators.registry import FOURTH, DiffMethod, OperatorClass, Scheme, SchemeKind, table_for
from gridops.operators.spectral import SpectralDifferentiator
from gridops.operators.stencils.stencil import StencilLayout, extract_stencil, read_offsets
from gridops.utils.exceptions import ConfigurationError, UnsatisfiableRequestError, report_fatal
from gridops.utils.grid_logging import get_logger
from gridops.utils.parallel import LineExecutor

if TYPE_CHECKING:
    from gridops.core.mesh import Mesh

logger = get_logger(__name__)

MethodLike = DiffMethod | str | None


class DerivativeEngine:
    """
    Grid-wide differential operators on one mesh.

    Args:
        mesh: Mesh the fields live on
        config: Differencing configuration (defaults if None)
        methods: Pre-resolved methods; resolved from ``config`` if None

    Raises:
        UnsatisfiableRequestError: If the configuration selects FFT on a
            non-spectral axis, or on z when z is not periodic
    """

    def __init__(
        self,
        mesh: Mesh,
        config: DifferencingConfig | None = None,
        methods: DifferencingMethods | None = None,
    ):
        self.mesh = mesh
        self.config = config or DifferencingConfig()
        self.methods = methods or resolve_differencing(self.config)
        self.stagger_grids = self.methods.stagger_grids

        if not mesh.z.periodic:
            for op_class in (OperatorClass.FIRST, OperatorClass.SECOND):
                if self.methods.z.method(op_class) is DiffMethod.FFT:
                    report_fatal(
                        UnsatisfiableRequestError(
                            "FFT differencing requires a periodic z axis",
                            operator_name="DerivativeEngine",
                            axis="Z",
                            method="FFT",
                        )
                    )

        self.executor = LineExecutor(self.config.num_workers)
        self.applicator = Applicator(mesh, self.executor)
        self.spectral = SpectralDifferentiator(
            mesh,
            self.executor,
            cutoff=self.config.spectral_cutoff,
            attenuation=self.config.spectral_attenuation,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop worker threads and release spectral scratch buffers."""
        self.executor.shutdown()
        self.spectral.pool.clear()

    def __enter__(self) -> DerivativeEngine:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"DerivativeEngine(shape={self.mesh.shape3d}, stagger_grids={self.stagger_grids}, "
            f"workers={self.executor.num_workers})"
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check(self, *fields: Field) -> None:
        for f in fields:
            if f.mesh is not self.mesh:
                raise ValueError("Field belongs to a different mesh than this engine")

    def _select(self, op_class: OperatorClass, axis: Axis, staggered: bool, method: MethodLike) -> Scheme:
        """
        Choose the scheme for one call.

        FFT selections are honoured for staggered requests too: the spectral
        differentiator applies the half-cell shift itself.
        """
        centred = table_for(op_class)
        axis_methods = self.methods.for_axis(axis)

        if method is None:
            chosen = axis_methods.method(op_class)
        elif isinstance(method, DiffMethod):
            chosen = method
        else:
            chosen = centred.resolve(method)

        if chosen is DiffMethod.FFT and centred.is_implemented(chosen):
            check_spectral_axis(axis, chosen, operator_name=f"{op_class.value} derivative")
            return centred.lookup(chosen)

        if not staggered:
            return centred.lookup(chosen)

        staggered_table = table_for(op_class, staggered=True)
        if method is None:
            return staggered_table.lookup(axis_methods.method(op_class, staggered=True))
        return staggered_table.lookup(chosen)

    def _zeros(self, ndim: int, location: CellLocation) -> Field:
        return Field.zeros(self.mesh, ndim, location)

    @staticmethod
    def _spectral_shift(source: CellLocation, target: CellLocation) -> int:
        if source is CellLocation.CENTRE and target is CellLocation.ZLOW:
            return -1
        if source is CellLocation.ZLOW and target is CellLocation.CENTRE:
            return 1
        return 0

    # ------------------------------------------------------------------
    # Location interpolation
    # ------------------------------------------------------------------

    def interp_to(self, field: Field, location: CellLocation | str | None) -> Field:
        """
        Move ``field`` to ``location``.

        Without staggered grids locations carry no geometric meaning and the
        field is relabelled without interpolation.
        """
        location = as_location(location)
        if location is CellLocation.DEFAULT or location is field.location:
            return field
        if not self.stagger_grids:
            return field.with_data(field.data, location)
        return interpolation.interp_to(field, location, self.config.interpolation_order)

    # ------------------------------------------------------------------
    # First and second derivatives
    # ------------------------------------------------------------------

    def _derivative(
        self,
        op_class: OperatorClass,
        f: Field,
        axis: Axis,
        outloc: CellLocation | str | None,
        method: MethodLike,
        include_boundary: bool,
    ) -> Field:
        self._check(f)
        order = 1 if op_class is OperatorClass.FIRST else 2
        plan = plan_derivative(axis, f.location, as_location(outloc), self.stagger_grids)

        if axis is Axis.Z and not f.is3d:
            return self._zeros(2, plan.output_location)

        source = self.interp_to(f, plan.input_location)
        scheme = self._select(op_class, axis, plan.staggered, method)
        name = f"d{'' if order == 1 else '2'}d{axis.label.lower()}{'' if order == 1 else '2'}"
        logger.debug(f"{name}: {scheme.label}, {plan.input_location.value} -> {plan.result_location.value}")

        if scheme.kind is SchemeKind.SPECTRAL:
            shift = self._spectral_shift(plan.input_location, plan.result_location)
            data = self.spectral.differentiate(source, order, shift, include_boundary)
        else:
            data = self.applicator.apply(source, scheme, axis, plan.layout, order, include_boundary, name)
            correction = self.mesh.correction(axis)
            if order == 2 and correction is not None and not plan.staggered:
                first = self._select(OperatorClass.FIRST, axis, False, None)
                d1 = correction[..., None] if source.is3d else correction
                slope = self.applicator.apply(source, first, axis, StencilLayout.CENTRED, 1, include_boundary, name)
                data += d1 * slope

        result = Field(data, self.mesh, plan.result_location)
        return self.interp_to(result, plan.output_location)

    def first(
        self, f: Field, axis: Axis, outloc=None, method: MethodLike = None, include_boundary: bool = False
    ) -> Field:
        """
        First derivative of ``f`` along ``axis``.

        Args:
            f: Field with valid ghost cells
            axis: Axis of differentiation
            outloc: Output cell location (default: same as ``f``)
            method: Scheme override, e.g. ``"C4"`` or ``DiffMethod.W3``
            include_boundary: Also fill the ghost rows of the other axes
        """
        return self._derivative(OperatorClass.FIRST, f, axis, outloc, method, include_boundary)

    def second(
        self, f: Field, axis: Axis, outloc=None, method: MethodLike = None, include_boundary: bool = False
    ) -> Field:
        """Second derivative of ``f`` along ``axis``; see :meth:`first`."""
        return self._derivative(OperatorClass.SECOND, f, axis, outloc, method, include_boundary)

    def ddx(self, f: Field, outloc=None, method: MethodLike = None, include_boundary: bool = False) -> Field:
        return self.first(f, Axis.X, outloc, method, include_boundary)

    def ddy(self, f: Field, outloc=None, method: MethodLike = None, include_boundary: bool = False) -> Field:
        return self.first(f, Axis.Y, outloc, method, include_boundary)

    def ddz(self, f: Field, outloc=None, method: MethodLike = None, include_boundary: bool = False) -> Field:
        return self.first(f, Axis.Z, outloc, method, include_boundary)

    def d2dx2(self, f: Field, outloc=None, method: MethodLike = None, include_boundary: bool = False) -> Field:
        return self.second(f, Axis.X, outloc, method, include_boundary)

    def d2dy2(self, f: Field, outloc=None, method: MethodLike = None, include_boundary: bool = False) -> Field:
        return self.second(f, Axis.Y, outloc, method, include_boundary)

    def d2dz2(self, f: Field, outloc=None, method: MethodLike = None, include_boundary: bool = False) -> Field:
        return self.second(f, Axis.Z, outloc, method, include_boundary)

    # ------------------------------------------------------------------
    # Fourth and mixed derivatives
    # ------------------------------------------------------------------

    def fourth(self, f: Field, axis: Axis, include_boundary: bool = False) -> Field:
        """Second-order fourth derivative along ``axis``, at the location of ``f``."""
        self._check(f)
        if axis is Axis.Z and not f.is3d:
            return self._zeros(2, f.location)
        data = self.applicator.apply(f, FOURTH, axis, StencilLayout.CENTRED, 4, include_boundary, "d4d4")
        return Field(data, self.mesh, f.location)

    def d4dx4(self, f: Field, include_boundary: bool = False) -> Field:
        return self.fourth(f, Axis.X, include_boundary)

    def d4dy4(self, f: Field, include_boundary: bool = False) -> Field:
        return self.fourth(f, Axis.Y, include_boundary)

    def d4dz4(self, f: Field, include_boundary: bool = False) -> Field:
        return self.fourth(f, Axis.Z, include_boundary)

    def d2dxdz(self, f: Field, outloc=None) -> Field:
        """``d/dx (d/dz f)`` with the z derivative evaluated on the x ghost rows."""
        if not f.is3d:
            return self._zeros(2, f.location)
        return self.ddx(self.ddz(f, include_boundary=True), outloc)

    def d2dydz(self, f: Field, outloc=None) -> Field:
        """
        Mixed y-z derivative with second-order central differences.

        Equivalent to ``(f[j+1,k+1] - f[j-1,k+1] - f[j+1,k-1] + f[j-1,k-1]) / (4 dy dz)``.
        """
        if not f.is3d:
            return self._zeros(2, f.location)
        return self.ddy(self.ddz(f, method=DiffMethod.C2, include_boundary=True), outloc, method=DiffMethod.C2)

    def d2dxdy(self, f: Field, outloc=None) -> Field:
        """``d/dy (d/dx f)``; needs valid corner ghost cells."""
        return self.ddy(self.ddx(f, include_boundary=True), outloc)

    # ------------------------------------------------------------------
    # Advection and flux
    # ------------------------------------------------------------------

    def upwind(
        self,
        v: Field,
        f: Field,
        axis: Axis,
        outloc=None,
        method: MethodLike = None,
        include_boundary: bool = False,
    ) -> Field:
        """
        Advection term ``v * df/dx`` along ``axis``.

        Args:
            v: Velocity component along ``axis``
            f: Advected field
            axis: Axis of differentiation
            outloc: Output location (default: location of ``f``)
            method: Scheme override
            include_boundary: Also fill the ghost rows of the other axes
        """
        self._check(v, f)
        plan = plan_advection(axis, v.location, f.location, as_location(outloc), self.stagger_grids)
        ndim = max(v.ndim, f.ndim)
        if axis is Axis.Z and not f.is3d:
            return self._zeros(ndim, plan.output_location)

        velocity = self.interp_to(v, plan.velocity_location)
        scheme = self._select(OperatorClass.UPWIND, axis, plan.staggered, method)
        name = f"vdd{axis.label.lower()}"
        logger.debug(f"{name}: {scheme.label}")

        if scheme.kind is SchemeKind.PPM:
            data = self._ppm(velocity, f, axis, include_boundary)
        else:
            data = self.applicator.apply_pair(velocity, f, scheme, axis, plan.layout, include_boundary, name)

        result = Field(data, self.mesh, plan.result_location)
        return self.interp_to(result, plan.output_location)

    def flux(
        self,
        v: Field,
        f: Field,
        axis: Axis,
        outloc=None,
        method: MethodLike = None,
        include_boundary: bool = False,
    ) -> Field:
        """
        Flux divergence ``d(v f)/dx`` along ``axis``.

        The SPLIT scheme evaluates ``v df/dx + f dv/dx`` with the configured
        upwind and first-derivative schemes.
        """
        self._check(v, f)
        plan = plan_advection(axis, v.location, f.location, as_location(outloc), self.stagger_grids)
        ndim = max(v.ndim, f.ndim)
        if axis is Axis.Z and not (v.is3d or f.is3d):
            return self._zeros(ndim, plan.output_location)

        scheme = self._select(OperatorClass.FLUX, axis, plan.staggered, method)
        name = f"fdd{axis.label.lower()}"
        logger.debug(f"{name}: {scheme.label}")

        if scheme.kind is SchemeKind.SPLIT:
            out = plan.output_location
            advective = self.upwind(v, f, axis, out, None, include_boundary)
            divergence = self.interp_to(self.first(v, axis, out, None, include_boundary), out)
            return advective + divergence * self.interp_to(f, out)

        velocity = self.interp_to(v, plan.velocity_location)
        data = self.applicator.apply_pair(velocity, f, scheme, axis, plan.layout, include_boundary, name)
        result = Field(data, self.mesh, plan.result_location)
        return self.interp_to(result, plan.output_location)

    def vddx(self, v: Field, f: Field, outloc=None, method: MethodLike = None) -> Field:
        return self.upwind(v, f, Axis.X, outloc, method)

    def vddy(self, v: Field, f: Field, outloc=None, method: MethodLike = None) -> Field:
        return self.upwind(v, f, Axis.Y, outloc, method)

    def vddz(self, v: Field, f: Field, outloc=None, method: MethodLike = None) -> Field:
        return self.upwind(v, f, Axis.Z, outloc, method)

    def fddx(self, v: Field, f: Field, outloc=None, method: MethodLike = None) -> Field:
        return self.flux(v, f, Axis.X, outloc, method)

    def fddy(self, v: Field, f: Field, outloc=None, method: MethodLike = None) -> Field:
        return self.flux(v, f, Axis.Y, outloc, method)

    def fddz(self, v: Field, f: Field, outloc=None, method: MethodLike = None) -> Field:
        return self.flux(v, f, Axis.Z, outloc, method)

    def _ppm(self, v: Field, f: Field, axis: Axis, include_boundary: bool):
        ndim = max(v.ndim, f.ndim)
        v_data = broadcast_to_ndim(v.data, self.mesh, ndim)
        f_data = broadcast_to_ndim(f.data, self.mesh, ndim)
        grid = self.mesh.axis(axis)
        period = grid.n if grid.periodic else None
        v_offsets = {-1: -1, 0: 0}
        f_offsets = {o: o for o in range(-PPM_HALF_WIDTH, PPM_HALF_WIDTH + 1)}

        def evaluate(positions, transverse):
            vw = read_offsets(v_data, axis, positions, transverse, v_offsets, period)
            fw = read_offsets(f_data, axis, positions, transverse, f_offsets, period)
            return ppm_advection(vw, fw)

        return self.applicator.apply_window(axis, ndim, PPM_HALF_WIDTH, evaluate, 1, include_boundary, "ppm")

    # ------------------------------------------------------------------
    # Kurganov-Tadmor flux
    # ------------------------------------------------------------------

    def kt_flux(self, flux: Field, u: Field, vmax: Field | float, axis: Axis = Axis.Y) -> Field:
        """
        Kurganov-Tadmor MUSCL estimate of ``-d(flux)/dx`` along ``axis``.

        Args:
            flux: Physical flux ``F(u)``
            u: Conserved quantity
            vmax: Maximum local wave speed, a 2D field or a scalar
            axis: Axis of differentiation (default y)

        Returns:
            Field at the location of ``u``, ready to add to ``du/dt``.
        """
        self._check(flux, u)
        ndim = max(flux.ndim, u.ndim)
        flux_data = broadcast_to_ndim(flux.data, self.mesh, ndim)
        u_data = broadcast_to_ndim(u.data, self.mesh, ndim)
        grid = self.mesh.axis(axis)
        period = grid.n if grid.periodic else None

        def evaluate(positions, transverse):
            fs = extract_stencil(flux_data, axis, positions, transverse, StencilLayout.CENTRED, 2, period)
            us = extract_stencil(u_data, axis, positions, transverse, StencilLayout.CENTRED, 2, period)
            speed = vmax
            if isinstance(vmax, Field):
                index = list(transverse)
                index.insert(axis, positions)
                speed = vmax.data[index[0], index[1]]
                if ndim == 3:
                    speed = speed[..., None]
            return kt_flux_difference(fs, us, speed)

        data = self.applicator.apply_window(axis, ndim, 2, evaluate, 1, False, "kt_flux")
        return Field(data, self.mesh, u.location)


# =============================================================================
# Process-wide default engine
# =============================================================================

_default_lock = threading.Lock()
_default_engine: DerivativeEngine | None = None


def set_default_engine(engine: DerivativeEngine) -> None:
    """
    Install the process-wide engine; may be called once per process.

    Raises:
        ConfigurationError: If a default engine is already installed
    """
    global _default_engine
    with _default_lock:
        if _default_engine is not None:
            raise ConfigurationError(
                "default_engine",
                engine,
                "differencing is already initialised; re-initialisation is not supported",
                operator_name="DerivativeEngine",
            )
        _default_engine = engine


def get_default_engine() -> DerivativeEngine:
    """Return the engine installed by :func:`set_default_engine`."""
    engine = _default_engine
    if engine is None:
        raise RuntimeError("No default DerivativeEngine installed; call set_default_engine() first")
    return engine


def _reset_default_engine() -> None:
    global _default_engine
    with _default_lock:
        if _default_engine is not None:
            _default_engine.close()
        _default_engine = None


__all__ = ["DerivativeEngine", "get_default_engine", "set_default_engine"]
