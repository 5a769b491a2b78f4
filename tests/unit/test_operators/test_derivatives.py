"""
Unit tests for DerivativeEngine.

Covers scheme selection and overrides, exactness on polynomials, staggered
locations, mixed and fourth derivatives, advection and flux terms, and the
process-wide default engine.
"""

import pytest

import numpy as np

from gridops import CellLocation, DerivativeEngine, DifferencingConfig, Field, Mesh
from gridops.operators.differential.derivatives import _reset_default_engine, get_default_engine, set_default_engine
from gridops.utils.exceptions import ConfigurationError, StencilUnderReadError, UnsatisfiableRequestError

TWO_PI = 2 * np.pi


def constant(x, y, z):
    return 3.5 + 0 * (x + y + z)


def wave(x, y, z):
    return np.sin(TWO_PI * x) * np.cos(TWO_PI * y) * np.sin(z)


def owned(field):
    return field.interior()


@pytest.fixture
def stagger_engine(mesh):
    with DerivativeEngine(mesh, DifferencingConfig(stagger_grids=True)) as eng:
        yield eng


@pytest.fixture(autouse=True)
def reset_default():
    yield
    _reset_default_engine()


# =============================================================================
# First and Second Derivatives
# =============================================================================


class TestFirstAndSecond:
    """Centred first and second derivatives."""

    @pytest.mark.unit
    @pytest.mark.parametrize("method", ["C2", "W2", "W3", "C4", "S2"])
    @pytest.mark.parametrize("axis", ["x", "y", "z"])
    def test_first_of_constant_is_zero(self, engine, sample, method, axis):
        f = sample(constant)
        result = getattr(engine, f"dd{axis}")(f, method=method)
        np.testing.assert_allclose(result.data, 0.0, atol=1e-10)

    @pytest.mark.unit
    @pytest.mark.parametrize("method", ["C2", "C4", "FFT"])
    def test_second_of_constant_is_zero(self, engine, sample, method):
        f = sample(constant)
        np.testing.assert_allclose(engine.d2dz2(f, method=method).data, 0.0, atol=1e-10)
        if method != "FFT":
            np.testing.assert_allclose(engine.d2dx2(f, method=method).data, 0.0, atol=1e-8)

    @pytest.mark.unit
    def test_c4_second_exact_for_cubic(self, c4_engine, sample):
        result = c4_engine.d2dx2(sample(lambda x, y, z: x**3 + 0 * y + 0 * z))
        expected = sample(lambda x, y, z: 6 * x + 0 * y + 0 * z)
        np.testing.assert_allclose(owned(result), owned(expected), atol=1e-8)

    @pytest.mark.unit
    def test_c2_second_exact_for_quadratic(self, engine, sample):
        result = engine.d2dy2(sample(lambda x, y, z: 2 * y**2 - y + 0 * x + 0 * z))
        np.testing.assert_allclose(owned(result), 4.0, atol=1e-8)

    @pytest.mark.unit
    def test_c4_first_accuracy(self, c4_engine, sample):
        result = c4_engine.ddx(sample(wave))
        expected = sample(lambda x, y, z: TWO_PI * np.cos(TWO_PI * x) * np.cos(TWO_PI * y) * np.sin(z))
        np.testing.assert_allclose(owned(result), owned(expected), atol=2e-3)

    @pytest.mark.unit
    def test_fft_first_along_z(self, engine, sample):
        f = sample(lambda x, y, z: np.sin(4 * z) + x)
        result = engine.ddz(f, method="fft")
        expected = sample(lambda x, y, z: 4 * np.cos(4 * z) + 0 * x + 0 * y)
        np.testing.assert_allclose(owned(result), owned(expected), atol=1e-10)

    @pytest.mark.unit
    def test_results_are_zero_outside_region(self, engine, sample):
        result = engine.ddx(sample(wave))
        assert np.all(result.data[:2] == 0.0)
        assert np.all(result.data[-2:] == 0.0)
        assert np.all(result.data[:, :2] == 0.0)

    @pytest.mark.unit
    def test_include_boundary_fills_transverse_ghosts(self, engine, sample):
        f = sample(wave)
        assert np.all(engine.ddz(f).data[0] == 0.0)
        assert np.any(engine.ddz(f, include_boundary=True).data[0] != 0.0)

    @pytest.mark.unit
    def test_z_derivative_of_two_dimensional_field(self, engine, sample, mesh):
        f = sample(wave, ndim=2)
        for result in (engine.ddz(f), engine.d2dz2(f), engine.d4dz4(f), engine.d2dxdz(f)):
            assert result.shape == mesh.shape2d
            assert np.all(result.data == 0.0)

    @pytest.mark.unit
    def test_two_dimensional_x_derivative(self, engine, sample, mesh):
        result = engine.ddx(sample(lambda x, y, z: 2 * x + 0 * y + 0 * z, ndim=2))
        assert result.shape == mesh.shape2d
        np.testing.assert_allclose(owned(result), 2.0)

    @pytest.mark.unit
    def test_field_from_other_mesh_rejected(self, engine):
        other = Mesh.uniform(32, 8, 32)
        with pytest.raises(ValueError, match="different mesh"):
            engine.ddx(Field.zeros(other))


class TestSchemeErrors:
    """Unsatisfiable requests and ghost-width violations."""

    @pytest.mark.unit
    def test_fft_in_x_config_is_unsatisfiable(self, mesh):
        with pytest.raises(UnsatisfiableRequestError, match="FFT"):
            DerivativeEngine(mesh, DifferencingConfig(ddx={"first": "FFT"}))

    @pytest.mark.unit
    def test_fft_override_on_y_is_unsatisfiable(self, engine, sample):
        with pytest.raises(UnsatisfiableRequestError):
            engine.ddy(sample(wave), method="FFT")

    @pytest.mark.unit
    def test_fft_needs_periodic_z(self):
        mesh = Mesh.uniform(8, 4, 8, periodic_z=False)
        with pytest.raises(UnsatisfiableRequestError):
            DerivativeEngine(mesh, DifferencingConfig(ddz={"second": "FFT"}))

    @pytest.mark.unit
    def test_wide_stencil_needs_ghost_cells(self):
        mesh = Mesh.uniform(8, 4, 8, ghosts=(1, 1))
        with DerivativeEngine(mesh) as engine, pytest.raises(StencilUnderReadError):
            engine.ddx(Field.zeros(mesh), method="C4")

    @pytest.mark.unit
    def test_unknown_name_falls_back(self, engine, sample):
        f = sample(wave)
        np.testing.assert_array_equal(engine.ddx(f, method="X9").data, engine.ddx(f, method="C2").data)


# =============================================================================
# Staggered Grids
# =============================================================================


class TestStaggered:
    """Derivatives and advection between cell centres and faces."""

    @pytest.mark.unit
    def test_centre_to_face_first_derivative(self, stagger_engine, sample):
        f = sample(lambda x, y, z: np.sin(TWO_PI * x) + 0 * y + 0 * z)
        result = stagger_engine.ddx(f, outloc=CellLocation.XLOW)
        expected = sample(lambda x, y, z: TWO_PI * np.cos(TWO_PI * x) + 0 * y + 0 * z, location=CellLocation.XLOW)

        assert result.location is CellLocation.XLOW
        np.testing.assert_allclose(owned(result), owned(expected), atol=2e-2)

    @pytest.mark.unit
    def test_spectral_staggered_shift(self, mesh, sample):
        config = DifferencingConfig(stagger_grids=True, ddz={"first": "FFT"})
        with DerivativeEngine(mesh, config) as engine:
            result = engine.ddz(sample(lambda x, y, z: np.sin(z) + 0 * x + 0 * y), outloc="zlow")
        expected = sample(lambda x, y, z: np.cos(z) + 0 * x + 0 * y, location=CellLocation.ZLOW)

        assert result.location is CellLocation.ZLOW
        np.testing.assert_allclose(owned(result), owned(expected), atol=1e-10)

    @pytest.mark.unit
    def test_face_velocity_advection(self, stagger_engine, sample):
        v = sample(lambda x, y, z: 1.0 + 0 * (x + y + z), location=CellLocation.XLOW)
        f = sample(lambda x, y, z: x + 0 * y + 0 * z)
        result = stagger_engine.vddx(v, f)

        assert result.location is CellLocation.CENTRE
        np.testing.assert_allclose(owned(result), 1.0, atol=1e-10)

    @pytest.mark.unit
    def test_without_staggering_locations_are_ignored(self, engine, sample):
        result = engine.ddx(sample(wave), outloc=CellLocation.XLOW)
        assert result.location is CellLocation.CENTRE
        moved = engine.interp_to(sample(wave), CellLocation.YLOW)
        assert moved.location is CellLocation.YLOW
        np.testing.assert_array_equal(moved.data, sample(wave).data)


# =============================================================================
# Fourth and Mixed Derivatives
# =============================================================================


class TestFourthAndMixed:
    """Fourth derivatives and cross derivatives."""

    @pytest.mark.unit
    def test_fourth_of_quartic(self, engine, sample):
        result = engine.d4dx4(sample(lambda x, y, z: x**4 + 0 * y + 0 * z))
        np.testing.assert_allclose(owned(result), 24.0, atol=1e-5)

    @pytest.mark.unit
    def test_fourth_along_z(self, engine, sample):
        result = engine.d4dz4(sample(lambda x, y, z: np.sin(z) + 0 * x + 0 * y))
        expected = sample(lambda x, y, z: np.sin(z) + 0 * x + 0 * y)
        np.testing.assert_allclose(owned(result), owned(expected), atol=1e-2)

    @pytest.mark.unit
    def test_d2dxdz(self, c4_engine, sample):
        f = sample(lambda x, y, z: np.sin(TWO_PI * x) * np.sin(z) + 0 * y)
        expected = sample(lambda x, y, z: TWO_PI * np.cos(TWO_PI * x) * np.cos(z) + 0 * y)
        np.testing.assert_allclose(owned(c4_engine.d2dxdz(f)), owned(expected), atol=5e-3)

    @pytest.mark.unit
    def test_d2dydz_matches_explicit_stencil(self, engine, mesh, sample):
        f = sample(wave)
        result = engine.d2dydz(f)

        d = f.data[..., :32]
        dz = (np.roll(d, -1, axis=2) - np.roll(d, 1, axis=2)) / (2 * mesh.dz)
        expected = (dz[:, 3:11] - dz[:, 1:9]) / (2 * mesh.dy[0, 0])
        np.testing.assert_allclose(result.data[2:34, 2:10, :32], expected[2:34], rtol=1e-10, atol=1e-10)

    @pytest.mark.unit
    def test_d2dxdy_bilinear(self, engine, sample):
        result = engine.d2dxdy(sample(lambda x, y, z: 3 * x * y + 0 * z))
        np.testing.assert_allclose(owned(result), 3.0, atol=1e-9)


# =============================================================================
# Advection and Flux
# =============================================================================


class TestAdvection:
    """Upwind and flux terms."""

    @pytest.mark.unit
    @pytest.mark.parametrize("method", ["U1", "C2", "U4", "W3", "C4"])
    def test_upwind_of_constant_is_zero(self, engine, sample, method):
        v = sample(wave)
        np.testing.assert_allclose(engine.vddx(v, sample(constant), method=method).data, 0.0, atol=1e-10)

    @pytest.mark.unit
    @pytest.mark.parametrize("method", ["U1", "C2", "U4", "W3", "C4"])
    @pytest.mark.parametrize("velocity", [2.0, -2.0])
    def test_upwind_linear_profile(self, engine, sample, method, velocity):
        v = sample(lambda x, y, z: velocity + 0 * (x + y + z))
        f = sample(lambda x, y, z: 3 * y + 0 * x + 0 * z)
        np.testing.assert_allclose(owned(engine.vddy(v, f, method=method)), 3 * velocity, atol=1e-8)

    @pytest.mark.unit
    def test_ppm_along_z(self):
        mesh = Mesh.uniform(4, 2, 64)
        with DerivativeEngine(mesh) as engine:
            v = Field.from_function(mesh, lambda x, y, z: 1.0 + 0 * (x + y + z))
            f = Field.from_function(mesh, lambda x, y, z: np.sin(z) + 0 * x + 0 * y)
            result = engine.vddz(v, f, method="PPM")
        expected = Field.from_function(mesh, lambda x, y, z: np.cos(z) + 0 * x + 0 * y)
        np.testing.assert_allclose(result.interior(), expected.interior(), atol=5e-2)

    @pytest.mark.unit
    def test_ppm_linear_with_three_ghosts(self):
        mesh = Mesh.uniform(16, 4, 8, ghosts=(3, 3))
        with DerivativeEngine(mesh) as engine:
            v = Field.from_function(mesh, lambda x, y, z: -1.0 + 0 * (x + y + z))
            f = Field.from_function(mesh, lambda x, y, z: 2 * x + 0 * y + 0 * z)
            result = engine.vddx(v, f, method="PPM")
        np.testing.assert_allclose(result.interior(), -2.0, atol=1e-8)

    @pytest.mark.unit
    def test_ppm_needs_three_ghosts(self, engine, sample):
        with pytest.raises(StencilUnderReadError):
            engine.vddx(sample(wave), sample(wave), method="PPM")

    @pytest.mark.unit
    def test_split_flux_is_advection_plus_divergence(self, engine, sample):
        v = sample(lambda x, y, z: 1.0 + 0.5 * np.sin(TWO_PI * x) + 0 * y + 0 * z)
        f = sample(wave)
        expected = engine.vddx(v, f) + engine.ddx(v) * f
        np.testing.assert_array_equal(engine.fddx(v, f).data, expected.data)

    @pytest.mark.unit
    @pytest.mark.parametrize("method", ["U1", "C2", "C4", "NND"])
    def test_flux_of_product(self, engine, sample, method):
        # d(v f)/dy with v = 2 and f = y
        v = sample(lambda x, y, z: 2.0 + 0 * (x + y + z))
        f = sample(lambda x, y, z: y + 0 * x + 0 * z)
        np.testing.assert_allclose(owned(engine.fddy(v, f, method=method)), 2.0, atol=1e-8)

    @pytest.mark.unit
    def test_flux_with_two_dimensional_velocity(self, engine, sample, mesh):
        v = sample(lambda x, y, z: 1.0 + 0 * (x + y + z), ndim=2)
        f = sample(lambda x, y, z: np.sin(z) + 0 * x + 0 * y)
        result = engine.fddz(v, f, method="C4")
        assert result.shape == mesh.shape3d

    @pytest.mark.unit
    @pytest.mark.parametrize("vmax", ["scalar", "field"])
    def test_kt_flux(self, engine, sample, mesh, vmax):
        u = sample(lambda x, y, z: y + 0 * x + 0 * z)
        speed = 1.0 if vmax == "scalar" else Field(np.ones(mesh.shape2d), mesh)
        result = engine.kt_flux(u, u, speed)
        np.testing.assert_allclose(owned(result), -1.0, atol=1e-10)


# =============================================================================
# Concurrency and Default Engine
# =============================================================================


class TestEngineLifecycle:
    """Worker pools and the process-wide default."""

    @pytest.mark.unit
    def test_threaded_results_match_serial(self, engine, mesh, sample):
        f = sample(wave)
        v = sample(lambda x, y, z: np.cos(TWO_PI * y) + 0 * x + 0 * z)
        with DerivativeEngine(mesh, DifferencingConfig(num_workers=4)) as threaded:
            np.testing.assert_array_equal(threaded.ddx(f).data, engine.ddx(f).data)
            np.testing.assert_array_equal(threaded.vddy(v, f, method="W3").data, engine.vddy(v, f, method="W3").data)
            np.testing.assert_array_equal(threaded.d2dz2(f, method="FFT").data, engine.d2dz2(f, method="FFT").data)

    @pytest.mark.unit
    def test_default_engine_installed_once(self, mesh):
        first = DerivativeEngine(mesh)
        set_default_engine(first)
        assert get_default_engine() is first

        with pytest.raises(ConfigurationError):
            set_default_engine(DerivativeEngine(mesh))
        assert get_default_engine() is first

    @pytest.mark.unit
    def test_missing_default_engine(self):
        with pytest.raises(RuntimeError, match="set_default_engine"):
            get_default_engine()
