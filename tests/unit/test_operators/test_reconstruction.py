"""
Unit tests for adaptive reconstruction: WENO, limiters, NND, KT and PPM.
"""

import pytest

import numpy as np

from gridops.operators.reconstruction import (
    cweno2_first,
    cweno3_first,
    kt_flux_difference,
    minmod,
    nnd_flux,
    ppm_advection,
    superbee,
    van_leer,
    weno3_upwind,
)
from gridops.operators.reconstruction.limiters import slope_ratio
from gridops.operators.stencils import Stencil


def window(values):
    mm, m, c, p, pp = (np.asarray(v, dtype=float) for v in values)
    return Stencil(mm=mm, m=m, c=c, p=p, pp=pp)


LINEAR = window([-2.0, -1.0, 0.0, 1.0, 2.0])
CONSTANT = window([3.0] * 5)


class TestWeno:
    """WENO derivatives on smooth and discontinuous data."""

    @pytest.mark.unit
    def test_cweno2_exact_on_linear(self):
        assert cweno2_first(LINEAR) == pytest.approx(1.0)

    @pytest.mark.unit
    def test_cweno2_selects_smooth_side_at_step(self):
        step = window([0.0, 0.0, 0.0, 1.0, 1.0])
        assert abs(cweno2_first(step)) < 1e-10

    @pytest.mark.unit
    @pytest.mark.parametrize("velocity", [2.0, -2.0])
    def test_weno3_upwind_linear(self, velocity):
        assert weno3_upwind(Stencil(c=np.array(velocity)), LINEAR) == pytest.approx(velocity)

    @pytest.mark.unit
    def test_weno3_upwind_constant(self):
        assert weno3_upwind(Stencil(c=np.array(1.0)), CONSTANT) == 0.0

    @pytest.mark.unit
    def test_cweno3_linear(self):
        shifted = LINEAR.map(lambda a: a + 10.0)
        assert cweno3_first(shifted) == pytest.approx(1.0)

    @pytest.mark.unit
    def test_cweno3_vectorised(self):
        f = window([np.full(4, v) for v in (-2.0, -1.0, 0.0, 1.0, 2.0)])
        np.testing.assert_allclose(cweno3_first(f), np.ones(4))


class TestLimiters:
    """Classical limiter functions."""

    @pytest.mark.unit
    def test_minmod(self):
        np.testing.assert_array_equal(minmod(np.array([1.0, -1.0, 1.0]), np.array([2.0, -3.0, -1.0])), [1.0, -1.0, 0.0])

    @pytest.mark.unit
    def test_superbee(self):
        r = np.array([-1.0, 0.0, 0.5, 1.0, 3.0])
        np.testing.assert_allclose(superbee(r), [0.0, 0.0, 1.0, 1.0, 2.0])

    @pytest.mark.unit
    def test_van_leer(self):
        np.testing.assert_allclose(van_leer(np.array([-1.0, 1.0, 3.0])), [0.0, 1.0, 1.5])

    @pytest.mark.unit
    def test_slope_ratio_zero_denominator(self):
        np.testing.assert_array_equal(slope_ratio(np.array([1.0, 2.0]), np.array([0.0, 4.0])), [0.0, 0.5])


class TestLimitedFluxes:
    """NND and Kurganov-Tadmor flux differences."""

    @pytest.mark.unit
    @pytest.mark.parametrize("velocity", [1.0, -1.0])
    def test_nnd_linear(self, velocity):
        v = window([velocity] * 5)
        assert nnd_flux(v, LINEAR) == pytest.approx(velocity)

    @pytest.mark.unit
    def test_nnd_constant_velocity_constant_field(self):
        assert nnd_flux(window([0.5] * 5), CONSTANT) == pytest.approx(0.0)

    @pytest.mark.unit
    def test_kt_linear_flux(self):
        assert kt_flux_difference(LINEAR, LINEAR, 1.0) == pytest.approx(-1.0)

    @pytest.mark.unit
    def test_kt_constant_state_has_no_dissipation(self):
        assert kt_flux_difference(CONSTANT, CONSTANT, 5.0) == pytest.approx(0.0)


class TestPPM:
    """Piecewise parabolic advection."""

    @staticmethod
    def field(func):
        return {o: np.asarray(func(float(o))) for o in range(-3, 4)}

    @pytest.mark.unit
    @pytest.mark.parametrize("velocity", [2.0, -2.0])
    def test_linear_exact(self, velocity):
        v = {-1: np.array(velocity), 0: np.array(velocity)}
        assert ppm_advection(v, self.field(lambda x: x + 5.0)) == pytest.approx(velocity)

    @pytest.mark.unit
    def test_constant(self):
        v = {-1: np.array(1.0), 0: np.array(1.0)}
        assert ppm_advection(v, self.field(lambda x: 4.0)) == pytest.approx(0.0)

    @pytest.mark.unit
    def test_step_stays_bounded(self):
        v = {-1: np.array(1.0), 0: np.array(1.0)}
        result = ppm_advection(v, self.field(lambda x: 1.0 if x > 0 else 0.0))
        assert -1e-12 <= result <= 1.0 + 1e-12
