"""
Unit tests for Field construction and arithmetic.
"""

import pytest

import numpy as np

from gridops.core import CellLocation, Field, Mesh
from gridops.utils.exceptions import DimensionMismatchError, LocationError


class TestConstruction:
    """Shapes, locations and sampling."""

    @pytest.mark.unit
    def test_zeros(self, mesh):
        assert Field.zeros(mesh).shape == mesh.shape3d
        assert Field.zeros(mesh, ndim=2).shape == mesh.shape2d
        assert not Field.zeros(mesh, ndim=2).is3d

    @pytest.mark.unit
    def test_shape_checked(self, mesh):
        with pytest.raises(DimensionMismatchError):
            Field(np.zeros((3, 4)), mesh)

    @pytest.mark.unit
    def test_location_names(self, mesh):
        assert Field.zeros(mesh, location="xlow").location is CellLocation.XLOW
        assert Field.zeros(mesh, location=CellLocation.DEFAULT).location is CellLocation.CENTRE

    @pytest.mark.unit
    def test_from_function_samples_ghosts(self, mesh):
        f = Field.from_function(mesh, lambda x, y, z: x + 0 * y + 0 * z)
        assert f.data[0, 0, 0] == pytest.approx(-2 / 32)
        assert f.data[2, 5, 7] == pytest.approx(0.0)

    @pytest.mark.unit
    def test_from_function_two_dimensional(self, mesh):
        f = Field.from_function(mesh, lambda x, y, z: y + z, ndim=2)
        assert f.shape == mesh.shape2d
        assert f.data[0, 2] == pytest.approx(0.0)

    @pytest.mark.unit
    def test_interior(self, mesh):
        assert Field.zeros(mesh).interior().shape == (32, 8, 32)
        assert Field.zeros(mesh, ndim=2).interior().shape == (32, 8)

    @pytest.mark.unit
    def test_copy_is_independent(self, mesh):
        f = Field.zeros(mesh)
        g = f.copy()
        g.data[...] = 1.0
        assert np.all(f.data == 0.0)


class TestArithmetic:
    """Elementwise operations between fields and scalars."""

    @pytest.mark.unit
    def test_scalar_operations(self, mesh):
        f = Field.zeros(mesh) + 2.0
        np.testing.assert_array_equal((3.0 * f - 1.0).data, 5.0)
        np.testing.assert_array_equal((1.0 - f).data, -1.0)
        np.testing.assert_array_equal((f / 4.0).data, 0.5)
        np.testing.assert_array_equal((-f).data, -2.0)

    @pytest.mark.unit
    def test_two_dimensional_broadcast_over_z(self, mesh):
        f3 = Field.zeros(mesh) + 1.0
        f2 = Field.from_function(mesh, lambda x, y, z: x + 0 * y, ndim=2)
        for result in (f3 + f2, f2 + f3):
            assert result.shape == mesh.shape3d
            np.testing.assert_allclose(result.data[..., 5], f2.data + 1.0)
        product = f2 * f3
        assert product.shape == mesh.shape3d
        np.testing.assert_allclose(product.data[..., 0], f2.data)

    @pytest.mark.unit
    def test_location_mismatch(self, mesh):
        with pytest.raises(LocationError):
            Field.zeros(mesh) + Field.zeros(mesh, location="ylow")

    @pytest.mark.unit
    def test_different_meshes(self, mesh):
        other = Mesh.uniform(32, 8, 32)
        with pytest.raises(ValueError, match="different meshes"):
            Field.zeros(mesh) * Field.zeros(other)
