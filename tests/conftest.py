"""
Pytest configuration and shared fixtures for the gridops test suite.
"""

import pytest

import numpy as np

from gridops import DerivativeEngine, DifferencingConfig, Field, Mesh
from gridops.utils.grid_logging import configure_logging

# =============================================================================
# Test Configuration
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and quiet logging."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "validation: Accuracy checks against analytic solutions")
    config.addinivalue_line("markers", "slow: Slow tests (may take >10 seconds)")
    configure_logging(level="ERROR", use_colors=False)


def pytest_collection_modifyitems(config, items):
    """Add markers based on test paths."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/validation/" in test_path:
            item.add_marker(pytest.mark.validation)


# =============================================================================
# Mesh and Engine Fixtures
# =============================================================================


@pytest.fixture
def mesh():
    """32 x 8 x 32 mesh with two ghost cells in x and y, periodic z of length 2 pi."""
    return Mesh.uniform(32, 8, 32, lengths=(1.0, 1.0, 2 * np.pi), ghosts=(2, 2))


@pytest.fixture
def engine(mesh):
    """Engine with default (second-order) schemes."""
    with DerivativeEngine(mesh) as eng:
        yield eng


@pytest.fixture
def c4_engine(mesh):
    """Engine with fourth-order central schemes on every axis."""
    section = {"first": "C4", "second": "C4", "upwind": "C4", "flux": "C4"}
    config = DifferencingConfig(ddx=section, ddy=section, ddz=section)
    with DerivativeEngine(mesh, config) as eng:
        yield eng


@pytest.fixture
def sample(mesh):
    """Factory sampling ``func(x, y, z)`` on the fixture mesh."""

    def _sample(func, location="centre", ndim=3):
        return Field.from_function(mesh, func, location=location, ndim=ndim)

    return _sample
