"""
Observed convergence order of the finite difference schemes.

Errors against analytic derivatives of ``sin(2 pi x)`` are measured at two
resolutions; halving the spacing must reduce the error by roughly ``2**p``.
"""

import pytest

import numpy as np

from gridops import DerivativeEngine, Field, Mesh

K = 2 * np.pi


def max_error(n, evaluate, exact):
    mesh = Mesh.uniform(n, 1, 4, ghosts=(2, 1))
    with DerivativeEngine(mesh) as engine:
        f = Field.from_function(mesh, lambda x, y, z: np.sin(K * x) + 0 * y + 0 * z)
        v = Field.from_function(mesh, lambda x, y, z: 1.0 + 0 * (x + y + z))
        result = evaluate(engine, v, f)
    expected = Field.from_function(mesh, exact)
    return np.max(np.abs(result.interior() - expected.interior()))


def first(x, y, z):
    return K * np.cos(K * x) + 0 * y + 0 * z


def second(x, y, z):
    return -(K**2) * np.sin(K * x) + 0 * y + 0 * z


@pytest.mark.validation
@pytest.mark.parametrize(
    ("evaluate", "exact", "order"),
    [
        (lambda e, v, f: e.ddx(f, method="C2"), first, 2),
        (lambda e, v, f: e.ddx(f, method="C4"), first, 4),
        (lambda e, v, f: e.d2dx2(f, method="C2"), second, 2),
        (lambda e, v, f: e.d2dx2(f, method="C4"), second, 4),
        (lambda e, v, f: e.vddx(v, f, method="U1"), first, 1),
        (lambda e, v, f: e.vddx(v, f, method="U4"), first, 3),
        (lambda e, v, f: e.fddx(v, f, method="C4"), first, 4),
    ],
    ids=["ddx-C2", "ddx-C4", "d2dx2-C2", "d2dx2-C4", "vddx-U1", "vddx-U4", "fddx-C4"],
)
def test_observed_order(evaluate, exact, order):
    coarse = max_error(32, evaluate, exact)
    fine = max_error(64, evaluate, exact)
    observed = np.log2(coarse / fine)
    assert observed > order - 0.3
