import numpy as np
import pytest

from HypFlow.fem.basis import BernsteinBasis
from HypFlow.fem.mesh import LocalMesh, StructuredMesh
from HypFlow.models import Burgers
from HypFlow.solver_dg import DGEvolution


def make_evolution(steady_state=False):
    mesh = LocalMesh(StructuredMesh(2, 3, 2, periodic=(True, True)))
    system = Burgers(2, value=1., amplitude=0.3, steady_state=steady_state)
    return DGEvolution(mesh, BernsteinBasis(1, 2), system)


def test_reference_starts_at_zero():
    evo = make_evolution()
    q = evo.project(evo.system.initial_condition)

    np.testing.assert_allclose(evo.u_old, 0.)
    assert np.isclose(evo.convergence_check(q, 1.), np.linalg.norm(evo.MassMat.mult(q)))


def test_updates_reference():
    evo = make_evolution()
    q = evo.project(evo.system.initial_condition)
    evo.set_reference(q)

    assert evo.convergence_check(q, 0.1) == 0.

    u = q + 1e-3
    res = evo.convergence_check(u, 0.1)
    assert np.isclose(res, np.linalg.norm(evo.MassMat.tocsr() @ (u - q)) / 0.1)

    np.testing.assert_allclose(evo.u_old, u)
    assert evo.convergence_check(u, 0.1) == 0.


def test_scales_with_time_step():
    evo = make_evolution()
    q = evo.project(evo.system.initial_condition)

    evo.set_reference(q)
    r1 = evo.convergence_check(q + 1e-2, 0.1)
    evo.set_reference(q)
    r2 = evo.convergence_check(q + 1e-2, 0.2)

    assert np.isclose(r1, 2. * r2)


@pytest.mark.parametrize("steady_state", [True, False])
def test_mass_weighting(steady_state):
    evo = make_evolution(steady_state)
    rng = np.random.default_rng(3)
    z = rng.normal(size=evo.size)

    res = evo.convergence_check(z, 0.5)

    if steady_state:
        expected = np.sqrt(np.sum((evo.LumpedMassMat * z)**2)) / 0.5
    else:
        expected = np.linalg.norm(evo.MassMat.mult(z)) / 0.5

    assert np.isclose(res, expected)


@pytest.mark.parametrize("steady_state", [True, False])
def test_monotone_towards_fixed_point(steady_state):
    evo = make_evolution(steady_state)
    u_star = evo.project(evo.system.initial_condition)
    d = np.random.default_rng(5).normal(size=evo.size)

    evo.set_reference(u_star + d)
    res = [evo.convergence_check(u_star + 0.5**k * d, 0.1) for k in range(1, 25)]

    assert np.all(np.diff(res) <= 0.)
    np.testing.assert_allclose(res[1:], 0.5 * np.array(res[:-1]), rtol=1e-6)
    assert res[-1] < 1e-6 * res[0]
