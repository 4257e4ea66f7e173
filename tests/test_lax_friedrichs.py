#
# Copyright 2025 Hannes Holey
#
# ### MIT License
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
import numpy as np
import pytest

from HypFlow.fem.basis import BernsteinBasis
from HypFlow.fem.mesh import LocalMesh, StructuredMesh
from HypFlow.models import Advection, Euler
from HypFlow.solver_dg import DGEvolution


def make_evolution(system, Nx=2, order=1):
    mesh = LocalMesh(StructuredMesh(system.dim, Nx, Nx))
    return DGEvolution(mesh, BernsteinBasis(order, system.dim), system)


@pytest.fixture(scope="module")
def advection():
    return make_evolution(Advection(1, velocity=1.))


@pytest.fixture(scope="module")
def euler():
    return make_evolution(Euler(1, state=[1., 0.5, 2.5]))


def test_upwind_for_advection(advection):
    x1 = np.array([1.])
    x2 = np.array([0.])

    assert np.isclose(advection.lax_friedrichs(x1, x2, np.array([1.]))[0], 1.)
    assert np.isclose(advection.lax_friedrichs(x1, x2, np.array([-1.]))[0], 0.)


def test_consistency(euler):
    u = np.array([1., 0.5, 2.5])
    n = np.array([1.])

    num_flux = euler.lax_friedrichs(u, u, n).copy()
    np.testing.assert_allclose(num_flux, euler.system.evaluate_flux(u) @ n)


def test_conservative(euler):
    u1 = np.array([1., 0.5, 2.5])
    u2 = np.array([0.8, -0.2, 2.0])
    n = np.array([1.])

    f12 = euler.lax_friedrichs(u1, u2, n).copy()
    f21 = euler.lax_friedrichs(u2, u1, -n).copy()

    np.testing.assert_allclose(f12, -f21)


def test_tracks_max_wave_speed():
    evo = make_evolution(Euler(1, state=[1., 0.5, 2.5]))
    assert evo.max_wave_speed == 0.

    u1 = np.array([1., 0.5, 2.5])
    u2 = np.array([1., 0., 2.5])
    evo.lax_friedrichs(u1, u2, np.array([1.]))

    c = np.sqrt(1.4 * 0.4 * (2.5 - 0.125))
    assert np.isclose(evo.max_wave_speed, 0.5 + c)


def test_two_dimensional_normal():
    evo = make_evolution(Euler(2, state=[1., 0.3, -0.2, 2.5]))
    u = np.array([1., 0.3, -0.2, 2.5])
    n = np.array([0.6, 0.8])

    num_flux = evo.lax_friedrichs(u, u, n).copy()
    np.testing.assert_allclose(num_flux, evo.system.evaluate_flux(u) @ n)
