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

from HypFlow.errors import ConfigurationError
from HypFlow.fem.basis import BernsteinBasis
from HypFlow.fem.mesh import Face, LocalMesh, StructuredMesh
from HypFlow.fem.quadrature import get_element_integration_rule, get_face_integration_rule
from HypFlow.fem.shapes import ShapeTables
from HypFlow.models import Advection, Burgers, Euler, ShallowWater
from HypFlow.parallel import DomainDecomposition
from HypFlow.solver_dg import DGEvolution


def wavy(v):
    bump = np.sin(np.pi * v[0]) * np.sin(np.pi * v[1])
    return np.array([v[0] + 0.08 * bump, v[1] + 0.06 * bump])


def test_single_element_constant_state():
    mesh = LocalMesh(StructuredMesh(1, 1))
    system = ShallowWater(1, state=[1., 0.5])
    evo = DGEvolution(mesh, BernsteinBasis(2, 1), system)

    q = evo.project(system.initial_condition)

    assert evo.size == 6
    np.testing.assert_allclose(evo.mult(q), 0., atol=1e-12)


@pytest.mark.parametrize("order", [1, 2])
def test_free_stream_on_distorted_mesh(order):
    mesh = LocalMesh(StructuredMesh(2, 3, 3, transform=wavy))
    system = Euler(2, state=[1., 0.3, -0.2, 2.5])
    evo = DGEvolution(mesh, BernsteinBasis(order, 2), system)

    q = evo.project(system.initial_condition)

    np.testing.assert_allclose(evo.mult(q), 0., atol=1e-10)


def test_conservation_on_periodic_mesh():
    mesh = LocalMesh(StructuredMesh(2, 3, 3, periodic=(True, True), transform=wavy))
    system = Burgers(2, value=1., amplitude=0.3)
    evo = DGEvolution(mesh, BernsteinBasis(1, 2), system)

    q = evo.project(system.initial_condition)
    z = evo.assemble(q)

    assert np.abs(z).max() > 1e-3
    assert np.isclose(z.sum(), 0., atol=1e-12)


@pytest.mark.parametrize("size", [2, 3])
def test_partitioned_equals_serial(size):
    gmesh = StructuredMesh(2, 4, 3, periodic=(True, True))
    basis = BernsteinBasis(1, 2)
    system = Advection(2, velocity=[1., 0.5], amplitude=0.5)

    serial = DGEvolution(LocalMesh(gmesh), basis, system)
    q = serial.project(system.initial_condition)
    r = serial.mult(q)

    for rank in range(size):
        decomp = DomainDecomposition(gmesh, rank=rank, size=size)
        local = DGEvolution(LocalMesh(gmesh, decomp), basis, system)

        assert local.halo_size == decomp.nb_ghosts * basis.nd
        r_loc = local.mult(decomp.restrict(q, 1), 0., decomp.ghost_values(q, 1))

        np.testing.assert_allclose(r_loc, decomp.restrict(r, 1), atol=1e-12)


def test_input_sizes():
    gmesh = StructuredMesh(1, 4)
    decomp = DomainDecomposition(gmesh, rank=0, size=2)
    evo = DGEvolution(LocalMesh(gmesh, decomp), BernsteinBasis(1, 1), Advection(1, velocity=1.))

    with pytest.raises(ConfigurationError):
        evo.mult(np.zeros(evo.size + 1), 0., np.zeros(evo.halo_size))

    with pytest.raises(ConfigurationError):
        evo.mult(np.zeros(evo.size))

    with pytest.raises(ConfigurationError):
        evo.mult(np.zeros(evo.size), 0., np.zeros(evo.halo_size + 2))


def test_dimension_mismatch():
    with pytest.raises(ConfigurationError):
        DGEvolution(LocalMesh(StructuredMesh(1, 2)), BernsteinBasis(1, 2), Advection(1, velocity=1.))


class _InwardFirstElement:
    dim = 1

    def element_faces(self, e):
        return [Face(1, 1, 0, 0), Face(0, 1, 1, 0)]


def test_first_element_must_own_its_faces():
    basis = BernsteinBasis(1, 1)
    with pytest.raises(ConfigurationError, match="inward pointing normal"):
        ShapeTables(basis, _InwardFirstElement(),
                    get_element_integration_rule(1, 3), get_face_integration_rule(1, 3))


def test_steady_state_uses_lumped_mass():
    mesh = LocalMesh(StructuredMesh(1, 5, periodic=(True, False)))
    system = Burgers(1, value=1., amplitude=0.2, steady_state=True)
    evo = DGEvolution(mesh, BernsteinBasis(2, 1), system)

    q = evo.project(system.initial_condition)
    z = evo.assemble(q)

    np.testing.assert_allclose(evo.mult(q), z / evo.LumpedMassMat)


def test_mult_writes_into_out():
    mesh = LocalMesh(StructuredMesh(1, 4, periodic=(True, False)))
    system = Advection(1, velocity=1., amplitude=1.)
    evo = DGEvolution(mesh, BernsteinBasis(1, 1), system)

    q = evo.project(system.initial_condition)
    out = np.empty(evo.size)
    ret = evo.mult(q, out=out)

    assert ret is out
    np.testing.assert_allclose(out, evo.InvMassMat.mult(evo.assemble(q)))


def _derivative_error(Nx):
    mesh = LocalMesh(StructuredMesh(1, Nx, periodic=(True, False)))
    system = Advection(1, velocity=1., value=0., amplitude=1.)
    evo = DGEvolution(mesh, BernsteinBasis(2, 1), system)

    q = evo.project(system.initial_condition)
    dq = evo.project(lambda x: np.array([-2. * np.pi * np.cos(2. * np.pi * x[0])]))

    return np.abs(evo.mult(q) - dq).max()


def test_advection_derivative_converges():
    # du/dt = -du/dx for a smooth periodic wave
    coarse = _derivative_error(16)
    fine = _derivative_error(32)

    assert fine < coarse / 3.
