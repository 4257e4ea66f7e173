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
from HypFlow.fem.mesh import LocalMesh, StructuredMesh
from HypFlow.fem.dofs import BoundaryDof
from HypFlow.models import Advection, Burgers, Euler, ShallowWater
from HypFlow.solver_dg import DGEvolution


def test_euler_wall_reflects_momentum():
    system = Euler(1, state=[1., 2., 5.], bc={2: 'wall'})
    y1 = np.array([1., 2., 5.])
    y2 = np.zeros(3)

    system.set_bdr_cond(y1, y2, np.array([1.]), 2)

    np.testing.assert_allclose(y2, [1., -2., 5.])


def test_shallow_water_wall_2d():
    system = ShallowWater(2, state=[1., 0.3, 0.4], bc={3: 'wall'})
    y1 = np.array([1., 0.3, 0.4])
    y2 = np.zeros(3)

    system.set_bdr_cond(y1, y2, np.array([0., 1.]), 3)

    np.testing.assert_allclose(y2, [1., 0.3, -0.4])


def test_outflow_and_inflow():
    system = Euler(1, state=[1., 0., 2.5], bc={1: 'outflow'})
    y1 = np.array([0.9, 0.1, 2.])

    y2 = system.bdr_cond(np.zeros(1))
    system.set_bdr_cond(y1, y2, np.array([-1.]), 1)
    np.testing.assert_allclose(y2, y1)

    # attributes without an entry are inflow boundaries
    y2 = system.bdr_cond(np.zeros(1))
    system.set_bdr_cond(y1, y2, np.array([1.]), 2)
    np.testing.assert_allclose(y2, [1., 0., 2.5])


def test_advection_inflow_is_characteristic():
    system = Advection(1, velocity=1.)

    y2 = np.array([1.])
    system.set_bdr_cond(np.array([0.3]), y2, np.array([1.]), 2)
    assert np.isclose(y2[0], 0.3)

    y2 = np.array([1.])
    system.set_bdr_cond(np.array([0.3]), y2, np.array([-1.]), 1)
    assert np.isclose(y2[0], 1.)


@pytest.mark.parametrize("bc", [{1: 'wall'}, {1: 'periodic'}])
def test_invalid_boundary_condition(bc):
    with pytest.raises(ConfigurationError):
        Advection(1, velocity=1., bc=bc)


def test_walls_conserve_mass():
    mesh = LocalMesh(StructuredMesh(1, 6))
    system = Euler(1, state=[1., 0.5, 2.5], bc={1: 'wall', 2: 'wall'})
    evo = DGEvolution(mesh, BernsteinBasis(2, 1), system)

    q = evo.project(system.initial_condition)
    z = evo.assemble(q).reshape(3, -1)

    # momentum hits the walls, density has no boundary flux
    assert np.abs(z[1]).max() > 1e-3
    assert np.isclose(z[0].sum(), 0., atol=1e-12)


def test_wall_at_rest_is_steady():
    mesh = LocalMesh(StructuredMesh(2, 2, 2))
    system = Euler(2, state=[1., 0., 0., 2.5], bc={1: 'wall', 2: 'wall', 3: 'wall', 4: 'wall'})
    evo = DGEvolution(mesh, BernsteinBasis(1, 2), system)

    q = evo.project(system.initial_condition)
    np.testing.assert_allclose(evo.mult(q), 0., atol=1e-12)


def test_time_dependent_boundary_is_reprojected():
    mesh = LocalMesh(StructuredMesh(1, 4))
    system = Advection(1, velocity=1., amplitude=0.5, time_dep_bc=True)
    evo = DGEvolution(mesh, BernsteinBasis(1, 1), system)

    np.testing.assert_allclose(evo.inflow, 0.)

    q = evo.project(system.initial_condition)
    evo.assemble(q, t=0.3)

    np.testing.assert_allclose(evo.inflow, evo.project_bdr_cond(0.3))
    assert not np.allclose(evo.inflow, q)


@pytest.mark.parametrize("dim,order", [(1, 2), (2, 2)])
def test_exterior_state_is_inflow_trace(dim, order):
    mesh = LocalMesh(StructuredMesh(dim, 3, 2))
    system = Burgers(dim, value=1., amplitude=0.4, wavelength=5.)
    evo = DGEvolution(mesh, BernsteinBasis(order, dim), system)

    rng = np.random.default_rng(7)
    q = rng.normal(size=evo.size)

    nb_faces = 0
    for e in range(evo.ne):
        for i in range(evo.dofs.NumBdrs):
            if not isinstance(evo.dofs.resolve(e, i, 0), BoundaryDof):
                continue
            nb_faces += 1
            for k in range(evo.nqf):
                _, y2 = evo.face_evaluate(q, None, evo.geom.normal(e, i, k), e, i, k)
                expected = sum(evo.inflow[evo.dofs.dof_index(e, i, j)] * evo.shapes.ShapeEvalFace[i, j, k]
                               for j in range(evo.dofs.NumFaceDofs))
                np.testing.assert_allclose(y2, [expected])

    assert nb_faces == (2 if dim == 1 else 10)


def test_exterior_state_on_segment_end():
    mesh = LocalMesh(StructuredMesh(1, 3))
    system = Burgers(1, value=1., amplitude=0.4, wavelength=5.)
    evo = DGEvolution(mesh, BernsteinBasis(2, 1), system)

    q = np.zeros(evo.size)
    _, y2 = evo.face_evaluate(q, None, evo.geom.normal(2, 1, 0), 2, 1, 0)

    # the end dof carries the full trace
    np.testing.assert_allclose(y2, evo.inflow[evo.dofs.dof_index(2, 1, 0)])
    assert not np.isclose(y2[0], evo.inflow[2 * evo.nd])


def test_wall_state_through_operator():
    mesh = LocalMesh(StructuredMesh(1, 1))
    system = Euler(1, state=[1., 2., 5.], bc={2: 'wall'})
    evo = DGEvolution(mesh, BernsteinBasis(1, 1), system)

    q = evo.project(system.initial_condition)

    y1, y2 = evo.face_evaluate(q, None, evo.geom.normal(0, 1, 0), 0, 1, 0)
    np.testing.assert_allclose(y1, [1., 2., 5.])
    np.testing.assert_allclose(y2, [1., -2., 5.])

    # attribute 1 has no entry and stays an inflow boundary
    _, y2 = evo.face_evaluate(q, None, evo.geom.normal(0, 0, 0), 0, 0, 0)
    np.testing.assert_allclose(y2, [1., 2., 5.])
