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
import numpy.typing as npt

from typing import Callable, Tuple, TYPE_CHECKING

from .errors import ConfigurationError
from .fem.dofs import BoundaryDof, DofInfo, LocalDof
from .fem.geometry import GeometryCache
from .fem.mass import InverseMassMatrixDG, MassMatrixDG
from .fem.projection import l2_projection, nodal_projection
from .fem.quadrature import get_element_integration_rule, get_face_integration_rule
from .fem.shapes import ShapeTables

if TYPE_CHECKING:
    from .fem.basis import BernsteinBasis
    from .fem.mesh import LocalMesh
    from .models.base import HyperbolicSystem

NDArray = npt.NDArray[np.floating]


class DGEvolution:
    """Discontinuous Galerkin evolution operator with Lax-Friedrichs fluxes.

    Evaluates du/dt = M^{-1} (volume - surface) for u_t + div F(u) = 0 on a
    partition-local mesh. States are flat vectors with layout
    ``n * ne * nd + e * nd + j``. On partitioned meshes the states of
    remote neighbors are passed in as the halo buffer ``x_mpi``, which must
    be up to date before calling :meth:`mult`; the operator does not
    communicate.

    Parameters
    ----------
    mesh : LocalMesh
        Partition-local mesh.
    basis : BernsteinBasis
        Shape functions, the same on every element.
    system : HyperbolicSystem
        Flux, wave speed and boundary conditions.
    nb_quad_pts : int, optional
        Gauss points per direction (default: order + 2).
    """

    def __init__(self,
                 mesh: "LocalMesh",
                 basis: "BernsteinBasis",
                 system: "HyperbolicSystem",
                 nb_quad_pts: int | None = None) -> None:

        if basis.dim != mesh.dim or system.dim != mesh.dim:
            raise ConfigurationError(
                f"Dimension mismatch: mesh {mesh.dim}, basis {basis.dim}, system {system.dim}.")

        self.mesh = mesh
        self.basis = basis
        self.system = system

        if nb_quad_pts is None:
            nb_quad_pts = basis.order + 2

        self.IntRuleElem = get_element_integration_rule(mesh.dim, nb_quad_pts)
        self.IntRuleFace = get_face_integration_rule(mesh.dim, nb_quad_pts)

        self.dim = mesh.dim
        self.nd = basis.nd
        self.ne = mesh.ne
        self.nqe = self.IntRuleElem.nb_pts
        self.nqf = self.IntRuleFace.nb_pts
        self.num_eq = system.num_eq

        # Precomputed data that is constant for the whole run
        self.dofs = DofInfo(mesh, basis)
        self.shapes = ShapeTables(basis, mesh, self.IntRuleElem, self.IntRuleFace)
        self.geom = GeometryCache(mesh, self.IntRuleElem, self.IntRuleFace)

        self.MassMat = MassMatrixDG(mesh, basis, self.IntRuleElem, self.num_eq)
        self.InvMassMat = InverseMassMatrixDG(self.MassMat)
        self.LumpedMassMat = self.MassMat.lumped()

        self.x_size_mpi = self.ne * self.nd

        # Scratch buffers, overwritten on every use
        self.u_eval = np.zeros(self.num_eq)
        self.u_nbr_eval = np.zeros(self.num_eq)
        self.num_flux = np.zeros(self.num_eq)
        self.flux = np.zeros((self.num_eq, self.dim))
        self.flux_nbr = np.zeros((self.num_eq, self.dim))

        self.max_wave_speed = 0.
        self.u_old = np.zeros(self.size)

        self.inflow = np.zeros(self.size)
        if not system.time_dep_bc:
            self.inflow[:] = self.project_bdr_cond(0.)

    @property
    def size(self) -> int:
        """Length of the local state vector."""
        return self.num_eq * self.ne * self.nd

    @property
    def halo_size(self) -> int:
        """Expected length of the halo buffer."""
        return self.mesh.nb_ghosts * self.num_eq * self.nd

    # ---------------------------
    # Projections
    # ---------------------------

    def project(self, fun: Callable[[NDArray], NDArray]) -> NDArray:
        """Project a function of the physical point onto the DG space."""
        if self.system.proj_type == 'nodal':
            return nodal_projection(fun, self.mesh, self.basis, self.num_eq)
        return l2_projection(fun, self.mesh, self.basis, self.IntRuleElem,
                             self.InvMassMat, self.num_eq)

    def project_bdr_cond(self, t: float) -> NDArray:
        return self.project(lambda x: self.system.bdr_cond(x, t))

    # ---------------------------
    # State evaluation
    # ---------------------------

    def element_evaluate(self, u_elem: NDArray, k: int) -> NDArray:
        """
        State at interior quadrature point k of one element.

        Parameters
        ----------
        u_elem : ndarray
            Dofs of the element, flat ``n * nd + j`` or shape (num_eq, nd).
        k : int
            Interior quadrature point.
        """
        u_elem = np.reshape(u_elem, (self.num_eq, self.nd))
        np.dot(u_elem, self.shapes.ShapeEval[:, k], out=self.u_eval)
        return self.u_eval

    def face_evaluate(self,
                      x: NDArray,
                      x_mpi: NDArray | None,
                      normal: NDArray,
                      e: int, i: int, k: int) -> Tuple[NDArray, NDArray]:
        """
        Interior and neighbor state at face quadrature point k of local face i.

        On boundary faces the neighbor state starts from the inflow buffer at
        the element's own dofs and is then corrected by the boundary
        condition of the face attribute.
        """
        y1 = self.u_eval
        y2 = self.u_nbr_eval
        y1[:] = 0.
        y2[:] = 0.

        X = x.reshape(self.num_eq, self.x_size_mpi)
        inflow = self.inflow.reshape(self.num_eq, self.x_size_mpi)
        remote_stride = self.nd * np.arange(self.num_eq)
        bdr_attr = None

        for j in range(self.dofs.NumFaceDofs):
            ref = self.dofs.resolve(e, i, j)
            dof = self.dofs.dof_index(e, i, j)
            phi = self.shapes.ShapeEvalFace[i, j, k]

            if isinstance(ref, BoundaryDof):
                u_nbr = inflow[:, dof]
                bdr_attr = ref.attribute
            elif isinstance(ref, LocalDof):
                u_nbr = X[:, ref.index]
            else:
                u_nbr = x_mpi[self.dofs.remote_index(ref, 0, self.num_eq) + remote_stride]

            y1 += X[:, dof] * phi
            y2 += u_nbr * phi

        if bdr_attr is not None:
            self.system.set_bdr_cond(y1, y2, normal, bdr_attr)

        return y1, y2

    # ---------------------------
    # Numerical flux
    # ---------------------------

    def lax_friedrichs(self,
                       x1: NDArray,
                       x2: NDArray,
                       normal: NDArray,
                       e: int | None = None,
                       k: int | None = None,
                       i: int | None = None) -> NDArray:
        """Lax-Friedrichs flux 0.5 * ((F(x1) + F(x2)) n + ws (x1 - x2))."""
        hyp = self.system

        self.flux[:] = hyp.evaluate_flux(x1, e, k, i)
        self.flux_nbr[:] = hyp.evaluate_flux(x2, e, k, i)
        self.flux += self.flux_nbr

        ws = max(hyp.get_wave_speed(x1, normal, e, k, i),
                 hyp.get_wave_speed(x2, normal, e, k, i))
        self.max_wave_speed = max(self.max_wave_speed, ws)

        y = self.num_flux
        np.dot(self.flux, normal, out=y)
        y += ws * (x1 - x2)
        y *= 0.5
        return y

    # ---------------------------
    # Residual
    # ---------------------------

    def _check_inputs(self, x: NDArray, x_mpi: NDArray | None) -> None:
        if x.size != self.size:
            raise ConfigurationError(f"State has size {x.size}, expected {self.size}.")
        if self.halo_size > 0:
            if x_mpi is None:
                raise ConfigurationError("Partitioned mesh requires the halo buffer x_mpi.")
            if x_mpi.size != self.halo_size:
                raise ConfigurationError(
                    f"Halo buffer has size {x_mpi.size}, expected {self.halo_size}.")

    def assemble(self, x: NDArray, t: float = 0., x_mpi: NDArray | None = None) -> NDArray:
        """
        Residual before application of the inverse mass.

        Volume term sum_k DShape adj(J) w F(u_k)^T minus the surface term
        sum_{i,k} phi_face w_face F*(u, u_nbr, n).
        """
        self._check_inputs(x, x_mpi)

        if self.system.time_dep_bc:
            self.inflow[:] = self.project_bdr_cond(t)

        self.max_wave_speed = 0.

        hyp = self.system
        shapes = self.shapes
        geom = self.geom
        BdrDofs = self.dofs.BdrDofs

        X = x.reshape(self.num_eq, self.ne, self.nd)
        z = np.zeros((self.num_eq, self.ne, self.nd))

        for e in range(self.ne):
            u_elem = X[:, e, :]

            for k in range(self.nqe):
                self.element_evaluate(u_elem, k)
                self.flux[:] = hyp.evaluate_flux(self.u_eval, e, k)
                mat1 = geom.elem_int(e, k) @ self.flux.T
                z[:, e, :] += (shapes.DShapeEval[k] @ mat1).T

            for i in range(self.dofs.NumBdrs):
                for k in range(self.nqf):
                    normal = geom.normal(e, i, k)
                    y1, y2 = self.face_evaluate(x, x_mpi, normal, e, i, k)
                    num_flux = self.lax_friedrichs(y1, y2, normal, e, k, i)
                    z[:, e, BdrDofs[:, i]] -= geom.bdr_int(e, i, k) * np.outer(
                        num_flux, shapes.ShapeEvalFace[i, :, k])

        return z.ravel()

    def mult(self,
             x: NDArray,
             t: float = 0.,
             x_mpi: NDArray | None = None,
             out: NDArray | None = None) -> NDArray:
        """
        Evolution residual du/dt at state x and time t.

        The consistent mass is inverted for time-accurate runs, the lumped
        mass for steady-state runs.
        """
        z = self.assemble(x, t, x_mpi)

        if self.system.steady_state:
            y = z / self.LumpedMassMat
        else:
            y = self.InvMassMat.mult(z)

        if out is not None:
            out[:] = y
            return out
        return y

    # ---------------------------
    # Convergence
    # ---------------------------

    def set_reference(self, u: NDArray) -> None:
        """Set the previously accepted state."""
        self.u_old = np.array(u, dtype=float, copy=True)

    def convergence_check(self, u: NDArray, dt: float) -> float:
        """
        Mass weighted norm of the change since the last accepted state, divided by dt.

        The consistent mass is used for time-accurate runs, the lumped mass
        for steady-state runs. Stores u as the new reference state.
        """
        z = u - self.u_old

        if not self.system.steady_state:
            res = np.linalg.norm(self.MassMat.mult(z)) / dt
        else:
            res = np.sqrt(np.sum((self.LumpedMassMat * z)**2)) / dt

        self.set_reference(u)
        return float(res)
