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
"""Geometric quadrature data, computed once per mesh."""
import numpy as np
import numpy.typing as npt

from typing import TYPE_CHECKING

from .mesh import face_point, ref_normal
from ..errors import ConfigurationError

if TYPE_CHECKING:
    from .mesh import LocalMesh
    from .quadrature import IntegrationRule

NDArray = npt.NDArray[np.floating]

DEGENERATE_TOL = 1e-14


def calc_adjugate(J: NDArray) -> NDArray:
    """Adjugate of a square matrix, adj(J) = det(J) J^{-1}."""
    dim = J.shape[0]
    if dim == 1:
        return np.ones((1, 1))
    if dim == 2:
        return np.array([[J[1, 1], -J[0, 1]],
                         [-J[1, 0], J[0, 0]]])
    return np.linalg.det(J) * np.linalg.inv(J)


class GeometryCache:
    """Per-quadrature-point geometry for element interiors and faces.

    Stores, for element ``e``:

    - ``ElemInt[e, k]``: adj(J) * w_k at interior point k, shape (dim, dim)
    - ``OuterUnitNormals[e, i, k]``: outward unit normal on local face i
    - ``BdrInt[e, i, k]``: face measure |adj(J)^T n_ref| * w_k

    Face data are evaluated through the face owner (``elem1``) and flipped
    for the other side, so both elements sharing a face see the same
    weights and opposite normals. All arrays are read-only after setup.

    Parameters
    ----------
    mesh : LocalMesh
        Partition-local mesh.
    ele_rule, face_rule : IntegrationRule
        Interior and face quadrature rules.
    """

    def __init__(self,
                 mesh: "LocalMesh",
                 ele_rule: "IntegrationRule",
                 face_rule: "IntegrationRule") -> None:

        dim = mesh.dim
        ne = mesh.ne
        nqe = ele_rule.nb_pts
        nqf = face_rule.nb_pts
        nb_bdrs = mesh.nb_bdrs

        self.ElemInt = np.empty((ne, nqe, dim, dim))
        self.DetJ = np.empty((ne, nqe))
        self.BdrInt = np.empty((ne, nb_bdrs, nqf))
        self.OuterUnitNormals = np.empty((ne, nb_bdrs, nqf, dim))

        for e in range(ne):
            for k in range(nqe):
                J = mesh.element_jacobian(e, ele_rule.points[k])
                det = np.linalg.det(J)
                if det <= 0.:
                    raise ConfigurationError(
                        f"Element {e} is inverted or degenerate (det J = {det:.3e}).")
                self.DetJ[e, k] = det
                self.ElemInt[e, k] = calc_adjugate(J) * ele_rule.weights[k]

            for i, face in enumerate(mesh.element_faces(e)):
                owner_side = (face.elem1, face.face1) == (e, i)

                for k in range(nqf):
                    xi = face_point(dim, face.face1, face_rule.points[k])
                    J = mesh.element_jacobian(face.elem1, xi)
                    nor = calc_adjugate(J).T @ ref_normal(dim, face.face1)

                    measure = np.linalg.norm(nor)
                    if measure < DEGENERATE_TOL:
                        raise ConfigurationError(f"Face {i} of element {e} is degenerate.")

                    if not owner_side:
                        nor = -nor

                    self.BdrInt[e, i, k] = measure * face_rule.weights[k]
                    self.OuterUnitNormals[e, i, k] = nor / measure

        for arr in (self.ElemInt, self.DetJ, self.BdrInt, self.OuterUnitNormals):
            arr.setflags(write=False)

    def elem_int(self, e: int, k: int) -> NDArray:
        return self.ElemInt[e, k]

    def bdr_int(self, e: int, i: int, k: int) -> float:
        return self.BdrInt[e, i, k]

    def normal(self, e: int, i: int, k: int) -> NDArray:
        return self.OuterUnitNormals[e, i, k]
