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
"""Block-diagonal DG mass operators.

The mass matrix of a DG space couples only the dofs of one element and is
the same for every equation, so it is stored as one (nd x nd) block per
element and applied to the flat state ``n * ne * nd + e * nd + j``.
"""
import numpy as np
import numpy.typing as npt
from scipy.sparse import block_diag, csr_matrix

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .basis import BernsteinBasis
    from .mesh import LocalMesh
    from .quadrature import IntegrationRule

NDArray = npt.NDArray[np.floating]


def _apply_blocks(blocks: NDArray, x: NDArray, num_eq: int) -> NDArray:
    ne, nd, _ = blocks.shape
    X = x.reshape(num_eq, ne, nd)
    return np.einsum('eij,nej->nei', blocks, X).ravel()


class MassMatrixDG:
    """Consistent mass matrix, M_e[i, j] = sum_k w_k det J phi_i phi_j."""

    def __init__(self,
                 mesh: "LocalMesh",
                 basis: "BernsteinBasis",
                 rule: "IntegrationRule",
                 num_eq: int) -> None:
        self.num_eq = num_eq
        self.blocks = np.zeros((mesh.ne, basis.nd, basis.nd))

        shapes = [basis.calc_shape(ip) for ip in rule.points]

        for e in range(mesh.ne):
            for ip, w, phi in zip(rule.points, rule.weights, shapes):
                det = np.linalg.det(mesh.element_jacobian(e, ip))
                self.blocks[e] += w * det * np.outer(phi, phi)

        self.blocks.setflags(write=False)

    @property
    def size(self) -> int:
        ne, nd, _ = self.blocks.shape
        return self.num_eq * ne * nd

    def mult(self, x: NDArray) -> NDArray:
        return _apply_blocks(self.blocks, x, self.num_eq)

    def lumped(self) -> NDArray:
        """Row-sum lumped (diagonal) mass in state layout."""
        diag = self.blocks.sum(axis=2).ravel()
        return np.tile(diag, self.num_eq)

    def tocsr(self) -> csr_matrix:
        """Assembled global matrix (equation-major block diagonal)."""
        return block_diag(list(self.blocks) * self.num_eq, format='csr')


class InverseMassMatrixDG:
    """Inverse of a MassMatrixDG, inverted element by element."""

    def __init__(self, mass: MassMatrixDG) -> None:
        self.num_eq = mass.num_eq
        self.blocks = np.linalg.inv(mass.blocks)
        self.blocks.setflags(write=False)

    def mult(self, x: NDArray) -> NDArray:
        return _apply_blocks(self.blocks, x, self.num_eq)
