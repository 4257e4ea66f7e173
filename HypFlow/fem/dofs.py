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
"""Neighbor degree-of-freedom map across local, shared and boundary faces.

``NbrDofs[i, j, e]`` holds, for face dof j of local face i of element e,
the scalar dof on the other side of the face:

- ``0 <= nbr < ne * nd``: local dof ``e2 * nd + j2``
- ``nbr >= ne * nd``: remote dof, ``nbr - ne * nd = g * nd + j2`` with g
  the ghost element in the halo buffer
- ``nbr < 0``: domain boundary, ``-nbr`` is the boundary attribute

The remote encoding (stride ``nd``, equation offset ``n * nd`` inside a
ghost block of ``num_eq * nd`` values) is shared with the halo exchange
and must not change.
"""
from typing import NamedTuple, TYPE_CHECKING, Union

import numpy as np
import numpy.typing as npt

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from .basis import BernsteinBasis
    from .mesh import LocalMesh

IntArray = npt.NDArray[np.signedinteger]


class LocalDof(NamedTuple):
    index: int


class RemoteDof(NamedTuple):
    ghost: int
    dof: int


class BoundaryDof(NamedTuple):
    attribute: int


DofRef = Union[LocalDof, RemoteDof, BoundaryDof]


class DofInfo:

    def __init__(self, mesh: "LocalMesh", basis: "BernsteinBasis") -> None:
        self.ne = mesh.ne
        self.nd = basis.nd
        self.NumBdrs = basis.nb_bdrs
        self.NumFaceDofs = basis.nb_face_dofs
        self.nb_ghosts = mesh.nb_ghosts

        # local/remote threshold
        self.size = self.ne * self.nd

        self.BdrDofs = basis.face_dofs
        self.NbrDofs = np.empty((self.NumBdrs, self.NumFaceDofs, self.ne), dtype=int)

        for e in range(self.ne):
            for i, face in enumerate(mesh.element_faces(e)):
                if face.is_boundary:
                    if face.attribute < 1:
                        raise ConfigurationError(
                            f"Boundary face {i} of element {e} has invalid attribute {face.attribute}.")
                    self.NbrDofs[i, :, e] = -face.attribute
                elif face.is_shared:
                    self.NbrDofs[i, :, e] = (self.size + face.ghost * self.nd
                                             + self.BdrDofs[:, face.face2])
                else:
                    e2, i2 = face.other_side(e, i)
                    self.NbrDofs[i, :, e] = e2 * self.nd + self.BdrDofs[:, i2]

        self.NbrDofs.setflags(write=False)

    def resolve(self, e: int, i: int, j: int) -> DofRef:
        """Classify and decode the neighbor of face dof j on local face i of element e."""
        nbr = int(self.NbrDofs[i, j, e])

        if nbr < 0:
            return BoundaryDof(-nbr)
        if nbr < self.size:
            return LocalDof(nbr)

        ghost, dof = divmod(nbr - self.size, self.nd)
        if ghost >= self.nb_ghosts:
            raise ConfigurationError(
                f"Neighbor index {nbr} of element {e} exceeds the halo buffer ({self.nb_ghosts} ghosts).")
        return RemoteDof(ghost, dof)

    def remote_index(self, ref: RemoteDof, n: int, num_eq: int) -> int:
        """Position of equation n of a remote dof in the halo buffer."""
        return ref.ghost * self.nd * num_eq + n * self.nd + ref.dof

    def dof_index(self, e: int, i: int, j: int) -> int:
        """Scalar dof index of face dof j of local face i of element e."""
        return e * self.nd + int(self.BdrDofs[j, i])
