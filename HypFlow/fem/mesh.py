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
"""Structured segment/quadrilateral meshes and their partition-local view.

Reference element faces (local numbering)::

    1D:  0: x = 0,  1: x = 1
    2D:  0: y = 0 (bottom), 1: x = 1 (right), 2: y = 1 (top), 3: x = 0 (left)

Every face is parametrized along the increasing reference coordinate, hence
the face parameter of a point is the same on both sides of an interior face.
Boundary attributes follow the local face numbering (attribute = face + 1).
"""
from dataclasses import dataclass
from functools import cached_property
from typing import Callable, List, Optional, Tuple, TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from .basis import BernsteinBasis
from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..parallel import DomainDecomposition

NDArray = npt.NDArray[np.floating]

# local face -> (fixed reference axis, fixed value)
REF_FACES = {1: [(0, 0.), (0, 1.)],
             2: [(1, 0.), (0, 1.), (1, 1.), (0, 0.)]}


def face_point(dim: int, face: int, s: NDArray) -> NDArray:
    """Map a point s of the reference face (dim - 1 coords) into the reference element."""
    axis, val = REF_FACES[dim][face]
    xi = np.empty(dim)
    xi[axis] = val
    free = [d for d in range(dim) if d != axis]
    xi[free] = np.atleast_1d(s)[:len(free)]
    return xi


def ref_normal(dim: int, face: int) -> NDArray:
    """Outward unit normal of a local face of the reference element."""
    axis, val = REF_FACES[dim][face]
    n = np.zeros(dim)
    n[axis] = 2. * val - 1.
    return n


def opposite_face(dim: int, face: int) -> int:
    return 1 - face if dim == 1 else (face + 2) % 4


class StructuredMesh:
    """Global structured mesh of Nx (x Ny) elements.

    Vertices of a uniform grid over [0, Lx] (x [0, Ly]) may be moved by an
    optional ``transform`` callable, elements are then (multi)linearly mapped.

    Parameters
    ----------
    dim : int
        Spatial dimension (1 or 2).
    Nx, Ny : int
        Number of elements per direction (Ny ignored in 1D).
    Lx, Ly : float
        Domain extent.
    periodic : tuple of bool
        Periodicity per axis.
    transform : callable, optional
        Maps a vertex position (dim,) to a new position (dim,).
    """

    def __init__(self,
                 dim: int,
                 Nx: int,
                 Ny: int = 1,
                 Lx: float = 1.,
                 Ly: float = 1.,
                 periodic: Tuple[bool, bool] = (False, False),
                 transform: Optional[Callable[[NDArray], NDArray]] = None) -> None:

        if dim not in (1, 2):
            raise ConfigurationError(f"Only 1D and 2D meshes are supported, got dim={dim}.")
        if Nx < 1 or (dim == 2 and Ny < 1):
            raise ConfigurationError("Need at least one element per direction.")

        self.dim = dim
        self.Nx = Nx
        self.Ny = Ny if dim == 2 else 1
        self.Lx = Lx
        self.Ly = Ly
        self.periodic = tuple(bool(p) for p in periodic)
        self.transform = transform
        self.nb_bdrs = 2 * dim

        # vertex shape functions of the (multi)linear map
        self._map = BernsteinBasis(1, dim)

    @property
    def nb_elements(self) -> int:
        return self.Nx * self.Ny

    @property
    def dx(self) -> float:
        return self.Lx / self.Nx

    @property
    def dy(self) -> float:
        return self.Ly / self.Ny

    def element_index(self, e: int) -> Tuple[int, int]:
        return e % self.Nx, e // self.Nx

    def element_vertices(self, e: int) -> NDArray:
        """Vertex coordinates, shape (2**dim, dim), x index running fastest."""
        ix, iy = self.element_index(e)
        if self.dim == 1:
            verts = np.array([[ix * self.dx], [(ix + 1) * self.dx]])
        else:
            x0, x1 = ix * self.dx, (ix + 1) * self.dx
            y0, y1 = iy * self.dy, (iy + 1) * self.dy
            verts = np.array([[x0, y0], [x1, y0], [x0, y1], [x1, y1]])
        if self.transform is not None:
            verts = np.array([self.transform(v) for v in verts], dtype=float)
        return verts

    def element_point(self, e: int, xi: NDArray) -> NDArray:
        return self._map.calc_shape(xi) @ self.element_vertices(e)

    def element_jacobian(self, e: int, xi: NDArray) -> NDArray:
        """J[a, b] = d x_a / d xi_b, shape (dim, dim)."""
        return self.element_vertices(e).T @ self._map.calc_dshape(xi)

    def neighbor(self, e: int, face: int) -> Tuple[Optional[int], int]:
        """Element across a local face, or (None, boundary attribute)."""
        ix, iy = self.element_index(e)
        attr = face + 1

        if self.dim == 1:
            step = [(-1, 0), (1, 0)][face]
        else:
            step = [(0, -1), (1, 0), (0, 1), (-1, 0)][face]

        jx, jy = ix + step[0], iy + step[1]

        if not 0 <= jx < self.Nx:
            if not self.periodic[0]:
                return None, attr
            jx %= self.Nx
        if not 0 <= jy < self.Ny:
            if not self.periodic[1]:
                return None, attr
            jy %= self.Ny

        return jx + self.Nx * jy, attr

    @cached_property
    def h_min(self) -> float:
        """Smallest element size, measured as (det J)^(1/dim) at the element centers."""
        center = np.full(self.dim, 0.5)
        dets = [np.linalg.det(self.element_jacobian(e, center)) for e in range(self.nb_elements)]
        return float(np.min(np.abs(dets)))**(1. / self.dim)


@dataclass(frozen=True)
class Face:
    """A face seen from the partition-local mesh.

    ``elem1`` is the owner (first element), its reference coordinates are
    used to compute the face quadrature data. ``elem2`` is the local
    neighbor, ``ghost`` the halo index of a remote neighbor; both are None
    on the domain boundary, where ``attribute`` (>= 1) tags the condition.
    """
    elem1: int
    face1: int
    elem2: Optional[int] = None
    face2: Optional[int] = None
    ghost: Optional[int] = None
    attribute: int = 0

    @property
    def is_boundary(self) -> bool:
        return self.elem2 is None and self.ghost is None

    @property
    def is_shared(self) -> bool:
        return self.ghost is not None

    def other_side(self, e: int, face: int) -> Tuple[int, int]:
        """(element, local face) on the opposite side of a local interior face."""
        if (e, face) == (self.elem1, self.face1):
            return self.elem2, self.face2
        return self.elem1, self.face1


class LocalMesh:
    """Partition-local view of a StructuredMesh.

    Elements are renumbered 0..ne-1 following the owned global ids. Faces
    to elements of other partitions are always owned by the local element.

    Parameters
    ----------
    mesh : StructuredMesh
        The global mesh.
    decomp : DomainDecomposition, optional
        Partitioning; all elements are local if omitted.
    """

    def __init__(self,
                 mesh: StructuredMesh,
                 decomp: "DomainDecomposition | None" = None) -> None:
        self.global_mesh = mesh
        self.dim = mesh.dim
        self.nb_bdrs = mesh.nb_bdrs

        if decomp is None:
            self.global_ids = np.arange(mesh.nb_elements)
            self._ghost_index = {}
        else:
            self.global_ids = decomp.owned
            self._ghost_index = {int(ge): g for g, ge in enumerate(decomp.ghosts)}

        self._global_to_local = {int(ge): e for e, ge in enumerate(self.global_ids)}
        self._faces = self._build_faces()

    @property
    def ne(self) -> int:
        return len(self.global_ids)

    @property
    def nb_ghosts(self) -> int:
        return len(self._ghost_index)

    def _build_faces(self) -> List[List[Face]]:
        mesh = self.global_mesh
        faces: dict[Tuple[int, int], Face] = {}

        for e, ge in enumerate(self.global_ids):
            for i in range(self.nb_bdrs):
                if (e, i) in faces:
                    continue

                ge2, attr = mesh.neighbor(ge, i)
                i2 = opposite_face(self.dim, i)

                if ge2 is None:
                    faces[(e, i)] = Face(e, i, attribute=attr)
                elif ge2 in self._global_to_local:
                    e2 = self._global_to_local[ge2]
                    f = Face(e, i, e2, i2)
                    faces[(e, i)] = f
                    faces[(e2, i2)] = f
                elif ge2 in self._ghost_index:
                    faces[(e, i)] = Face(e, i, face2=i2, ghost=self._ghost_index[ge2])
                else:
                    raise ConfigurationError(
                        f"Neighbor {ge2} of element {ge} is neither local nor a ghost element.")

        return [[faces[(e, i)] for i in range(self.nb_bdrs)] for e in range(self.ne)]

    def element_faces(self, e: int) -> List[Face]:
        return self._faces[e]

    def element_point(self, e: int, xi: NDArray) -> NDArray:
        return self.global_mesh.element_point(self.global_ids[e], xi)

    def element_jacobian(self, e: int, xi: NDArray) -> NDArray:
        return self.global_mesh.element_jacobian(self.global_ids[e], xi)
