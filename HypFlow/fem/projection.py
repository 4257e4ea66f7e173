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
from typing import Callable, TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from .basis import BernsteinBasis
    from .mass import InverseMassMatrixDG
    from .mesh import LocalMesh
    from .quadrature import IntegrationRule

NDArray = npt.NDArray[np.floating]


def l2_projection(fun: Callable[[NDArray], NDArray],
                  mesh: "LocalMesh",
                  basis: "BernsteinBasis",
                  rule: "IntegrationRule",
                  inv_mass: "InverseMassMatrixDG",
                  num_eq: int) -> NDArray:
    """L2 projection of a vector-valued function onto the DG space.

    Parameters
    ----------
    fun : callable
        Maps a physical point (dim,) to the state (num_eq,).

    Returns
    -------
    ndarray
        Dof vector in flat layout ``n * ne * nd + e * nd + j``.
    """
    b = np.zeros((num_eq, mesh.ne, basis.nd))
    shapes = [basis.calc_shape(ip) for ip in rule.points]

    for e in range(mesh.ne):
        for ip, w, phi in zip(rule.points, rule.weights, shapes):
            det = np.linalg.det(mesh.element_jacobian(e, ip))
            val = np.asarray(fun(mesh.element_point(e, ip)), dtype=float)
            b[:, e, :] += w * det * np.outer(val, phi)

    return inv_mass.mult(b.ravel())


def nodal_projection(fun: Callable[[NDArray], NDArray],
                     mesh: "LocalMesh",
                     basis: "BernsteinBasis",
                     num_eq: int) -> NDArray:
    """Set the Bernstein coefficients to the function values at the control points.

    Exact for affine functions on affinely mapped elements.
    """
    u = np.empty((num_eq, mesh.ne, basis.nd))
    for e in range(mesh.ne):
        for j, node in enumerate(basis.nodes):
            u[:, e, j] = fun(mesh.element_point(e, node))
    return u.ravel()
