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
import itertools
from dataclasses import dataclass

import numpy as np
from numpy.polynomial.legendre import leggauss
import numpy.typing as npt

NDArray = npt.NDArray[np.floating]


def get_norm_quad_pts(nb_quad_pts: int) -> NDArray:
    xi, _ = leggauss(nb_quad_pts)
    xi = 0.5 * (xi + 1)
    return xi


def get_norm_quad_wts(nb_quad_pts: int) -> NDArray:
    _, wi = leggauss(nb_quad_pts)
    wi = 0.5 * wi
    return wi


@dataclass(frozen=True)
class IntegrationRule:
    """Quadrature rule on the reference cube [0, 1]^dim.

    Attributes
    ----------
    points : ndarray
        Quadrature points, shape (nb_pts, dim). The first coordinate runs fastest.
    weights : ndarray
        Quadrature weights, shape (nb_pts,). They sum to one.
    """
    points: NDArray
    weights: NDArray

    @property
    def nb_pts(self) -> int:
        return len(self.weights)

    @property
    def dim(self) -> int:
        return self.points.shape[1]


def tensor_rule(nb_quad_pts: int, dim: int) -> IntegrationRule:
    """Tensor-product Gauss-Legendre rule with nb_quad_pts points per direction.

    A zero-dimensional rule (the face of a segment) is a single point with unit weight.
    """
    if dim == 0:
        return IntegrationRule(np.zeros((1, 0)), np.ones(1))

    xi = get_norm_quad_pts(nb_quad_pts)
    wi = get_norm_quad_wts(nb_quad_pts)

    points = np.array([p[::-1] for p in itertools.product(xi, repeat=dim)])
    weights = np.array([np.prod(w) for w in itertools.product(wi, repeat=dim)])

    return IntegrationRule(points, weights)


def get_element_integration_rule(dim: int, nb_quad_pts: int) -> IntegrationRule:
    return tensor_rule(nb_quad_pts, dim)


def get_face_integration_rule(dim: int, nb_quad_pts: int) -> IntegrationRule:
    return tensor_rule(nb_quad_pts, dim - 1)
