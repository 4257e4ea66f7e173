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
"""Tensor-product Bernstein basis on the reference segment and square.

Local dofs are numbered with the x index running fastest, j = ix + (p + 1) * iy.
Local faces follow the reference element numbering of :mod:`HypFlow.fem.mesh`.
"""
from functools import cached_property
from math import comb

import numpy as np
import numpy.typing as npt

from ..errors import ConfigurationError

NDArray = npt.NDArray[np.floating]
IntArray = npt.NDArray[np.signedinteger]


def bernstein_1d(order: int, x: float) -> NDArray:
    """Values of the Bernstein polynomials of degree ``order`` at x in [0, 1]."""
    i = np.arange(order + 1)
    coeff = np.array([comb(order, k) for k in i], dtype=float)
    return coeff * x**i * (1. - x)**(order - i)


def bernstein_1d_deriv(order: int, x: float) -> NDArray:
    """Derivatives of the Bernstein polynomials, p * (B_{i-1}^{p-1} - B_i^{p-1})."""
    out = np.zeros(order + 1)
    if order == 0:
        return out
    lower = bernstein_1d(order - 1, x)
    out[1:] += lower
    out[:-1] -= lower
    return order * out


class BernsteinBasis:
    """Positive (Bernstein) basis of degree ``order`` in 1 or 2 dimensions.

    Parameters
    ----------
    order : int
        Polynomial degree per direction.
    dim : int
        Spatial dimension (1 or 2).
    """

    def __init__(self, order: int, dim: int) -> None:
        if dim not in (1, 2):
            raise ConfigurationError(f"Bernstein basis only implemented for dim 1 and 2, got {dim}.")
        if order < 0:
            raise ConfigurationError(f"Polynomial order must be non-negative, got {order}.")

        self.order = order
        self.dim = dim
        self.nd = (order + 1)**dim
        self.nb_bdrs = 2 * dim
        self.nb_face_dofs = (order + 1)**(dim - 1)

    def calc_shape(self, xi: NDArray) -> NDArray:
        xi = np.atleast_1d(xi)
        bx = bernstein_1d(self.order, xi[0])
        if self.dim == 1:
            return bx
        by = bernstein_1d(self.order, xi[1])
        return np.outer(by, bx).ravel()

    def calc_dshape(self, xi: NDArray) -> NDArray:
        """Reference gradients, shape (nd, dim)."""
        xi = np.atleast_1d(xi)
        bx = bernstein_1d(self.order, xi[0])
        dbx = bernstein_1d_deriv(self.order, xi[0])
        if self.dim == 1:
            return dbx[:, None]
        by = bernstein_1d(self.order, xi[1])
        dby = bernstein_1d_deriv(self.order, xi[1])
        return np.column_stack([np.outer(by, dbx).ravel(),
                                np.outer(dby, bx).ravel()])

    @cached_property
    def face_dofs(self) -> IntArray:
        """Local dofs lying on each local face, shape (nb_face_dofs, nb_bdrs).

        Face dofs are ordered along the increasing face parameter, so that
        matching faces of two neighbors list their dofs in the same order.
        """
        p = self.order
        if self.dim == 1:
            out = np.array([[0, p]])
        else:
            idx = np.arange(self.nd).reshape(p + 1, p + 1)  # [iy, ix]
            out = np.column_stack([idx[0, :],   # bottom
                                   idx[:, p],   # right
                                   idx[p, :],   # top
                                   idx[:, 0]])  # left
        out.setflags(write=False)
        return out

    @cached_property
    def nodes(self) -> NDArray:
        """Bernstein control points (equispaced), shape (nd, dim)."""
        p = self.order
        t = np.array([0.5]) if p == 0 else np.linspace(0., 1., p + 1)
        if self.dim == 1:
            return t[:, None]
        xx, yy = np.meshgrid(t, t)
        return np.column_stack([xx.ravel(), yy.ravel()])
