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
from HypFlow.fem.basis import BernsteinBasis, bernstein_1d, bernstein_1d_deriv
from HypFlow.fem.quadrature import (get_element_integration_rule,
                                    get_face_integration_rule,
                                    get_norm_quad_pts)


@pytest.mark.parametrize("dim", [1, 2])
@pytest.mark.parametrize("n", [1, 2, 4])
def test_weights_sum_to_one(dim, n):
    rule = get_element_integration_rule(dim, n)
    assert rule.nb_pts == n**dim
    assert rule.dim == dim
    assert np.isclose(rule.weights.sum(), 1.)


def test_face_rule_of_segment_is_single_point():
    rule = get_face_integration_rule(1, 3)
    assert rule.nb_pts == 1
    assert rule.points.shape == (1, 0)
    assert np.isclose(rule.weights[0], 1.)


def test_x_runs_fastest():
    rule = get_element_integration_rule(2, 3)
    xi = get_norm_quad_pts(3)
    np.testing.assert_allclose(rule.points[:3, 0], xi)
    np.testing.assert_allclose(rule.points[:3, 1], xi[0])


def test_exact_polynomial_integration():
    # n Gauss points integrate degree 2n - 1 exactly
    rule = get_element_integration_rule(2, 3)
    x, y = rule.points.T
    assert np.isclose(np.sum(rule.weights * x**5 * y**4), 1. / 6. / 5.)


@pytest.mark.parametrize("order", [0, 1, 3])
def test_partition_of_unity(order):
    x = np.linspace(0., 1., 7)
    for xx in x:
        assert np.isclose(bernstein_1d(order, xx).sum(), 1.)
        assert np.isclose(bernstein_1d_deriv(order, xx).sum(), 0.)


def test_derivative_finite_difference():
    eps = 1e-6
    x = 0.37
    fd = (bernstein_1d(3, x + eps) - bernstein_1d(3, x - eps)) / (2 * eps)
    np.testing.assert_allclose(bernstein_1d_deriv(3, x), fd, atol=1e-8)


def test_tensor_product_numbering():
    basis = BernsteinBasis(2, 2)
    xi = np.array([0.2, 0.7])
    shape = basis.calc_shape(xi)
    bx = bernstein_1d(2, 0.2)
    by = bernstein_1d(2, 0.7)

    assert basis.nd == 9
    # j = ix + (p + 1) * iy
    assert np.isclose(shape[1 + 3 * 2], bx[1] * by[2])

    dshape = basis.calc_dshape(xi)
    assert dshape.shape == (9, 2)
    np.testing.assert_allclose(dshape.sum(axis=0), 0., atol=1e-14)


def test_face_dofs():
    np.testing.assert_array_equal(BernsteinBasis(3, 1).face_dofs, [[0, 3]])

    fd = BernsteinBasis(2, 2).face_dofs
    assert fd.shape == (3, 4)
    np.testing.assert_array_equal(fd[:, 0], [0, 1, 2])  # bottom
    np.testing.assert_array_equal(fd[:, 1], [2, 5, 8])  # right
    np.testing.assert_array_equal(fd[:, 2], [6, 7, 8])  # top
    np.testing.assert_array_equal(fd[:, 3], [0, 3, 6])  # left


def test_face_dofs_carry_the_trace():
    # Only face dofs are nonzero on the face
    basis = BernsteinBasis(2, 2)
    shape = basis.calc_shape(np.array([1., 0.3]))
    others = np.setdiff1d(np.arange(basis.nd), basis.face_dofs[:, 1])
    np.testing.assert_allclose(shape[others], 0.)


@pytest.mark.parametrize("order,dim", [(1, 3), (-1, 1)])
def test_invalid_basis(order, dim):
    with pytest.raises(ConfigurationError):
        BernsteinBasis(order, dim)
