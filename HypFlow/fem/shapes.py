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

from typing import TYPE_CHECKING

from .mesh import face_point
from ..errors import ConfigurationError

if TYPE_CHECKING:
    from .basis import BernsteinBasis
    from .mesh import LocalMesh
    from .quadrature import IntegrationRule

NDArray = npt.NDArray[np.floating]


class ShapeTables:
    """Basis functions evaluated at the quadrature points of the reference element.

    - ``ShapeEval[j, k]``: value of dof j at interior point k
    - ``DShapeEval[k, j, :]``: reference gradient of dof j at interior point k
    - ``ShapeEvalFace[i, j, k]``: value of face dof j of local face i at face point k

    Face points are mapped into the element through the faces of element 0,
    which therefore has to own all of its faces. All elements share the
    same reference element, so the tables hold for every element.
    """

    def __init__(self,
                 basis: "BernsteinBasis",
                 mesh: "LocalMesh",
                 ele_rule: "IntegrationRule",
                 face_rule: "IntegrationRule") -> None:

        nd = basis.nd
        dim = basis.dim
        nqe = ele_rule.nb_pts
        nqf = face_rule.nb_pts

        self.ShapeEval = np.empty((nd, nqe))
        self.DShapeEval = np.empty((nqe, nd, dim))
        self.ShapeEvalFace = np.empty((basis.nb_bdrs, basis.nb_face_dofs, nqf))

        for k in range(nqe):
            ip = ele_rule.points[k]
            self.ShapeEval[:, k] = basis.calc_shape(ip)
            self.DShapeEval[k] = basis.calc_dshape(ip)

        for i, face in enumerate(mesh.element_faces(0)):
            if face.elem1 != 0:
                # Face points would have to be recomputed through the neighbor element.
                raise ConfigurationError("First element has inward pointing normal.")

            for k in range(nqf):
                shape = basis.calc_shape(face_point(dim, i, face_rule.points[k]))
                self.ShapeEvalFace[i, :, k] = shape[basis.face_dofs[:, i]]

        for arr in (self.ShapeEval, self.DShapeEval, self.ShapeEvalFace):
            arr.setflags(write=False)
