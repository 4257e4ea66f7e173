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

from .base import HyperbolicSystem
from ..errors import ConfigurationError

NDArray = npt.NDArray[np.floating]


class ShallowWater(HyperbolicSystem):
    """
    Shallow water equations over a flat bottom.

    Conserved variables (h, h u_1, ..., h u_dim).

    Parameters
    ----------
    dim : int
        Spatial dimension.
    state : sequence of float
        Constant conserved state used as initial and boundary data.
    gravity : float
        Gravitational acceleration.
    """

    name = 'shallow_water'
    has_density = True

    def __init__(self,
                 dim: int,
                 state,
                 gravity: float = 1.,
                 **kwargs) -> None:
        super().__init__(dim, dim + 1, **kwargs)
        self.gravity = gravity
        self.state = np.asarray(state, dtype=float)
        if self.state.shape != (self.num_eq,):
            raise ConfigurationError(
                f"Shallow water state needs {self.num_eq} components, got {self.state.shape}.")

    @property
    def has_wall(self) -> bool:
        return True

    def evaluate_flux(self, u, e=None, k=None, i=None):
        h = u[0]
        mom = u[1:]
        flux = np.empty((self.num_eq, self.dim))
        flux[0] = mom
        flux[1:] = np.outer(mom, mom) / h + 0.5 * self.gravity * h**2 * np.eye(self.dim)
        return flux

    def get_wave_speed(self, u, normal, e=None, k=None, i=None):
        h = u[0]
        return abs(np.dot(u[1:], normal)) / h + np.sqrt(self.gravity * h)

    def bdr_cond(self, x, t=0.):
        return self.state.copy()

    def reflect(self, y1, y2, normal):
        self._reflect_momentum(y1, y2, normal)
