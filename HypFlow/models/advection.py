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

NDArray = npt.NDArray[np.floating]


class Advection(HyperbolicSystem):
    """
    Linear advection u_t + div(v u) = 0 with constant velocity v.

    The boundary/initial data is a plane wave
    ``u = value + amplitude * sin(2 pi sum_d (x_d - v_d t) / wavelength)``,
    which is the exact solution on periodic domains.

    'inflow' boundaries are characteristic: the boundary state is used where
    v.n < 0 and the interior state where the flow leaves the domain.
    """

    name = 'advection'

    def __init__(self,
                 dim: int,
                 velocity,
                 value: float = 1.,
                 amplitude: float = 0.,
                 wavelength: float = 1.,
                 **kwargs) -> None:
        super().__init__(dim, 1, **kwargs)
        self.velocity = np.broadcast_to(np.asarray(velocity, dtype=float), (dim,)).copy()
        self.value = value
        self.amplitude = amplitude
        self.wavelength = wavelength

    def evaluate_flux(self, u, e=None, k=None, i=None):
        return np.outer(u, self.velocity)

    def get_wave_speed(self, u, normal, e=None, k=None, i=None):
        return abs(np.dot(self.velocity, normal))

    def bdr_cond(self, x, t=0.):
        phase = np.sum(np.atleast_1d(x) - self.velocity * t) / self.wavelength
        return np.array([self.value + self.amplitude * np.sin(2. * np.pi * phase)])

    def set_bdr_cond(self, y1, y2, normal, attr):
        if self.bc_kind(attr) == 'inflow' and np.dot(self.velocity, normal) > 0.:
            y2[:] = y1
        else:
            super().set_bdr_cond(y1, y2, normal, attr)
