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

from .base import HyperbolicSystem


class Burgers(HyperbolicSystem):
    """
    Inviscid Burgers equation u_t + div(u^2 / 2 * (1, ..., 1)) = 0.

    Initial/boundary data as for Advection, without transport in time.
    """

    name = 'burgers'

    def __init__(self,
                 dim: int,
                 value: float = 1.,
                 amplitude: float = 0.,
                 wavelength: float = 1.,
                 **kwargs) -> None:
        super().__init__(dim, 1, **kwargs)
        self.value = value
        self.amplitude = amplitude
        self.wavelength = wavelength

    def evaluate_flux(self, u, e=None, k=None, i=None):
        return np.full((1, self.dim), 0.5 * u[0]**2)

    def get_wave_speed(self, u, normal, e=None, k=None, i=None):
        return abs(u[0] * np.sum(normal))

    def bdr_cond(self, x, t=0.):
        phase = np.sum(np.atleast_1d(x)) / self.wavelength
        return np.array([self.value + self.amplitude * np.sin(2. * np.pi * phase)])
