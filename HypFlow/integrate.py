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
"""Explicit strong-stability-preserving Runge-Kutta schemes in Shu-Osher form.

Stage s computes u_s = a_s u_0 + (1 - a_s) (u_{s-1} + dt L(u_{s-1}, t + c_s dt)).
"""
import numpy as np
import numpy.typing as npt

from typing import Callable

NDArray = npt.NDArray[np.floating]

# stage -> (a_s, c_s)
SSP_TABLES = {
    'euler': [(0., 0.)],
    'ssprk2': [(0., 0.), (0.5, 1.)],
    'ssprk3': [(0., 0.), (0.75, 1.), (1. / 3., 0.5)],
}


def ssp_rk_step(rhs: Callable[[NDArray, float], NDArray],
                u: NDArray,
                t: float,
                dt: float,
                method: str = 'ssprk3') -> NDArray:
    """
    Advance u by one time step.

    Parameters
    ----------
    rhs : callable
        rhs(u, t) returns du/dt.
    u : ndarray
        State at time t (not modified).
    t : float
        Current time.
    dt : float
        Time step.
    method : str
        One of 'euler', 'ssprk2', 'ssprk3'.

    Returns
    -------
    ndarray
        State at time t + dt.
    """
    if method not in SSP_TABLES:
        raise ValueError(f"Unknown time integrator '{method}'.")

    u0 = u
    us = u
    for a, c in SSP_TABLES[method]:
        us = a * u0 + (1. - a) * (us + dt * rhs(us, t + c * dt))

    return us
