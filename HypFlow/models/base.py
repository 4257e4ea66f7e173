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
import abc

import numpy as np
import numpy.typing as npt

from ..errors import ConfigurationError

NDArray = npt.NDArray[np.floating]

BC_KINDS = ['inflow', 'outflow', 'wall']


class HyperbolicSystem(abc.ABC):
    """Physics of a system of conservation laws u_t + div F(u) = 0.

    Parameters
    ----------
    dim : int
        Spatial dimension.
    num_eq : int
        Number of conserved quantities.
    bc : dict, optional
        Boundary attribute -> one of 'inflow', 'outflow', 'wall'. Attributes
        not listed use 'inflow'.
    time_dep_bc : bool
        If True, the boundary function is re-projected at every evaluation.
    proj_type : str
        'l2' (L2 projection) or 'nodal' (control point interpolation) of
        initial and boundary data.
    steady_state : bool
        Run to a steady state (lumped mass weighting) instead of a
        time-accurate solution.
    """

    name = 'base'
    # first component is a density (must stay positive)
    has_density = False

    def __init__(self,
                 dim: int,
                 num_eq: int,
                 bc: dict | None = None,
                 time_dep_bc: bool = False,
                 proj_type: str = 'l2',
                 steady_state: bool = False) -> None:

        if proj_type not in ['l2', 'nodal']:
            raise ConfigurationError(f"Unknown projection type '{proj_type}'.")

        self.dim = dim
        self.num_eq = num_eq
        self.time_dep_bc = time_dep_bc
        self.proj_type = proj_type
        self.steady_state = steady_state

        self.bc = {int(k): str(v) for k, v in (bc or {}).items()}
        for attr, kind in self.bc.items():
            if kind not in BC_KINDS:
                raise ConfigurationError(f"Unknown boundary condition '{kind}' for attribute {attr}.")
            if kind == 'wall' and not self.has_wall:
                raise ConfigurationError(f"Wall boundary condition not available for {self.name}.")

    # ---------------------------
    # Physics primitives
    # ---------------------------

    @abc.abstractmethod
    def evaluate_flux(self, u: NDArray, e: int | None = None, k: int | None = None,
                      i: int | None = None) -> NDArray:
        """Physical flux tensor, shape (num_eq, dim)."""

    @abc.abstractmethod
    def get_wave_speed(self, u: NDArray, normal: NDArray, e: int | None = None,
                       k: int | None = None, i: int | None = None) -> float:
        """Upper bound of the characteristic speeds along ``normal``."""

    @abc.abstractmethod
    def bdr_cond(self, x: NDArray, t: float = 0.) -> NDArray:
        """Boundary (inflow) state at a physical point."""

    def initial_condition(self, x: NDArray) -> NDArray:
        return self.bdr_cond(x, 0.)

    # ---------------------------
    # Boundary conditions
    # ---------------------------

    @property
    def has_wall(self) -> bool:
        return False

    def bc_kind(self, attr: int) -> str:
        return self.bc.get(attr, 'inflow')

    def set_bdr_cond(self, y1: NDArray, y2: NDArray, normal: NDArray, attr: int) -> None:
        """
        Overwrite the exterior state y2 of a boundary face in place.

        On entry y2 holds the projected boundary function. 'inflow' keeps
        it, 'outflow' copies the interior state y1, 'wall' reflects y1.
        """
        kind = self.bc_kind(attr)
        if kind == 'outflow':
            y2[:] = y1
        elif kind == 'wall':
            self.reflect(y1, y2, normal)

    def reflect(self, y1: NDArray, y2: NDArray, normal: NDArray) -> None:
        raise ConfigurationError(f"Wall boundary condition not available for {self.name}.")

    def _reflect_momentum(self, y1: NDArray, y2: NDArray, normal: NDArray) -> None:
        """Mirror state: momentum m - 2 (m.n) n in components 1..dim, rest copied."""
        y2[:] = y1
        mom = y1[1:1 + self.dim]
        y2[1:1 + self.dim] = mom - 2. * np.dot(mom, normal) * normal
