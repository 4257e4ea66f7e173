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
import os
import io
import signal
import numpy as np
from collections import deque
from datetime import datetime
from mpi4py import MPI

from typing import Type
import numpy.typing as npt
try:
    # Py>=3.11
    from typing import Self
except ImportError:
    # Py<=3.10
    from typing_extensions import Self

from . import __version__
from .fem.basis import BernsteinBasis
from .fem.mesh import LocalMesh, StructuredMesh
from .integrate import ssp_rk_step
from .io import read_yaml_input, write_yaml, create_output_directory, history_to_csv
from .logging import get_logger
from .models import get_system
from .parallel import DomainDecomposition
from .solver_dg import DGEvolution


class Problem:
    """
    Problem driver for HypFlow simulations.

    Builds the structured mesh and its partition, the Bernstein basis, the
    hyperbolic system and the DG evolution operator, and integrates the
    projected initial condition in time with an SSP Runge-Kutta scheme.

    Parameters
    ----------
    options : dict
        Output options (``output``, ``write_freq``, ``use_tstamp``, ``silent``).
    mesh : dict
        Mesh and discretization parameters.
    numerics : dict
        Time stepping parameters.
    system : dict
        System type, its parameters and boundary conditions.
    comm : MPI.Comm, optional
        Communicator (default: MPI.COMM_WORLD).
    """

    def __init__(self,
                 options: dict,
                 mesh: dict,
                 numerics: dict,
                 system: dict,
                 comm: MPI.Comm | None = None
                 ) -> None:

        self.options = options
        self.mesh_cfg = mesh
        self.numerics = numerics
        self.system_cfg = system
        self.comm = MPI.COMM_WORLD if comm is None else comm

        # Discretization
        self.global_mesh = StructuredMesh(mesh['dim'],
                                          mesh['Nx'],
                                          mesh['Ny'],
                                          mesh['Lx'],
                                          mesh['Ly'],
                                          periodic=mesh['periodic'])
        self.decomp = DomainDecomposition(self.global_mesh, comm=self.comm)
        self.local_mesh = LocalMesh(self.global_mesh, self.decomp)
        self.basis = BernsteinBasis(mesh['order'], mesh['dim'])

        self.system = get_system(system, mesh['dim'], steady_state=numerics['steady_state'])
        self.evolution = DGEvolution(self.local_mesh,
                                     self.basis,
                                     self.system,
                                     nb_quad_pts=mesh['nb_quad_pts'])

        # Solution vector
        self.step = None
        self.q = self.evolution.project(self.system.initial_condition)
        self.evolution.set_reference(self.q)

        # I/O
        self.outdir = None
        if not self.options['silent']:
            outdir = None
            if self.comm.rank == 0:
                outdir = create_output_directory(options['output'], options['use_tstamp'])
            self.outdir = self.comm.bcast(outdir, root=0)

            if self.comm.rank == 0:
                full_dict = {}
                full_dict.update(version=__version__)

                for k, v in zip(['options', 'mesh', 'numerics', 'system'],
                                [options, mesh, numerics, system]):
                    full_dict[k] = v

                write_yaml(full_dict, os.path.join(self.outdir, 'config.yml'))

        self.logger = get_logger('hypflow.problem', outdir=self.outdir, force=True)

    # ---------------------------
    # Constructors
    # ---------------------------

    @staticmethod
    def _get_mandatory_input(input_dict):

        options = input_dict['options']
        mesh = input_dict['mesh']
        numerics = input_dict['numerics']
        system = input_dict['system']

        return options, mesh, numerics, system

    @classmethod
    def from_yaml(cls: Type[Self], fname: str) -> Self:
        """
        Create a Problem instance from a YAML file.

        Parameters
        ----------
        fname : str
            Path to YAML configuration file.

        Returns
        -------
        Problem
            Instantiated `Problem` object.
        """
        get_logger('hypflow.problem').info(f"Reading input file: {fname}")
        with open(fname, "r") as ymlfile:
            input_dict = read_yaml_input(ymlfile)

        return cls.from_dict(input_dict)

    @classmethod
    def from_string(cls: Type[Self], ymlstring: str) -> Self:
        """
        Create a Problem instance from a YAML string.

        Parameters
        ----------
        ymlstring : str
            YAML content as a string.

        Returns
        -------
        Problem
            Instantiated `Problem` object.
        """
        with io.StringIO(ymlstring) as ymlfile:
            input_dict = read_yaml_input(ymlfile)

        return cls.from_dict(input_dict)

    @classmethod
    def from_dict(cls: Type[Self], input_dict: dict) -> Self:
        """
        Create a Problem instance from a sanitized input dictionary.
        """
        return cls(*cls._get_mandatory_input(input_dict))

    # ---------------------------
    # Main run loop
    # ---------------------------

    def pre_run(self) -> None:

        self.step = 0
        self.simtime = 0.
        self.dt = self.numerics['dt']
        self.last_dt = self.dt
        self.step_wave_speed = 0.
        self.residual = 1.
        self.residual_buffer = deque([self.residual, ], 5)

        self.history = {
            "step": [],
            "time": [],
            "dt": [],
            "mass": [],
            "residual": [],
            "max_wave_speed": []
        }

    def run(self) -> None:
        """
        Run the time-stepping loop until convergence, maximum iterations,
        final time, or until a termination signal is received.
        """
        if self.step is None:
            self.pre_run()

        self._stop = False

        self.print_status_header()

        previous_handlers = _handle_signals(self.receive_signal)

        self._tic = datetime.now()
        try:
            while not self.converged and not self.finished and not self._stop:
                self.update()

                if self.step % self.options['write_freq'] == 0:
                    self.write()
        finally:
            _restore_signals(previous_handlers)

        self.post_run()

    def receive_signal(self, signum, frame) -> None:
        """
        Signal handler: set the `_stop` flag on termination signals.
        """
        signals = [signal.SIGINT, signal.SIGTERM, signal.SIGHUP, signal.SIGUSR1]
        if signum in signals:
            self._stop = True

    def post_run(self) -> None:
        """
        Finalize run: write history and final solution, print timing.
        """

        walltime = datetime.now() - self._tic

        if self.step % self.options['write_freq'] != 0:
            self.write()

        speed = self.step / max(walltime.total_seconds(), 1e-12)

        self.logger.info(33 * '=')
        self.logger.info(f"Total walltime   :  {str(walltime).split('.')[0]}")
        self.logger.info(f"({speed:.2f} steps/s)")
        self.logger.info(33 * '=')

        if not self.options['silent']:
            np.save(os.path.join(self.outdir, f'solution_rank{self.comm.rank}.npy'), self.q)
            if self.comm.rank == 0:
                history_to_csv(os.path.join(self.outdir, 'history.csv'), self.history)

    # ---------------------------
    # Time stepping
    # ---------------------------

    def rhs(self, u: npt.NDArray, t: float) -> npt.NDArray:
        """Evolution residual including the halo exchange of partitioned meshes."""
        x_mpi = None
        if self.local_mesh.nb_ghosts > 0:
            x_mpi = self.decomp.communicate_ghost_buffers(u, self.system.num_eq)
        du = self.evolution.mult(u, t, x_mpi)
        # every stage resets the operator's wave speed
        self.step_wave_speed = max(self.step_wave_speed, self.evolution.max_wave_speed)
        return du

    def update(self) -> None:
        """
        Single SSP Runge-Kutta step, followed by validity check, residual
        update, time advance and the adaptive time step update if enabled.
        """
        dt = min(self.dt, self.numerics['t_end'] - self.simtime)
        q0 = self.q

        self.step_wave_speed = 0.
        self.q = ssp_rk_step(self.rhs, q0, self.simtime, dt, self.numerics['integrator'])

        if not self.q_is_valid:
            self.finalize(q0)
            return

        local_res = self.evolution.convergence_check(self.q, dt)
        self.residual = np.sqrt(self.decomp.allreduce_sum(local_res**2))
        self.residual_buffer.append(self.residual)

        self.step += 1
        self.simtime += dt
        self.last_dt = dt

        if self.numerics['adaptive'] and np.isfinite(self.dt_crit):
            self.dt = self.numerics['CFL'] * self.dt_crit

    def finalize(self, q0: npt.NDArray) -> None:
        """Reset the solution to the one of the old time step and stop the run."""
        if self.q_has_nan:
            self.logger.warning('NaN detected.')
        elif self.q_has_negative_density:
            self.logger.warning('Negative density detected.')

        self.q = q0
        self.logger.warning('Writing previous step and aborting simulation.')
        self._stop = True

    # ---------------------------
    # Output
    # ---------------------------

    def print_status_header(self) -> None:
        self.logger.info(61 * '-')
        self.logger.info(f"{'Step':6s} {'Timestep':10s} {'Time':10s} {'Mass':10s} {'Residual':10s}")
        self.logger.info(61 * '-')

    def write(self) -> None:
        """Log the current status and append it to the history."""
        mass = self.mass
        self.logger.info(f"{self.step:<6d} {self.last_dt:.4e} {self.simtime:.4e} {mass:.4e} {self.residual:.4e}")
        self.history["step"].append(self.step)
        self.history["time"].append(self.simtime)
        self.history["dt"].append(self.last_dt)
        self.history["mass"].append(mass)
        self.history["residual"].append(self.residual)
        self.history["max_wave_speed"].append(self.max_wave_speed)

    # ---------------------------
    # Convenience properties
    # ---------------------------

    @property
    def finished(self) -> bool:
        # round-off of the accumulated time must not trigger an extra tiny step
        remaining = self.numerics['t_end'] - self.simtime
        return self.step >= self.numerics['max_it'] or remaining <= 1e-8 * self.dt

    @property
    def converged(self) -> bool:
        """Return True if residuals in the buffer are below tolerance."""
        return np.all(np.array(self.residual_buffer) < self.numerics['tol'])

    @property
    def q_has_nan(self) -> bool:
        return bool(self.decomp.allreduce_max(int(np.any(np.isnan(self.q)))))

    @property
    def q_has_negative_density(self) -> bool:
        if not self.system.has_density:
            return False
        n = self.evolution.x_size_mpi
        return bool(self.decomp.allreduce_max(int(np.any(self.q[:n] < 0.))))

    @property
    def q_is_valid(self) -> bool:
        return not self.q_has_nan and not self.q_has_negative_density

    @property
    def mass(self) -> float:
        """Integral of the first conserved quantity over the domain."""
        n = self.evolution.x_size_mpi
        return self.decomp.allreduce_sum(float(np.dot(self.evolution.LumpedMassMat[:n], self.q[:n])))

    @property
    def max_wave_speed(self) -> float:
        """Largest wave speed over all stages of the last step."""
        return self.decomp.allreduce_max(self.step_wave_speed)

    @property
    def dt_crit(self) -> float:
        """Critical time step h_min / ((2p + 1) max wave speed)."""
        ws = self.max_wave_speed
        if ws <= 0.:
            return np.inf
        return self.global_mesh.h_min / ((2 * self.basis.order + 1) * ws)

    @property
    def cfl(self) -> float:
        return self.dt / self.dt_crit


def _handle_signals(func) -> dict:
    """
    Register a function as the handler for common termination signals.

    Returns the previously installed handlers.
    """
    previous = {}
    for s in [
        signal.SIGHUP,
        signal.SIGINT,
        signal.SIGTERM,
        signal.SIGUSR1,
    ]:
        previous[s] = signal.signal(s, func)
    return previous


def _restore_signals(previous: dict) -> None:
    for s, handler in previous.items():
        signal.signal(s, handler)
