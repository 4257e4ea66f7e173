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
from mpi4py import MPI
import numpy as np
import numpy.typing as npt

from typing import TYPE_CHECKING, List
if TYPE_CHECKING:
    from .fem.mesh import StructuredMesh

NDArray = npt.NDArray[np.floating]
IntArray = npt.NDArray[np.signedinteger]


class DomainDecomposition:
    """
    Manages the element partitioning for MPI-parallel simulations.

    Elements are split into contiguous blocks of global ids, one per rank.
    Remote face neighbors of owned elements form the ghost layer, ordered by
    global id. Their states are exchanged into the halo buffer, which is
    element-major: ghost ``g`` occupies ``num_eq * nd`` consecutive values,
    equation ``n`` at offset ``n * nd``.

    Parameters
    ----------
    mesh : StructuredMesh
        Global mesh (known on every rank).
    comm : MPI.Comm, optional
        MPI communicator (default: MPI.COMM_WORLD)
    rank, size : int, optional
        Override rank and number of partitions. Such emulated partitions can
        not communicate; use ``ghost_values`` to fill their halo buffer from
        a global state instead.
    """

    def __init__(self,
                 mesh: "StructuredMesh",
                 comm: MPI.Comm | None = None,
                 rank: int | None = None,
                 size: int | None = None) -> None:

        self.mesh = mesh
        self._mpi_comm = MPI.COMM_WORLD if comm is None else comm

        self._rank = self._mpi_comm.rank if rank is None else rank
        self._size = self._mpi_comm.size if size is None else size

        if not 0 <= self._rank < self._size:
            raise ValueError(f"Invalid rank {self._rank} for {self._size} partitions.")
        if self._size > mesh.nb_elements:
            raise ValueError("More partitions than elements.")

        blocks = np.array_split(np.arange(mesh.nb_elements), self._size)
        self._offsets = np.cumsum([0] + [len(b) for b in blocks])
        self._owned = blocks[self._rank]

        self._ghosts = self._find_ghosts()
        self._send_lists, self._recv_lists = self._build_exchange_lists()

    # ---------------------------
    # MPI properties
    # ---------------------------

    @property
    def rank(self) -> int:
        """MPI rank of this process."""
        return self._rank

    @property
    def size(self) -> int:
        """Total number of partitions."""
        return self._size

    @property
    def is_emulated(self) -> bool:
        """True if rank/size do not match the communicator."""
        return self._size != self._mpi_comm.size or self._rank != self._mpi_comm.rank

    # ---------------------------
    # Ownership
    # ---------------------------

    @property
    def owned(self) -> IntArray:
        """Global ids of the elements owned by this rank."""
        return self._owned

    @property
    def ghosts(self) -> IntArray:
        """Global ids of remote face neighbors, sorted."""
        return self._ghosts

    @property
    def nb_ghosts(self) -> int:
        return len(self._ghosts)

    def owner(self, ge: int) -> int:
        """Rank owning global element ``ge``."""
        return int(np.searchsorted(self._offsets, ge, side='right') - 1)

    def is_owned(self, ge: int) -> bool:
        return self.owner(ge) == self._rank

    def _neighbors(self, ge: int) -> List[int]:
        out = []
        for i in range(self.mesh.nb_bdrs):
            nbr, _ = self.mesh.neighbor(ge, i)
            if nbr is not None:
                out.append(nbr)
        return out

    def _find_ghosts(self) -> IntArray:
        ghosts = set()
        for ge in self._owned:
            ghosts.update(nbr for nbr in self._neighbors(ge) if not self.is_owned(nbr))
        return np.array(sorted(ghosts), dtype=int)

    def _build_exchange_lists(self):
        """
        Local element indices to send to, and ghost indices received from, every rank.

        The set of owned elements adjacent to rank q equals the set of ghosts
        rank q receives from us; both sides sort it by global id.
        """
        send = [[] for _ in range(self._size)]
        recv = [[] for _ in range(self._size)]

        for e, ge in enumerate(self._owned):
            targets = {self.owner(nbr) for nbr in self._neighbors(ge)}
            for q in sorted(targets - {self._rank}):
                send[q].append(e)

        for g, ge in enumerate(self._ghosts):
            recv[self.owner(ge)].append(g)

        return ([np.array(s, dtype=int) for s in send],
                [np.array(r, dtype=int) for r in recv])

    # ---------------------------
    # Halo buffers
    # ---------------------------

    def communicate_ghost_buffers(self, u: NDArray, num_eq: int) -> NDArray:
        """
        Exchange states of partition-boundary elements between MPI ranks.

        Parameters
        ----------
        u : ndarray
            Local state, flat layout ``n * ne * nd + e * nd + j``.
        num_eq : int
            Number of equations.

        Returns
        -------
        ndarray
            Halo buffer of size ``nb_ghosts * num_eq * nd``.
        """
        if self.is_emulated:
            raise RuntimeError("Emulated partitions can not communicate, use ghost_values().")

        ne = len(self._owned)
        nd = u.size // (num_eq * ne)
        U = u.reshape(num_eq, ne, nd)

        sendbuf = [np.ascontiguousarray(U[:, s, :].transpose(1, 0, 2)).ravel()
                   for s in self._send_lists]
        recvbuf = self._mpi_comm.alltoall(sendbuf)

        x_mpi = np.empty((self.nb_ghosts, num_eq * nd))
        for r, data in zip(self._recv_lists, recvbuf):
            if len(r) > 0:
                x_mpi[r] = data.reshape(len(r), num_eq * nd)

        return x_mpi.ravel()

    def ghost_values(self, u_global: NDArray, num_eq: int) -> NDArray:
        """Halo buffer filled from a global state (serial emulation of the exchange)."""
        nd = u_global.size // (num_eq * self.mesh.nb_elements)
        U = u_global.reshape(num_eq, self.mesh.nb_elements, nd)
        return np.ascontiguousarray(U[:, self._ghosts, :].transpose(1, 0, 2)).ravel()

    def restrict(self, u_global: NDArray, num_eq: int) -> NDArray:
        """Owned part of a global state, in local layout."""
        nd = u_global.size // (num_eq * self.mesh.nb_elements)
        U = u_global.reshape(num_eq, self.mesh.nb_elements, nd)
        return U[:, self._owned, :].ravel()

    # ---------------------------
    # Reductions
    # ---------------------------

    def allreduce_sum(self, value: float) -> float:
        if self.is_emulated:
            return value
        return self._mpi_comm.allreduce(value, op=MPI.SUM)

    def allreduce_max(self, value: float) -> float:
        if self.is_emulated:
            return value
        return self._mpi_comm.allreduce(value, op=MPI.MAX)
