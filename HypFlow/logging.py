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
from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from mpi4py import MPI


def _default_filename_for(name: str, rank: int) -> str:
    # 'hypflow.problem' on rank 2 -> 'hypflow_problem.2.log'
    base = name.replace('.', '_')
    return f"{base}.log" if rank == 0 else f"{base}.{rank}.log"


def get_logger(name: str,
               outdir: Optional[str] = None,
               filename: Optional[str] = None,
               level: int = logging.INFO,
               all_ranks: bool = False,
               force: bool = False) -> logging.Logger:
    """Return a standardised logger for HypFlow modules.

    Messages go to stdout on MPI rank 0 only (unless ``all_ranks``); ranks
    without output get a NullHandler.

    Parameters
    ----------
    name : str
        Name of the logger.
    outdir : str, optional
        Output directory to write logfiles (the default is None, which only writes to stdout)
    filename : str, optional
        Output filename of the logger (the default is None, which uses a default filename)
    level : int, optional
        Log level (the default is logging.INFO)
    all_ranks : bool, optional
        If true, every MPI rank writes to stdout (the default is False)
    force : bool, optional
        If true, replace existing handlers to allow reconfiguration (the default is False)

    Returns
    -------
    logging.Logger
        The logger object
    """

    logger = logging.getLogger(name)

    if logger.handlers and not force:
        return logger

    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    logger.setLevel(level)
    logger.propagate = False

    rank = MPI.COMM_WORLD.rank
    formatter = logging.Formatter('%(message)s')

    if rank == 0 or all_ranks:
        sh = logging.StreamHandler(sys.stdout)
        sh.setFormatter(formatter)
        logger.addHandler(sh)

    if outdir is not None:
        os.makedirs(outdir, exist_ok=True)
        if filename is None:
            filename = _default_filename_for(name, rank)
        fh = logging.FileHandler(os.path.join(outdir, filename))
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
