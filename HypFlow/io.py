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
from datetime import datetime
import yaml
import pandas as pd

from .logging import get_logger
from .integrate import SSP_TABLES
from .models import SYSTEMS
from .models.base import BC_KINDS

logger = get_logger('hypflow.io')


def print_header(s, n=60, f0='*', f1=' '):

    if len(s) > n:
        n = len(s) + 4

    w = n + len(s) % 2
    b = (w - len(s)) // 2 - 1
    logger.info(w * f0)
    logger.info(f0 + b * f1 + s + b * f1 + f0)
    logger.info(w * f0)


def print_dict(d):
    for k, v in d.items():
        if not isinstance(v, dict):
            logger.info(f'  - {k:<25s}: {v}')
        else:
            logger.info(f'  - {k}:')
            for kk, vv in v.items():
                logger.info(f'    - {str(kk):<23s}: {vv}')


def create_output_directory(name, use_tstamp=True):

    if use_tstamp:
        timestamp = datetime.now().replace(microsecond=0).strftime("%Y-%m-%d_%H%M%S") + '_'
    else:
        timestamp = ''

    outbase = os.path.dirname(name)
    outname = timestamp + os.path.basename(name)
    outdir = os.path.join(outbase, outname)

    if not os.path.exists(outdir):
        os.makedirs(outdir)
    elif len(os.listdir(outdir)) > 0:
        raise RuntimeError('Output path exists and is not empty.')

    print_header(f"Writing output into: {outdir}", f0=' ', f1=' ')

    return outdir


def write_yaml(output_dict, fname):

    with open(fname, 'w') as FILE:
        yaml.dump(output_dict, FILE)


def history_to_csv(fname, out):
    df = pd.DataFrame(data=out)
    df.to_csv(fname, index=False)


def read_yaml_input(file):

    print_header("PROBLEM SETUP")

    sanitizing_functions = {'options': sanitize_options,
                            'mesh': sanitize_mesh,
                            'system': sanitize_system,
                            'numerics': sanitize_numerics}

    raw_dict = yaml.full_load(file)

    if not isinstance(raw_dict, dict):
        raise IOError("Input must be a YAML mapping.")

    for key in ['mesh', 'system']:
        if key not in raw_dict:
            raise IOError(f"Missing mandatory input section '{key}'.")

    sanitized_dict = {}

    for key, func in sanitizing_functions.items():
        logger.info(f'- {key}:')
        sanitized_dict[key] = func(raw_dict.get(key) or {})

    print_header("PROBLEM SETUP COMPLETED")

    return sanitized_dict


def sanitize_options(d):
    out = {}
    out['output'] = str(d.get('output', 'example'))
    out['write_freq'] = int(d.get('write_freq', 100))
    out['use_tstamp'] = bool(d.get('use_tstamp', True))
    out['silent'] = bool(d.get('silent', False))

    if out['write_freq'] < 1:
        raise IOError("write_freq must be positive")

    print_dict(out)

    return out


def sanitize_mesh(d):

    out = {}

    out['dim'] = int(d.get('dim', 1))
    if out['dim'] not in [1, 2]:
        raise IOError("Mesh dimension must be 1 or 2")

    # x
    out['Nx'] = int(d.get('Nx', 16))
    if 'Lx' in d.keys():
        out['Lx'] = float(d.get('Lx', 1.))
        out['dx'] = out['Lx'] / out['Nx']
    elif 'dx' in d.keys():
        out['dx'] = float(d.get('dx', 0.1))
        out['Lx'] = out['dx'] * out['Nx']
    else:
        raise IOError("Must specify grid size (Nx) with either dx or Lx.")

    # y
    if out['dim'] == 2:
        out['Ny'] = int(d.get('Ny', 16))
        if 'Ly' in d.keys():
            out['Ly'] = float(d.get('Ly', 1.))
            out['dy'] = out['Ly'] / out['Ny']
        elif 'dy' in d.keys():
            out['dy'] = float(d.get('dy', 0.1))
            out['Ly'] = out['dy'] * out['Ny']
        else:
            raise IOError("Must specify grid size (Ny) with either dy or Ly.")
    else:
        out['Ny'] = 1
        out['Ly'] = 1.
        out['dy'] = 1.

    if out['Nx'] < 1 or out['Ny'] < 1:
        raise IOError("Need at least one element per direction")

    periodic = d.get('periodic', False)
    if isinstance(periodic, (list, tuple)):
        periodic = list(periodic) + [False] * (2 - len(periodic))
        out['periodic'] = [bool(p) for p in periodic[:2]]
    else:
        out['periodic'] = [bool(periodic), bool(periodic) and out['dim'] == 2]

    out['order'] = int(d.get('order', 1))
    if out['order'] < 0:
        raise IOError("Polynomial order must be non-negative")

    out['nb_quad_pts'] = int(d.get('nb_quad_pts', out['order'] + 2))
    if out['nb_quad_pts'] < 1:
        raise IOError("Need at least one quadrature point")

    print_dict(out)

    return out


def sanitize_system(d):

    out = {}

    out['type'] = str(d.get('type', 'none'))
    if out['type'] not in SYSTEMS.keys():
        raise IOError(f"Specify a valid system type ({', '.join(SYSTEMS.keys())})")

    out['time_dep_bc'] = bool(d.get('time_dep_bc', False))
    out['proj_type'] = str(d.get('proj_type', 'l2'))
    if out['proj_type'] not in ['l2', 'nodal']:
        raise IOError("Projection type must be 'l2' or 'nodal'")

    bc = d.get('bc') or {}
    out['bc'] = {int(k): str(v) for k, v in bc.items()}
    if not all([v in BC_KINDS for v in out['bc'].values()]):
        raise IOError(f"Boundary conditions must be one of {BC_KINDS}")

    if out['type'] in ['advection', 'burgers']:
        if out['type'] == 'advection':
            velocity = d.get('velocity', 1.)
            if isinstance(velocity, (list, tuple)):
                out['velocity'] = [float(v) for v in velocity]
            else:
                out['velocity'] = float(velocity)
        out['value'] = float(d.get('value', 1.))
        out['amplitude'] = float(d.get('amplitude', 0.))
        out['wavelength'] = float(d.get('wavelength', 1.))

    elif out['type'] in ['euler', 'shallow_water']:
        if 'state' not in d.keys():
            raise IOError(f"Need to specify the constant state for {out['type']}")
        out['state'] = [float(s) for s in d['state']]
        if out['type'] == 'euler':
            out['gamma'] = float(d.get('gamma', 1.4))
        else:
            out['gravity'] = float(d.get('gravity', 1.))

    print_dict(out)

    return out


def sanitize_numerics(d):

    out = {}

    out['integrator'] = str(d.get('integrator', 'ssprk3'))
    if out['integrator'] not in SSP_TABLES.keys():
        raise IOError(f"Specify a valid integrator ({', '.join(SSP_TABLES.keys())})")

    out['tol'] = float(d.get('tol', 1e-8))
    out['max_it'] = int(d.get('max_it', 1000))
    out['dt'] = float(d.get('dt', 1e-3))
    out['t_end'] = float(d.get('t_end', float('inf')))
    out['adaptive'] = bool(d.get('adaptive', False))
    out['CFL'] = float(d.get('CFL', 0.5))
    out['steady_state'] = bool(d.get('steady_state', False))

    if out['dt'] <= 0.:
        raise IOError("Time step must be positive")

    print_dict(out)

    return out
