from .base import HyperbolicSystem  # noqa: F401
from .advection import Advection
from .burgers import Burgers
from .euler import Euler
from .shallow_water import ShallowWater

SYSTEMS = {cls.name: cls for cls in [Advection, Burgers, Euler, ShallowWater]}


def get_system(system: dict, dim: int, steady_state: bool = False) -> HyperbolicSystem:
    """Instantiate a hyperbolic system from its sanitized configuration."""
    cfg = dict(system)
    cls = SYSTEMS[cfg.pop('type')]
    return cls(dim, steady_state=steady_state, **cfg)
