__version__ = "0.1.0"

from .problem import Problem  # noqa: E402, F401
