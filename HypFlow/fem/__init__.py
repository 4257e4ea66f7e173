from .basis import BernsteinBasis  # noqa: F401
from .mesh import StructuredMesh, LocalMesh  # noqa: F401
