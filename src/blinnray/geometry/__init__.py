"""Geometry module for shape primitives.

Components:
    kind: PrimitiveKind tag shared with the GPU buffer layout
    sphere: Sphere primitive with ray-sphere intersection
    plane: Infinite plane primitive with ray-plane intersection
    primitive: Tagged union of the two and kind-based dispatch

Intersection routines accept a closed interval [t_min, t_max] and return a
HitRecord or None. Degenerate input never raises: a ray parallel to a plane
misses it.
"""

from .kind import PrimitiveKind
from .plane import Plane, hit_plane
from .primitive import Primitive, hit_primitive
from .sphere import HitRecord, Sphere, hit_sphere

__all__ = [
    "PrimitiveKind",
    "HitRecord",
    "Sphere",
    "hit_sphere",
    "Plane",
    "hit_plane",
    "Primitive",
    "hit_primitive",
]
