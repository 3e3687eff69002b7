"""Closed union of primitives with tag-based intersection dispatch.

Scenes hold a flat list of Sphere and Plane values. Each value carries its
PrimitiveKind tag, so one function can dispatch without a class hierarchy and
the GPU packer can split the list into per-kind buffers.
"""

from __future__ import annotations

from typing import Union

from blinnray.core.ray import Ray
from blinnray.geometry.kind import PrimitiveKind
from blinnray.geometry.plane import Plane, hit_plane
from blinnray.geometry.sphere import HitRecord, Sphere, hit_sphere

Primitive = Union[Sphere, Plane]


def hit_primitive(
    primitive: Primitive,
    ray: Ray,
    t_min: float,
    t_max: float,
) -> HitRecord | None:
    """Intersect a ray with any primitive.

    Raises:
        TypeError: If the object is not a known primitive kind.
    """
    kind = getattr(primitive, "kind", None)
    if kind is PrimitiveKind.SPHERE:
        return hit_sphere(primitive, ray, t_min, t_max)
    if kind is PrimitiveKind.PLANE:
        return hit_plane(primitive, ray, t_min, t_max)
    raise TypeError(f"Unsupported primitive: {type(primitive).__name__}")
