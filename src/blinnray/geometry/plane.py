"""Infinite plane primitive.

A plane is defined by a point on it and a unit normal. The normal is
normalized at construction and is reported unchanged for hits from either
side; it is never flipped toward the incoming ray.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from blinnray.core.config import PARALLEL_EPSILON
from blinnray.core.ray import Ray
from blinnray.core.vector import Vector3D
from blinnray.geometry.kind import PrimitiveKind
from blinnray.geometry.sphere import HitRecord
from blinnray.materials.material import Material


@dataclass(frozen=True)
class Plane:
    """An infinite plane.

    Attributes:
        point: Any point on the plane.
        normal: Unit normal (normalized in __post_init__).
        material: Surface material.
    """

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.PLANE

    point: Vector3D
    normal: Vector3D
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "normal", self.normal.normalize())

    def hit(self, ray: Ray, t_min: float, t_max: float) -> HitRecord | None:
        return hit_plane(self, ray, t_min, t_max)


def hit_plane(plane: Plane, ray: Ray, t_min: float, t_max: float) -> HitRecord | None:
    """Test for ray-plane intersection within [t_min, t_max].

    Rays with |normal . direction| < PARALLEL_EPSILON never hit, whatever
    their origin.
    """
    denom = plane.normal.dot(ray.direction)
    if abs(denom) < PARALLEL_EPSILON:
        return None

    t = (plane.point - ray.origin).dot(plane.normal) / denom
    if t < t_min or t > t_max:
        return None

    return HitRecord(point=ray.at(t), normal=plane.normal, t=t, material=plane.material)
