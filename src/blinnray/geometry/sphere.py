"""Sphere primitive with ray-sphere intersection.

This module provides the Sphere dataclass, the HitRecord produced by every
primitive, and the intersection function using the half-b form of the
quadratic formula.

The ray-sphere intersection is found by solving:
    |origin + t * direction - center|^2 = radius^2

which expands to a*t^2 + 2*h*t + c = 0 with
    a = dot(direction, direction)
    h = dot(oc, direction)   (half of the traditional b)
    c = dot(oc, oc) - radius^2
    oc = origin - center

Example:
    >>> from blinnray.core.ray import Ray
    >>> from blinnray.core.vector import Color, Vector3D
    >>> from blinnray.geometry.sphere import Sphere
    >>> from blinnray.materials import Material
    >>> sphere = Sphere(Vector3D(0, 0, 4), 1.0, Material(Color(0.4, 0.4, 1.0), 0.2))
    >>> record = sphere.hit(Ray(Vector3D(0, 0, 0), Vector3D(0, 0, 1)), 1e-3, 100.0)
    >>> record.t
    3.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar

from blinnray.core.ray import Ray
from blinnray.core.vector import Vector3D
from blinnray.geometry.kind import PrimitiveKind
from blinnray.materials.material import Material


@dataclass(frozen=True)
class HitRecord:
    """Record of a ray-primitive intersection.

    Produced and consumed within a single ray evaluation.

    Attributes:
        point: The 3D point where the ray met the surface.
        normal: The unit surface normal at the hit point. Spheres report the
            outward normal; planes report their fixed normal.
        t: The ray parameter of the intersection.
        material: The material of the primitive that was hit.
    """

    point: Vector3D
    normal: Vector3D
    t: float
    material: Material


@dataclass(frozen=True)
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        material: Surface material.
    """

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.SPHERE

    center: Vector3D
    radius: float
    material: Material

    def hit(self, ray: Ray, t_min: float, t_max: float) -> HitRecord | None:
        return hit_sphere(self, ray, t_min, t_max)


def hit_sphere(sphere: Sphere, ray: Ray, t_min: float, t_max: float) -> HitRecord | None:
    """Test for ray-sphere intersection within [t_min, t_max].

    The smaller root is preferred; if it falls outside the interval the
    larger root is tried. A negative discriminant is a miss.

    Args:
        sphere: The sphere to test.
        ray: The ray (direction need not be normalized).
        t_min: Minimum accepted t (inclusive).
        t_max: Maximum accepted t (inclusive).

    Returns:
        A HitRecord for the nearest root in range, or None.
    """
    oc = ray.origin - sphere.center
    a = ray.direction.dot(ray.direction)
    half_b = oc.dot(ray.direction)
    c = oc.dot(oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    if discriminant < 0.0:
        return None

    sqrt_d = math.sqrt(discriminant)
    root = (-half_b - sqrt_d) / a

    if root < t_min or root > t_max:
        root = (-half_b + sqrt_d) / a
        if root < t_min or root > t_max:
            return None

    point = ray.at(root)
    # Outward normal; unit length because the point lies on the surface
    normal = (point - sphere.center) * (1.0 / sphere.radius)

    return HitRecord(point=point, normal=normal, t=root, material=sphere.material)
