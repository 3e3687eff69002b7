"""Ray data structure for the CPU ray tracer.

Example:
    >>> from blinnray.core.ray import Ray
    >>> from blinnray.core.vector import Vector3D
    >>> ray = Ray(Vector3D(0.0, 0.0, 0.0), Vector3D(0.0, 0.0, 1.0))
    >>> ray.at(5.0)  # Point 5 units along the ray
    Vector3D(x=0.0, y=0.0, z=5.0)
"""

from __future__ import annotations

from dataclasses import dataclass

from blinnray.core.vector import Vector3D


@dataclass(frozen=True)
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector of the ray. Camera rays are
            normalized, but this is not enforced so call sites decide.
    """

    origin: Vector3D
    direction: Vector3D

    def at(self, t: float) -> Vector3D:
        """Compute the point origin + direction * t."""
        return self.origin + self.direction * t
