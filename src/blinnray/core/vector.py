"""Double-precision vector and color value types for the CPU path.

Vector3D and Color are immutable: every operation returns a new instance.
Neither type clamps or guards its inputs; normalizing a zero vector yields
NaN components, which propagate through arithmetic.

Example:
    >>> from blinnray.core.vector import Vector3D, reflect
    >>> n = Vector3D(0.0, 1.0, 0.0)
    >>> reflect(Vector3D(1.0, -1.0, 0.0), n)
    Vector3D(x=1.0, y=1.0, z=0.0)
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Vector3D:
    """A 3-component vector of floats."""

    x: float
    y: float
    z: float

    @classmethod
    def from_tuple(cls, values: tuple[float, float, float]) -> Vector3D:
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def __add__(self, other: Vector3D) -> Vector3D:
        return Vector3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3D) -> Vector3D:
        return Vector3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> Vector3D:
        return Vector3D(-self.x, -self.y, -self.z)

    def __mul__(self, scalar: float) -> Vector3D:
        return Vector3D(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector3D:
        return Vector3D(self.x / scalar, self.y / scalar, self.z / scalar)

    def dot(self, other: Vector3D) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3D) -> Vector3D:
        return Vector3D(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def magnitude(self) -> float:
        return math.sqrt(self.magnitude_squared())

    def normalize(self) -> Vector3D:
        """Return the unit vector in the same direction.

        A zero vector has no direction; the result is all-NaN, matching
        IEEE division, and callers are expected not to rely on it.
        """
        mag = self.magnitude()
        if mag == 0.0:
            return Vector3D(math.nan, math.nan, math.nan)
        inv = 1.0 / mag
        return Vector3D(self.x * inv, self.y * inv, self.z * inv)

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Color:
    """An RGB color with unbounded float channels.

    Channels may exceed 1.0 while shading terms accumulate; clamping happens
    only when a pixel is finalized.
    """

    r: float
    g: float
    b: float

    @classmethod
    def black(cls) -> Color:
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_tuple(cls, values: tuple[float, float, float]) -> Color:
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def __add__(self, other: Color) -> Color:
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def __mul__(self, other: float | Color) -> Color:
        if isinstance(other, Color):
            return Color(self.r * other.r, self.g * other.g, self.b * other.b)
        return Color(self.r * other, self.g * other, self.b * other)

    __rmul__ = __mul__

    def clamp(self, low: float = 0.0, high: float = 1.0) -> Color:
        return Color(
            min(max(self.r, low), high),
            min(max(self.g, low), high),
            min(max(self.b, low), high),
        )

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.r, self.g, self.b)


def reflect(incident: Vector3D, normal: Vector3D) -> Vector3D:
    """Reflect an incident direction about a unit normal: I - 2(I.N)N."""
    return incident - normal * (2.0 * incident.dot(normal))
