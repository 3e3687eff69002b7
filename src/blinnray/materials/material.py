"""Blinn-Phong surface material.

A Material holds per-surface scalar coefficients. The local shading model is
Lambertian diffuse plus a half-vector specular lobe; reflectivity is the weight
applied to the recursively traced mirror reflection by the scene.

Example:
    >>> from blinnray.core.vector import Color
    >>> from blinnray.materials import Material
    >>> mirror = Material(Color(1.0, 1.0, 1.0), diffuse=0.1, reflectivity=0.9)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from blinnray.core.vector import Color, Vector3D

if TYPE_CHECKING:
    from blinnray.scene.scene import Light

# Specular highlights are untinted
_SPECULAR_COLOR = Color(1.0, 1.0, 1.0)


@dataclass(frozen=True)
class Material:
    """Surface coefficients for Blinn-Phong shading.

    Attributes:
        color: Base (diffuse) color.
        diffuse: Diffuse coefficient kd.
        specular: Specular coefficient ks.
        shininess: Specular exponent.
        reflectivity: Mirror reflection weight in [0, 1].
    """

    color: Color
    diffuse: float
    specular: float = 0.0
    shininess: float = 1.0
    reflectivity: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.reflectivity <= 1.0:
            raise ValueError(
                f"reflectivity must be in [0, 1], got {self.reflectivity}"
            )


def _clamp_positive(value: float) -> float:
    # NaN (from a degenerate half-vector) compares false and maps to 0
    return value if value > 0.0 else 0.0


def blinn_phong(
    material: Material,
    point: Vector3D,
    normal: Vector3D,
    view_origin: Vector3D,
    light: Light,
) -> Color:
    """Compute the unshadowed contribution of one point light.

    Args:
        material: Material of the surface that was hit.
        point: Hit point.
        normal: Unit surface normal at the hit point.
        view_origin: Origin of the ray that produced the hit.
        light: The light being evaluated.

    Returns:
        diffuse + specular, scaled by the light intensity. Not clamped.
    """
    light_dir = (light.position - point).normalize()
    view_dir = (view_origin - point).normalize()

    diffuse_strength = _clamp_positive(light_dir.dot(normal))
    diffuse = material.color * (material.diffuse * diffuse_strength * light.intensity)

    halfway = (light_dir + view_dir).normalize()
    spec_strength = _clamp_positive(halfway.dot(normal)) ** material.shininess
    specular = _SPECULAR_COLOR * (material.specular * spec_strength * light.intensity)

    return diffuse + specular
