"""Scene container and recursive Blinn-Phong shading.

The Scene owns the primitive list, the point lights and the background
color. It answers closest-hit and shadow queries by linear scan over every
primitive and implements cast_ray, the recursive shading function shared by
every pixel sample of the CPU path.

Shading at a hit point:
    1. For each light, a shadow ray is cast toward the light. An occluder
       within (epsilon, distance - epsilon) removes that light entirely.
    2. Unshadowed lights contribute Blinn-Phong diffuse and specular terms.
    3. Reflective materials add the color of the mirrored ray, traced with
       one less level of depth and weighted by the reflectivity.

Colors are summed without clamping; the integrator clamps finished pixels.

Example:
    >>> from blinnray.core.vector import Color, Vector3D
    >>> from blinnray.geometry import Sphere
    >>> from blinnray.materials import Material
    >>> from blinnray.scene.scene import Light, Scene
    >>> scene = Scene(background_color=Color(0.8, 0.8, 0.8))
    >>> scene.add_object(Sphere(Vector3D(0, 0, 4), 1.0, Material(Color(0.4, 0.4, 1.0), 0.2)))
    >>> scene.add_light(Light(Vector3D(2.0, 0.0, 1.0), 10.0))
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from blinnray.core.config import RenderConfig
from blinnray.core.integrator import trace_image
from blinnray.core.ray import Ray
from blinnray.core.vector import Color, Vector3D, reflect
from blinnray.geometry.kind import PrimitiveKind
from blinnray.geometry.plane import Plane
from blinnray.geometry.primitive import Primitive, hit_primitive
from blinnray.geometry.sphere import HitRecord, Sphere
from blinnray.materials.material import blinn_phong

if TYPE_CHECKING:
    from blinnray.camera.pinhole import Camera


@dataclass(frozen=True)
class Light:
    """A point light.

    Attributes:
        position: Light position in world space.
        intensity: Scalar multiplier applied to diffuse and specular terms.
    """

    position: Vector3D
    intensity: float


@dataclass
class Scene:
    """A collection of primitives and lights rendered against a background.

    Primitives and lights are read-only while a trace is running. The light
    list may be replaced between frames with set_lights().

    Attributes:
        background_color: Color returned for rays that hit nothing.
        objects: Ordered primitives, scanned linearly for every query.
        lights: Point lights.
        config: Recursion bound, epsilon and default sample count.
    """

    background_color: Color
    objects: list[Primitive] = field(default_factory=list)
    lights: list[Light] = field(default_factory=list)
    config: RenderConfig = field(default_factory=RenderConfig)

    # =========================================================================
    # Construction
    # =========================================================================

    def add_object(self, primitive: Primitive) -> int:
        """Add a primitive and return its index in the scene."""
        if getattr(primitive, "kind", None) not in (PrimitiveKind.SPHERE, PrimitiveKind.PLANE):
            raise TypeError(f"Unsupported primitive: {type(primitive).__name__}")
        self.objects.append(primitive)
        return len(self.objects) - 1

    def add_light(self, light: Light) -> None:
        self.lights.append(light)

    def set_lights(self, lights: Iterable[Light]) -> None:
        """Replace every light. Must not be called while a trace is running."""
        self.lights = list(lights)

    @property
    def spheres(self) -> list[Sphere]:
        return [obj for obj in self.objects if obj.kind is PrimitiveKind.SPHERE]

    @property
    def planes(self) -> list[Plane]:
        return [obj for obj in self.objects if obj.kind is PrimitiveKind.PLANE]

    # =========================================================================
    # Queries
    # =========================================================================

    def closest_hit(self, ray: Ray, t_min: float, t_max: float = math.inf) -> HitRecord | None:
        """Return the nearest hit in [t_min, t_max] over all primitives."""
        closest: HitRecord | None = None
        closest_t = t_max
        for obj in self.objects:
            record = hit_primitive(obj, ray, t_min, closest_t)
            if record is not None:
                closest_t = record.t
                closest = record
        return closest

    def is_in_shadow(self, point: Vector3D, light_position: Vector3D) -> bool:
        """Check whether any primitive blocks the segment from point to the light.

        The shadow ray starts epsilon along the light direction and accepts
        occluders with t in [epsilon, distance - epsilon].
        """
        epsilon = self.config.epsilon
        direction = light_position - point
        distance = direction.magnitude()
        dir_normalized = direction.normalize()
        shadow_ray = Ray(point + dir_normalized * epsilon, dir_normalized)

        for obj in self.objects:
            if hit_primitive(obj, shadow_ray, epsilon, distance - epsilon) is not None:
                return True
        return False

    # =========================================================================
    # Shading
    # =========================================================================

    def cast_ray(self, ray: Ray, depth: int) -> Color:
        """Compute the color seen along a ray.

        Args:
            ray: The ray to trace.
            depth: Remaining recursion levels. depth <= 0 returns black.

        Returns:
            The unclamped color for this ray.
        """
        if depth <= 0:
            return Color.black()

        hit = self.closest_hit(ray, self.config.epsilon)
        if hit is None:
            return self.background_color

        color = Color.black()
        for light in self.lights:
            if not self.is_in_shadow(hit.point, light.position):
                color = color + blinn_phong(hit.material, hit.point, hit.normal, ray.origin, light)

        reflectivity = hit.material.reflectivity
        if reflectivity > 0.0:
            reflect_ray = Ray(
                hit.point + hit.normal * self.config.epsilon,
                reflect(ray.direction, hit.normal),
            )
            color = color + self.cast_ray(reflect_ray, depth - 1) * reflectivity

        return color

    # =========================================================================
    # Rendering
    # =========================================================================

    def trace(
        self,
        camera: Camera,
        width: int,
        height: int,
        samples: int | None = None,
        *,
        workers: int | None = None,
        seed: int | None = None,
    ) -> npt.NDArray[np.float64]:
        """Render the scene on the CPU.

        Args:
            camera: The camera to render from.
            width: Image width in pixels.
            height: Image height in pixels.
            samples: Samples per pixel; defaults to config.samples.
            workers: Worker processes; defaults to the CPU count. 1 renders
                in the calling process.
            seed: Seed for the per-row generators; defaults to config.seed.

        Returns:
            Array of shape (height, width, 3) with channels in [0, 1].
        """
        return trace_image(
            self,
            camera,
            width,
            height,
            self.config.samples if samples is None else samples,
            workers=workers,
            seed=self.config.seed if seed is None else seed,
        )
