"""Pinhole camera model for perspective projection ray generation.

The camera converts normalized device coordinates (NDC) in [-1, 1] into
world-space rays. It builds an orthonormal basis from the view parameters on
every call:
- forward: points from the position toward the target
- right: normalize(forward x up)
- up': right x forward

The field of view scales both axes by tan(fov/2); the aspect ratio widens the
horizontal axis only. NDC y grows downward (image rows), so it is inverted
when mapped onto the up' axis.

A forward direction parallel to the up vector has no defined basis and
produces NaN rays; this is not guarded.

Example:
    >>> from blinnray.camera.pinhole import Camera
    >>> camera = Camera.create(
    ...     position=(0.0, 0.0, 0.0),
    ...     target=(0.0, 0.0, 1.0),
    ...     fov=90.0,
    ...     aspect_ratio=4.0 / 3.0,
    ... )
    >>> ray = camera.cast_ray(0.0, 0.0)  # Ray through image center
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from blinnray.core.ray import Ray
from blinnray.core.vector import Vector3D

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        position: Camera position in world space.
        target: Point the camera is looking at in world space.
        fov: Field of view in degrees, applied to both axes.
        aspect_ratio: Width divided by height of the output image.
        up: Up direction used to orient the camera (typically +y).
    """

    position: Vector3D
    target: Vector3D
    fov: float = 90.0
    aspect_ratio: float = 1.0
    up: Vector3D = field(default_factory=lambda: Vector3D(0.0, 1.0, 0.0))

    @classmethod
    def create(
        cls,
        position: tuple[float, float, float],
        target: tuple[float, float, float],
        fov: float = 90.0,
        aspect_ratio: float = 1.0,
        up: tuple[float, float, float] = (0.0, 1.0, 0.0),
    ) -> Camera:
        """Build a camera from plain tuples."""
        return cls(
            position=Vector3D.from_tuple(position),
            target=Vector3D.from_tuple(target),
            fov=float(fov),
            aspect_ratio=float(aspect_ratio),
            up=Vector3D.from_tuple(up),
        )

    # =========================================================================
    # Ray Generation
    # =========================================================================

    def basis(self) -> tuple[Vector3D, Vector3D, Vector3D]:
        """Return the (forward, right, up) orthonormal basis."""
        forward = (self.target - self.position).normalize()
        right = forward.cross(self.up).normalize()
        up = right.cross(forward)
        return forward, right, up

    def cast_ray(self, ndc_x: float, ndc_y: float) -> Ray:
        """Generate the primary ray through a point in NDC space.

        Args:
            ndc_x: Horizontal coordinate in [-1, 1], -1 at the left edge.
            ndc_y: Vertical coordinate in [-1, 1], -1 at the top row.

        Returns:
            A ray from the camera position with a normalized direction.
        """
        forward, right, up = self.basis()

        fov_adjustment = math.tan(math.radians(self.fov) / 2.0)
        adjusted_x = ndc_x * self.aspect_ratio * fov_adjustment
        adjusted_y = -ndc_y * fov_adjustment

        direction = (forward + right * adjusted_x + up * adjusted_y).normalize()
        return Ray(self.position, direction)
