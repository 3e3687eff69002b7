"""Demo scene used by the animation driver and the CLI.

The scene consists of:
- A blue diffuse sphere at (0, 0, 4), radius 1
- A mirror-like sphere to its right, reflecting the blue sphere and floor
- A gray floor plane at y = -1
- A light gray background

The camera sits at the origin looking down +z. Lights are not part of the
scene; the animation driver places an orbiting light every frame.

Example:
    >>> from blinnray.scene.demo import create_demo_scene
    >>> scene, camera = create_demo_scene(aspect_ratio=800 / 600)
"""

from __future__ import annotations

from blinnray.camera.pinhole import Camera
from blinnray.core.config import RenderConfig
from blinnray.core.vector import Color, Vector3D
from blinnray.geometry.plane import Plane
from blinnray.geometry.sphere import Sphere
from blinnray.materials.material import Material
from blinnray.scene.scene import Scene

# =============================================================================
# Demo Scene Parameters
# =============================================================================

BACKGROUND_COLOR = (0.8, 0.8, 0.8)

BLUE_SPHERE_CENTER = (0.0, 0.0, 4.0)
BLUE_SPHERE_RADIUS = 1.0
BLUE_SPHERE_COLOR = (0.4, 0.4, 1.0)

MIRROR_SPHERE_CENTER = (2.2, -0.25, 5.0)
MIRROR_SPHERE_RADIUS = 0.75
MIRROR_SPHERE_COLOR = (0.9, 0.9, 0.9)

FLOOR_HEIGHT = -1.0
FLOOR_COLOR = (0.5, 0.5, 0.5)


def create_demo_scene(
    aspect_ratio: float = 4.0 / 3.0,
    config: RenderConfig | None = None,
) -> tuple[Scene, Camera]:
    """Create the demo scene and its camera.

    Args:
        aspect_ratio: Width / height of the target image.
        config: Render settings stored on the scene (default RenderConfig()).

    Returns:
        Tuple of (scene, camera). The scene has no lights.
    """
    scene = Scene(
        background_color=Color.from_tuple(BACKGROUND_COLOR),
        config=RenderConfig() if config is None else config,
    )

    scene.add_object(
        Sphere(
            center=Vector3D.from_tuple(BLUE_SPHERE_CENTER),
            radius=BLUE_SPHERE_RADIUS,
            material=Material(Color.from_tuple(BLUE_SPHERE_COLOR), diffuse=0.2),
        )
    )
    scene.add_object(
        Sphere(
            center=Vector3D.from_tuple(MIRROR_SPHERE_CENTER),
            radius=MIRROR_SPHERE_RADIUS,
            material=Material(
                Color.from_tuple(MIRROR_SPHERE_COLOR),
                diffuse=0.05,
                specular=0.5,
                shininess=64.0,
                reflectivity=0.7,
            ),
        )
    )
    scene.add_object(
        Plane(
            point=Vector3D(0.0, FLOOR_HEIGHT, 0.0),
            normal=Vector3D(0.0, 1.0, 0.0),
            material=Material(Color.from_tuple(FLOOR_COLOR), diffuse=0.1, reflectivity=0.2),
        )
    )

    camera = Camera.create(
        position=(0.0, 0.0, 0.0),
        target=(0.0, 0.0, 1.0),
        fov=90.0,
        aspect_ratio=aspect_ratio,
    )

    return scene, camera
