"""Scene module.

Components:
    scene: Scene container with closest-hit, shadow and shading queries
    demo: The demo scene rendered by the CLI
    animation: Orbiting-light animation driver (imports the GPU backend)

Note: animation is NOT imported here so that the CPU path, including its
worker processes, does not load Taichi. Import it from
blinnray.scene.animation when needed.
"""

from .demo import create_demo_scene
from .scene import Light, Scene

__all__ = [
    "Light",
    "Scene",
    "create_demo_scene",
]
