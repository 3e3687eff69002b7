"""Core rendering module.

Components:
    vector: Vector3D and Color value types
    ray: Ray data structure
    config: RenderConfig shared by both backends
    integrator: Multi-sample pixel integration over worker processes
    progressive: Re-rendering at increasing sample counts
"""

from .config import DEFAULT_EPSILON, DEFAULT_MAX_DEPTH, PARALLEL_EPSILON, RenderConfig
from .progressive import ProgressiveRenderer, sample_schedule
from .ray import Ray
from .vector import Color, Vector3D, reflect

# Note: integrator is NOT imported here; it is used through Scene.trace.
# Import directly from blinnray.core.integrator when needed.

__all__ = [
    "Color",
    "Vector3D",
    "reflect",
    "Ray",
    "RenderConfig",
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_EPSILON",
    "PARALLEL_EPSILON",
    "ProgressiveRenderer",
    "sample_schedule",
]
