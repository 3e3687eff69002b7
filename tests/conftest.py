"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti

from blinnray.camera.pinhole import Camera
from blinnray.core.config import RenderConfig
from blinnray.core.vector import Color, Vector3D
from blinnray.geometry.plane import Plane
from blinnray.geometry.sphere import Sphere
from blinnray.materials.material import Material
from blinnray.scene.scene import Light, Scene


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    The CPU backend lets the device program run without graphics hardware.
    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture
def blue_material():
    return Material(Color(0.4, 0.4, 1.0), diffuse=0.2)


@pytest.fixture
def single_sphere_scene(blue_material):
    """Blue sphere at (0, 0, 4) with one light, gray background."""
    scene = Scene(background_color=Color(0.8, 0.8, 0.8))
    scene.add_object(Sphere(Vector3D(0.0, 0.0, 4.0), 1.0, blue_material))
    scene.add_light(Light(Vector3D(2.0, 0.0, 1.0), 10.0))
    return scene


@pytest.fixture
def mixed_scene():
    """Two spheres over a floor plane, lit from above."""
    scene = Scene(background_color=Color(0.1, 0.2, 0.3), config=RenderConfig(max_depth=3))
    scene.add_object(Sphere(Vector3D(-0.8, 0.0, 4.0), 0.7, Material(Color(1.0, 0.2, 0.2), diffuse=0.6)))
    scene.add_object(
        Sphere(
            Vector3D(0.9, 0.0, 4.5),
            0.8,
            Material(Color(0.9, 0.9, 0.9), diffuse=0.1, specular=0.5, shininess=32.0, reflectivity=0.6),
        )
    )
    scene.add_object(
        Plane(Vector3D(0.0, -1.0, 0.0), Vector3D(0.0, 1.0, 0.0), Material(Color(0.5, 0.5, 0.5), diffuse=0.3))
    )
    scene.add_light(Light(Vector3D(0.0, 3.0, 2.0), 1.5))
    return scene


@pytest.fixture
def camera():
    """Camera at the origin looking down +z, square aspect."""
    return Camera.create(position=(0.0, 0.0, 0.0), target=(0.0, 0.0, 1.0))
