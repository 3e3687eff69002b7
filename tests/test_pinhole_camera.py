"""Tests for the pinhole camera."""

import math

import pytest

from blinnray.camera.pinhole import Camera
from blinnray.core.vector import Vector3D


class TestCameraBasis:
    """Test the orthonormal camera basis."""

    def test_basis_is_orthonormal(self):
        camera = Camera.create(position=(1.0, 2.0, 3.0), target=(4.0, 0.0, 8.0))
        forward, right, up = camera.basis()

        for v in (forward, right, up):
            assert v.magnitude() == pytest.approx(1.0)
        assert forward.dot(right) == pytest.approx(0.0, abs=1e-12)
        assert forward.dot(up) == pytest.approx(0.0, abs=1e-12)
        assert right.dot(up) == pytest.approx(0.0, abs=1e-12)

    def test_create_converts_tuples(self):
        camera = Camera.create(position=(0, 0, 0), target=(0, 0, 1), fov=60, aspect_ratio=2)
        assert camera.position == Vector3D(0.0, 0.0, 0.0)
        assert camera.fov == 60.0
        assert camera.aspect_ratio == 2.0
        assert camera.up == Vector3D(0.0, 1.0, 0.0)


class TestCameraRays:
    """Test primary ray generation."""

    def test_center_ray_points_forward(self, camera):
        ray = camera.cast_ray(0.0, 0.0)
        assert ray.origin == camera.position
        assert ray.direction.to_tuple() == pytest.approx((0.0, 0.0, 1.0))

    def test_directions_are_normalized(self, camera):
        for ndc in [(-1.0, -1.0), (0.3, -0.7), (1.0, 1.0)]:
            assert camera.cast_ray(*ndc).direction.magnitude() == pytest.approx(1.0)

    def test_top_row_looks_up(self, camera):
        """ndc_y = -1 is the top of the image."""
        assert camera.cast_ray(0.0, -1.0).direction.y > 0.0
        assert camera.cast_ray(0.0, 1.0).direction.y < 0.0

    def test_left_edge_looks_against_right_vector(self, camera):
        _, right, _ = camera.basis()
        assert camera.cast_ray(-1.0, 0.0).direction.dot(right) < 0.0
        assert camera.cast_ray(1.0, 0.0).direction.dot(right) > 0.0

    def test_fov_90_edge_is_45_degrees(self, camera):
        direction = camera.cast_ray(0.0, 1.0).direction
        assert abs(direction.y / direction.z) == pytest.approx(1.0)

    def test_fov_60(self):
        camera = Camera.create(position=(0.0, 0.0, 0.0), target=(0.0, 0.0, 1.0), fov=60.0)
        direction = camera.cast_ray(0.0, 1.0).direction
        assert abs(direction.y / direction.z) == pytest.approx(math.tan(math.radians(30.0)))

    def test_aspect_ratio_widens_x(self):
        camera = Camera.create(position=(0.0, 0.0, 0.0), target=(0.0, 0.0, 1.0), aspect_ratio=2.0)
        direction = camera.cast_ray(1.0, 0.0).direction
        assert abs(direction.x / direction.z) == pytest.approx(2.0)
