"""Tests for the Ray data structure."""

from blinnray.core.ray import Ray
from blinnray.core.vector import Vector3D


class TestRay:
    """Test ray evaluation."""

    def test_at_origin(self):
        ray = Ray(Vector3D(1.0, 2.0, 3.0), Vector3D(0.0, 0.0, 1.0))
        assert ray.at(0.0) == Vector3D(1.0, 2.0, 3.0)

    def test_at_positive_t(self):
        ray = Ray(Vector3D(0.0, 0.0, 0.0), Vector3D(0.0, 0.0, 1.0))
        assert ray.at(5.0) == Vector3D(0.0, 0.0, 5.0)

    def test_at_unnormalized_direction(self):
        """Direction length scales t; it is not normalized by the ray."""
        ray = Ray(Vector3D(1.0, 0.0, 0.0), Vector3D(2.0, 0.0, 0.0))
        assert ray.at(1.5) == Vector3D(4.0, 0.0, 0.0)

    def test_rays_are_immutable_values(self):
        a = Ray(Vector3D(0.0, 0.0, 0.0), Vector3D(0.0, 1.0, 0.0))
        b = Ray(Vector3D(0.0, 0.0, 0.0), Vector3D(0.0, 1.0, 0.0))
        assert a == b
        assert hash(a) == hash(b)
