"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (far root)
- Ray tangent to sphere
- Closed [t_min, t_max] interval
"""

import pytest

from blinnray.core.ray import Ray
from blinnray.core.vector import Color, Vector3D
from blinnray.geometry.kind import PrimitiveKind
from blinnray.geometry.sphere import Sphere, hit_sphere
from blinnray.materials.material import Material

MATERIAL = Material(Color(1.0, 0.0, 0.0), diffuse=0.5)


def unit_sphere():
    return Sphere(Vector3D(0.0, 0.0, 0.0), 1.0, MATERIAL)


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_kind_tag(self):
        assert unit_sphere().kind is PrimitiveKind.SPHERE

    def test_hit_method_matches_function(self):
        sphere = unit_sphere()
        ray = Ray(Vector3D(0.0, 0.0, 5.0), Vector3D(0.0, 0.0, -1.0))
        assert sphere.hit(ray, 0.001, 1000.0) == hit_sphere(sphere, ray, 0.001, 1000.0)


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_hit_sphere_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        ray = Ray(Vector3D(0.0, 0.0, 5.0), Vector3D(0.0, 0.0, -1.0))
        record = hit_sphere(unit_sphere(), ray, 0.001, 1000.0)

        assert record is not None
        # Should hit at z=1 (front of sphere), so t=4
        assert record.t == pytest.approx(4.0)
        assert record.point.to_tuple() == pytest.approx((0.0, 0.0, 1.0))
        # Normal should point outward: (0, 0, 1)
        assert record.normal.to_tuple() == pytest.approx((0.0, 0.0, 1.0))
        assert record.material is MATERIAL

    def test_hit_sphere_miss(self):
        """Test ray passing beside the sphere."""
        ray = Ray(Vector3D(0.0, 5.0, 5.0), Vector3D(0.0, 0.0, -1.0))
        assert hit_sphere(unit_sphere(), ray, 0.001, 1000.0) is None

    def test_hit_sphere_behind_ray(self):
        """Test sphere entirely behind the ray origin."""
        ray = Ray(Vector3D(0.0, 0.0, 5.0), Vector3D(0.0, 0.0, 1.0))
        assert hit_sphere(unit_sphere(), ray, 0.001, 1000.0) is None

    def test_hit_sphere_from_inside(self):
        """Test ray starting inside: the near root is negative, the far root hits."""
        ray = Ray(Vector3D(0.0, 0.0, 0.0), Vector3D(0.0, 0.0, 1.0))
        record = hit_sphere(unit_sphere(), ray, 0.001, 1000.0)

        assert record is not None
        assert record.t == pytest.approx(1.0)
        # Outward normal even though the ray is leaving the sphere
        assert record.normal.to_tuple() == pytest.approx((0.0, 0.0, 1.0))

    def test_hit_sphere_tangent(self):
        """Test ray grazing the sphere (zero discriminant)."""
        ray = Ray(Vector3D(1.0, 0.0, 5.0), Vector3D(0.0, 0.0, -1.0))
        record = hit_sphere(unit_sphere(), ray, 0.001, 1000.0)

        assert record is not None
        assert record.t == pytest.approx(5.0)
        assert record.normal.to_tuple() == pytest.approx((1.0, 0.0, 0.0))

    def test_interval_is_inclusive(self):
        """A root exactly at t_min is accepted."""
        ray = Ray(Vector3D(0.0, 0.0, 5.0), Vector3D(0.0, 0.0, -1.0))
        record = hit_sphere(unit_sphere(), ray, 4.0, 4.0)
        assert record is not None
        assert record.t == 4.0

    def test_t_max_excludes_both_roots(self):
        ray = Ray(Vector3D(0.0, 0.0, 5.0), Vector3D(0.0, 0.0, -1.0))
        assert hit_sphere(unit_sphere(), ray, 0.001, 3.0) is None

    def test_t_max_between_roots_keeps_near_root(self):
        ray = Ray(Vector3D(0.0, 0.0, 5.0), Vector3D(0.0, 0.0, -1.0))
        record = hit_sphere(unit_sphere(), ray, 0.001, 5.0)
        assert record.t == pytest.approx(4.0)

    def test_unnormalized_direction(self):
        """t is measured in units of the direction vector."""
        ray = Ray(Vector3D(0.0, 0.0, 5.0), Vector3D(0.0, 0.0, -2.0))
        record = hit_sphere(unit_sphere(), ray, 0.001, 1000.0)
        assert record.t == pytest.approx(2.0)
        assert record.point.to_tuple() == pytest.approx((0.0, 0.0, 1.0))

    def test_offset_sphere_normal_is_unit(self):
        sphere = Sphere(Vector3D(2.0, -1.0, 7.0), 2.5, MATERIAL)
        ray = Ray(Vector3D(0.0, 0.0, 0.0), Vector3D(2.0, -1.0, 7.0).normalize())
        record = hit_sphere(sphere, ray, 0.001, 1000.0)
        assert record.normal.magnitude() == pytest.approx(1.0)
