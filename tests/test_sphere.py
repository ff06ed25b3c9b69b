"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting a sphere from outside
- Ray pointing away from a sphere
- Ray starting inside a sphere
- Tangent and offset misses
"""

import numpy as np
import pytest
import taichi as ti


def _hit_sphere(origin, direction, center=(0.0, 0.0, 0.0), radius=10.0):
    from lumen.core.ray import make_ray
    from lumen.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        ray = make_ray(
            vec3(origin[0], origin[1], origin[2]),
            vec3(direction[0], direction[1], direction[2]),
            550e-9,
        )
        sphere = Sphere(center=vec3(center[0], center[1], center[2]), radius=radius)
        record = hit_sphere(ray, sphere)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal

    test_kernel()
    return hit[None], t_val[None], point[None].to_numpy(), normal[None].to_numpy()


class TestSphereIntersection:
    """Tests for hit_sphere."""

    def test_hit_from_outside(self):
        hit, t, point, normal = _hit_sphere((0.0, 0.0, 20.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert t == pytest.approx(10.0, abs=1e-4)
        np.testing.assert_allclose(point, (0.0, 0.0, 10.0), atol=1e-4)
        np.testing.assert_allclose(normal, (0.0, 0.0, -1.0), atol=1e-6)

    def test_pointing_away_misses(self):
        hit, _, _, _ = _hit_sphere((0.0, 0.0, 20.0), (0.0, 0.0, 1.0))
        assert hit == 0

    def test_hit_from_inside(self):
        hit, t, point, normal = _hit_sphere((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert hit == 1
        assert t == pytest.approx(10.0, abs=1e-4)
        np.testing.assert_allclose(point, (0.0, 0.0, 10.0), atol=1e-4)
        np.testing.assert_allclose(normal, (0.0, 0.0, 1.0), atol=1e-6)

    def test_offset_ray_misses(self):
        hit, _, _, _ = _hit_sphere((0.0, 20.0, 20.0), (0.0, 0.0, -1.0))
        assert hit == 0

    def test_miss_record_uses_infinite_t(self):
        hit, t, _, _ = _hit_sphere((0.0, 20.0, 20.0), (0.0, 0.0, -1.0))
        assert hit == 0
        assert np.isinf(t)

    def test_off_center_sphere(self):
        hit, t, point, normal = _hit_sphere((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), center=(5.0, 0.0, 0.0), radius=1.0)
        assert hit == 1
        assert t == pytest.approx(4.0, abs=1e-5)
        np.testing.assert_allclose(point, (4.0, 0.0, 0.0), atol=1e-5)
        np.testing.assert_allclose(normal, (1.0, 0.0, 0.0), atol=1e-5)

    def test_normal_is_unit_length(self):
        _, _, _, normal = _hit_sphere((3.0, 4.0, 30.0), (0.0, 0.0, -1.0))
        assert np.linalg.norm(normal) == pytest.approx(1.0, abs=1e-5)
