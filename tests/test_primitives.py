"""Unit tests for plane and triangle intersection."""

import numpy as np
import pytest
import taichi as ti


def _run_hit(hit_fn, make_primitive, origin, direction):
    from lumen.core.ray import make_ray, vec3

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
        record = hit_fn(ray, make_primitive())
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal

    test_kernel()
    return hit[None], t_val[None], point[None].to_numpy(), normal[None].to_numpy()


def _ground():
    from lumen.geometry.plane import Plane, vec3

    @ti.func
    def make():
        return Plane(position=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 1.0, 0.0))

    return make


def _unit_triangle():
    from lumen.geometry.triangle import make_triangle, vec3

    @ti.func
    def make():
        return make_triangle(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

    return make


class TestPlaneIntersection:
    """Tests for hit_plane."""

    def test_hit_from_above(self):
        from lumen.geometry.plane import hit_plane

        hit, t, point, normal = _run_hit(hit_plane, _ground(), (1.0, 5.0, 2.0), (0.0, -1.0, 0.0))
        assert hit == 1
        assert t == pytest.approx(5.0, abs=1e-5)
        np.testing.assert_allclose(point, (1.0, 0.0, 2.0), atol=1e-5)
        np.testing.assert_allclose(normal, (0.0, 1.0, 0.0))

    def test_hit_from_below_keeps_plane_normal(self):
        from lumen.geometry.plane import hit_plane

        hit, t, _, normal = _run_hit(hit_plane, _ground(), (0.0, -2.0, 0.0), (0.0, 1.0, 0.0))
        assert hit == 1
        assert t == pytest.approx(2.0, abs=1e-5)
        np.testing.assert_allclose(normal, (0.0, 1.0, 0.0))

    def test_parallel_ray_misses(self):
        from lumen.geometry.plane import hit_plane

        hit, _, _, _ = _run_hit(hit_plane, _ground(), (0.0, 1.0, 0.0), (1.0, 0.0, 0.0))
        assert hit == 0

    def test_plane_behind_ray_misses(self):
        from lumen.geometry.plane import hit_plane

        hit, _, _, _ = _run_hit(hit_plane, _ground(), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0))
        assert hit == 0

    def test_oblique_hit(self):
        from lumen.geometry.plane import hit_plane

        hit, t, point, _ = _run_hit(hit_plane, _ground(), (0.0, 1.0, 0.0), (1.0, -1.0, 0.0))
        assert hit == 1
        assert t == pytest.approx(np.sqrt(2.0), abs=1e-5)
        np.testing.assert_allclose(point, (1.0, 0.0, 0.0), atol=1e-5)


class TestTriangleIntersection:
    """Tests for hit_triangle."""

    def test_hit_inside(self):
        from lumen.geometry.triangle import hit_triangle

        hit, t, point, normal = _run_hit(hit_triangle, _unit_triangle(), (0.25, 0.25, 3.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert t == pytest.approx(3.0, abs=1e-5)
        np.testing.assert_allclose(point, (0.25, 0.25, 0.0), atol=1e-5)
        # normalize(cross(vc - va, vb - va))
        np.testing.assert_allclose(normal, (0.0, 0.0, -1.0), atol=1e-6)

    def test_hit_from_back_side(self):
        from lumen.geometry.triangle import hit_triangle

        hit, t, _, _ = _run_hit(hit_triangle, _unit_triangle(), (0.25, 0.25, -2.0), (0.0, 0.0, 1.0))
        assert hit == 1
        assert t == pytest.approx(2.0, abs=1e-5)

    def test_outside_barycentric_range_misses(self):
        from lumen.geometry.triangle import hit_triangle

        hit, _, _, _ = _run_hit(hit_triangle, _unit_triangle(), (0.8, 0.8, 3.0), (0.0, 0.0, -1.0))
        assert hit == 0

    def test_parallel_ray_misses(self):
        from lumen.geometry.triangle import hit_triangle

        hit, _, _, _ = _run_hit(hit_triangle, _unit_triangle(), (0.25, 0.25, 1.0), (1.0, 0.0, 0.0))
        assert hit == 0

    def test_triangle_behind_ray_misses(self):
        from lumen.geometry.triangle import hit_triangle

        hit, _, _, _ = _run_hit(hit_triangle, _unit_triangle(), (0.25, 0.25, 3.0), (0.0, 0.0, 1.0))
        assert hit == 0
