"""Triangle primitive using the Möller–Trumbore intersection algorithm.

Edges and the face normal are computed once when the triangle is uploaded,
so the kernel-side test only needs a handful of dot and cross products.
"""

import taichi as ti
import taichi.math as tm

from lumen.core.ray import Ray, ray_at
from lumen.geometry.sphere import HitRecord, no_hit

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Determinant threshold for rays parallel to the triangle
DETERMINANT_EPSILON = 1e-8

# Hits closer than this are rejected (t must be strictly positive)
TRIANGLE_EPSILON = 1e-6


@ti.dataclass
class Triangle:
    """A triangle with precomputed edges.

    Attributes:
        va: First vertex.
        edge1: vb - va.
        edge2: vc - va.
        normal: Unit face normal, normalize(cross(vc - va, vb - va)).
    """

    va: vec3
    edge1: vec3
    edge2: vec3
    normal: vec3


@ti.func
def make_triangle(va: vec3, vb: vec3, vc: vec3) -> Triangle:
    """Create a triangle from its vertices (must not be degenerate)."""
    edge1 = vb - va
    edge2 = vc - va
    return Triangle(va=va, edge1=edge1, edge2=edge2, normal=tm.normalize(tm.cross(edge2, edge1)))


@ti.func
def hit_triangle(ray: Ray, triangle: Triangle) -> HitRecord:
    """Intersect a ray with a triangle (Möller–Trumbore).

    Rejects rays parallel to the triangle, barycentric coordinates outside
    the triangle and hits with t <= TRIANGLE_EPSILON.

    Args:
        ray: The ray to test.
        triangle: The triangle to test against.

    Returns:
        HitRecord carrying the face normal, or a miss record.
    """
    record = no_hit()
    h = tm.cross(ray.direction, triangle.edge2)
    det = tm.dot(triangle.edge1, h)

    if ti.abs(det) > DETERMINANT_EPSILON:
        inv_det = 1.0 / det
        s = ray.origin - triangle.va
        u = inv_det * tm.dot(s, h)
        if u >= 0.0 and u <= 1.0:
            q = tm.cross(s, triangle.edge1)
            v = inv_det * tm.dot(ray.direction, q)
            if v >= 0.0 and u + v <= 1.0:
                t = inv_det * tm.dot(triangle.edge2, q)
                if t > TRIANGLE_EPSILON:
                    record = HitRecord(hit=1, t=t, point=ray_at(ray, t), normal=triangle.normal)
    return record
