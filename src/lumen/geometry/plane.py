"""Infinite plane primitive."""

import taichi as ti
import taichi.math as tm

from lumen.core.ray import Ray, ray_at
from lumen.geometry.sphere import HitRecord, no_hit

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays closer than this to parallel are treated as missing the plane
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Plane:
    """An infinite plane through position with unit normal."""

    position: vec3
    normal: vec3


@ti.func
def hit_plane(ray: Ray, plane: Plane) -> HitRecord:
    """Intersect a ray with a plane.

    t = (position - origin) . normal / (direction . normal). The ray misses
    when it runs parallel to the plane or the plane lies behind it (t < 0).

    Args:
        ray: The ray to test.
        plane: The plane to test against.

    Returns:
        HitRecord carrying the plane's own normal, or a miss record.
    """
    record = no_hit()
    denom = tm.dot(ray.direction, plane.normal)
    if ti.abs(denom) > PARALLEL_EPSILON:
        t = tm.dot(plane.position - ray.origin, plane.normal) / denom
        if t >= 0.0:
            record = HitRecord(hit=1, t=t, point=ray_at(ray, t), normal=plane.normal)
    return record
