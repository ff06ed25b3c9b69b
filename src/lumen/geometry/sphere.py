"""Sphere primitive and the HitRecord shared by all primitives.

The hit normal of a sphere is (center - point) projected onto the incident
direction, so it always points the way the ray travels, for rays arriving
from outside as well as from inside. Shading code orients it with
face_forward.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumen.core.ray import make_ray
    >>> from lumen.geometry.sphere import Sphere, hit_sphere, vec3
    >>> @ti.kernel
    ... def probe() -> ti.f32:
    ...     ray = make_ray(vec3(0.0, 0.0, 20.0), vec3(0.0, 0.0, -1.0), 550e-9)
    ...     record = hit_sphere(ray, Sphere(center=vec3(0.0, 0.0, 0.0), radius=10.0))
    ...     return record.t
"""

import taichi as ti
import taichi.math as tm

from lumen.core.algebra import closest_facing_root, norm_squared, normalize, solve_quadratic
from lumen.core.ray import Ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Sentinel distance for "no hit yet"
T_INFINITY = float("inf")


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 otherwise.
        t: Ray parameter of the intersection (>= 0), T_INFINITY on a miss.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal at the point. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def no_hit() -> HitRecord:
    """Create a miss record with t set to the T_INFINITY sentinel."""
    return HitRecord(
        hit=0,
        t=T_INFINITY,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
    )


@ti.dataclass
class Sphere:
    """A sphere defined by center and radius (radius > 0)."""

    center: vec3
    radius: ti.f32


@ti.func
def sphere_hit_normal(sphere: Sphere, point: vec3, direction: vec3) -> vec3:
    """Normal at a surface point, oriented along the incident direction's projection.

    Equals normalize(dot(direction, c - p) * (c - p)), which has a
    non-negative component along the direction whether the ray arrives from
    outside or from inside. Grazing rays (zero projection) get c - p.
    """
    to_center = sphere.center - point
    normal = normalize(to_center)
    if tm.dot(direction, to_center) < 0.0:
        normal = -normal
    return normal


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere) -> HitRecord:
    """Intersect a ray with a sphere.

    Solves |o + t*d - c|^2 = r^2 and keeps the closest non-negative root.

    Args:
        ray: The ray to test.
        sphere: The sphere to test against.

    Returns:
        HitRecord with hit=1 and hit details, or a miss record.
    """
    oc = ray.origin - sphere.center
    a = norm_squared(ray.direction)
    b = 2.0 * tm.dot(oc, ray.direction)
    c = norm_squared(oc) - sphere.radius * sphere.radius

    found, t1, t2 = solve_quadratic(a, b, c)
    hit, t = closest_facing_root(found, t1, t2)

    record = no_hit()
    if hit == 1:
        point = ray_at(ray, t)
        record = HitRecord(hit=1, t=t, point=point, normal=sphere_hit_normal(sphere, point, ray.direction))
    return record
