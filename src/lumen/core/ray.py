"""Ray data structure and direction sampling for spectral path tracing.

A Ray carries the wavelength it transports alongside its origin and unit
direction. All sampling helpers draw from an explicitly passed stream index
(see lumen.core.sampler), never from a global generator.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumen.core.ray import make_ray, ray_at, vec3
    >>> @ti.kernel
    ... def march() -> ti.f32:
    ...     ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 2.0), 550e-9)
    ...     return ray_at(ray, 5.0).z
"""

import taichi as ti
import taichi.math as tm

from lumen.config import RAY_EPSILON
from lumen.core.algebra import cross, normalize
from lumen.core.sampler import next_float

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin, a unit direction and a sample wavelength.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The unit direction of travel (vec3).
        wavelength: The wavelength carried by the ray, in meters.
    """

    origin: vec3
    direction: vec3
    wavelength: ti.f32


@ti.func
def make_ray(origin: vec3, direction: vec3, wavelength: ti.f32) -> Ray:
    """Create a ray, normalizing the direction.

    Args:
        origin: The starting point of the ray.
        direction: Any non-zero direction vector.
        wavelength: The wavelength carried by the ray.

    Returns:
        A Ray whose direction has unit length.
    """
    return Ray(origin=origin, direction=normalize(direction), wavelength=wavelength)


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point origin + t * direction."""
    return ray.origin + t * ray.direction


@ti.func
def face_forward(normal: vec3, direction: vec3) -> vec3:
    """Flip normal if needed so that it opposes direction."""
    result = normal
    if tm.dot(normal, direction) > 0.0:
        result = -normal
    return result


@ti.func
def offset_ray_origin(point: vec3, normal: vec3) -> vec3:
    """Offset a hit point along the normal to avoid self-intersection.

    Args:
        point: The hit point.
        normal: The normal oriented toward the side the new ray leaves from.

    Returns:
        The offset origin.
    """
    return point + RAY_EPSILON * normal


# =============================================================================
# Sampling
# =============================================================================


@ti.func
def build_tangent_frame(normal: vec3):
    """Build an orthonormal basis around a unit normal.

    The reference axis switches from x to y when the normal is close to x,
    so the cross product never degenerates.

    Returns:
        A tuple (tangent, bitangent) completing normal to a right-handed frame.
    """
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(a, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent


@ti.func
def sample_cosine_hemisphere(normal: vec3, stream: ti.i32) -> vec3:
    """Draw a cosine-weighted direction in the hemisphere around normal.

    Args:
        normal: Unit normal defining the hemisphere.
        stream: Random stream to draw from.

    Returns:
        r*cos(phi)*tangent + r*sin(phi)*bitangent + sqrt(1 - u2)*normal with
        phi = 2*pi*u1 and r = sqrt(u2).
    """
    u1 = next_float(stream)
    u2 = next_float(stream)
    phi = 2.0 * tm.pi * u1
    r = ti.sqrt(u2)
    tangent, bitangent = build_tangent_frame(normal)
    return r * ti.cos(phi) * tangent + r * ti.sin(phi) * bitangent + ti.sqrt(1.0 - u2) * normal


@ti.func
def sample_disk(radius: ti.f32, stream: ti.i32) -> tm.vec2:
    """Draw a uniformly distributed point on a disk of the given radius."""
    r = radius * ti.sqrt(next_float(stream))
    phi = 2.0 * tm.pi * next_float(stream)
    return tm.vec2(r * ti.cos(phi), r * ti.sin(phi))
