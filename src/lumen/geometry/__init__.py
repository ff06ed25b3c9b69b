"""Geometric primitives.

Components:
    shapes: Host-side shape descriptors (sphere, plane, triangle, composite)
    sphere: Device sphere struct, HitRecord and ray-sphere intersection
    plane: Infinite plane intersection
    triangle: Moller-Trumbore triangle intersection

Every hit_* function takes a Ray and returns a HitRecord whose t is the
smallest non-negative ray parameter, or a miss record.
"""

from .plane import Plane, hit_plane
from .shapes import SHAPE_TYPES, CompositeShape, PlaneShape, Shape, ShapeKind, SphereShape, TriangleShape
from .sphere import T_INFINITY, HitRecord, Sphere, hit_sphere, no_hit
from .triangle import Triangle, hit_triangle, make_triangle

__all__ = [
    "ShapeKind",
    "Shape",
    "SHAPE_TYPES",
    "SphereShape",
    "PlaneShape",
    "TriangleShape",
    "CompositeShape",
    "HitRecord",
    "T_INFINITY",
    "no_hit",
    "Sphere",
    "hit_sphere",
    "Plane",
    "hit_plane",
    "Triangle",
    "make_triangle",
    "hit_triangle",
]
