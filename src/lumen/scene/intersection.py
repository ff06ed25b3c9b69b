"""Scene-level intersection over the device shape and object tables.

Shapes of every kind share one Structure-of-Arrays table tagged by ShapeKind.
A composite occupies one entry that points at a contiguous range of leaf
entries; nested composites are flattened when they are uploaded, so the
kernel never recurses. Objects pair a shape entry with a material id and are
scanned linearly by nearest_hit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumen.geometry.shapes import SphereShape
    >>> from lumen.scene.intersection import add_object_record, clear_scene, upload_shape
    >>> clear_scene()
    >>> shape_index = upload_shape(SphereShape((0.0, 0.0, 0.0), 1.0))
    >>> add_object_record(shape_index, material_id=0)
    0
"""

import taichi as ti
import taichi.math as tm

from lumen.core.ray import Ray
from lumen.core.spectrum import interpolate_spectrum, upload_spectrum
from lumen.geometry.plane import Plane, hit_plane
from lumen.geometry.shapes import CompositeShape, PlaneShape, Shape, ShapeKind, SphereShape, TriangleShape
from lumen.geometry.sphere import T_INFINITY, HitRecord, Sphere, hit_sphere, no_hit
from lumen.geometry.triangle import Triangle, hit_triangle

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Nearest intersection of a ray with the scene.

    Attributes:
        hit: 1 if any object was hit, 0 otherwise.
        t: Ray parameter of the nearest hit, T_INFINITY on a miss.
        point: The nearest hit point.
        normal: Unit normal reported by the hit primitive.
        object_id: Index of the owning object, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    object_id: ti.i32


# Maximum number of shape entries (leaves plus composite headers) and objects
MAX_SHAPES = 4096
MAX_OBJECTS = 1024

# Shape storage: Structure of Arrays layout for GPU efficiency.
# Sphere: point_a = center, radius. Plane: point_a = position, normal.
# Triangle: point_a = va, point_b = edge1, point_c = edge2, normal.
# Composite: first_child, child_count.
shape_kinds = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_point_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_point_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_point_c = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_radii = ti.field(dtype=ti.f32, shape=MAX_SHAPES)
shape_first_child = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_child_count = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
num_shapes = ti.field(dtype=ti.i32, shape=())

# Object storage
object_shapes = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Background spectrum (count 0 = black)
background_offset = ti.field(dtype=ti.i32, shape=())
background_count = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all shapes, objects and the background.

    Resets the counts to zero. The actual field data is not cleared but
    will be overwritten when new entries are added.
    """
    num_shapes[None] = 0
    num_objects[None] = 0
    background_offset[None] = 0
    background_count[None] = 0


def _next_shape_slot() -> int:
    idx = num_shapes[None]
    if idx >= MAX_SHAPES:
        raise RuntimeError(f"Maximum number of shapes ({MAX_SHAPES}) exceeded")
    num_shapes[None] = idx + 1
    return idx


def _upload_leaf(shape: Shape) -> int:
    idx = _next_shape_slot()
    shape_kinds[idx] = int(shape.kind)
    if isinstance(shape, SphereShape):
        shape_point_a[idx] = list(shape.center)
        shape_radii[idx] = shape.radius
    elif isinstance(shape, PlaneShape):
        shape_point_a[idx] = list(shape.position)
        shape_normals[idx] = list(shape.normal)
    elif isinstance(shape, TriangleShape):
        shape_point_a[idx] = list(shape.va)
        shape_point_b[idx] = [b - a for a, b in zip(shape.va, shape.vb)]
        shape_point_c[idx] = [c - a for a, c in zip(shape.va, shape.vc)]
        shape_normals[idx] = list(shape.normal)
    else:
        raise TypeError(f"Cannot upload {type(shape).__name__} as a leaf shape")
    return idx


def upload_shape(shape: Shape) -> int:
    """Write a shape into the shape table.

    Composites write their flattened leaves first, then a header entry
    pointing at them.

    Args:
        shape: Any shape descriptor.

    Returns:
        The index of the entry representing the shape.

    Raises:
        RuntimeError: If the maximum number of shapes is exceeded.
    """
    if not isinstance(shape, CompositeShape):
        return _upload_leaf(shape)

    first = num_shapes[None]
    count = 0
    for leaf in shape.leaves():
        _upload_leaf(leaf)
        count += 1
    idx = _next_shape_slot()
    shape_kinds[idx] = int(ShapeKind.COMPOSITE)
    shape_first_child[idx] = first
    shape_child_count[idx] = count
    return idx


def add_object_record(shape_index: int, material_id: int) -> int:
    """Register an object pairing a shape entry with a material.

    Returns:
        The index of the added object.

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
    """
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    object_shapes[idx] = shape_index
    object_material_ids[idx] = material_id
    num_objects[None] = idx + 1
    return idx


def set_background_spectrum(spectrum) -> None:
    """Upload the spectrum returned for rays that escape the scene (None = black)."""
    offset, count = upload_spectrum(spectrum)
    background_offset[None] = offset
    background_count[None] = count


def get_shape_count() -> int:
    """Get the number of entries in the shape table."""
    return int(num_shapes[None])


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


# =============================================================================
# Kernel-side Queries
# =============================================================================


@ti.func
def _intersect_leaf(index: ti.i32, ray: Ray) -> HitRecord:
    record = no_hit()
    kind = shape_kinds[index]
    if kind == int(ShapeKind.SPHERE):
        record = hit_sphere(ray, Sphere(center=shape_point_a[index], radius=shape_radii[index]))
    elif kind == int(ShapeKind.PLANE):
        record = hit_plane(ray, Plane(position=shape_point_a[index], normal=shape_normals[index]))
    elif kind == int(ShapeKind.TRIANGLE):
        triangle = Triangle(
            va=shape_point_a[index],
            edge1=shape_point_b[index],
            edge2=shape_point_c[index],
            normal=shape_normals[index],
        )
        record = hit_triangle(ray, triangle)
    return record


@ti.func
def intersect_shape(index: ti.i32, ray: Ray) -> HitRecord:
    """Intersect a ray with one shape table entry.

    Composites return the hit with the smallest t among their leaves.

    Args:
        index: Shape table index.
        ray: The ray to test.

    Returns:
        HitRecord of the nearest hit, or a miss record.
    """
    record = no_hit()
    if shape_kinds[index] == int(ShapeKind.COMPOSITE):
        first = shape_first_child[index]
        for k in range(shape_child_count[index]):
            child = _intersect_leaf(first + k, ray)
            if child.hit == 1 and child.t < record.t:
                record = child
    else:
        record = _intersect_leaf(index, ray)
    return record


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=T_INFINITY,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        object_id=-1,
    )


@ti.func
def nearest_hit(ray: Ray) -> SceneHitRecord:
    """Find the closest object hit by a ray.

    Scans every object linearly and keeps the smallest non-negative t.

    Args:
        ray: The ray to trace.

    Returns:
        SceneHitRecord with the owning object's index, or a miss record.
    """
    result = _make_miss_record()
    for obj in range(num_objects[None]):
        record = intersect_shape(object_shapes[obj], ray)
        if record.hit == 1 and record.t < result.t:
            result = SceneHitRecord(
                hit=1,
                t=record.t,
                point=record.point,
                normal=record.normal,
                object_id=obj,
            )
    return result


@ti.func
def background_power(wavelength: ti.f32) -> ti.f32:
    """Power arriving along rays that leave the scene."""
    found, value = interpolate_spectrum(background_offset[None], background_count[None], wavelength)
    power = 0.0
    if found == 1:
        power = value
    return power
