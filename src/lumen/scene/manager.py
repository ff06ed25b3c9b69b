"""Scene: an ordered collection of shapes paired with materials.

The Scene object is the host-side owner of everything a render reads. It is
built once through add_object() (or the add_* conveniences) and then treated
as read-only; upload() rewrites the device shape, object, material and
spectrum tables from it in one pass before rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumen.core.spectrum import Spectrum
    >>> from lumen.materials.properties import MaterialProperties
    >>> from lumen.scene.manager import Scene
    >>>
    >>> scene = Scene()
    >>> ball = scene.add_sphere((0.0, 0.0, 5.0), 1.0)
    >>> ground = scene.add_plane((0.0, -1.0, 0.0), (0.0, 1.0, 0.0))
    >>> hit = scene.nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
    >>> hit.point
    (0.0, 0.0, 4.0)
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
import taichi as ti

from lumen.core.ray import make_ray, vec3
from lumen.core.spectrum import Spectrum, clear_spectrum_pool
from lumen.geometry.shapes import (
    SHAPE_TYPES,
    CompositeShape,
    PlaneShape,
    Shape,
    SphereShape,
    TriangleShape,
)
from lumen.materials.properties import MaterialProperties, add_material, clear_materials
from lumen.scene.intersection import (
    MAX_OBJECTS,
    add_object_record,
    clear_scene,
    get_shape_count,
    nearest_hit,
    set_background_spectrum,
    upload_shape,
)

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class SceneObject:
    """A shape paired with its material, owned by a Scene."""

    shape: Shape
    material: MaterialProperties = field(default_factory=MaterialProperties)


class NearestHit(NamedTuple):
    """Host-side answer to a nearest-hit query."""

    point: Vec3
    object: SceneObject


class Scene:
    """Ordered objects plus the background returned for escaping rays.

    Attributes:
        background: Spectrum seen by rays that hit nothing, or None for black.
    """

    def __init__(self, background: Spectrum | None = None) -> None:
        self._objects: list[SceneObject] = []
        self.background: Spectrum | None = None
        self.set_background(background)

    def __len__(self) -> int:
        return len(self._objects)

    @property
    def objects(self) -> tuple[SceneObject, ...]:
        """The objects in insertion order."""
        return tuple(self._objects)

    def set_background(self, spectrum: Spectrum | None) -> None:
        """Set the spectrum returned for rays that escape the scene."""
        if spectrum is not None and not isinstance(spectrum, Spectrum):
            raise ValueError(f"Background must be a Spectrum or None, got {type(spectrum).__name__}")
        self.background = spectrum

    # =========================================================================
    # Object Creation
    # =========================================================================

    def add_object(self, shape: Shape, material: MaterialProperties | None = None) -> SceneObject:
        """Add a shape with its material.

        Args:
            shape: Any shape descriptor.
            material: The object's material. Defaults to MaterialProperties().

        Returns:
            The SceneObject that now belongs to the scene.

        Raises:
            TypeError: If shape or material has the wrong type.
            RuntimeError: If the scene already holds MAX_OBJECTS objects.
        """
        if not isinstance(shape, SHAPE_TYPES):
            raise TypeError(f"Expected a shape, got {type(shape).__name__}")
        if material is None:
            material = MaterialProperties()
        elif not isinstance(material, MaterialProperties):
            raise TypeError(f"Expected MaterialProperties, got {type(material).__name__}")
        if len(self._objects) >= MAX_OBJECTS:
            raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")

        obj = SceneObject(shape=shape, material=material)
        self._objects.append(obj)
        return obj

    def add_sphere(
        self,
        center: Vec3,
        radius: float,
        material: MaterialProperties | None = None,
    ) -> SceneObject:
        """Add a sphere object."""
        return self.add_object(SphereShape(center, radius), material)

    def add_plane(
        self,
        position: Vec3,
        normal: Vec3,
        material: MaterialProperties | None = None,
    ) -> SceneObject:
        """Add an infinite plane object."""
        return self.add_object(PlaneShape(position, normal), material)

    def add_triangle(
        self,
        va: Vec3,
        vb: Vec3,
        vc: Vec3,
        material: MaterialProperties | None = None,
    ) -> SceneObject:
        """Add a triangle object."""
        return self.add_object(TriangleShape(va, vb, vc), material)

    def add_composite(
        self,
        children: Iterable[Shape],
        material: MaterialProperties | None = None,
    ) -> SceneObject:
        """Add a group of shapes sharing one material."""
        return self.add_object(CompositeShape(tuple(children)), material)

    # =========================================================================
    # Device Upload and Queries
    # =========================================================================

    def upload(self) -> None:
        """Rewrite the device tables from this scene.

        Object i uses material i. Everything uploaded by a previous scene is
        discarded.

        Raises:
            RuntimeError: If a device table capacity is exceeded.
        """
        clear_scene()
        clear_materials()
        clear_spectrum_pool()

        for obj in self._objects:
            shape_index = upload_shape(obj.shape)
            material_id = add_material(obj.material)
            add_object_record(shape_index, material_id)
        set_background_spectrum(self.background)

        logger.debug(
            "Uploaded scene: %d objects, %d shape entries, background=%s",
            len(self._objects),
            get_shape_count(),
            "none" if self.background is None else repr(self.background),
        )

    def nearest_hit(
        self,
        origin: Vec3,
        direction: Vec3,
        wavelength: float = 550e-9,
    ) -> NearestHit | None:
        """Find the first object along a ray.

        Uploads the scene, then runs the same query the renderer uses.

        Args:
            origin: Ray origin.
            direction: Ray direction (any non-zero length).
            wavelength: Wavelength attached to the ray.

        Returns:
            The hit point and owning object, or None when nothing is hit.
        """
        self.upload()
        query = np.array([*origin, *direction, wavelength], dtype=np.float32)
        result = np.zeros(5, dtype=np.float32)
        _nearest_hit_kernel(query, result)

        if result[0] == 0.0:
            return None
        point = (float(result[2]), float(result[3]), float(result[4]))
        return NearestHit(point=point, object=self._objects[int(result[1])])


@ti.kernel
def _nearest_hit_kernel(query: ti.types.ndarray(), result: ti.types.ndarray()):
    for _ in range(1):
        ray = make_ray(
            vec3(query[0], query[1], query[2]),
            vec3(query[3], query[4], query[5]),
            query[6],
        )
        record = nearest_hit(ray)
        result[0] = ti.cast(record.hit, ti.f32)
        result[1] = ti.cast(record.object_id, ti.f32)
        for c in ti.static(range(3)):
            result[2 + c] = record.point[c]
