"""Host-side shape descriptors.

Shapes form a closed tagged union: SphereShape, PlaneShape, TriangleShape and
CompositeShape. Each is a frozen dataclass validated on construction and
carries its ShapeKind tag. Scenes hold these descriptors; the device shape
table in lumen.scene.intersection is built from them at upload time.

Example:
    >>> ground = PlaneShape(position=(0.0, 0.0, 0.0), normal=(0.0, 2.0, 0.0))
    >>> ground.normal
    (0.0, 1.0, 0.0)
    >>> pyramid = CompositeShape((TriangleShape((0, 0, 0), (1, 0, 0), (0, 1, 0)),))
    >>> len(list(pyramid.leaves()))
    1
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Union

import numpy as np

from lumen.core.algebra import normalize_vector

Vec3 = tuple[float, float, float]


class ShapeKind(IntEnum):
    """Tag stored in the device shape table."""

    SPHERE = 0
    PLANE = 1
    TRIANGLE = 2
    COMPOSITE = 3


def _as_vec3(value) -> Vec3:
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got {value!r}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


@dataclass(frozen=True)
class SphereShape:
    """A sphere with positive radius."""

    center: Vec3
    radius: float

    kind: ClassVar[ShapeKind] = ShapeKind.SPHERE

    def __post_init__(self):
        object.__setattr__(self, "center", _as_vec3(self.center))
        if not self.radius > 0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")


@dataclass(frozen=True)
class PlaneShape:
    """An infinite plane. The normal is normalized on construction."""

    position: Vec3
    normal: Vec3

    kind: ClassVar[ShapeKind] = ShapeKind.PLANE

    def __post_init__(self):
        object.__setattr__(self, "position", _as_vec3(self.position))
        object.__setattr__(self, "normal", _as_vec3(normalize_vector(_as_vec3(self.normal))))


@dataclass(frozen=True)
class TriangleShape:
    """A triangle with a precomputed unit face normal.

    The normal is normalize(cross(vc - va, vb - va)).

    Raises:
        ValueError: If the vertices are collinear.
    """

    va: Vec3
    vb: Vec3
    vc: Vec3

    kind: ClassVar[ShapeKind] = ShapeKind.TRIANGLE

    def __post_init__(self):
        for name in ("va", "vb", "vc"):
            object.__setattr__(self, name, _as_vec3(getattr(self, name)))
        face = np.cross(np.subtract(self.vc, self.va), np.subtract(self.vb, self.va))
        try:
            normal = normalize_vector(face)
        except ValueError:
            raise ValueError(f"Degenerate triangle {self.va}, {self.vb}, {self.vc}") from None
        object.__setattr__(self, "_normal", _as_vec3(normal))

    @property
    def normal(self) -> Vec3:
        return self._normal


@dataclass(frozen=True)
class CompositeShape:
    """An ordered group of shapes intersected as one."""

    children: tuple["Shape", ...]

    kind: ClassVar[ShapeKind] = ShapeKind.COMPOSITE

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))
        for child in self.children:
            if not isinstance(child, SHAPE_TYPES):
                raise TypeError(f"Composite children must be shapes, got {type(child).__name__}")

    def leaves(self) -> Iterator["Shape"]:
        """Yield the non-composite shapes in depth-first order."""
        for child in self.children:
            if isinstance(child, CompositeShape):
                yield from child.leaves()
            else:
                yield child


Shape = Union[SphereShape, PlaneShape, TriangleShape, CompositeShape]

SHAPE_TYPES = (SphereShape, PlaneShape, TriangleShape, CompositeShape)
