"""Scene representation and ray-scene queries.

Components:
    manager: Scene container pairing shapes with materials
    intersection: Device shape/object tables and the nearest-hit scan
    demo: Ready-made demo scene with three coloured spheres
"""

from .demo import DemoSceneParams, create_demo_scene
from .intersection import (
    MAX_OBJECTS,
    MAX_SHAPES,
    SceneHitRecord,
    background_power,
    clear_scene,
    get_object_count,
    get_shape_count,
    intersect_shape,
    nearest_hit,
)
from .manager import NearestHit, Scene, SceneObject

__all__ = [
    "Scene",
    "SceneObject",
    "NearestHit",
    "SceneHitRecord",
    "MAX_SHAPES",
    "MAX_OBJECTS",
    "clear_scene",
    "get_shape_count",
    "get_object_count",
    "intersect_shape",
    "nearest_hit",
    "background_power",
    "DemoSceneParams",
    "create_demo_scene",
]
