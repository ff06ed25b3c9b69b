"""Camera configuration and primary ray generation.

A CameraConfig describes position, facing, resolution, roll, field of view
and focus mode; Camera derives the coordinate system and sensor geometry from
it and casts rays through pixel centres (jittered across the aperture in
focal-plane mode).
"""

from .camera import (
    Camera,
    CameraConfig,
    CameraConfigurationError,
    CameraState,
    FocalPlane,
    Horizontal,
    PinHole,
    Vertical,
    cast_ray,
    derive_camera_state,
)

__all__ = [
    "Camera",
    "CameraConfig",
    "CameraConfigurationError",
    "CameraState",
    "Horizontal",
    "Vertical",
    "PinHole",
    "FocalPlane",
    "derive_camera_state",
    "cast_ray",
]
