"""Core rendering building blocks.

Components:
    algebra: Vector helpers, Rodrigues rotation and the robust quadratic solver
    ray: Ray struct, face-forwarding and hemisphere/disk sampling
    sampler: Per-pixel random streams
    spectrum: Spectrum class and the device sample pool
    color: CIE 1931 conversion from spectral buckets to linear sRGB
    integrator: The spectral path tracer (import lumen.core.integrator directly)

Modules that allocate Taichi fields need lumen.config.init_backend() to run
before they are imported.
"""

from .algebra import (
    closest_facing_root,
    cross,
    dot,
    norm,
    norm_squared,
    normalize,
    normalize_vector,
    rotate_around_axis,
    rotate_vector,
    solve_quadratic,
)
from .color import (
    check_visible_response,
    color_matching_functions,
    spectral_image_to_rgb,
    spectral_to_xyz,
    xyz_to_linear_srgb,
)
from .ray import (
    Ray,
    build_tangent_frame,
    face_forward,
    make_ray,
    offset_ray_origin,
    ray_at,
    sample_cosine_hemisphere,
    sample_disk,
)
from .sampler import next_float, seed_streams, stream_index
from .spectrum import Spectrum, clear_spectrum_pool, interpolate_spectrum, upload_spectrum

__all__ = [
    # Algebra
    "dot",
    "cross",
    "norm",
    "norm_squared",
    "normalize",
    "normalize_vector",
    "rotate_around_axis",
    "rotate_vector",
    "solve_quadratic",
    "closest_facing_root",
    # Rays
    "Ray",
    "make_ray",
    "ray_at",
    "face_forward",
    "offset_ray_origin",
    "build_tangent_frame",
    "sample_cosine_hemisphere",
    "sample_disk",
    # Sampling
    "seed_streams",
    "next_float",
    "stream_index",
    # Spectra and color
    "Spectrum",
    "upload_spectrum",
    "clear_spectrum_pool",
    "interpolate_spectrum",
    "color_matching_functions",
    "check_visible_response",
    "spectral_to_xyz",
    "xyz_to_linear_srgb",
    "spectral_image_to_rgb",
]
