"""Display post-processing and image export.

Components:
    display: Tone mapping, gamma and Matplotlib previews
    export: 8-bit PNG output via Pillow and spectral .npz dumps
"""

from .display import (
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    show_pixel_spectrum,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from .export import compute_rmse, image_to_uint8, save_png_from_array, save_spectral_npz

__all__ = [
    "ToneMapMethod",
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "show_preview",
    "show_pixel_spectrum",
    "image_to_uint8",
    "save_png_from_array",
    "save_spectral_npz",
    "compute_rmse",
]
