"""Image sinks for finished renders.

PNG output is 8-bit sRGB written through Pillow. Spectral buckets can be
kept losslessly with save_spectral_npz.

Example:
    >>> from lumen.preview.export import save_png_from_array
    >>> save_png_from_array(rgb, "render.png", tone_map="reinhard")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from lumen.preview.display import ToneMapMethod, process_image_for_display

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear image to 8-bit through the display pipeline.

    Args:
        image: Linear sRGB image of shape (H, W, 3).
        tone_map: "none", "reinhard" or "exposure".
        gamma: Gamma used for encoding.
        exposure: Exposure for the "exposure" operator.

    Returns:
        uint8 array of shape (H, W, 3).
    """
    processed = process_image_for_display(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    return np.round(processed * 255.0).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> None:
    """Write a linear sRGB image to an 8-bit PNG file.

    Row 0 of the array becomes the top row of the file.

    Raises:
        ValueError: If the image is not of shape (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")

    pixels = image_to_uint8(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    PILImage.fromarray(pixels).save(filepath)
    logger.info("Saved %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def save_spectral_npz(
    spectral_image: npt.NDArray[np.float32],
    wavelengths: Sequence[float],
    filepath: str,
) -> None:
    """Store spectral buckets and their wavelengths in a compressed .npz file."""
    np.savez_compressed(
        filepath,
        buckets=np.asarray(spectral_image, dtype=np.float32),
        wavelengths=np.asarray(wavelengths, dtype=np.float64),
    )
    logger.info("Saved spectral buckets %s to %s", spectral_image.shape, filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Root mean squared difference between two images of equal shape.

    Raises:
        ValueError: If the shapes differ.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
