"""Display post-processing and Matplotlib previews.

Renders come out as linear sRGB with no upper bound. Before they can be
shown or written to an 8-bit file they go through an optional tone mapping
operator, gamma encoding and a final clamp to [0, 1].

Matplotlib is an optional dependency (the ``preview`` extra) and is only
imported by the functions that open a figure.

Example:
    >>> from lumen.preview.display import process_image_for_display, show_preview
    >>> display = process_image_for_display(rgb, tone_map="reinhard")
    >>> show_preview(rgb, tone_map="reinhard", title="demo scene")
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

import numpy as np
import numpy.typing as npt

ToneMapMethod = Literal["none", "reinhard", "exposure"]


def tone_map_reinhard(
    image: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """Compress linear values into [0, 1) with c / (1 + c).

    Negative components are clipped to zero first.
    """
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Compress linear values with 1 - exp(-c * exposure).

    Args:
        image: Linear image of shape (H, W, 3).
        exposure: Brightness multiplier; larger values brighten the result.

    Returns:
        Image with values in [0, 1).
    """
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode a [0, 1] image as in ** (1 / gamma). gamma=1 returns it unchanged."""
    if gamma == 1.0:
        return image
    # Negative input would give NaN
    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Run the display pipeline: tone map, gamma encode, clamp.

    Args:
        image: Linear sRGB image of shape (H, W, 3).
        tone_map: "none", "reinhard" or "exposure".
        gamma: Gamma used for encoding.
        exposure: Exposure for the "exposure" operator.

    Returns:
        float32 image in [0, 1].

    Raises:
        ValueError: If tone_map is not a known operator.
    """
    result = np.asarray(image, dtype=np.float32).copy()

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


def show_preview(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Show a linear sRGB render in a Matplotlib window.

    Args:
        image: Linear sRGB image of shape (H, W, 3), row 0 at the top.
        tone_map: Tone mapping operator applied before display.
        gamma: Gamma used for encoding.
        exposure: Exposure for the "exposure" operator.
        title: Figure title. Defaults to the image size.
        figsize: Figure size in inches.
        block: Block until the window is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(image, tone_map=tone_map, gamma=gamma, exposure=exposure)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        height, width = display_image.shape[:2]
        title = f"Render Preview - {width}x{height}"
        if tone_map != "none":
            title += f" ({tone_map})"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)


def show_pixel_spectrum(
    spectral_image: npt.NDArray[np.float32],
    wavelengths: Sequence[float],
    pixel: tuple[int, int],
    *,
    figsize: tuple[float, float] = (6, 4),
    block: bool = True,
) -> None:
    """Plot the spectral buckets of one pixel against wavelength in nm.

    Args:
        spectral_image: Output of PathTracer.render_spectral, shape (H, W, N).
        wavelengths: The N wavelengths of the render, in meters.
        pixel: (column, row) of the pixel to plot.
        figsize: Figure size in inches.
        block: Block until the window is closed.

    Raises:
        ValueError: If the wavelength count does not match the buckets.
    """
    import matplotlib.pyplot as plt

    wl = np.asarray(wavelengths, dtype=np.float64)
    if spectral_image.shape[-1] != wl.size:
        raise ValueError(f"Expected {spectral_image.shape[-1]} wavelengths, got {wl.size}")

    i, j = pixel
    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.plot(wl * 1e9, spectral_image[j, i], marker="o")
    ax.set_xlabel("wavelength (nm)")
    ax.set_ylabel("bucket power")
    ax.set_title(f"Pixel ({i}, {j})")

    plt.tight_layout()
    plt.show(block=block)
