"""Conversion of spectral images to display color.

Pixel spectra are integrated against the CIE 1931 2-degree standard observer
to XYZ and then mapped to linear sRGB (D65 white). The integration is
normalized so that a flat spectrum of power 1 yields Y == 1.

Wavelengths are given in meters throughout lumen and converted to
nanometers here.
"""

from collections.abc import Sequence

import numpy as np

# CIE 1931 2-degree standard observer, 380-780 nm at 5 nm steps (CVRL)
CIE_1931_5NM_WAVELENGTHS = np.arange(380.0, 785.0, 5.0)

CIE_1931_5NM_VALUES = np.array([
    [0.0014, 0.0000, 0.0065], [0.0022, 0.0001, 0.0105], [0.0042, 0.0001, 0.0201],
    [0.0076, 0.0002, 0.0362], [0.0143, 0.0004, 0.0679], [0.0232, 0.0006, 0.1102],
    [0.0435, 0.0012, 0.2074], [0.0776, 0.0022, 0.3713], [0.1344, 0.0040, 0.6456],
    [0.2148, 0.0073, 1.0391], [0.2839, 0.0116, 1.3856], [0.3285, 0.0168, 1.6230],
    [0.3483, 0.0230, 1.7471], [0.3481, 0.0298, 1.7826], [0.3362, 0.0380, 1.7721],
    [0.3187, 0.0480, 1.7441], [0.2908, 0.0600, 1.6692], [0.2511, 0.0739, 1.5281],
    [0.1954, 0.0910, 1.2876], [0.1421, 0.1126, 1.0419], [0.0956, 0.1390, 0.8130],
    [0.0580, 0.1693, 0.6162], [0.0320, 0.2080, 0.4652], [0.0147, 0.2586, 0.3533],
    [0.0049, 0.3230, 0.2720], [0.0024, 0.4073, 0.2123], [0.0093, 0.5030, 0.1582],
    [0.0291, 0.6082, 0.1117], [0.0633, 0.7100, 0.0782], [0.1096, 0.7932, 0.0573],
    [0.1655, 0.8620, 0.0422], [0.2257, 0.9149, 0.0298], [0.2904, 0.9540, 0.0203],
    [0.3597, 0.9803, 0.0134], [0.4334, 0.9950, 0.0087], [0.5121, 1.0000, 0.0057],
    [0.5945, 0.9950, 0.0039], [0.6784, 0.9786, 0.0027], [0.7621, 0.9520, 0.0021],
    [0.8425, 0.9154, 0.0018], [0.9163, 0.8700, 0.0017], [0.9786, 0.8163, 0.0014],
    [1.0263, 0.7570, 0.0011], [1.0567, 0.6949, 0.0008], [1.0622, 0.6310, 0.0006],
    [1.0456, 0.5668, 0.0003], [1.0026, 0.5030, 0.0002], [0.9384, 0.4412, 0.0001],
    [0.8544, 0.3810, 0.0001], [0.7514, 0.3210, 0.0000], [0.6424, 0.2650, 0.0000],
    [0.5419, 0.2170, 0.0000], [0.4479, 0.1750, 0.0000], [0.3608, 0.1382, 0.0000],
    [0.2835, 0.1070, 0.0000], [0.2187, 0.0816, 0.0000], [0.1649, 0.0610, 0.0000],
    [0.1212, 0.0446, 0.0000], [0.0874, 0.0320, 0.0000], [0.0636, 0.0232, 0.0000],
    [0.0468, 0.0170, 0.0000], [0.0329, 0.0119, 0.0000], [0.0227, 0.0082, 0.0000],
    [0.0158, 0.0057, 0.0000], [0.0114, 0.0041, 0.0000], [0.0081, 0.0029, 0.0000],
    [0.0058, 0.0021, 0.0000], [0.0041, 0.0015, 0.0000], [0.0029, 0.0010, 0.0000],
    [0.0020, 0.0007, 0.0000], [0.0014, 0.0005, 0.0000], [0.0010, 0.0004, 0.0000],
    [0.0007, 0.0002, 0.0000], [0.0005, 0.0002, 0.0000], [0.0003, 0.0001, 0.0000],
    [0.0002, 0.0001, 0.0000], [0.0002, 0.0001, 0.0000], [0.0001, 0.0000, 0.0000],
    [0.0001, 0.0000, 0.0000], [0.0001, 0.0000, 0.0000], [0.0000, 0.0000, 0.0000],
])

# XYZ to linear sRGB (D65 white point)
XYZ_TO_SRGB_MATRIX = np.array([
    [3.24096994, -1.53738318, -0.49861076],
    [-0.96924364, 1.8759675, 0.04155506],
    [0.05563008, -0.20397706, 1.05697151],
])


def color_matching_functions(wavelengths: Sequence[float]) -> np.ndarray:
    """Sample the CIE 1931 matching functions at the given wavelengths.

    Args:
        wavelengths: Wavelengths in meters.

    Returns:
        Array of shape (N, 3) holding (x_bar, y_bar, z_bar). Wavelengths
        outside 380-780 nm get zero response.
    """
    nm = np.asarray(wavelengths, dtype=np.float64) * 1e9
    return np.stack(
        [
            np.interp(nm, CIE_1931_5NM_WAVELENGTHS, CIE_1931_5NM_VALUES[:, c], left=0.0, right=0.0)
            for c in range(3)
        ],
        axis=-1,
    )


def check_visible_response(wavelengths: Sequence[float]) -> float:
    """Return the summed y_bar response of a wavelength list.

    Raises:
        ValueError: If no wavelength falls inside the visible range.
    """
    y_total = float(color_matching_functions(wavelengths)[:, 1].sum())
    if y_total <= 0.0:
        raise ValueError("No wavelength falls inside the visible range (380-780 nm)")
    return y_total


def spectral_to_xyz(spectra: np.ndarray, wavelengths: Sequence[float]) -> np.ndarray:
    """Integrate spectra of shape (..., N) to CIE XYZ of shape (..., 3).

    Raises:
        ValueError: If the last axis does not match the wavelength count, or
            no wavelength falls inside the visible range.
    """
    spectra = np.asarray(spectra, dtype=np.float64)
    cmf = color_matching_functions(wavelengths)
    if spectra.shape[-1] != cmf.shape[0]:
        raise ValueError(
            f"Spectra have {spectra.shape[-1]} samples but {cmf.shape[0]} wavelengths were given"
        )
    return spectra @ cmf / check_visible_response(wavelengths)


def xyz_to_linear_srgb(xyz: np.ndarray) -> np.ndarray:
    """Map XYZ of shape (..., 3) to linear sRGB, without clamping."""
    return np.asarray(xyz, dtype=np.float64) @ XYZ_TO_SRGB_MATRIX.T


def spectral_image_to_rgb(spectral_image: np.ndarray, wavelengths: Sequence[float]) -> np.ndarray:
    """Convert an (H, W, N) spectral image to (H, W, 3) linear sRGB.

    Negative components (out-of-gamut colors) are clipped to zero.
    """
    rgb = xyz_to_linear_srgb(spectral_to_xyz(spectral_image, wavelengths))
    return np.maximum(rgb, 0.0).astype(np.float32)
