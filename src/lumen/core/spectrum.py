"""Spectral power distributions.

A Spectrum is a finite set of (wavelength, power) samples over a strictly
increasing wavelength grid, linearly interpolated in between. The host-side
class is what scenes are built from; at render time every spectrum is copied
into one shared device sample pool and addressed by (offset, count), where a
count of zero stands for "no spectrum".

Example:
    >>> s = Spectrum.from_samples([400e-9, 500e-9, 600e-9], [0.0, 1.0, 0.5])
    >>> s.interpolate_at(500e-9)
    1.0
    >>> s.interpolate_at(700e-9) is None
    True
"""

from collections.abc import Sequence

import numpy as np
import taichi as ti


class Spectrum:
    """Power sampled at discrete, strictly increasing wavelengths.

    The wavelength grid is fixed at construction; powers start at zero and
    may be updated by index.

    Args:
        wavelengths: Strictly increasing sample wavelengths (meters).

    Raises:
        ValueError: If the grid is empty, not one-dimensional, or not
            strictly increasing.
    """

    def __init__(self, wavelengths: Sequence[float]):
        grid = np.array(wavelengths, dtype=np.float64)
        if grid.ndim != 1 or grid.size == 0:
            raise ValueError("Spectrum needs a non-empty one-dimensional wavelength grid")
        if np.any(np.diff(grid) <= 0.0):
            raise ValueError(f"Spectrum wavelengths must be strictly increasing, got {grid.tolist()}")
        grid.setflags(write=False)
        self._wavelengths = grid
        self._powers = np.zeros_like(grid)

    @classmethod
    def from_samples(cls, wavelengths: Sequence[float], powers: Sequence[float]) -> "Spectrum":
        """Build a spectrum from parallel wavelength and power lists.

        Raises:
            ValueError: If the lists differ in length or the grid is invalid.
        """
        if len(wavelengths) != len(powers):
            raise ValueError(
                f"Got {len(wavelengths)} wavelengths but {len(powers)} powers"
            )
        spectrum = cls(wavelengths)
        spectrum._powers[:] = np.asarray(powers, dtype=np.float64)
        return spectrum

    @classmethod
    def constant(cls, wavelengths: Sequence[float], power: float) -> "Spectrum":
        """Build a spectrum with the same power at every sample."""
        spectrum = cls(wavelengths)
        spectrum._powers[:] = power
        return spectrum

    @property
    def wavelengths(self) -> np.ndarray:
        """Read-only view of the wavelength grid."""
        return self._wavelengths

    @property
    def powers(self) -> np.ndarray:
        """Copy of the current powers."""
        return self._powers.copy()

    def __len__(self) -> int:
        return self._wavelengths.size

    def __getitem__(self, index: int) -> float:
        return float(self._powers[index])

    def __setitem__(self, index: int, power: float) -> None:
        self._powers[index] = power

    def __repr__(self) -> str:
        return (
            f"Spectrum({len(self)} samples, "
            f"{self._wavelengths[0]:.4g}..{self._wavelengths[-1]:.4g})"
        )

    def interpolate_at(self, wavelength: float) -> float | None:
        """Linearly interpolate the power at a wavelength.

        Args:
            wavelength: Query wavelength (meters).

        Returns:
            The interpolated power, the stored power for an exact grid match,
            or None when the wavelength lies outside [first, last].
            Single-sample spectra only match their exact wavelength.
        """
        grid = self._wavelengths
        if wavelength < grid[0] or wavelength > grid[-1]:
            return None
        if grid.size == 1:
            return float(self._powers[0]) if wavelength == grid[0] else None

        for k in range(1, grid.size):
            lo, hi = grid[k - 1], grid[k]
            if wavelength <= hi:
                p_lo, p_hi = self._powers[k - 1], self._powers[k]
                if wavelength == lo:
                    return float(p_lo)
                if wavelength == hi:
                    return float(p_hi)
                return float(p_lo + (wavelength - lo) / (hi - lo) * (p_hi - p_lo))
        return None


# =============================================================================
# Device Sample Pool
# =============================================================================

MAX_SPECTRUM_SAMPLES = 65536

spectrum_wavelengths = ti.field(dtype=ti.f32, shape=MAX_SPECTRUM_SAMPLES)
spectrum_powers = ti.field(dtype=ti.f32, shape=MAX_SPECTRUM_SAMPLES)
num_spectrum_samples = ti.field(dtype=ti.i32, shape=())


def clear_spectrum_pool() -> None:
    """Forget every uploaded spectrum."""
    num_spectrum_samples[None] = 0


def upload_spectrum(spectrum: Spectrum | None) -> tuple[int, int]:
    """Copy a spectrum into the device sample pool.

    Args:
        spectrum: The spectrum to upload, or None.

    Returns:
        (offset, count) addressing the samples; (0, 0) for None.

    Raises:
        RuntimeError: If the pool capacity is exceeded.
    """
    if spectrum is None:
        return 0, 0
    offset = num_spectrum_samples[None]
    count = len(spectrum)
    if offset + count > MAX_SPECTRUM_SAMPLES:
        raise RuntimeError(f"Maximum number of spectrum samples ({MAX_SPECTRUM_SAMPLES}) exceeded")
    for k in range(count):
        spectrum_wavelengths[offset + k] = spectrum.wavelengths[k]
        spectrum_powers[offset + k] = spectrum[k]
    num_spectrum_samples[None] = offset + count
    return offset, count


@ti.func
def interpolate_spectrum(offset: ti.i32, count: ti.i32, wavelength: ti.f32):
    """Kernel-side Spectrum.interpolate_at over a pooled spectrum.

    Args:
        offset: Index of the first sample in the pool.
        count: Number of samples; 0 means the spectrum is absent.
        wavelength: Query wavelength.

    Returns:
        A tuple (found, power). found is 0 for absent spectra and for
        wavelengths outside the sampled range.
    """
    found = 0
    power = 0.0

    if count == 1:
        if wavelength == spectrum_wavelengths[offset]:
            found = 1
            power = spectrum_powers[offset]
    elif count > 1:
        first = spectrum_wavelengths[offset]
        last = spectrum_wavelengths[offset + count - 1]
        if wavelength >= first and wavelength <= last:
            found = 1
            located = 0
            for k in range(1, count):
                if located == 0:
                    lo = spectrum_wavelengths[offset + k - 1]
                    hi = spectrum_wavelengths[offset + k]
                    if wavelength <= hi:
                        located = 1
                        p_lo = spectrum_powers[offset + k - 1]
                        p_hi = spectrum_powers[offset + k]
                        if wavelength == lo:
                            power = p_lo
                        elif wavelength == hi:
                            power = p_hi
                        else:
                            power = p_lo + (wavelength - lo) / (hi - lo) * (p_hi - p_lo)

    return found, power
