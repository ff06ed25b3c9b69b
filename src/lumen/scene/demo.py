"""Demo scene: three coloured spheres on a ground plane under a spherical lamp.

Layout (world units, y up):
- Red, green and blue spheres of radius 10 centred at x = -30, 0, 30,
  resting on the ground at y = 0, z = 50
- Grey ground plane through the origin
- A large emissive sphere overhead with a flat emission spectrum
- A dim flat background so escaping rays are not pure black

Sphere colours come from Gaussian bumps in their absorption spectra: each
sphere carries on most of the power near its peak wavelength and little
elsewhere.

Example:
    >>> from lumen.config import init_backend
    >>> init_backend("cpu")
    >>> from lumen.camera.camera import Camera
    >>> from lumen.scene.demo import DemoSceneParams, create_demo_scene
    >>>
    >>> scene, camera_config = create_demo_scene(DemoSceneParams(resolution=(320, 240)))
    >>> camera = Camera(camera_config)
"""

import math
from dataclasses import dataclass

import numpy as np

from lumen.camera.camera import CameraConfig, Horizontal, PinHole
from lumen.core.spectrum import Spectrum
from lumen.materials.properties import MaterialProperties
from lumen.scene.manager import Scene

# Shared sampling grid for the demo spectra, 380-780 nm in 10 nm steps
DEMO_WAVELENGTHS = tuple(380e-9 + 10e-9 * k for k in range(41))


@dataclass
class DemoSceneParams:
    """Knobs for the demo scene.

    Attributes:
        light_power: Flat emission of the overhead lamp.
        background_power: Flat background seen by escaping rays.
        ground_transmittance: Fraction of power the ground carries on.
        peak_wavelengths: Absorption peaks of the red, green and blue spheres
            in meters.
        peak_width: Standard deviation of each absorption bump in meters.
        resolution: Camera resolution as (width, height).
    """

    light_power: float = 8.0
    background_power: float = 0.05
    ground_transmittance: float = 0.5
    peak_wavelengths: tuple[float, float, float] = (640e-9, 540e-9, 460e-9)
    peak_width: float = 35e-9
    resolution: tuple[int, int] = (800, 600)


def gaussian_absorption(peak: float, width: float, floor: float = 0.05, top: float = 0.9) -> Spectrum:
    """Absorption spectrum with a Gaussian bump over DEMO_WAVELENGTHS.

    Args:
        peak: Wavelength of maximum transmission in meters.
        width: Standard deviation of the bump in meters.
        floor: Transmission far from the peak.
        top: Transmission at the peak.
    """
    wavelengths = np.asarray(DEMO_WAVELENGTHS)
    bump = np.exp(-0.5 * ((wavelengths - peak) / width) ** 2)
    return Spectrum.from_samples(wavelengths, floor + (top - floor) * bump)


def create_demo_scene(params: DemoSceneParams | None = None) -> tuple[Scene, CameraConfig]:
    """Build the demo scene and a camera looking at the spheres.

    Args:
        params: Scene parameters. Defaults to DemoSceneParams().

    Returns:
        The scene and a CameraConfig with a 90 degree horizontal field of view
        placed at (0, 10, 0) and looking down towards the spheres.
    """
    if params is None:
        params = DemoSceneParams()

    scene = Scene(background=Spectrum.constant(DEMO_WAVELENGTHS, params.background_power))

    for x, peak in zip((-30.0, 0.0, 30.0), params.peak_wavelengths):
        scene.add_sphere(
            (x, 10.0, 50.0),
            10.0,
            MaterialProperties(absorption=gaussian_absorption(peak, params.peak_width)),
        )

    scene.add_plane(
        (0.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
        MaterialProperties(transmittance=params.ground_transmittance),
    )

    # The lamp absorbs everything, so paths end on it
    scene.add_sphere(
        (0.0, 100.0, 40.0),
        30.0,
        MaterialProperties(
            emission=Spectrum.constant(DEMO_WAVELENGTHS, params.light_power),
            transmittance=0.0,
        ),
    )

    camera_config = CameraConfig(
        position=(0.0, 10.0, 0.0),
        direction=(0.0, -10.0, 50.0),
        resolution=params.resolution,
        fov=Horizontal(math.radians(90.0)),
        focus_mode=PinHole(),
    )
    return scene, camera_config
