"""Spectral path tracing integrator.

Each pixel sample picks one wavelength uniformly from the render's wavelength
list, casts a camera ray carrying it and propagates the ray through the
scene. At every hit the material contributes its emission e and passes on a
fraction t of what arrives from the next bounce:

    L = e + t * L_next

Paths end when they escape (adding the scene background), hit a fully
absorptive surface (t <= 0) or are extinguished by the extinction policy:

    Fix(max_depth)   stop once depth > max_depth
    HalfLife(h)      continue with probability p = exp(-ln 2 / h) per bounce

Propagation runs as a loop with a running throughput, so no device recursion
is needed; the sum it builds is exactly e0 + t0*(e1 + t1*(e2 + ...)).

Each sample adds power / samples_per_pixel to the pixel's bucket for the
chosen wavelength. The spectral image is converted to linear sRGB at the end.
render_geometry() skips transport and shows each hit object's own response.

Example:
    >>> from lumen.config import init_backend
    >>> init_backend("cpu")
    >>> from lumen.camera.camera import Camera, CameraConfig
    >>> from lumen.core.integrator import HalfLife, PathTracer
    >>> from lumen.scene.demo import create_demo_scene
    >>>
    >>> scene, camera_config = create_demo_scene()
    >>> tracer = PathTracer(samples_per_pixel=32, extinction=HalfLife(3.0))
    >>> rgb = tracer.render(scene, Camera(camera_config), seed=1)
"""

import logging
import math
import random
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

import numpy as np
import taichi as ti
import taichi.math as tm

from lumen.camera.camera import Camera, cast_ray
from lumen.config import (
    DEFAULT_HALF_LIFE,
    DEFAULT_MAX_DEPTH,
    DEFAULT_SAMPLES_PER_PIXEL,
    DEFAULT_WAVELENGTHS,
    MAX_WAVELENGTHS,
)
from lumen.core.color import check_visible_response, spectral_image_to_rgb
from lumen.core.ray import Ray, face_forward, make_ray, offset_ray_origin, sample_cosine_hemisphere, vec3
from lumen.core.sampler import next_float, seed_streams, stream_index
from lumen.materials.properties import emitted_power, transmitted_fraction
from lumen.scene.intersection import background_power, nearest_hit, object_material_ids
from lumen.scene.manager import Scene

logger = logging.getLogger(__name__)

# Called after every sample pass with (completed_passes, total_passes)
ProgressCallback = Callable[[int, int], None]

# =============================================================================
# Extinction Policies
# =============================================================================


class ExtinctionKind(IntEnum):
    FIX = 0
    HALF_LIFE = 1


@dataclass(frozen=True)
class Fix:
    """Terminate paths deterministically once depth exceeds max_depth."""

    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError(f"max_depth cannot be negative, got {self.max_depth}")


@dataclass(frozen=True)
class HalfLife:
    """Terminate paths stochastically; half of all paths survive half_life bounces."""

    half_life: float = DEFAULT_HALF_LIFE

    def __post_init__(self):
        if not self.half_life > 0.0:
            raise ValueError(f"half_life must be positive, got {self.half_life}")

    @property
    def propagation_probability(self) -> float:
        return math.exp(-math.log(2.0) / self.half_life)


ExtinctionPolicy = Union[Fix, HalfLife]


@ti.dataclass
class ExtinctionParams:
    """Device form of an extinction policy."""

    kind: ti.i32
    max_depth: ti.i32
    propagation_probability: ti.f32


@ti.func
def is_extinct(policy: ExtinctionParams, depth: ti.i32, stream: ti.i32) -> ti.i32:
    """Apply the extinction test to a path at the given depth."""
    extinct = 0
    if policy.kind == int(ExtinctionKind.FIX):
        if depth > policy.max_depth:
            extinct = 1
    else:
        q = next_float(stream)
        if policy.propagation_probability < q:
            extinct = 1
    return extinct


# =============================================================================
# Light Transport
# =============================================================================


@ti.func
def propagate_ray(ray: Ray, depth: ti.i32, stream: ti.i32, policy: ExtinctionParams) -> ti.f32:
    """Estimate the spectral power arriving along a ray.

    Args:
        ray: The ray to follow; its wavelength selects every spectral lookup.
        depth: Bounce depth of the ray (0 for camera rays).
        stream: Random stream for extinction and direction sampling.
        policy: Extinction policy.

    Returns:
        The power estimate at the ray's wavelength.
    """
    power = 0.0
    throughput = 1.0
    current = ray
    current_depth = depth
    active = 1

    while active == 1:
        if is_extinct(policy, current_depth, stream) == 1:
            active = 0
        else:
            record = nearest_hit(current)
            if record.hit == 0:
                power += throughput * background_power(current.wavelength)
                active = 0
            else:
                material_id = object_material_ids[record.object_id]
                power += throughput * emitted_power(material_id, current.wavelength)
                transmitted = transmitted_fraction(material_id, current.wavelength)
                if transmitted <= 0.0:
                    active = 0
                else:
                    throughput *= transmitted
                    # Orient against the incoming ray, then scatter back into that side
                    normal = face_forward(record.normal, current.direction)
                    direction = sample_cosine_hemisphere(normal, stream)
                    current = make_ray(offset_ray_origin(record.point, normal), direction, current.wavelength)
                    current_depth += 1

    return power


@ti.kernel
def _render_pass(
    wavelengths: ti.types.ndarray(dtype=ti.f32, ndim=1),
    buckets: ti.types.ndarray(dtype=ti.f32, ndim=3),
    weight: ti.f32,
    policy_kind: ti.i32,
    max_depth: ti.i32,
    propagation_probability: ti.f32,
):
    for i, j in ti.ndrange(buckets.shape[0], buckets.shape[1]):
        policy = ExtinctionParams(kind=policy_kind, max_depth=max_depth, propagation_probability=propagation_probability)
        num_wavelengths = wavelengths.shape[0]
        stream = stream_index(i, j)
        k = ti.min(ti.cast(next_float(stream) * num_wavelengths, ti.i32), num_wavelengths - 1)
        valid, ray = cast_ray(i, j, wavelengths[k], stream)
        if valid == 1:
            power = propagate_ray(ray, 0, stream, policy)
            # Discard non-finite samples
            if tm.isnan(power) or tm.isinf(power):
                power = 0.0
            buckets[i, j, k] += power * weight


@ti.kernel
def _geometry_pass(
    wavelengths: ti.types.ndarray(dtype=ti.f32, ndim=1),
    image: ti.types.ndarray(dtype=ti.f32, ndim=3),
):
    # image is (height, width, n)
    for i, j in ti.ndrange(image.shape[1], image.shape[0]):
        valid, ray = cast_ray(i, j, wavelengths[0], stream_index(i, j))
        if valid == 1:
            record = nearest_hit(ray)
            for k in range(wavelengths.shape[0]):
                value = 0.0
                if record.hit == 0:
                    value = background_power(wavelengths[k])
                else:
                    material_id = object_material_ids[record.object_id]
                    value = emitted_power(material_id, wavelengths[k]) + transmitted_fraction(
                        material_id, wavelengths[k]
                    )
                image[j, i, k] = value


@ti.kernel
def _propagate_kernel(
    query: ti.types.ndarray(dtype=ti.f32, ndim=1),
    depth: ti.i32,
    policy_kind: ti.i32,
    max_depth: ti.i32,
    propagation_probability: ti.f32,
    result: ti.types.ndarray(dtype=ti.f32, ndim=1),
):
    for n in range(result.shape[0]):
        policy = ExtinctionParams(kind=policy_kind, max_depth=max_depth, propagation_probability=propagation_probability)
        ray = make_ray(
            vec3(query[0], query[1], query[2]),
            vec3(query[3], query[4], query[5]),
            query[6],
        )
        result[n] = propagate_ray(ray, depth, stream_index(n, 0), policy)


# =============================================================================
# Path Tracer
# =============================================================================


def _validate_wavelengths(wavelengths: Sequence[float]) -> np.ndarray:
    values = np.asarray(wavelengths, dtype=np.float32)
    if values.ndim != 1 or values.size == 0:
        raise ValueError("At least one wavelength is required")
    if values.size > MAX_WAVELENGTHS:
        raise ValueError(f"At most {MAX_WAVELENGTHS} wavelengths are supported, got {values.size}")
    if np.any(values <= 0.0):
        raise ValueError(f"Wavelengths must be positive, got {values.tolist()}")
    return values


class PathTracer:
    """Monte Carlo spectral path tracer.

    Args:
        samples_per_pixel: Samples taken per pixel (>= 1).
        extinction: Path extinction policy. Defaults to Fix(DEFAULT_MAX_DEPTH).

    Raises:
        ValueError: If samples_per_pixel < 1 or the policy is unknown.
    """

    def __init__(
        self,
        samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL,
        extinction: ExtinctionPolicy | None = None,
    ) -> None:
        if samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be at least 1, got {samples_per_pixel}")
        if extinction is None:
            extinction = Fix()

        self.samples_per_pixel = samples_per_pixel
        self.extinction = extinction

        # (kind, max_depth, propagation_probability), computed once
        if isinstance(extinction, Fix):
            self._policy = (int(ExtinctionKind.FIX), extinction.max_depth, 1.0)
        elif isinstance(extinction, HalfLife):
            self._policy = (int(ExtinctionKind.HALF_LIFE), 0, extinction.propagation_probability)
        else:
            raise ValueError(f"Unknown extinction policy {extinction!r}")

    @property
    def propagation_probability(self) -> float:
        """Per-bounce survival probability (1.0 for Fix)."""
        return self._policy[2]

    def render_spectral(
        self,
        scene: Scene,
        camera: Camera,
        wavelengths: Sequence[float] = DEFAULT_WAVELENGTHS,
        *,
        seed: int | None = None,
        callback: ProgressCallback | None = None,
    ) -> np.ndarray:
        """Render per-wavelength buckets.

        Bucket k of a pixel holds the sum of power / samples_per_pixel over
        the samples that drew wavelength k, so its expected value is the
        pixel's spectral power at wavelength k divided by the number of
        wavelengths.

        Args:
            scene: The scene to render; uploaded before the first pass.
            camera: The camera to render through.
            wavelengths: Sample wavelengths in meters.
            seed: Seed for the per-pixel streams. Random when None; a fixed
                seed makes the result reproducible.
            callback: Called after each sample pass.

        Returns:
            Array of shape (height, width, len(wavelengths)); row 0 is the
            top of the image.

        Raises:
            ValueError: If the wavelength list is empty, too long or holds
                non-positive values.
        """
        wavelength_values = _validate_wavelengths(wavelengths)
        width, height = camera.resolution
        if seed is None:
            seed = random.getrandbits(32)

        scene.upload()
        camera.activate()
        seed_streams(width, height, seed)

        device_wavelengths = ti.ndarray(dtype=ti.f32, shape=wavelength_values.size)
        device_wavelengths.from_numpy(wavelength_values)
        buckets = ti.ndarray(dtype=ti.f32, shape=(width, height, wavelength_values.size))
        buckets.fill(0.0)

        logger.info(
            "Rendering %dx%d, %d spp, %d wavelengths, extinction=%s",
            width,
            height,
            self.samples_per_pixel,
            wavelength_values.size,
            self.extinction,
        )
        start = time.perf_counter()
        weight = 1.0 / self.samples_per_pixel

        for sample in range(self.samples_per_pixel):
            _render_pass(device_wavelengths, buckets, weight, *self._policy)
            logger.debug("Pass %d/%d done", sample + 1, self.samples_per_pixel)
            if callback is not None:
                callback(sample + 1, self.samples_per_pixel)

        ti.sync()
        logger.info("Render finished in %.2fs", time.perf_counter() - start)

        # (width, height, n) -> (height, width, n)
        return np.transpose(buckets.to_numpy(), (1, 0, 2))

    def render(
        self,
        scene: Scene,
        camera: Camera,
        wavelengths: Sequence[float] = DEFAULT_WAVELENGTHS,
        *,
        seed: int | None = None,
        callback: ProgressCallback | None = None,
    ) -> np.ndarray:
        """Render a linear sRGB image.

        Same arguments as render_spectral.

        Returns:
            float32 array of shape (height, width, 3), linear sRGB, not
            clamped above.
        """
        # Fail before any pass runs when the result could not be shown
        check_visible_response(_validate_wavelengths(wavelengths))
        buckets = self.render_spectral(scene, camera, wavelengths, seed=seed, callback=callback)
        # Each bucket saw about 1/N of the samples
        spectra = buckets * buckets.shape[-1]
        return spectral_image_to_rgb(spectra, wavelengths)

    def render_geometry(
        self,
        scene: Scene,
        camera: Camera,
        wavelengths: Sequence[float] = DEFAULT_WAVELENGTHS,
        *,
        seed: int = 0,
    ) -> np.ndarray:
        """Render the scene layout without light transport.

        One camera ray per pixel. A hit writes the object's emission plus
        its transmitted fraction at each wavelength, a miss writes the scene
        background. Useful for checking framing and placement.

        Args:
            scene: The scene to render.
            camera: The camera to render through.
            wavelengths: Sample wavelengths in meters.
            seed: Seed for aperture sampling in focal-plane mode.

        Returns:
            float32 array of shape (height, width, len(wavelengths)); row 0 is
            the top of the image.

        Raises:
            ValueError: If the wavelength list is empty, too long or holds
                non-positive values.
        """
        wavelength_values = _validate_wavelengths(wavelengths)
        width, height = camera.resolution

        scene.upload()
        camera.activate()
        seed_streams(width, height, seed)

        image = np.zeros((height, width, wavelength_values.size), dtype=np.float32)
        _geometry_pass(wavelength_values, image)
        logger.debug("Geometry pass %dx%d, %d wavelengths", width, height, wavelength_values.size)
        return image

    def propagate(
        self,
        scene: Scene,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        wavelength: float,
        *,
        depth: int = 0,
        samples: int = 1,
        seed: int = 0,
    ) -> np.ndarray:
        """Run propagate_ray on the device for one ray.

        Each sample uses its own stream, seeded from seed.

        Returns:
            float32 array with one power estimate per sample.

        Raises:
            ValueError: If samples exceeds MAX_IMAGE_WIDTH.
        """
        scene.upload()
        seed_streams(samples, 1, seed)
        query = np.array([*origin, *direction, wavelength], dtype=np.float32)
        result = np.zeros(samples, dtype=np.float32)
        _propagate_kernel(query, depth, *self._policy, result)
        return result
