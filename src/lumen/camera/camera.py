"""Camera model with pinhole and focal-plane (thin lens) focus modes.

The camera builds a right-handed orthonormal basis (u, v, w) where w is the
normalized facing direction, u points right across the image and v points
up. Rays leave through pixel centers on a virtual sensor placed
distance_to_plane along w:

    first_pixel = origin + d*w - u*(sensor_w/2 - pixel_w/2) + v*(sensor_h/2 - pixel_h/2)
    center(i, j) = first_pixel + i*pixel_w*u - j*pixel_h*v

Pixel (0, 0) is the top-left corner. In PinHole mode every ray starts at the
camera position; in FocalPlane mode the origin is spread over an aperture
disc, which puts everything off the focal plane out of focus.

Configuration is validated in full before any state changes. The derived
state is then stored as one immutable CameraState and uploaded to the
device as a whole by activate().

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumen.camera.camera import Camera, CameraConfig, FocalPlane, Horizontal
    >>>
    >>> camera = Camera(CameraConfig(
    ...     position=(0.0, 1.0, -5.0),
    ...     direction=(0.0, 0.0, 1.0),
    ...     resolution=(320, 240),
    ...     fov=Horizontal(math.radians(60.0)),
    ...     focus_mode=FocalPlane(focal_distance=5.0, aperture=0.1),
    ... ))
    >>> origin, direction = camera.cast_ray(160, 120, 550e-9)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Union

import numpy as np
import taichi as ti

from lumen.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, WORLD_UP
from lumen.core.algebra import normalize_vector, rotate_vector
from lumen.core.ray import Ray, make_ray, sample_disk, vec3
from lumen.core.sampler import seed_single_stream, seed_streams, stream_index

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]

# Reference axis for cameras looking straight up or down
FALLBACK_UP = (0.0, 0.0, 1.0)
_PARALLEL_EPSILON = 1e-9


class CameraConfigurationError(ValueError):
    """Raised when a camera configuration is rejected."""


# =============================================================================
# Camera Configuration
# =============================================================================


@dataclass(frozen=True)
class Horizontal:
    """Field of view measured across the image width (radians)."""

    angle: float


@dataclass(frozen=True)
class Vertical:
    """Field of view measured across the image height (radians)."""

    angle: float


FieldOfView = Union[Horizontal, Vertical]


@dataclass(frozen=True)
class PinHole:
    """All rays start at the camera position; everything is in focus."""


@dataclass(frozen=True)
class FocalPlane:
    """Thin-lens focus.

    Attributes:
        focal_distance: Distance from the camera to the plane in focus (> 0).
        aperture: Diameter of the lens disc (>= 0).
    """

    focal_distance: float
    aperture: float


FocusMode = Union[PinHole, FocalPlane]


@dataclass
class CameraConfig:
    """Everything needed to configure a Camera.

    Attributes:
        position: Camera position in world space.
        direction: Facing direction (need not be unit length).
        resolution: Image size as (width, height) in pixels.
        rotation: Roll around the facing axis in radians.
        fov: Horizontal or Vertical field of view.
        focus_mode: PinHole or FocalPlane.
    """

    position: Vec3 = (0.0, 0.0, 0.0)
    direction: Vec3 = (0.0, 0.0, 1.0)
    resolution: tuple[int, int] = (800, 600)
    rotation: float = 0.0
    fov: FieldOfView = field(default_factory=lambda: Vertical(math.pi / 2.0))
    focus_mode: FocusMode = field(default_factory=PinHole)


@dataclass(frozen=True)
class CameraState:
    """Coordinate system and sensor geometry derived from a CameraConfig."""

    origin: Vec3
    u: Vec3
    v: Vec3
    w: Vec3
    width: int
    height: int
    distance_to_plane: float
    sensor_width: float
    sensor_height: float
    pixel_width: float
    pixel_height: float
    first_pixel: Vec3
    aperture: float


def _as_tuple(arr) -> Vec3:
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def _validate(config: CameraConfig) -> None:
    width, height = config.resolution
    if width <= 0 or height <= 0:
        raise CameraConfigurationError(
            f"Camera resolution must be positive in both axes, got {width}x{height}"
        )
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise CameraConfigurationError(
            f"Camera resolution ({width}x{height}) exceeds maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    if not isinstance(config.fov, (Horizontal, Vertical)):
        raise CameraConfigurationError(f"Unknown field of view {config.fov!r}")
    if not 0.0 < config.fov.angle < math.pi:
        raise CameraConfigurationError(
            f"Field of view angle must lie in (0, pi), got {config.fov.angle}"
        )
    focus = config.focus_mode
    if isinstance(focus, FocalPlane):
        if focus.focal_distance <= 0.0:
            # A zero distance collapses the sensor onto the lens
            raise CameraConfigurationError(f"Focal distance must be positive, got {focus.focal_distance}")
        if focus.aperture < 0.0:
            raise CameraConfigurationError(f"Aperture cannot be negative, got {focus.aperture}")
    elif not isinstance(focus, PinHole):
        raise CameraConfigurationError(f"Unknown focus mode {focus!r}")


def derive_camera_state(config: CameraConfig) -> CameraState:
    """Validate a configuration and compute the camera's derived state.

    Args:
        config: The configuration to derive from.

    Returns:
        The complete, consistent CameraState.

    Raises:
        CameraConfigurationError: If any parameter is out of range or the
            facing direction is zero. A facing parallel to WORLD_UP builds
            its basis from FALLBACK_UP instead.
    """
    _validate(config)

    origin = np.asarray(config.position, dtype=np.float64)
    try:
        w = normalize_vector(config.direction)
    except ValueError as exc:
        raise CameraConfigurationError(
            f"Cannot build a camera basis from direction {config.direction}: {exc}"
        ) from exc
    right = np.cross(w, WORLD_UP)
    if np.linalg.norm(right) < _PARALLEL_EPSILON:
        right = np.cross(w, FALLBACK_UP)
    u = normalize_vector(right)
    v = normalize_vector(np.cross(u, w))

    if config.rotation != 0.0:
        u = normalize_vector(rotate_vector(u, w, config.rotation))
        v = normalize_vector(rotate_vector(v, w, config.rotation))

    width, height = config.resolution
    aspect = width / height
    half_tan = math.tan(config.fov.angle / 2.0)
    focus = config.focus_mode

    if isinstance(focus, FocalPlane):
        distance = focus.focal_distance
        if isinstance(config.fov, Horizontal):
            sensor_width = 2.0 * distance * half_tan
            sensor_height = sensor_width / aspect
        else:
            sensor_height = 2.0 * distance * half_tan
            sensor_width = sensor_height * aspect
        aperture = focus.aperture
    else:
        sensor_height = 1.0
        sensor_width = aspect
        if isinstance(config.fov, Horizontal):
            distance = sensor_width / (2.0 * half_tan)
        else:
            distance = sensor_height / (2.0 * half_tan)
        aperture = 0.0

    pixel_width = sensor_width / width
    pixel_height = sensor_height / height
    first_pixel = (
        origin
        + distance * w
        - u * (sensor_width / 2.0 - pixel_width / 2.0)
        + v * (sensor_height / 2.0 - pixel_height / 2.0)
    )

    return CameraState(
        origin=_as_tuple(origin),
        u=_as_tuple(u),
        v=_as_tuple(v),
        w=_as_tuple(w),
        width=width,
        height=height,
        distance_to_plane=distance,
        sensor_width=sensor_width,
        sensor_height=sensor_height,
        pixel_width=pixel_width,
        pixel_height=pixel_height,
        first_pixel=_as_tuple(first_pixel),
        aperture=aperture,
    )


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Facing
_first_pixel = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_width = ti.field(dtype=ti.f32, shape=())
_pixel_height = ti.field(dtype=ti.f32, shape=())
_aperture = ti.field(dtype=ti.f32, shape=())
_resolution = ti.Vector.field(2, dtype=ti.i32, shape=())


def _upload_state(state: CameraState) -> None:
    _camera_origin[None] = list(state.origin)
    _camera_u[None] = list(state.u)
    _camera_v[None] = list(state.v)
    _camera_w[None] = list(state.w)
    _first_pixel[None] = list(state.first_pixel)
    _pixel_width[None] = state.pixel_width
    _pixel_height[None] = state.pixel_height
    _aperture[None] = state.aperture
    _resolution[None] = [state.width, state.height]


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def cast_ray(i: ti.i32, j: ti.i32, wavelength: ti.f32, stream: ti.i32):
    """Generate the camera ray through pixel (i, j).

    Uses the configuration most recently activated.

    Args:
        i: Pixel column, 0 at the left.
        j: Pixel row, 0 at the top.
        wavelength: Wavelength to attach to the ray.
        stream: Random stream used for aperture sampling.

    Returns:
        A tuple (valid, ray). valid is 0 for pixels outside the resolution,
        in which case the ray is meaningless.
    """
    valid = 0
    ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, 1.0), wavelength=wavelength)
    res = _resolution[None]

    if i >= 0 and j >= 0 and i < res[0] and j < res[1]:
        valid = 1
        u = _camera_u[None]
        v = _camera_v[None]
        origin = _camera_origin[None]
        if _aperture[None] > 0.0:
            offset = sample_disk(0.5 * _aperture[None], stream)
            origin += offset.x * u + offset.y * v

        pixel_center = (
            _first_pixel[None]
            + ti.cast(i, ti.f32) * _pixel_width[None] * u
            - ti.cast(j, ti.f32) * _pixel_height[None] * v
        )
        ray = make_ray(origin, pixel_center - origin, wavelength)

    return valid, ray


@ti.kernel
def _cast_single_kernel(i: ti.i32, j: ti.i32, wavelength: ti.f32, stream: ti.i32, out: ti.types.ndarray()):
    for _ in range(1):
        valid, ray = cast_ray(i, j, wavelength, stream)
        out[0] = ti.cast(valid, ti.f32)
        for c in ti.static(range(3)):
            out[1 + c] = ray.origin[c]
            out[4 + c] = ray.direction[c]


@ti.kernel
def _cast_all_kernel(wavelength: ti.f32, origins: ti.types.ndarray(), directions: ti.types.ndarray()):
    for i, j in ti.ndrange(origins.shape[1], origins.shape[0]):
        valid, ray = cast_ray(i, j, wavelength, stream_index(i, j))
        if valid == 1:
            for c in ti.static(range(3)):
                origins[j, i, c] = ray.origin[c]
                directions[j, i, c] = ray.direction[c]


class Camera:
    """A configured camera.

    Args:
        config: Initial configuration. Defaults to CameraConfig().

    Raises:
        CameraConfigurationError: If the configuration is rejected.
    """

    def __init__(self, config: CameraConfig | None = None) -> None:
        self._config: CameraConfig | None = None
        self._state: CameraState | None = None
        self.configure(config if config is not None else CameraConfig())

    def configure(self, config: CameraConfig) -> None:
        """Replace the whole configuration.

        Either every derived value is replaced or, when the configuration is
        rejected, nothing changes.

        Raises:
            CameraConfigurationError: If the configuration is rejected.
        """
        state = derive_camera_state(config)
        self._config = config
        self._state = state
        logger.debug(
            "Camera configured: %dx%d, distance_to_plane=%.4g, pixel=%.4gx%.4g, aperture=%.4g",
            state.width,
            state.height,
            state.distance_to_plane,
            state.pixel_width,
            state.pixel_height,
            state.aperture,
        )

    @property
    def config(self) -> CameraConfig:
        return self._config

    @property
    def state(self) -> CameraState:
        return self._state

    @property
    def resolution(self) -> tuple[int, int]:
        return self._state.width, self._state.height

    def activate(self) -> None:
        """Upload this camera's state so kernels use it."""
        _upload_state(self._state)

    def get_camera_info(self) -> dict:
        """Get the derived camera values as plain Python types."""
        state = self._state
        return {
            "origin": state.origin,
            "u": state.u,
            "v": state.v,
            "w": state.w,
            "resolution": (state.width, state.height),
            "distance_to_plane": state.distance_to_plane,
            "sensor_size": (state.sensor_width, state.sensor_height),
            "pixel_size": (state.pixel_width, state.pixel_height),
            "first_pixel": state.first_pixel,
            "aperture": state.aperture,
        }

    def cast_ray(
        self,
        i: int,
        j: int,
        wavelength: float,
        seed: int = 0,
    ) -> tuple[np.ndarray, np.ndarray] | None:
        """Cast one camera ray on the device and return it.

        Args:
            i: Pixel column.
            j: Pixel row.
            wavelength: Wavelength attached to the ray.
            seed: Seed for the aperture sample.

        Returns:
            (origin, direction) as float32 arrays, or None for pixels
            outside the resolution.
        """
        self.activate()
        seed_single_stream(0, seed)
        out = np.zeros(7, dtype=np.float32)
        _cast_single_kernel(i, j, wavelength, 0, out)
        if out[0] == 0.0:
            return None
        return out[1:4].copy(), out[4:7].copy()

    def cast_rays(self, wavelength: float, seed: int = 0) -> tuple[np.ndarray, np.ndarray]:
        """Cast one ray per pixel.

        Returns:
            (origins, directions), each of shape (height, width, 3).
        """
        self.activate()
        width, height = self.resolution
        seed_streams(width, height, seed)
        origins = np.zeros((height, width, 3), dtype=np.float32)
        directions = np.zeros((height, width, 3), dtype=np.float32)
        _cast_all_kernel(wavelength, origins, directions)
        return origins, directions
