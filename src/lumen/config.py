"""Process-wide configuration for the lumen renderer.

All values here are read-only constants. Environment variables are read once
at import time:

    LUMEN_ARCH       Preferred Taichi backend ("gpu", "cpu", "vulkan", ...).
    LUMEN_LOG_LEVEL  Default level used by setup_logging().

init_backend() must be called before importing any module that allocates
Taichi fields (sampler, spectrum, materials, scene, camera, integrator).
"""

import logging
import os

import taichi as ti

logger = logging.getLogger(__name__)

# =============================================================================
# Environment
# =============================================================================

ARCH = os.getenv("LUMEN_ARCH", "gpu")
LOG_LEVEL = os.getenv("LUMEN_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# =============================================================================
# Rendering Defaults
# =============================================================================

# Fixed up axis used to build every camera basis
WORLD_UP = (0.0, 1.0, 0.0)

DEFAULT_SAMPLES_PER_PIXEL = 16
DEFAULT_MAX_DEPTH = 5
DEFAULT_HALF_LIFE = 3.0

# 16 evenly spaced samples over the visible range, in meters
DEFAULT_WAVELENGTHS = tuple(400e-9 + 20e-9 * k for k in range(16))

# =============================================================================
# Capacities (preallocated to avoid kernel recompilation)
# =============================================================================

MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048
MAX_WAVELENGTHS = 64

# Ray offset epsilon to avoid self-intersection
RAY_EPSILON = 1e-4

_ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}


def selected_backend() -> str:
    """Name of the backend Taichi is currently running on ("cpu", "cuda", ...)."""
    arch = ti.lang.impl.current_cfg().arch
    if arch == ti.cpu:
        return "cpu"
    return arch.name


def init_backend(arch: str | None = None, debug: bool = False) -> str:
    """Initialize Taichi on the requested backend.

    Taichi itself falls back to the CPU when the backend is unusable, so the
    returned name is read back from Taichi rather than taken from the request.

    Args:
        arch: Backend name. Defaults to LUMEN_ARCH.
        debug: Enable Taichi's bounds checking.

    Returns:
        The name of the backend that was actually initialized.

    Raises:
        ValueError: If the backend name is unknown.
    """
    name = (arch or ARCH).lower()
    if name not in _ARCHES:
        raise ValueError(f"Unknown backend {name!r}, expected one of {sorted(_ARCHES)}")

    ti.init(arch=_ARCHES[name], debug=debug)
    selected = selected_backend()
    if name != "cpu" and selected == "cpu":
        logger.warning("Backend %s unavailable, running on cpu", name)

    logger.info("Taichi initialized on %s", selected)
    return selected
