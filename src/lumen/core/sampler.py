"""Per-pixel pseudo-random streams.

Every pixel of the render target owns one 32-bit generator state. Sampling
functions never touch a global generator: they take the stream index as an
explicit argument and advance only that stream, so pixels rendered in
parallel never share state.

Streams are seeded from a hash of (stream index, seed) and advanced with a
linear congruential step. With a fixed seed the sequence of every stream is
reproducible regardless of how pixels are scheduled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumen.core.sampler import seed_streams, next_float, stream_index
    >>> seed_streams(64, 64, seed=7)
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     return next_float(stream_index(3, 5))
"""

import taichi as ti

from lumen.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH

MAX_STREAMS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

# Numerical Recipes LCG constants
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223

# 24 significant bits map exactly onto an f32 mantissa
_FLOAT_BITS = 24
_INV_FLOAT_RANGE = 1.0 / float(1 << _FLOAT_BITS)

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def _wang_hash(value: ti.u32) -> ti.u32:
    h = (value ^ ti.cast(61, ti.u32)) ^ (value >> ti.cast(16, ti.u32))
    h *= ti.cast(9, ti.u32)
    h = h ^ (h >> ti.cast(4, ti.u32))
    h *= ti.cast(0x27D4EB2D, ti.u32)
    h = h ^ (h >> ti.cast(15, ti.u32))
    return h


@ti.func
def stream_index(i: ti.i32, j: ti.i32) -> ti.i32:
    """Map pixel coordinates to the index of their private stream."""
    return j * MAX_IMAGE_WIDTH + i


@ti.func
def seed_stream(stream: ti.i32, seed: ti.u32):
    """Reset one stream from its index and a render seed."""
    mixed = _wang_hash(ti.cast(stream, ti.u32) ^ _wang_hash(seed))
    # Warm up so neighbouring streams decorrelate
    _rng_state[stream] = _wang_hash(mixed + ti.cast(LCG_INCREMENT, ti.u32))


@ti.func
def next_float(stream: ti.i32) -> ti.f32:
    """Advance a stream and return a uniform sample in [0, 1).

    Args:
        stream: Index of the stream to advance (see stream_index).

    Returns:
        A float in [0, 1) built from the top 24 bits of the new state.
    """
    state = _rng_state[stream] * ti.cast(LCG_MULTIPLIER, ti.u32) + ti.cast(LCG_INCREMENT, ti.u32)
    _rng_state[stream] = state
    return ti.cast(state >> ti.cast(32 - _FLOAT_BITS, ti.u32), ti.f32) * _INV_FLOAT_RANGE


@ti.kernel
def _seed_streams_kernel(width: ti.i32, height: ti.i32, seed: ti.u32):
    for i, j in ti.ndrange(width, height):
        seed_stream(stream_index(i, j), seed)


@ti.kernel
def _seed_single_stream_kernel(stream: ti.i32, seed: ti.u32):
    seed_stream(stream, seed)


def seed_streams(width: int, height: int, seed: int) -> None:
    """Seed the streams of every pixel in a width x height image.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        seed: Render seed; only the low 32 bits are used.

    Raises:
        ValueError: If the dimensions exceed the preallocated stream table.
    """
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    _seed_streams_kernel(width, height, seed & 0xFFFFFFFF)


def seed_single_stream(stream: int, seed: int) -> None:
    """Seed one stream by index (used by host-side inspection helpers)."""
    if not 0 <= stream < MAX_STREAMS:
        raise ValueError(f"Stream index {stream} out of range [0, {MAX_STREAMS})")
    _seed_single_stream_kernel(stream, seed & 0xFFFFFFFF)
