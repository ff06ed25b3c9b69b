"""Unit tests for per-pixel random streams."""

import numpy as np
import pytest
import taichi as ti


def _draw(width, height, seed, draws=4):
    from lumen.core.sampler import next_float, seed_streams, stream_index

    values = ti.field(dtype=ti.f32, shape=(width, height, draws))
    seed_streams(width, height, seed)

    @ti.kernel
    def test_kernel():
        for i, j in ti.ndrange(width, height):
            for k in range(draws):
                values[i, j, k] = next_float(stream_index(i, j))

    test_kernel()
    return values.to_numpy()


class TestStreams:
    """Tests for seeding and drawing."""

    def test_values_in_unit_interval(self):
        values = _draw(32, 32, seed=1)
        assert values.min() >= 0.0
        assert values.max() < 1.0

    def test_same_seed_is_reproducible(self):
        np.testing.assert_array_equal(_draw(16, 8, seed=42), _draw(16, 8, seed=42))

    def test_different_seeds_differ(self):
        assert not np.array_equal(_draw(16, 8, seed=1), _draw(16, 8, seed=2))

    def test_neighbouring_streams_differ(self):
        values = _draw(8, 8, seed=5)
        first_draws = values[:, :, 0].ravel()
        assert len(np.unique(first_draws)) == first_draws.size

    def test_roughly_uniform(self):
        values = _draw(64, 64, seed=9)
        assert values.mean() == pytest.approx(0.5, abs=0.02)

    def test_oversized_image_rejected(self):
        from lumen.config import MAX_IMAGE_WIDTH
        from lumen.core.sampler import seed_streams

        with pytest.raises(ValueError):
            seed_streams(MAX_IMAGE_WIDTH + 1, 1, seed=0)

    def test_single_stream_index_checked(self):
        from lumen.core.sampler import MAX_STREAMS, seed_single_stream

        with pytest.raises(ValueError):
            seed_single_stream(MAX_STREAMS, seed=0)
