"""Tests for camera configuration and ray generation.

Tests cover:
- Configuration validation and atomic reconfiguration
- Orthonormal camera basis, roll and sensor geometry
- Pinhole and focal-plane ray origins
- Pixel centres and out-of-range pixels
"""

import math

import numpy as np
import pytest


def _config(**overrides):
    from lumen.camera.camera import CameraConfig

    return CameraConfig(**overrides)


class TestCameraValidation:
    """Configurations that must be rejected."""

    @pytest.mark.parametrize("resolution", [(0, 10), (10, 0), (-1, 5)])
    def test_non_positive_resolution(self, resolution):
        from lumen.camera.camera import Camera, CameraConfigurationError

        with pytest.raises(CameraConfigurationError):
            Camera(_config(resolution=resolution))

    def test_oversized_resolution(self):
        from lumen.camera.camera import Camera, CameraConfigurationError
        from lumen.config import MAX_IMAGE_WIDTH

        with pytest.raises(CameraConfigurationError):
            Camera(_config(resolution=(MAX_IMAGE_WIDTH + 1, 10)))

    @pytest.mark.parametrize("angle", [0.0, math.pi, -0.5, 4.0])
    def test_field_of_view_out_of_range(self, angle):
        from lumen.camera.camera import Camera, CameraConfigurationError, Horizontal, Vertical

        with pytest.raises(CameraConfigurationError):
            Camera(_config(fov=Horizontal(angle)))
        with pytest.raises(CameraConfigurationError):
            Camera(_config(fov=Vertical(angle)))

    def test_negative_focal_settings(self):
        from lumen.camera.camera import Camera, CameraConfigurationError, FocalPlane

        with pytest.raises(CameraConfigurationError):
            Camera(_config(focus_mode=FocalPlane(focal_distance=-1.0, aperture=0.1)))
        with pytest.raises(CameraConfigurationError):
            Camera(_config(focus_mode=FocalPlane(focal_distance=1.0, aperture=-0.1)))

    def test_zero_focal_distance(self):
        from lumen.camera.camera import Camera, CameraConfigurationError, FocalPlane

        with pytest.raises(CameraConfigurationError):
            Camera(_config(resolution=(4, 3), focus_mode=FocalPlane(focal_distance=0.0, aperture=0.0)))

    def test_zero_facing(self):
        from lumen.camera.camera import Camera, CameraConfigurationError

        with pytest.raises(CameraConfigurationError):
            Camera(_config(direction=(0.0, 0.0, 0.0)))

    def test_configuration_error_is_value_error(self):
        from lumen.camera.camera import CameraConfigurationError

        assert issubclass(CameraConfigurationError, ValueError)

    def test_rejected_configure_leaves_camera_unchanged(self):
        from lumen.camera.camera import Camera, CameraConfigurationError

        camera = Camera(_config(resolution=(64, 48)))
        before_config = camera.config
        before_state = camera.state

        with pytest.raises(CameraConfigurationError):
            camera.configure(_config(resolution=(0, 48)))

        assert camera.config is before_config
        assert camera.state is before_state


class TestCameraState:
    """Derived basis and sensor geometry."""

    @pytest.mark.parametrize(
        "direction,rotation",
        [((0.0, 0.0, 1.0), 0.0), ((1.0, -0.5, 2.0), 0.0), ((0.0, -10.0, 50.0), 0.7)],
    )
    def test_basis_is_orthonormal(self, direction, rotation):
        from lumen.camera.camera import derive_camera_state

        state = derive_camera_state(_config(direction=direction, rotation=rotation))
        u, v, w = (np.array(x) for x in (state.u, state.v, state.w))
        for axis in (u, v, w):
            assert np.linalg.norm(axis) == pytest.approx(1.0, abs=1e-9)
        assert abs(np.dot(u, v)) < 1e-9
        assert abs(np.dot(u, w)) < 1e-9
        assert abs(np.dot(v, w)) < 1e-9
        np.testing.assert_allclose(w, np.array(direction) / np.linalg.norm(direction), atol=1e-12)

    def test_default_basis(self):
        from lumen.camera.camera import derive_camera_state

        state = derive_camera_state(_config())
        np.testing.assert_allclose(state.w, (0.0, 0.0, 1.0), atol=1e-12)
        np.testing.assert_allclose(state.u, (-1.0, 0.0, 0.0), atol=1e-12)
        np.testing.assert_allclose(state.v, (0.0, 1.0, 0.0), atol=1e-12)

    def test_rotation_rolls_u_and_v(self):
        from lumen.camera.camera import derive_camera_state

        state = derive_camera_state(_config(rotation=math.pi / 2.0))
        np.testing.assert_allclose(state.u, (0.0, -1.0, 0.0), atol=1e-12)
        np.testing.assert_allclose(state.v, (-1.0, 0.0, 0.0), atol=1e-12)

    @pytest.mark.parametrize(
        "direction,u,v",
        [
            ((0.0, -3.0, 0.0), (-1.0, 0.0, 0.0), (0.0, 0.0, 1.0)),
            ((0.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0)),
        ],
    )
    def test_vertical_facing_uses_fallback_axis(self, direction, u, v):
        from lumen.camera.camera import derive_camera_state

        state = derive_camera_state(_config(direction=direction))
        np.testing.assert_allclose(state.w, np.array(direction) / np.linalg.norm(direction), atol=1e-12)
        np.testing.assert_allclose(state.u, u, atol=1e-12)
        np.testing.assert_allclose(state.v, v, atol=1e-12)

    def test_top_down_camera_casts_downward_rays(self):
        from lumen.camera.camera import Camera

        camera = Camera(_config(position=(0.0, 5.0, 0.0), direction=(0.0, -1.0, 0.0), resolution=(9, 9)))
        _, centre = camera.cast_ray(4, 4, 550e-9)
        np.testing.assert_allclose(centre, (0.0, -1.0, 0.0), atol=1e-5)
        assert np.all(np.isfinite(camera.cast_rays(550e-9)[1]))

    def test_pinhole_sensor(self):
        from lumen.camera.camera import Horizontal, derive_camera_state

        state = derive_camera_state(_config(resolution=(200, 100), fov=Horizontal(math.pi / 2.0)))
        assert state.sensor_height == pytest.approx(1.0)
        assert state.sensor_width == pytest.approx(2.0)
        # d = sensor_width / (2 tan(fov/2))
        assert state.distance_to_plane == pytest.approx(1.0)
        assert state.pixel_width == pytest.approx(0.01)
        assert state.pixel_height == pytest.approx(0.01)
        assert state.aperture == 0.0

    def test_focal_plane_sensor(self):
        from lumen.camera.camera import FocalPlane, Vertical, derive_camera_state

        state = derive_camera_state(
            _config(
                resolution=(300, 100),
                fov=Vertical(math.pi / 2.0),
                focus_mode=FocalPlane(focal_distance=4.0, aperture=0.2),
            )
        )
        assert state.distance_to_plane == pytest.approx(4.0)
        assert state.sensor_height == pytest.approx(8.0)
        assert state.sensor_width == pytest.approx(24.0)
        assert state.aperture == pytest.approx(0.2)

    def test_camera_info(self):
        from lumen.camera.camera import Camera

        info = Camera(_config(resolution=(64, 48))).get_camera_info()
        assert info["resolution"] == (64, 48)
        assert info["aperture"] == 0.0


class TestRayGeneration:
    """Rays cast through the device."""

    def test_pinhole_origin_is_camera_position(self):
        from lumen.camera.camera import Camera

        camera = Camera(_config(position=(1.5, 2.0, -3.0), direction=(0.2, -0.1, 1.0), resolution=(16, 12)))
        origins, directions = camera.cast_rays(550e-9)

        np.testing.assert_array_equal(origins, np.broadcast_to(np.float32([1.5, 2.0, -3.0]), origins.shape))
        np.testing.assert_allclose(np.linalg.norm(directions, axis=2), 1.0, atol=1e-5)

    def test_aperture_origins_stay_within_radius(self):
        from lumen.camera.camera import Camera, FocalPlane

        aperture = 0.5
        position = np.array([0.0, 1.0, -2.0])
        direction = np.array([0.3, 0.0, 1.0])
        camera = Camera(
            _config(
                position=tuple(position),
                direction=tuple(direction),
                resolution=(24, 16),
                focus_mode=FocalPlane(focal_distance=3.0, aperture=aperture),
            )
        )
        origins, _ = camera.cast_rays(550e-9, seed=4)

        axis = direction / np.linalg.norm(direction)
        offsets = origins.reshape(-1, 3).astype(np.float64) - position
        radial = offsets - np.outer(offsets @ axis, axis)
        distances = np.linalg.norm(radial, axis=1)
        assert np.all(distances <= aperture / 2.0 + 1e-5)
        assert distances.max() > 0.0

    def test_centre_pixel_looks_along_facing_axis(self):
        from lumen.camera.camera import Camera

        direction = np.array([1.0, -0.5, 2.0])
        camera = Camera(_config(direction=tuple(direction), resolution=(11, 7)))
        result = camera.cast_ray(5, 3, 550e-9)

        assert result is not None
        _, ray_direction = result
        np.testing.assert_allclose(ray_direction, direction / np.linalg.norm(direction), atol=1e-5)

    def test_top_left_pixel_is_up_and_to_the_right_of_u(self):
        from lumen.camera.camera import Camera

        camera = Camera(_config(resolution=(10, 10)))
        _, ray_direction = camera.cast_ray(0, 0, 550e-9)
        # u = -x for the default camera, so the left edge looks towards +x
        assert ray_direction[0] > 0.0
        assert ray_direction[1] > 0.0

    @pytest.mark.parametrize("pixel", [(-1, 0), (0, -1), (10, 0), (0, 8)])
    def test_out_of_range_pixel(self, pixel):
        from lumen.camera.camera import Camera

        camera = Camera(_config(resolution=(10, 8)))
        assert camera.cast_ray(*pixel, 550e-9) is None

    def test_ray_matches_state_geometry(self):
        from lumen.camera.camera import Camera

        camera = Camera(_config(position=(0.0, 0.0, 0.0), resolution=(4, 4)))
        state = camera.state
        _, ray_direction = camera.cast_ray(2, 1, 550e-9)

        center = (
            np.array(state.first_pixel)
            + 2 * state.pixel_width * np.array(state.u)
            - 1 * state.pixel_height * np.array(state.v)
        )
        np.testing.assert_allclose(ray_direction, center / np.linalg.norm(center), atol=1e-5)
