"""Tests for configuration constants, backend selection, logging and the demo scene."""

import logging

import pytest


class TestConfig:
    """Tests for lumen.config."""

    def test_default_wavelengths_span_visible_range(self):
        from lumen.config import DEFAULT_WAVELENGTHS, MAX_WAVELENGTHS

        assert len(DEFAULT_WAVELENGTHS) == 16
        assert len(DEFAULT_WAVELENGTHS) <= MAX_WAVELENGTHS
        assert DEFAULT_WAVELENGTHS[0] == pytest.approx(400e-9)
        assert DEFAULT_WAVELENGTHS[-1] == pytest.approx(700e-9)

    def test_unknown_backend_rejected(self):
        from lumen.config import init_backend

        with pytest.raises(ValueError):
            init_backend("abacus")

    def test_selected_backend_reports_running_arch(self):
        from lumen.config import selected_backend

        # The session fixture initializes on the cpu
        assert selected_backend() == "cpu"


class TestLogging:
    """Tests for setup_logging."""

    def test_setup_logging_sets_level_once(self):
        from lumen.logging_config import setup_logging

        name = "lumen.test_logging"
        logger = setup_logging("debug", name=name)
        setup_logging("warning", name=name)

        assert logger is logging.getLogger(name)
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        logger.handlers.clear()


class TestDemoScene:
    """Tests for create_demo_scene."""

    def test_layout(self):
        from lumen.geometry.shapes import PlaneShape, SphereShape
        from lumen.scene.demo import create_demo_scene

        scene, _ = create_demo_scene()
        kinds = [type(obj.shape) for obj in scene.objects]
        assert kinds == [SphereShape, SphereShape, SphereShape, PlaneShape, SphereShape]
        assert scene.background is not None
        assert [obj.material.is_emissive for obj in scene.objects] == [False, False, False, False, True]

    def test_sphere_colours_peak_where_requested(self):
        from lumen.scene.demo import DemoSceneParams, create_demo_scene

        params = DemoSceneParams()
        scene, _ = create_demo_scene(params)
        for obj, peak in zip(scene.objects[:3], params.peak_wavelengths):
            absorption = obj.material.absorption
            assert absorption.interpolate_at(peak) > absorption.interpolate_at(peak + 100e-9)
            assert absorption.interpolate_at(peak) > absorption.interpolate_at(peak - 60e-9)

    def test_camera_config_is_valid(self):
        from lumen.camera.camera import Camera
        from lumen.scene.demo import DemoSceneParams, create_demo_scene

        _, config = create_demo_scene(DemoSceneParams(resolution=(32, 24)))
        camera = Camera(config)
        assert camera.resolution == (32, 24)

    def test_centre_ray_hits_green_sphere(self):
        from lumen.camera.camera import Camera
        from lumen.scene.demo import DemoSceneParams, create_demo_scene

        scene, config = create_demo_scene(DemoSceneParams(resolution=(33, 25)))
        origin, direction = Camera(config).cast_ray(16, 12, 550e-9)
        hit = scene.nearest_hit(tuple(origin), tuple(direction))
        assert hit is not None
        assert hit.object is scene.objects[1]
