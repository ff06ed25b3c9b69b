"""Pytest configuration for lumen tests.

Taichi is initialized once per session on the CPU backend; every device
table is cleared around each test so tests stay independent.
"""

import pytest


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Repeated ti.init() calls tear down every field allocated so far, so this
    must only happen once.
    """
    from lumen.config import init_backend

    init_backend("cpu")
    yield


@pytest.fixture(autouse=True)
def clear_device_tables():
    """Clear scene, material and spectrum tables before and after each test."""
    # Imported here so the fields are allocated after ti.init
    from lumen.core.spectrum import clear_spectrum_pool
    from lumen.materials.properties import clear_materials
    from lumen.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_spectrum_pool()

    _clear_all()
    yield
    _clear_all()
