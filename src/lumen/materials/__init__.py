"""Spectral materials and their device table."""

from .properties import (
    MAX_MATERIALS,
    MaterialProperties,
    add_material,
    clear_materials,
    emitted_power,
    get_material_count,
    transmitted_fraction,
)

__all__ = [
    "MAX_MATERIALS",
    "MaterialProperties",
    "add_material",
    "clear_materials",
    "get_material_count",
    "emitted_power",
    "transmitted_fraction",
]
