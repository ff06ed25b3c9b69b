"""Spectral material properties.

A material is reduced to what the light transport consumes: an optional
emission spectrum, an optional absorption (transmission) spectrum and a
scalar transmittance used where no absorption spectrum applies. Roughness
and refraction index are validated and stored for future scattering models;
the path tracer does not read them.

Transmittance fallback: when the absorption spectrum is absent, or does not
cover the ray's wavelength, the scalar transmittance is used. Its default of
1.0 means "fully transmissive", matching "no absorption defined".

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumen.core.spectrum import Spectrum
    >>> from lumen.materials.properties import MaterialProperties, add_material
    >>> lamp = MaterialProperties(
    ...     emission=Spectrum.constant([400e-9, 700e-9], 5.0),
    ...     transmittance=0.0,
    ... )
    >>> material_id = add_material(lamp)
"""

from dataclasses import dataclass

import taichi as ti

from lumen.core.spectrum import Spectrum, interpolate_spectrum, upload_spectrum


@dataclass
class MaterialProperties:
    """Wavelength-dependent response of a surface.

    Attributes:
        emission: Emitted power per wavelength, or None for non-emitters.
        absorption: Fraction of power carried on per wavelength, or None.
        transmittance: Fraction carried on when no absorption value applies,
            in [0, 1].
        roughness: Surface roughness in [0, 1] (stored, not yet consumed).
        refraction_index: Index of refraction >= 1 (stored, not yet consumed).

    Raises:
        ValueError: If a scalar lies outside its range or a spectrum field
            holds something other than a Spectrum.
    """

    emission: Spectrum | None = None
    absorption: Spectrum | None = None
    transmittance: float = 1.0
    roughness: float = 0.0
    refraction_index: float = 1.0

    def __post_init__(self):
        for name in ("emission", "absorption"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Spectrum):
                raise ValueError(f"{name} must be a Spectrum or None, got {type(value).__name__}")
        if not 0.0 <= self.transmittance <= 1.0:
            raise ValueError(f"Transmittance {self.transmittance} is outside [0, 1]")
        if not 0.0 <= self.roughness <= 1.0:
            raise ValueError(f"Roughness {self.roughness} is outside [0, 1]")
        if not self.refraction_index >= 1.0:
            raise ValueError(f"Refraction index {self.refraction_index} must be >= 1")

    @property
    def is_emissive(self) -> bool:
        return self.emission is not None


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_MATERIALS = 1024

material_emission_offsets = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_emission_counts = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_absorption_offsets = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_absorption_counts = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_transmittances = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_roughness = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_refraction_indices = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Spectra referenced by earlier
    materials stay in the sample pool until it is cleared separately.
    """
    num_materials[None] = 0


def add_material(material: MaterialProperties) -> int:
    """Upload a material and its spectra.

    Args:
        material: The material to upload.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    emission_offset, emission_count = upload_spectrum(material.emission)
    absorption_offset, absorption_count = upload_spectrum(material.absorption)

    material_emission_offsets[idx] = emission_offset
    material_emission_counts[idx] = emission_count
    material_absorption_offsets[idx] = absorption_offset
    material_absorption_counts[idx] = absorption_count
    material_transmittances[idx] = material.transmittance
    material_roughness[idx] = material.roughness
    material_refraction_indices[idx] = material.refraction_index
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of uploaded materials."""
    return int(num_materials[None])


@ti.func
def emitted_power(material_id: ti.i32, wavelength: ti.f32) -> ti.f32:
    """Emission of a material at a wavelength, 0 when absent or out of range."""
    found, value = interpolate_spectrum(
        material_emission_offsets[material_id],
        material_emission_counts[material_id],
        wavelength,
    )
    power = 0.0
    if found == 1:
        power = value
    return power


@ti.func
def transmitted_fraction(material_id: ti.i32, wavelength: ti.f32) -> ti.f32:
    """Fraction of power a material carries on at a wavelength.

    Returns:
        The absorption spectrum's value where it is defined, otherwise the
        scalar transmittance.
    """
    found, value = interpolate_spectrum(
        material_absorption_offsets[material_id],
        material_absorption_counts[material_id],
        wavelength,
    )
    fraction = material_transmittances[material_id]
    if found == 1:
        fraction = value
    return fraction
