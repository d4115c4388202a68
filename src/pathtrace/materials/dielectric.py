"""Dielectric (glass/water) material implementation.

Dielectrics both reflect and refract. For each interaction:
    - The refraction ratio is 1/ior when entering the material (front face)
      and ior when leaving it.
    - Total internal reflection occurs when ratio * sin(theta) > 1.
    - Otherwise the ray reflects with the probability given by Schlick's
      approximation of the Fresnel reflectance and refracts otherwise.

Clear glass absorbs nothing, so the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # did_scatter, attenuation, direction, state = scatter_dielectric(
    >>> #     ior, ray, rec, state
    >>> # )
"""

import math

import taichi as ti
import taichi.math as tm

from src.pathtrace.core.ray import Ray
from src.pathtrace.core.rng import random_f32
from src.pathtrace.core.vec3 import reflect, refract, schlick_reflectance, unit, vec3
from src.pathtrace.geometry.sphere import HitRecord


@ti.func
def scatter_dielectric(ior: ti.f32, ray: Ray, rec: HitRecord, state: ti.u32):
    """Scatter a ray through a dielectric surface.

    One uniform sample is always drawn to choose between reflection and
    refraction, even under total internal reflection.

    Args:
        ior: Index of refraction of the material.
        ray: The incoming ray.
        rec: The hit record; its normal faces the incoming ray and its
            front_face flag tells whether the ray is entering the material.
        state: The caller's random state.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction, new_state)
        where did_scatter is always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    refraction_ratio = ior
    if rec.front_face == 1:
        refraction_ratio = 1.0 / ior

    unit_direction = unit(ray.direction)
    cos_theta = tm.min(-tm.dot(unit_direction, rec.normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))

    cannot_refract = refraction_ratio * sin_theta > 1.0
    reflectance = schlick_reflectance(cos_theta, refraction_ratio)
    choice, new_state = random_f32(state)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or choice < reflectance:
        scattered_direction = reflect(unit_direction, rec.normal)
    else:
        scattered_direction = refract(unit_direction, rec.normal, refraction_ratio)

    return 1, attenuation, scattered_direction, new_state


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If ior is not a finite number of at least 1.0.
    """
    if not math.isfinite(ior) or ior < 1.0:
        raise ValueError(
            f"Index of refraction must be a finite value >= 1.0, got {ior}"
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the index of refraction for a dielectric material by type-local index."""
    return dielectric_iors[material_idx]
