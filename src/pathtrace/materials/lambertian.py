"""Lambertian (ideal diffuse) material implementation.

The scattered direction is the surface normal plus a uniformly distributed
unit vector. The resulting directions follow a cos(theta) distribution about
the normal, so the sampling density cancels the cosine term of the diffuse
BRDF and the attenuation reduces to the albedo:

    attenuation = (albedo / pi) * cos(theta) / (cos(theta) / pi) = albedo

A Lambertian surface always scatters; it never absorbs a ray outright.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # did_scatter, attenuation, direction, state = scatter_lambertian(
    >>> #     albedo, rec, state
    >>> # )
"""

import taichi as ti

from src.pathtrace.core.vec3 import near_zero, random_unit_vector, vec3
from src.pathtrace.geometry.sphere import HitRecord


@ti.func
def scatter_lambertian(albedo: vec3, rec: HitRecord, state: ti.u32):
    """Scatter a ray off a diffuse surface.

    The scattered ray starts at the hit point and points along
    normal + random_unit_vector(). When that sum is degenerate (the random
    vector almost exactly cancels the normal) the normal itself is used, so
    the scattered ray never has a zero-length direction.

    Args:
        albedo: The diffuse reflectance color (RGB).
        rec: The hit record; its normal faces the incoming ray.
        state: The caller's random state.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction, new_state)
        where did_scatter is always 1 and attenuation equals the albedo.
    """
    offset, new_state = random_unit_vector(state)
    scattered_direction = rec.normal + offset

    if near_zero(scattered_direction):
        scattered_direction = rec.normal

    return 1, albedo, scattered_direction, new_state


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by type-local index."""
    return lambertian_albedos[material_idx]
