"""Metal (specular reflective) material implementation.

The incoming unit direction is mirrored about the surface normal,

    R = V - 2 (V . N) N

and then perturbed by fuzz * random_in_unit_sphere(). Perfect metals
(fuzz = 0) reflect deterministically; rougher metals scatter within a cone
around the mirror direction. When the perturbed direction ends up pointing
into the surface the ray is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # did_scatter, attenuation, direction, state = scatter_metal(
    >>> #     albedo, fuzz, ray, rec, state
    >>> # )
"""

import math

import taichi as ti
import taichi.math as tm

from src.pathtrace.core.ray import Ray
from src.pathtrace.core.vec3 import random_in_unit_sphere, reflect, unit, vec3
from src.pathtrace.geometry.sphere import HitRecord


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    ray: Ray,
    rec: HitRecord,
    state: ti.u32,
):
    """Scatter a ray off a metal surface.

    A random sample is drawn even when fuzz is 0, so the random stream
    advances identically regardless of roughness.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The surface roughness in [0, 1].
        ray: The incoming ray.
        rec: The hit record; its normal faces the incoming ray.
        state: The caller's random state.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction, new_state)
        where did_scatter is 0 when the perturbed reflection points into the
        surface (the ray is absorbed).
    """
    reflected = reflect(unit(ray.direction), rec.normal)
    perturbation, new_state = random_in_unit_sphere(state)
    scattered_direction = reflected + fuzz * perturbation

    did_scatter = 0
    if tm.dot(scattered_direction, rec.normal) > 0.0:
        did_scatter = 1

    return did_scatter, albedo, scattered_direction, new_state


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz value into [0, 1]."""
    return min(max(fuzz, 0.0), 1.0)


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component should be in [0, 1].
        fuzz: The surface roughness. Values outside [0, 1] are clamped.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1] or fuzz is NaN.
    """
    for i, component in enumerate(albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    if math.isnan(fuzz):
        raise ValueError("Fuzz must be a number, got NaN")

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by type-local index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz for a metal material by type-local index."""
    return metal_fuzzes[material_idx]
