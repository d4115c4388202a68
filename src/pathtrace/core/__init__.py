"""Core rendering module.

Components:
    rng: Explicit per-pixel random streams (hash seeding, xorshift32)
    vec3: Vector helpers, reflection/refraction and random direction samplers
    ray: Ray data structure
    settings: RenderSettings image and sampling configuration
    integrator: Path-tracing loop, render kernels and quantization
    renderer: Renderer tying scene, camera and image output together

All compute-intensive operations use Taichi kernels.
"""

from .ray import Ray, make_ray, ray_at
from .rng import next_u32, random_f32, random_range, seed_rng
from .settings import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, MAX_SEED, RenderSettings
from .vec3 import (
    Colour,
    Point3,
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    random_in_hemisphere,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    random_vec3_range,
    reflect,
    refract,
    schlick_reflectance,
    unit,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from src.pathtrace.core.integrator or src.pathtrace.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "seed_rng",
    "next_u32",
    "random_f32",
    "random_range",
    "RenderSettings",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
    "MAX_SEED",
    "vec3",
    "Point3",
    "Colour",
    "length",
    "length_squared",
    "dot",
    "cross",
    "unit",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "random_vec3",
    "random_vec3_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_hemisphere",
]
