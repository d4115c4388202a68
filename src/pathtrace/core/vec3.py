"""Vector, point and colour utilities for Taichi kernels.

A single 3-component float type, ``vec3``, plays the role of direction,
point (``Point3``) and RGB colour (``Colour``). Arithmetic (negation,
addition, subtraction, scalar and componentwise multiplication, division)
comes from ``taichi.math``; this module adds the geometric helpers and the
randomized sampling routines the materials rely on.

Every sampling function takes the caller's random state and returns the
advanced state as its last result (see ``core.rng``).

Example:
    >>> @ti.kernel
    ... def demo() -> ti.f32:
    ...     state = seed_rng(ti.u32(7), ti.u32(0))
    ...     p, state = random_in_unit_sphere(state)
    ...     return length_squared(p)  # always < 1
"""

import taichi as ti
import taichi.math as tm

from src.pathtrace.core.rng import random_f32, random_range

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3
Point3 = vec3
Colour = vec3


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def unit(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The caller must guarantee a non-zero length; a zero vector yields
    NaN components.
    """
    return v / tm.length(v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if every component is below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect v about the unit normal n: v - 2 (v . n) n."""
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    Args:
        uv: The incoming unit direction.
        n: The unit normal on the incoming side of the surface.
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction. Callers must rule out total internal
        reflection beforehand.
    """
    cos_theta = tm.min(-tm.dot(uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Schlick's approximation of Fresnel reflectance."""
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3(state: ti.u32):
    """Draw a vector with each component uniform in [0, 1).

    Returns:
        A tuple of (vector, new_state).
    """
    x, state_x = random_f32(state)
    y, state_y = random_f32(state_x)
    z, state_z = random_f32(state_y)
    return vec3(x, y, z), state_z


@ti.func
def random_vec3_range(state: ti.u32, lo: ti.f32, hi: ti.f32):
    """Draw a vector with each component uniform in [lo, hi).

    Returns:
        A tuple of (vector, new_state).
    """
    x, state_x = random_range(state, lo, hi)
    y, state_y = random_range(state_x, lo, hi)
    z, state_z = random_range(state_y, lo, hi)
    return vec3(x, y, z), state_z


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a uniformly distributed point strictly inside the unit ball.

    Rejection-samples the cube [-1, 1]^3 until a point with squared length
    below one is found. Each attempt succeeds with probability pi/6, so the
    loop terminates with probability 1.

    Returns:
        A tuple of (point, new_state) with length_squared(point) < 1.
    """
    p, current = random_vec3_range(state, -1.0, 1.0)
    while length_squared(p) >= 1.0:
        p, current = random_vec3_range(current, -1.0, 1.0)
    return p, current


@ti.func
def random_unit_vector(state: ti.u32):
    """Generate a unit vector uniformly distributed on the sphere.

    Closed form: azimuth a in [0, 2 pi), height z in [-1, 1),
    r = sqrt(1 - z^2), result (r cos a, r sin a, z).

    Returns:
        A tuple of (unit_vector, new_state).
    """
    a, state_a = random_range(state, 0.0, 2.0 * tm.pi)
    z, state_z = random_range(state_a, -1.0, 1.0)
    r = ti.sqrt(tm.max(1.0 - z * z, 0.0))
    return vec3(r * ti.cos(a), r * ti.sin(a), z), state_z


@ti.func
def random_in_hemisphere(normal: vec3, state: ti.u32):
    """Generate a point of the unit ball lying on the same side as normal.

    Draws from random_in_unit_sphere() and negates the sample when it
    points away from the normal, so dot(result, normal) >= 0.

    Returns:
        A tuple of (vector, new_state).
    """
    in_unit_sphere, new_state = random_in_unit_sphere(state)
    result = in_unit_sphere
    if tm.dot(in_unit_sphere, normal) < 0.0:
        result = -in_unit_sphere
    return result, new_state
