"""Seedable random source for Taichi kernels.

The renderer never calls ``ti.random()``. Instead every function that needs
entropy receives the current random state (a ``ti.u32``) and hands back the
advanced state alongside the sampled value:

    value, state = random_f32(state)

Each pixel owns its own stream, derived from the render seed and the pixel's
linear index by ``seed_rng``. Because no state is shared between pixels the
image is bit-identical across runs for a fixed seed, no matter how the
parallel loop is scheduled.

Example:
    >>> @ti.kernel
    ... def sample() -> ti.f32:
    ...     state = seed_rng(ti.u32(42), ti.u32(0))
    ...     value, state = random_f32(state)
    ...     return value
"""

import taichi as ti

# 2^-24: maps the top 24 bits of a u32 onto [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def _hash_u32(x: ti.u32) -> ti.u32:
    """Wang integer hash, used to decorrelate seeds of neighbouring streams."""
    h = (x ^ ti.u32(61)) ^ (x >> 16)
    h = h * ti.u32(9)
    h = h ^ (h >> 4)
    h = h * ti.u32(668265261)
    h = h ^ (h >> 15)
    return h


@ti.func
def seed_rng(seed: ti.u32, stream: ti.u32) -> ti.u32:
    """Derive the starting state for one independent random stream.

    Args:
        seed: The global render seed.
        stream: Stream identifier, typically the pixel's linear index.

    Returns:
        A non-zero xorshift state (xorshift never leaves the all-zero state).
    """
    state = _hash_u32(seed ^ _hash_u32(stream + ti.u32(1)))
    if state == ti.u32(0):
        state = ti.u32(0x1E3779B9)
    return state


@ti.func
def next_u32(state: ti.u32) -> ti.u32:
    """Advance the state by one xorshift32 step."""
    x = state
    x ^= x << 13
    x ^= x >> 17
    x ^= x << 5
    return x


@ti.func
def random_f32(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Returns:
        A tuple of (value, new_state).
    """
    new_state = next_u32(state)
    value = ti.cast(new_state >> 8, ti.f32) * _INV_2_POW_24
    return value, new_state


@ti.func
def random_range(state: ti.u32, lo: ti.f32, hi: ti.f32):
    """Draw a uniform float in [lo, hi).

    Returns:
        A tuple of (value, new_state).
    """
    value, new_state = random_f32(state)
    return lo + (hi - lo) * value, new_state
