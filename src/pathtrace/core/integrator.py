"""Path tracing integrator.

This module ties camera rays, world intersection and material scattering
into a per-pixel Monte Carlo estimate.

For one path the integrator repeatedly:
    1. Stops with black once the depth limit is reached.
    2. Finds the closest hit in (T_MIN, +inf).
    3. On a hit, asks the material to scatter. Absorption ends the path with
       black; otherwise the attenuation multiplies the path throughput and
       the scattered ray is followed.
    4. On a miss, returns throughput * sky gradient.

This is the iterative form of the recursion

    colour(ray, depth) = attenuation * colour(scattered, depth - 1)

with colour(ray, 0) = black.

Each pixel averages samples_per_pixel jittered paths. All randomness comes
from a per-pixel stream seeded from the render seed, so a render is
reproducible bit for bit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.camera.pinhole import Camera, setup_camera
    >>> from src.pathtrace.core.integrator import render_image, get_pixels
    >>> from src.pathtrace.core.settings import RenderSettings
    >>> from src.pathtrace.scene.presets import create_two_sphere_scene
    >>>
    >>> scene = create_two_sphere_scene()
    >>> settings = RenderSettings(samples_per_pixel=10, max_depth=5)
    >>> setup_camera(Camera(aspect_ratio=settings.aspect_ratio))
    >>> render_image(settings)
    >>> pixels = get_pixels()  # (216, 384, 3) uint8, top row first
"""

from collections.abc import Callable

import numpy as np
import numpy.typing as npt
import taichi as ti

from src.pathtrace.camera.pinhole import get_ray_jittered
from src.pathtrace.core.ray import Ray, make_ray
from src.pathtrace.core.rng import random_f32, seed_rng
from src.pathtrace.core.settings import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, RenderSettings
from src.pathtrace.core.vec3 import unit, vec3
from src.pathtrace.geometry.sphere import HitRecord
from src.pathtrace.materials.dielectric import get_dielectric_ior, scatter_dielectric
from src.pathtrace.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from src.pathtrace.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from src.pathtrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)
from src.pathtrace.scene.world import hit_world

# =============================================================================
# Rendering Constants
# =============================================================================

# Lower bound on t for every intersection query (avoids shadow acne)
T_MIN = 0.001
T_MAX = float("inf")

# Sky gradient: white at the horizon, blue at the zenith
SKY_HORIZON = vec3(1.0, 1.0, 1.0)
SKY_ZENITH = vec3(0.5, 0.7, 1.0)

# Quantization: sqrt(gamma 2) colour clamped below 1, scaled to [0, 255]
MAX_CHANNEL_VALUE = 0.999
CHANNEL_SCALE = 255.999

# Rows rendered per kernel launch by render_image()
ROWS_PER_BATCH = 16

# Progress callback: receives (rows_done, rows_total)
ProgressCallback = Callable[[int, int], None]


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of all sample radiances per pixel, indexed [column, row] with row 0 at
# the bottom (preallocated to max size to avoid kernel recompilation)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Result slot for trace_ray()
_traced_colour = ti.Vector.field(3, dtype=ti.f32, shape=())

_render_target_initialized = ti.field(dtype=ti.i32, shape=())
_samples_rendered = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image dimensions and clear the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions exceed maximum supported size.
    """
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _samples_rendered[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Background and Material Dispatch
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky colour seen along a direction that hits nothing.

    Linear blend from white to sky blue with t = 0.5 * (unit_y + 1).
    """
    t = 0.5 * (unit(direction).y + 1.0)
    return (1.0 - t) * SKY_HORIZON + t * SKY_ZENITH


@ti.func
def scatter_material(ray: Ray, rec: HitRecord, state: ti.u32):
    """Dispatch to the scatter function of the hit material.

    Args:
        ray: The incoming ray.
        rec: The hit record of the closest intersection.
        state: The caller's random state.

    Returns:
        A tuple of (did_scatter, attenuation, scattered_direction, new_state).
        An unknown material handle absorbs the ray.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    did_scatter = 0
    attenuation = vec3(0.0, 0.0, 0.0)
    scattered_direction = vec3(0.0, 0.0, 0.0)
    new_state = state

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        did_scatter, attenuation, scattered_direction, new_state = scatter_lambertian(
            albedo, rec, state
        )

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        did_scatter, attenuation, scattered_direction, new_state = scatter_metal(
            albedo, fuzz, ray, rec, state
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        did_scatter, attenuation, scattered_direction, new_state = scatter_dielectric(
            ior, ray, rec, state
        )

    return did_scatter, attenuation, scattered_direction, new_state


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_colour(ray: Ray, max_depth: ti.i32, state: ti.u32):
    """Estimate the colour carried back along a ray.

    Args:
        ray: The ray to follow.
        max_depth: Maximum number of ray segments. 0 returns black.
        state: The caller's random state.

    Returns:
        A tuple of (colour, new_state).
    """
    colour = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray
    current_state = state

    # Taichi has no early return from a ti.func, so the loop keeps a flag
    active = 1
    for _ in range(max_depth):
        if active == 1:
            rec = hit_world(current, T_MIN, T_MAX)

            if rec.hit == 0:
                colour = throughput * background(current.direction)
                active = 0
            else:
                did_scatter, attenuation, direction, current_state = scatter_material(
                    current, rec, current_state
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = make_ray(rec.p, direction)

    return colour, current_state


@ti.func
def sample_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    """Sum the radiance of all jittered samples of one pixel.

    The pixel's random stream is keyed on its linear index, so the result
    does not depend on the order in which pixels are computed.
    """
    state = seed_rng(seed, ti.cast(pixel_j * width + pixel_i, ti.u32))
    total = vec3(0.0, 0.0, 0.0)

    for _ in range(samples):
        jitter_u, state = random_f32(state)
        jitter_v, state = random_f32(state)
        ray = get_ray_jittered(pixel_i, pixel_j, width, height, jitter_u, jitter_v)
        colour, state = ray_colour(ray, max_depth, state)
        total += colour

    return total


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    width: ti.i32,
    height: ti.i32,
    row_start: ti.i32,
    row_end: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    """Render the rows [row_start, row_end) (row 0 = bottom) in parallel."""
    for i, j in ti.ndrange(width, (row_start, row_end)):
        _color_buffer[i, j] = sample_pixel(i, j, width, height, samples, max_depth, seed)


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32, seed: ti.u32):
    """Follow one ray and store its colour in _traced_colour."""
    # Single-iteration outer loop keeps the bounce loop serial
    for _ in range(1):
        state = seed_rng(seed, ti.u32(0))
        colour, state = ray_colour(make_ray(origin, direction), max_depth, state)
        _traced_colour[None] = colour


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = 50,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Estimate the colour of a single ray against the current scene.

    This is a Python-callable function for testing and debugging.

    Returns:
        Tuple of (R, G, B) linear colour values.
    """
    _trace_ray_kernel(vec3(*origin), vec3(*direction), max_depth, seed)
    colour = _traced_colour[None]
    return (float(colour[0]), float(colour[1]), float(colour[2]))


def render_image(
    settings: RenderSettings,
    callback: ProgressCallback | None = None,
    rows_per_batch: int = ROWS_PER_BATCH,
) -> None:
    """Render a full frame into the render target.

    Sets up the render target for the settings' dimensions and computes
    rows from the top of the image down, in bands of rows_per_batch rows.
    The camera must already be set up.

    Args:
        settings: Image size, sampling and depth configuration.
        callback: Optional callback called after each band with
            (rows_done, rows_total).
        rows_per_batch: Number of rows per kernel launch.

    Raises:
        ValueError: If rows_per_batch is not positive.
    """
    if rows_per_batch < 1:
        raise ValueError(f"rows_per_batch must be at least 1, got {rows_per_batch}")

    width = settings.image_width
    height = settings.image_height
    setup_render_target(width, height)

    rows_done = 0
    while rows_done < height:
        band = min(rows_per_batch, height - rows_done)
        row_end = height - rows_done
        _render_rows(
            width,
            height,
            row_end - band,
            row_end,
            settings.samples_per_pixel,
            settings.max_depth,
            settings.seed,
        )
        rows_done += band

        if callback is not None:
            callback(rows_done, height)

    _samples_rendered[None] = settings.samples_per_pixel


def get_total_samples() -> int:
    """Get the number of samples per pixel of the last completed render."""
    _check_render_target_initialized()
    return int(_samples_rendered[None])


def get_radiance_numpy() -> npt.NDArray[np.float32]:
    """Get the averaged linear radiance of the last render.

    Returns:
        Array of shape (height, width, 3), first row at the top of the image.

    Raises:
        RuntimeError: If nothing has been rendered yet.
    """
    _check_render_target_initialized()
    samples = get_total_samples()
    if samples == 0:
        raise RuntimeError("No completed render. Call render_image() first.")

    width, height = get_image_dimensions()
    image = _color_buffer.to_numpy()[:width, :height, :]

    # (width, height, 3) with row 0 at the bottom -> (height, width, 3) top first
    image = np.flipud(np.transpose(image, (1, 0, 2)))

    return (image / np.float32(samples)).astype(np.float32)


def quantize(radiance: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert averaged linear radiance to 8-bit channels.

    Each channel becomes sqrt(value) (gamma 2), clamped to [0, 0.999],
    scaled by 255.999 and truncated.

    Raises:
        RuntimeError: If the radiance contains NaN or infinite values.
    """
    values = np.asarray(radiance, dtype=np.float64)
    if not np.all(np.isfinite(values)):
        raise RuntimeError("Rendered radiance contains non-finite values")

    corrected = np.sqrt(np.maximum(values, 0.0))
    clamped = np.clip(corrected, 0.0, MAX_CHANNEL_VALUE)
    return (CHANNEL_SCALE * clamped).astype(np.uint8)


def get_pixels() -> npt.NDArray[np.uint8]:
    """Get the last render as gamma-corrected 8-bit pixels.

    Returns:
        Array of shape (height, width, 3), first row at the top of the image.
    """
    return quantize(get_radiance_numpy())
