"""Pinhole camera mapping image coordinates to world-space rays.

The camera places a rectangular viewport at focal_length in front of its
origin. The viewport is viewport_height world units tall and
aspect_ratio * viewport_height wide. A ray for normalized image coordinates
(u, v) points from the origin at

    lower_left_corner + u * horizontal + v * vertical

where u runs left to right and v bottom to top. By default the camera sits
at the world origin and looks down -z with +y up. An explicit
lookfrom/lookat/vup basis repositions it.

The viewport geometry is computed once on the host (NumPy) and uploaded to
Taichi fields; ray generation runs inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.camera.pinhole import Camera, setup_camera, get_ray
    >>> setup_camera(Camera(aspect_ratio=16.0 / 9.0))
    >>> @ti.kernel
    ... def center_direction() -> ti.math.vec3:
    ...     return get_ray(0.5, 0.5).direction  # (0, 0, -1)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from src.pathtrace.core.ray import Ray, make_ray
from src.pathtrace.core.vec3 import vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for the viewport camera.

    Attributes:
        aspect_ratio: Width divided by height of the viewport.
        viewport_height: Height of the viewport in world units.
        focal_length: Distance from the origin to the viewport plane.
        lookfrom: Camera position in world space.
        lookat: Point the camera looks toward.
        vup: Up direction used to orient the viewport.
    """

    aspect_ratio: float = 16.0 / 9.0
    viewport_height: float = 2.0
    focal_length: float = 1.0
    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)

    @property
    def viewport_width(self) -> float:
        """Viewport width in world units."""
        return self.aspect_ratio * self.viewport_height


# =============================================================================
# Taichi Fields for Camera State (kernel-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


def compute_viewport(camera: Camera) -> dict[str, np.ndarray]:
    """Derive the viewport geometry of a camera.

    Args:
        camera: The camera configuration.

    Returns:
        Dictionary with float64 arrays origin, horizontal, vertical and
        lower_left.

    Raises:
        ValueError: If a dimension is not positive and finite, lookfrom
            equals lookat, or vup is parallel to the view direction.
    """
    for name in ("aspect_ratio", "viewport_height", "focal_length"):
        value = getattr(camera, name)
        if not math.isfinite(value) or value <= 0.0:
            raise ValueError(f"{name} must be positive and finite, got {value}")

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    w = lookfrom - lookat
    w_length = np.linalg.norm(w)
    if w_length == 0.0:
        raise ValueError("lookfrom and lookat must differ")
    w = w / w_length

    # u points right, v points up in the camera's frame
    u = np.cross(vup, w)
    u_length = np.linalg.norm(u)
    if u_length < 1e-12:
        raise ValueError("vup must not be parallel to the view direction")
    u = u / u_length
    v = np.cross(w, u)

    horizontal = camera.viewport_width * u
    vertical = camera.viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - camera.focal_length * w

    return {
        "origin": lookfrom,
        "horizontal": horizontal,
        "vertical": vertical,
        "lower_left": lower_left,
    }


def setup_camera(camera: Camera) -> None:
    """Upload the camera's viewport geometry for ray generation.

    Must be called from Python (not from within a kernel) before rendering.

    Raises:
        ValueError: If the camera configuration is degenerate.
    """
    viewport = compute_viewport(camera)
    _camera_origin[None] = viewport["origin"].tolist()
    _viewport_horizontal[None] = viewport["horizontal"].tolist()
    _viewport_vertical[None] = viewport["vertical"].tolist()
    _lower_left_corner[None] = viewport["lower_left"].tolist()


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Generate the ray through normalized image coordinates (u, v).

    Args:
        u: Horizontal coordinate in [0, 1] (left to right).
        v: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray from the camera origin toward the viewport point. The
        direction is not normalized.
    """
    origin = _camera_origin[None]
    point_on_viewport = (
        _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    )
    return make_ray(origin, point_on_viewport - origin)


@ti.func
def get_ray_jittered(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter_u: ti.f32,
    jitter_v: ti.f32,
) -> Ray:
    """Generate a ray through a random point of a pixel.

    The jitter offsets are drawn by the caller from the pixel's random
    stream, each uniform in [0, 1). Pixel coordinates plus jitter are
    divided by (width - 1) and (height - 1), so samples in the last column
    and row reach slightly past 1.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        jitter_u: Horizontal sub-pixel offset in [0, 1).
        jitter_v: Vertical sub-pixel offset in [0, 1).
    """
    u = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width - 1, ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height - 1, ti.f32)
    return get_ray(u, v)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin in world space."""
    return _camera_origin[None]


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, horizontal, vertical and lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, vector_field in fields.items():
        value = vector_field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
