"""Ray data structure for GPU-accelerated ray tracing.

A ray is a half-line: an origin point and a direction vector, evaluated at
parameter t >= 0. Rays are created fresh for every camera sample and every
scatter event and are never mutated afterwards.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> # inside a kernel: point = ray_at(ray, 5.0)
"""

import taichi as ti

from src.pathtrace.core.vec3 import vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not necessarily
            unit length; camera rays point at the viewport plane.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point origin + t * direction."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)
