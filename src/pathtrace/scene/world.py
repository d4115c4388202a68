"""World storage and closest-hit queries over all primitives.

The world is an insertion-ordered list of spheres kept in Taichi fields
(Structure of Arrays layout). Every primitive is tested with a linear scan;
the upper bound of the valid t range shrinks to each hit found, so the
nearest intersection wins and farther candidates are rejected early.
Overlapping primitives are legal.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.scene.world import add_sphere, clear_world, hit_world
    >>> clear_world()
    >>> add_sphere(ti.math.vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use hit_world within a Taichi kernel
"""

import taichi as ti

from src.pathtrace.core.ray import Ray
from src.pathtrace.core.vec3 import vec3
from src.pathtrace.geometry.sphere import HitRecord, Sphere, hit_sphere, miss_record

# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_world() -> None:
    """Remove all primitives from the world.

    Resets the primitive count to zero. The field data is overwritten when
    new primitives are added.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int) -> int:
    """Append a sphere to the world.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        material_id: The material handle to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the world."""
    return int(num_spheres[None])


@ti.func
def hit_world(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Find the closest intersection of a ray with any primitive.

    Args:
        ray: The ray to test.
        t_min: Exclusive lower bound on t. Callers pass a small epsilon
            (0.001) so a ray leaving a surface does not re-hit it.
        t_max: Exclusive upper bound on t; +inf for camera rays.

    Returns:
        The HitRecord with the smallest t in (t_min, t_max), or a miss
        record if nothing is hit.
    """
    closest_so_far = t_max
    result = miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray, sphere, sphere_material_ids[i], t_min, closest_so_far)
        if rec.hit == 1:
            closest_so_far = rec.t
            result = rec

    return result
