"""Sphere primitive and hit records.

The ray-sphere intersection solves

    |O + t D - C|^2 = r^2

for t using the half-b form of the quadratic. Of the two roots the nearer
one is preferred when it lies strictly inside (t_min, t_max); otherwise the
farther one is tried under the same bound.

Hit records carry the material handle of the primitive that was hit; the
material itself lives in the scene's registry and is shared by every
primitive that references it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtrace.core.ray import Ray, ray_at
from src.pathtrace.core.vec3 import vec3

# Material handle stored in records that did not hit anything
NO_MATERIAL = -1


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss. All other
            fields are only meaningful when hit == 1.
        t: The ray parameter of the intersection.
        p: The intersection point.
        normal: Unit surface normal, always oriented against the incoming
            ray (see set_face_normal).
        front_face: 1 if the ray arrived from the outward side, 0 otherwise.
        material_id: Handle of the material responsible for the surface.
    """

    hit: ti.i32
    t: ti.f32
    p: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        p=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=NO_MATERIAL,
    )


@ti.func
def set_face_normal(
    ray: Ray,
    p: vec3,
    outward_normal: vec3,
    t: ti.f32,
    material_id: ti.i32,
) -> HitRecord:
    """Build a HitRecord whose normal faces the incoming ray.

    The ray hits the front face when it travels against the outward normal,
    i.e. dot(direction, outward_normal) < 0. On a back-face hit the stored
    normal is the negated outward normal, so shading code can always assume
    the normal points toward the side the ray came from.

    Args:
        ray: The incoming ray.
        p: The intersection point.
        outward_normal: Unit normal pointing out of the primitive.
        t: The ray parameter of the intersection.
        material_id: The material handle of the primitive.

    Returns:
        A HitRecord with hit == 1.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray.direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal

    return HitRecord(
        hit=1,
        t=t,
        p=p,
        normal=normal,
        front_face=front_face,
        material_id=material_id,
    )


@ti.func
def hit_sphere(
    ray: Ray,
    sphere: Sphere,
    material_id: ti.i32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Expanding the sphere equation gives a t^2 + 2 h t + c = 0 with

        oc = origin - center
        a  = dot(direction, direction)
        h  = dot(oc, direction)      (half of the traditional b)
        c  = dot(oc, oc) - radius^2

    A non-positive discriminant h^2 - a c counts as a miss, including the
    exactly tangent case.

    Args:
        ray: The ray to test.
        sphere: The sphere to test against.
        material_id: Material handle copied into the record on a hit.
        t_min: Exclusive lower bound on t (avoids self-intersection).
        t_max: Exclusive upper bound on t (closest hit found so far).

    Returns:
        A HitRecord; check its hit field.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    result = miss_record()

    if discriminant > 0.0:
        root = ti.sqrt(discriminant)

        t = (-half_b - root) / a
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = (-half_b + root) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            p = ray_at(ray, t)
            outward_normal = (p - sphere.center) / sphere.radius
            result = set_face_normal(ray, p, outward_normal, t, material_id)

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a Taichi kernel."""
    return Sphere(center=center, radius=radius)
