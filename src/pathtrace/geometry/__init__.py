"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit records and ray-sphere intersection

All intersection routines are Taichi functions (@ti.func) returning a
HitRecord whose normal is oriented against the incoming ray. New primitive
types follow the same pattern:

    record = hit_shape(ray, shape, material_id, t_min, t_max)
"""

from .sphere import (
    NO_MATERIAL,
    HitRecord,
    Sphere,
    hit_sphere,
    make_sphere,
    miss_record,
    set_face_normal,
)

__all__ = [
    "NO_MATERIAL",
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "miss_record",
    "set_face_normal",
]
