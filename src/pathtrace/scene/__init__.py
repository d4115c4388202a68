"""Scene module: world storage, scene construction and presets.

Components:
    world: Primitive storage in Taichi fields and closest-hit queries
    manager: SceneManager coordinating materials, primitives and validation
    presets: Ready-made scenes used by the examples and tests

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for sphere data
    - A unified material handle per primitive, mapped to a material type
      and a type-local registry index
"""

from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    SphereShape,
    get_material_type,
    get_material_type_index,
)
from .presets import SCENES, create_metal_spheres_scene, create_two_sphere_scene
from .world import (
    MAX_SPHERES,
    add_sphere,
    clear_world,
    get_sphere_count,
    hit_world,
)

__all__ = [
    # World
    "MAX_SPHERES",
    "add_sphere",
    "clear_world",
    "get_sphere_count",
    "hit_world",
    # Manager
    "MAX_MATERIALS",
    "SceneManager",
    "SphereShape",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "SCENES",
    "create_two_sphere_scene",
    "create_metal_spheres_scene",
]
