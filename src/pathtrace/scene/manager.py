"""Scene manager coordinating primitives and materials.

The SceneManager is the scene-construction interface of the renderer. It
owns a unified material id space: every add_*_material() call returns a
small integer handle, and primitives store only that handle. The handle
maps to (material_type, type_local_index) so the integrator can dispatch
to the right scatter function and look up the parameters in the
type-specific registry.

A scene is validated while it is built (unknown materials, degenerate
geometry) and frozen before rendering. A frozen scene rejects every
further mutation, so all pixel computations see the same read-only data.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.scene.manager import SceneManager, SphereShape
    >>> scene = SceneManager()
    >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    >>> scene.add_primitive(SphereShape(center=(0, -100.5, -1), radius=100), ground)
    >>> scene.freeze()
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from src.pathtrace.core.vec3 import vec3
from src.pathtrace.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.pathtrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.pathtrace.materials.metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from src.pathtrace.scene.world import (
    MAX_SPHERES,
    add_sphere,
    clear_world,
    get_sphere_count,
)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types (256 per type)
MAX_MATERIALS = 768

# Taichi fields for kernel-side material type lookup
# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


# Bumped by every SceneManager; only the newest one owns the shared fields
_live_generation = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a material handle.

    Returns:
        The material type as an integer (see MaterialType), or -1 for an
        invalid handle.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local registry index for a material handle.

    Returns:
        The index into the type-specific material arrays, or -1 for an
        invalid handle.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass(frozen=True)
class SphereShape:
    """Geometry of a sphere primitive, before it is placed in the world.

    Attributes:
        center: The center point (x, y, z).
        radius: The radius; must be positive and finite.
    """

    center: tuple[float, float, float]
    radius: float


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material handle.
        material_type: The type of material.
        type_index: The index within the type-specific material registry.
        params: The material parameters as stored (fuzz already clamped).
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material handle assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data description of a scene.

    Attributes:
        materials: List of material configurations.
        spheres: List of sphere configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    """Convert a 3-element sequence into a tuple of floats."""
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Builds a scene of materials and primitives.

    The storage behind a SceneManager is the module-level Taichi fields of
    the world and the material registries, so only one scene is live at a
    time; creating a SceneManager clears whatever was there before and
    retires the previous manager. A retired manager raises RuntimeError on
    any further mutation or render.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres in the scene.

    Example:
        >>> scene = SceneManager()
        >>> red = scene.add_lambertian_material(albedo=(0.7, 0.3, 0.3))
        >>> chrome = scene.add_metal_material(albedo=(0.8, 0.8, 0.8), fuzz=0.0)
        >>> scene.add_sphere((0, 0, -1), 0.5, red)
        >>> scene.add_sphere((1, 0, -1), 0.5, chrome)
    """

    def __init__(self) -> None:
        """Initialize an empty, mutable scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._frozen = False
        global _live_generation
        _live_generation += 1
        self._generation = _live_generation
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_world()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    @property
    def is_live(self) -> bool:
        """Whether this manager still owns the shared scene storage."""
        return self._generation == _live_generation

    def check_live(self) -> None:
        """Raise RuntimeError if a newer SceneManager has replaced this one."""
        if not self.is_live:
            raise RuntimeError(
                "Scene storage has been replaced by a newer SceneManager; "
                "this scene can no longer be modified or rendered"
            )

    def _check_mutable(self) -> None:
        self.check_live()
        if self._frozen:
            raise RuntimeError("Scene is frozen; it cannot be modified after rendering starts")

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials).

        Raises:
            RuntimeError: If the scene is frozen.
        """
        self._check_mutable()
        self._clear_all()

    def freeze(self) -> None:
        """Mark the scene immutable. Idempotent.

        Raises:
            RuntimeError: If a newer SceneManager has replaced this one.
        """
        self.check_live()
        self._frozen = True

    @property
    def frozen(self) -> bool:
        """Whether the scene has been frozen."""
        return self._frozen

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Assign a unified material handle to a type-local registry entry."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B), each in [0, 1].

        Returns:
            The material handle.

        Raises:
            RuntimeError: If the scene is frozen or a capacity limit is hit.
            ValueError: If any albedo component is outside [0, 1].
        """
        self._check_mutable()
        albedo = _as_triple(albedo, "albedo")
        type_index = add_lambertian_material(albedo)
        return self._register_material(MaterialType.LAMBERTIAN, type_index, {"albedo": albedo})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B), each in [0, 1].
            fuzz: The surface roughness, clamped to [0, 1]. Default 0 (mirror).

        Returns:
            The material handle.

        Raises:
            RuntimeError: If the scene is frozen or a capacity limit is hit.
            ValueError: If any albedo component is outside [0, 1].
        """
        self._check_mutable()
        albedo = _as_triple(albedo, "albedo")
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL,
            type_index,
            {"albedo": albedo, "fuzz": clamp_fuzz(float(fuzz))},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction, at least 1.0. Default 1.5 (glass).

        Returns:
            The material handle.

        Raises:
            RuntimeError: If the scene is frozen or a capacity limit is hit.
            ValueError: If ior is below 1.0 or not finite.
        """
        self._check_mutable()
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": float(ior)})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by handle, or None if unknown."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_primitive(self, shape: SphereShape, material_id: int) -> int:
        """Add a primitive with a material handle to the world.

        Args:
            shape: The primitive geometry. Only SphereShape is supported.
            material_id: A handle returned by one of the add_*_material calls.

        Returns:
            The index of the added primitive within its type's storage.

        Raises:
            RuntimeError: If the scene is frozen or a capacity limit is hit.
            TypeError: If the shape type is not supported.
            ValueError: If the material handle is unknown or the geometry is
                degenerate (non-finite center, non-positive radius).
        """
        self._check_mutable()
        if not isinstance(shape, SphereShape):
            raise TypeError(f"Unsupported primitive type: {type(shape).__name__}")
        if isinstance(material_id, bool) or not isinstance(material_id, int):
            raise ValueError(f"Invalid material_id: {material_id!r}")
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_triple(shape.center, "center")
        radius = float(shape.radius)
        if not all(math.isfinite(c) for c in center):
            raise ValueError(f"Sphere center must be finite, got {center}")
        if not math.isfinite(radius) or radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive and finite, got {radius}")

        sphere_index = add_sphere(vec3(center[0], center[1], center[2]), radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=radius,
                material_id=material_id,
            )
        )
        return sphere_index

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Convenience form of add_primitive(SphereShape(center, radius), material_id).
        """
        return self.add_primitive(SphereShape(center=center, radius=radius), material_id)

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_primitive_count(self) -> int:
        """Get the total number of primitives in the scene."""
        return self.get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene first. Materials are loaded before
        primitives so that primitives can reference them by position.

        Raises:
            RuntimeError: If the scene is frozen.
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        for mat_config in config.materials:
            mat_type = str(mat_config.get("type", "")).lower()
            if mat_type == "lambertian":
                self.add_lambertian_material(mat_config.get("albedo", [0.5, 0.5, 0.5]))
            elif mat_type == "metal":
                self.add_metal_material(
                    mat_config.get("albedo", [0.8, 0.8, 0.8]),
                    mat_config.get("fuzz", 0.0),
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            if "material_id" not in sphere_config:
                raise ValueError("Sphere configuration is missing a material_id")
            self.add_sphere(
                sphere_config.get("center", [0.0, 0.0, 0.0]),
                sphere_config.get("radius", 1.0),
                sphere_config["material_id"],
            )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'spheres' keys."""
        self.from_config(
            SceneConfig(
                materials=data.get("materials", []),
                spheres=data.get("spheres", []),
            )
        )

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
