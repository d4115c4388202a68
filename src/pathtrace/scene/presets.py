"""Preset scenes.

Two small sphere scenes, both framed for the default camera (origin,
looking down -z, 16:9 viewport of height 2 at focal length 1):

- create_two_sphere_scene: a huge ground sphere and one diffuse sphere.
- create_metal_spheres_scene: a diffuse sphere flanked by metal spheres of
  increasing fuzz, with a mirror sphere stacked on top.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.scene.presets import create_two_sphere_scene
    >>> scene = create_two_sphere_scene()
    >>> scene.get_sphere_count()
    2
"""

from collections.abc import Callable

from src.pathtrace.scene.manager import SceneManager

# Ground sphere shared by both presets
GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0


def create_two_sphere_scene() -> SceneManager:
    """Create the ground + single diffuse sphere scene.

    Returns:
        A mutable SceneManager holding two spheres and two materials.
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    center = scene.add_lambertian_material(albedo=(0.7, 0.3, 0.3))

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)

    return scene


def create_metal_spheres_scene() -> SceneManager:
    """Create the five-sphere metal showcase scene.

    Materials (in handle order):
        0: greenish diffuse ground (0.5, 1.0, 0.5)
        1: red diffuse centre sphere
        2: mirror metal, fuzz 0.0 (above the centre sphere)
        3: metal, fuzz 0.3 (right)
        4: metal, fuzz 0.8 (left)

    Returns:
        A mutable SceneManager holding five spheres.
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.5, 1.0, 0.5))
    red = scene.add_lambertian_material(albedo=(1.0, 0.0, 0.0))
    mirror = scene.add_metal_material(albedo=(0.8, 0.8, 0.8), fuzz=0.0)
    brushed = scene.add_metal_material(albedo=(0.8, 0.8, 0.8), fuzz=0.3)
    rough = scene.add_metal_material(albedo=(0.8, 0.8, 0.8), fuzz=0.8)

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)
    scene.add_sphere((0.0, 0.2, -1.5), 0.5, red)
    scene.add_sphere((0.0, 1.2, -1.5), 0.5, mirror)
    scene.add_sphere((1.0, 0.2, -1.5), 0.5, brushed)
    scene.add_sphere((-1.0, 0.2, -1.5), 0.5, rough)

    return scene


# Registry used by the command-line driver
SCENES: dict[str, Callable[[], SceneManager]] = {
    "two-spheres": create_two_sphere_scene,
    "metal-spheres": create_metal_spheres_scene,
}
