"""Taichi-based Monte Carlo path tracer.

This package renders scenes of spheres by stochastically sampling
light-carrying paths from a virtual camera, with support for:
- Diffuse, metal and dielectric materials
- Closest-hit intersection over an insertion-ordered primitive list
- Jittered antialiasing with a per-pixel, seedable random stream
- Plain-text P3 image output (and PNG via Pillow)

Subpackages:
    core: Vector math, random source, rays, integrator and renderer
    geometry: Sphere primitive and hit records
    materials: Lambertian, metal and dielectric scatter models
    scene: Primitive storage, scene manager and preset scenes
    camera: Viewport camera and primary ray generation
    output: Image sinks (P3 text, PNG)
"""

__version__ = "0.1.0"
