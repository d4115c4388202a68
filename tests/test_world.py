"""Unit tests for the world aggregate (closest-hit across all spheres)."""

import taichi as ti


def _closest(origin, direction, t_min=0.001, t_max=float("inf")):
    """Query hit_world for one ray and return (hit, t, material_id)."""
    from src.pathtrace.core.ray import make_ray
    from src.pathtrace.core.vec3 import vec3
    from src.pathtrace.scene.world import hit_world

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    material = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, lo: ti.f32, hi: ti.f32):
        rec = hit_world(make_ray(o, d), lo, hi)
        hit[None] = rec.hit
        t_val[None] = rec.t
        material[None] = rec.material_id

    test_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    return hit[None], t_val[None], material[None]


class TestWorld:
    """Tests for sphere storage and hit_world."""

    def test_empty_world_misses(self):
        """Test a world without primitives reports no hit."""
        from src.pathtrace.geometry.sphere import NO_MATERIAL

        hit, _, material = _closest((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 0
        assert material == NO_MATERIAL

    def test_add_sphere_counts(self):
        """Test spheres are appended in insertion order."""
        from src.pathtrace.core.vec3 import vec3
        from src.pathtrace.scene.world import add_sphere, clear_world, get_sphere_count

        assert add_sphere(vec3(0.0, 0.0, -1.0), 0.5, 0) == 0
        assert add_sphere(vec3(0.0, 0.0, -3.0), 0.5, 1) == 1
        assert get_sphere_count() == 2
        clear_world()
        assert get_sphere_count() == 0

    def test_nearest_hit_wins_regardless_of_order(self):
        """Test overlapping spheres resolve to the smaller t."""
        from src.pathtrace.core.vec3 import vec3
        from src.pathtrace.scene.world import add_sphere

        # Farther sphere inserted first
        add_sphere(vec3(0.0, 0.0, -3.0), 1.0, 7)
        add_sphere(vec3(0.0, 0.0, -2.0), 0.6, 8)

        hit, t, material = _closest((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 1.4) < 1e-5
        assert material == 8

    def test_nearest_hit_first_inserted(self):
        """Test the closer sphere wins when inserted first too."""
        from src.pathtrace.core.vec3 import vec3
        from src.pathtrace.scene.world import add_sphere

        add_sphere(vec3(0.0, 0.0, -2.0), 0.6, 8)
        add_sphere(vec3(0.0, 0.0, -3.0), 1.0, 7)

        hit, t, material = _closest((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 1.4) < 1e-5
        assert material == 8

    def test_t_min_skips_surface_at_origin(self):
        """Test a ray leaving a surface does not re-hit it at t ~ 0."""
        from src.pathtrace.core.vec3 import vec3
        from src.pathtrace.scene.world import add_sphere

        add_sphere(vec3(0.0, 0.0, -1.0), 0.5, 0)

        # Start on the front surface, head away from the sphere
        hit, _, _ = _closest((0.0, 0.0, -0.5), (0.0, 0.0, 1.0))
        assert hit == 0

    def test_ray_above_both_spheres_misses(self):
        """Test an upward ray misses the ground and the small sphere."""
        from src.pathtrace.core.vec3 import vec3
        from src.pathtrace.scene.world import add_sphere

        add_sphere(vec3(0.0, -100.5, -1.0), 100.0, 0)
        add_sphere(vec3(0.0, 0.0, -1.0), 0.5, 1)

        hit, _, _ = _closest((0.0, 0.0, 0.0), (0.0, 1.0, -0.2))
        assert hit == 0

    def test_capacity_limit(self, monkeypatch):
        """Test add_sphere raises once the storage is full."""
        import pytest

        from src.pathtrace.core.vec3 import vec3
        from src.pathtrace.scene import world

        monkeypatch.setattr(world, "MAX_SPHERES", 2)
        world.add_sphere(vec3(0.0, 0.0, -1.0), 0.5, 0)
        world.add_sphere(vec3(0.0, 0.0, -2.0), 0.5, 0)
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            world.add_sphere(vec3(0.0, 0.0, -3.0), 0.5, 0)
