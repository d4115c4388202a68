"""Unit tests for the Lambertian material module.

Tests cover:
- Scattering always happens with attenuation equal to the albedo
- Scattered directions lie on the normal's side of the surface
- Material registry operations and albedo validation
"""

import numpy as np
import pytest
import taichi as ti

N = 4096


class TestLambertianScatter:
    """Tests for scatter_lambertian."""

    def test_always_scatters(self):
        """Test every sample scatters with a non-degenerate direction."""
        from src.pathtrace.core.rng import seed_rng
        from src.pathtrace.core.vec3 import dot, length, vec3
        from src.pathtrace.geometry.sphere import HitRecord
        from src.pathtrace.materials.lambertian import scatter_lambertian

        scattered = ti.field(dtype=ti.i32, shape=N)
        attenuations = ti.Vector.field(3, dtype=ti.f32, shape=N)
        lengths = ti.field(dtype=ti.f32, shape=N)
        cosines = ti.field(dtype=ti.f32, shape=N)

        @ti.kernel
        def test_kernel():
            for i in range(N):
                rec = HitRecord(
                    hit=1,
                    t=1.0,
                    p=vec3(0.0, 0.0, 0.0),
                    normal=vec3(0.0, 1.0, 0.0),
                    front_face=1,
                    material_id=0,
                )
                state = seed_rng(ti.u32(1), ti.cast(i, ti.u32))
                did_scatter, attenuation, direction, state = scatter_lambertian(
                    vec3(0.7, 0.3, 0.3), rec, state
                )
                scattered[i] = did_scatter
                attenuations[i] = attenuation
                lengths[i] = length(direction)
                cosines[i] = dot(direction, rec.normal)

        test_kernel()
        assert np.all(scattered.to_numpy() == 1)
        np.testing.assert_allclose(attenuations.to_numpy(), np.tile([0.7, 0.3, 0.3], (N, 1)), atol=1e-6)
        assert lengths.to_numpy().min() > 0.0
        assert cosines.to_numpy().min() >= 0.0

    def test_directions_favour_the_normal(self):
        """Test normal + unit vector sampling is biased toward the normal."""
        from src.pathtrace.core.rng import seed_rng
        from src.pathtrace.core.vec3 import unit, vec3
        from src.pathtrace.geometry.sphere import HitRecord
        from src.pathtrace.materials.lambertian import scatter_lambertian

        cosines = ti.field(dtype=ti.f32, shape=N)

        @ti.kernel
        def test_kernel():
            for i in range(N):
                rec = HitRecord(
                    hit=1,
                    t=1.0,
                    p=vec3(0.0, 0.0, 0.0),
                    normal=vec3(0.0, 0.0, 1.0),
                    front_face=1,
                    material_id=0,
                )
                state = seed_rng(ti.u32(2), ti.cast(i, ti.u32))
                _, _, direction, state = scatter_lambertian(vec3(0.5, 0.5, 0.5), rec, state)
                cosines[i] = unit(direction).z

        test_kernel()
        # Cosine-weighted hemisphere: E[cos theta] = 2/3
        assert abs(cosines.to_numpy().mean() - 2.0 / 3.0) < 0.02


class TestLambertianRegistry:
    """Tests for the Lambertian material registry."""

    def test_add_and_count(self):
        """Test materials get sequential type-local indices."""
        from src.pathtrace.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
            lambertian_albedos,
        )

        assert add_lambertian_material((0.8, 0.8, 0.0)) == 0
        assert add_lambertian_material((0.7, 0.3, 0.3)) == 1
        assert get_lambertian_material_count() == 2
        a = lambertian_albedos[1]
        assert abs(a[0] - 0.7) < 1e-6
        assert abs(a[1] - 0.3) < 1e-6

    @pytest.mark.parametrize("albedo", [(1.2, 0.5, 0.5), (0.5, -0.1, 0.5), (0.5, 0.5, float("nan"))])
    def test_invalid_albedo(self, albedo):
        """Test albedo components outside [0, 1] are rejected."""
        from src.pathtrace.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError, match="outside"):
            add_lambertian_material(albedo)

    def test_clear(self):
        """Test clearing resets the count."""
        from src.pathtrace.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        add_lambertian_material((0.5, 0.5, 0.5))
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0
