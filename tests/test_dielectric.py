"""Unit tests for the Dielectric material module.

Tests cover:
- Refraction at normal incidence passes straight through
- Total internal reflection when leaving glass at a steep angle
- Schlick reflectance frequency at normal incidence
- Attenuation is always white
- Material registry and index of refraction validation
"""

import math

import numpy as np
import pytest
import taichi as ti

N = 8192


def _scatter_many(direction, normal, front_face, ior, seed=0):
    """Scatter N rays with identical geometry through a dielectric."""
    from src.pathtrace.core.ray import make_ray
    from src.pathtrace.core.rng import seed_rng
    from src.pathtrace.core.vec3 import unit, vec3
    from src.pathtrace.geometry.sphere import HitRecord
    from src.pathtrace.materials.dielectric import scatter_dielectric

    scattered = ti.field(dtype=ti.i32, shape=N)
    attenuations = ti.Vector.field(3, dtype=ti.f32, shape=N)
    directions = ti.Vector.field(3, dtype=ti.f32, shape=N)

    @ti.kernel
    def test_kernel(d: vec3, n: vec3, face: ti.i32, eta: ti.f32, s: ti.u32):
        for i in range(N):
            rec = HitRecord(
                hit=1,
                t=1.0,
                p=vec3(0.0, 0.0, 0.0),
                normal=n,
                front_face=face,
                material_id=0,
            )
            state = seed_rng(s, ti.cast(i, ti.u32))
            did_scatter, attenuation, out, state = scatter_dielectric(
                eta, make_ray(vec3(0.0, 1.0, 0.0), d), rec, state
            )
            scattered[i] = did_scatter
            attenuations[i] = attenuation
            directions[i] = unit(out)

    test_kernel(vec3(*direction), vec3(*normal), front_face, ior, seed)
    return scattered.to_numpy(), attenuations.to_numpy(), directions.to_numpy()


class TestDielectricScatter:
    """Tests for scatter_dielectric."""

    def test_normal_incidence_mostly_refracts(self):
        """Test head-on rays pass straight through except for ~4% reflections."""
        scattered, attenuations, directions = _scatter_many(
            (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 1, 1.5
        )
        assert np.all(scattered == 1)
        np.testing.assert_allclose(attenuations, 1.0, atol=1e-6)

        through = directions[:, 1] < 0.0
        np.testing.assert_allclose(directions[through], np.tile([0.0, -1.0, 0.0], (through.sum(), 1)), atol=1e-5)
        # R0 = ((1 - 1.5) / (1 + 1.5))^2 = 0.04
        reflected_fraction = 1.0 - through.mean()
        assert abs(reflected_fraction - 0.04) < 0.01

    def test_total_internal_reflection(self):
        """Test rays leaving glass beyond the critical angle always reflect."""
        # 60 degrees from the normal, past the ~41.8 degree critical angle
        angle = math.radians(60.0)
        incoming = (math.sin(angle), -math.cos(angle), 0.0)
        scattered, _, directions = _scatter_many(incoming, (0.0, 1.0, 0.0), 0, 1.5)
        assert np.all(scattered == 1)
        expected = np.array([math.sin(angle), math.cos(angle), 0.0])
        np.testing.assert_allclose(directions, np.tile(expected, (N, 1)), atol=1e-5)

    def test_refraction_bends_toward_normal(self):
        """Test refracted rays entering glass obey Snell's law."""
        angle = math.radians(30.0)
        incoming = (math.sin(angle), -math.cos(angle), 0.0)
        _, _, directions = _scatter_many(incoming, (0.0, 1.0, 0.0), 1, 1.5)
        refracted = directions[directions[:, 1] < 0.0]
        assert len(refracted) > 0
        np.testing.assert_allclose(refracted[:, 0], math.sin(angle) / 1.5, atol=1e-5)

    def test_matched_index_does_not_bend(self):
        """Test an ior of 1.0 transmits rays without bending them."""
        incoming = np.array([0.3, -0.8, 0.1])
        incoming = incoming / np.linalg.norm(incoming)
        _, _, directions = _scatter_many(tuple(incoming), (0.0, 1.0, 0.0), 1, 1.0)
        transmitted = directions[directions[:, 1] < 0.0]
        assert len(transmitted) > N // 2
        np.testing.assert_allclose(transmitted, np.tile(incoming, (len(transmitted), 1)), atol=1e-5)


class TestDielectricRegistry:
    """Tests for the dielectric material registry."""

    def test_add_material(self):
        """Test ior is stored."""
        from src.pathtrace.materials.dielectric import (
            add_dielectric_material,
            dielectric_iors,
            get_dielectric_material_count,
        )

        assert add_dielectric_material(1.33) == 0
        assert add_dielectric_material() == 1
        assert get_dielectric_material_count() == 2
        assert abs(dielectric_iors[0] - 1.33) < 1e-6
        assert abs(dielectric_iors[1] - 1.5) < 1e-6

    @pytest.mark.parametrize("ior", [0.5, -1.0, float("nan"), float("inf")])
    def test_invalid_ior(self, ior):
        """Test indices of refraction below 1 or non-finite are rejected."""
        from src.pathtrace.materials.dielectric import add_dielectric_material

        with pytest.raises(ValueError, match="Index of refraction"):
            add_dielectric_material(ior)
