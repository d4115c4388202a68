"""Unit tests for RenderSettings validation."""

import math

import pytest

from src.pathtrace.core.settings import MAX_SEED, RenderSettings


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults(self):
        """Test the default 16:9 settings give a 384x216 image."""
        settings = RenderSettings()
        assert settings.image_width == 384
        assert settings.image_height == 216
        assert settings.samples_per_pixel == 100
        assert settings.max_depth == 50
        assert settings.seed == 0

    def test_height_is_truncated(self):
        """Test image_height truncates width / aspect_ratio."""
        assert RenderSettings(image_width=100, aspect_ratio=3.0).image_height == 33

    def test_zero_depth_allowed(self):
        """Test max_depth=0 is a valid (all-black) configuration."""
        assert RenderSettings(max_depth=0).max_depth == 0

    def test_to_dict(self):
        """Test settings export as plain data."""
        data = RenderSettings(image_width=64, seed=3).to_dict()
        assert data["image_width"] == 64
        assert data["seed"] == 3
        assert set(data) == {"image_width", "aspect_ratio", "samples_per_pixel", "max_depth", "seed"}

    def test_frozen(self):
        """Test settings cannot be changed after construction."""
        settings = RenderSettings()
        with pytest.raises(AttributeError):
            settings.max_depth = 3

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"image_width": 1},
            {"image_width": 4096},
            {"image_width": 10, "aspect_ratio": 8.0},
            {"aspect_ratio": 0.0},
            {"aspect_ratio": -1.0},
            {"aspect_ratio": math.nan},
            {"samples_per_pixel": 0},
            {"max_depth": -1},
            {"seed": -1},
            {"seed": MAX_SEED + 1},
        ],
    )
    def test_invalid_values(self, kwargs):
        """Test invalid configuration raises ValueError."""
        with pytest.raises(ValueError):
            RenderSettings(**kwargs)
