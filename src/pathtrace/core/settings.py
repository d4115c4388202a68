"""Render configuration.

All render parameters are start-of-run constants: they are consumed once by
camera setup and by the integrator's depth bound and never change while a
frame is being computed.

Example:
    >>> settings = RenderSettings(image_width=384, samples_per_pixel=10, max_depth=5)
    >>> settings.image_height
    216
"""

import math
from dataclasses import asdict, dataclass
from typing import Any

# Maximum supported image dimensions (render target is preallocated to this size)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Seeds are hashed into 32-bit random streams
MAX_SEED = 2**32 - 1


@dataclass(frozen=True)
class RenderSettings:
    """Configuration for one render.

    Attributes:
        image_width: Image width in pixels.
        aspect_ratio: Width divided by height; determines image_height and
            the camera viewport.
        samples_per_pixel: Number of jittered paths averaged per pixel.
        max_depth: Maximum number of ray segments per path. 0 renders black.
        seed: Seed of the per-pixel random streams. Identical settings and
            seed reproduce identical output.
    """

    image_width: int = 384
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = 50
    seed: int = 0

    def __post_init__(self) -> None:
        if not math.isfinite(self.aspect_ratio) or self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive and finite, got {self.aspect_ratio}")
        if self.image_width < 2 or self.image_height < 2:
            raise ValueError(
                f"Image must be at least 2x2 pixels, got {self.image_width}x{self.image_height}"
            )
        if self.image_width > MAX_IMAGE_WIDTH or self.image_height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.image_width}x{self.image_height}) exceed maximum "
                f"supported ({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if not 0 <= self.seed <= MAX_SEED:
            raise ValueError(f"seed must be in [0, {MAX_SEED}], got {self.seed}")

    @property
    def image_height(self) -> int:
        """Image height in pixels, truncated from width / aspect_ratio."""
        return int(self.image_width / self.aspect_ratio)

    def to_dict(self) -> dict[str, Any]:
        """Export the settings as plain data."""
        return asdict(self)
