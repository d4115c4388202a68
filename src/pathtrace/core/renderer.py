"""Renderer: one frozen scene in, finished pixel rows out.

The Renderer class wraps the integrator with the steps every render needs:
freeze the scene, set up the camera, compute the frame band by band, and
hand the finished pixels to an image sink in top-to-bottom scan order.

Example:
    >>> import sys
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.core.renderer import Renderer
    >>> from src.pathtrace.core.settings import RenderSettings
    >>> from src.pathtrace.scene.presets import create_two_sphere_scene
    >>>
    >>> renderer = Renderer(RenderSettings(samples_per_pixel=10, max_depth=5, seed=1))
    >>> renderer.render(create_two_sphere_scene())
    >>> renderer.write_ppm(sys.stdout)
"""

from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt

from src.pathtrace.camera.pinhole import Camera, setup_camera
from src.pathtrace.core.integrator import (
    ROWS_PER_BATCH,
    ProgressCallback,
    get_pixels,
    get_radiance_numpy,
    render_image,
)
from src.pathtrace.core.settings import RenderSettings
from src.pathtrace.output.ppm import save_png, save_ppm, write_ppm
from src.pathtrace.scene.manager import SceneManager


class Renderer:
    """Renders scenes with fixed settings and camera.

    Attributes:
        settings: The render configuration.
        camera: The camera; defaults to the fixed camera at the origin with
            the settings' aspect ratio.
    """

    def __init__(self, settings: RenderSettings, camera: Camera | None = None) -> None:
        """Initialize the renderer.

        Args:
            settings: Image size, sampling and depth configuration.
            camera: Optional camera. Defaults to Camera(aspect_ratio=...).
        """
        self.settings = settings
        self.camera = camera if camera is not None else Camera(aspect_ratio=settings.aspect_ratio)
        self._pixels: npt.NDArray[np.uint8] | None = None

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.image_width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.image_height

    def render(
        self,
        scene: SceneManager,
        callback: ProgressCallback | None = None,
        rows_per_batch: int = ROWS_PER_BATCH,
    ) -> npt.NDArray[np.uint8]:
        """Render a scene.

        The scene is frozen first; it stays immutable afterwards.

        Args:
            scene: The scene to render.
            callback: Optional progress callback receiving
                (rows_done, rows_total) after each band of rows.
            rows_per_batch: Number of rows per kernel launch.

        Returns:
            The finished pixels, shape (height, width, 3), top row first.

        Raises:
            RuntimeError: If a newer SceneManager has replaced the scene's
                storage.
        """
        scene.check_live()
        scene.freeze()
        setup_camera(self.camera)
        render_image(self.settings, callback=callback, rows_per_batch=rows_per_batch)
        self._pixels = get_pixels()
        return self._pixels

    def pixels(self) -> npt.NDArray[np.uint8]:
        """Get the pixels of the last render.

        Raises:
            RuntimeError: If render() has not been called.
        """
        if self._pixels is None:
            raise RuntimeError("Nothing rendered yet. Call render() first.")
        return self._pixels

    def radiance(self) -> npt.NDArray[np.float32]:
        """Get the averaged linear radiance of the last render."""
        self.pixels()
        return get_radiance_numpy()

    def write_ppm(self, stream: TextIO) -> None:
        """Write the last render to a text stream as a P3 image."""
        write_ppm(stream, self.pixels())

    def save_ppm(self, filepath: str | Path) -> None:
        """Save the last render as a P3 image file."""
        save_ppm(filepath, self.pixels())

    def save_png(self, filepath: str | Path) -> None:
        """Save the last render as a PNG file."""
        save_png(filepath, self.pixels())

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples={self.settings.samples_per_pixel}, depth={self.settings.max_depth})"
        )
