"""Image sinks for finished renders.

Pixels arrive as a uint8 array of shape (height, width, 3) with the top row
first. They can be written as a plain-text P3 image:

    P3
    <width> <height>
    255
    r g b
    r g b
    ...

one pixel per line in top-to-bottom, left-to-right order, or saved as a PNG
via Pillow.

Example:
    >>> import sys
    >>> import numpy as np
    >>> from src.pathtrace.output.ppm import write_ppm
    >>> write_ppm(sys.stdout, np.zeros((1, 2, 3), dtype=np.uint8))
    P3
    2 1
    255
    0 0 0
    0 0 0
"""

from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

MAX_COLOUR_VALUE = 255


def _check_pixels(pixels: npt.NDArray[np.uint8]) -> None:
    """Validate a pixel array.

    Raises:
        ValueError: If the array is not uint8 of shape (height, width, 3).
    """
    if pixels.dtype != np.uint8:
        raise ValueError(f"Pixels must be uint8, got {pixels.dtype}")
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Pixels must have shape (height, width, 3), got {pixels.shape}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise ValueError(f"Pixels must not be empty, got {pixels.shape}")


def format_ppm_header(width: int, height: int) -> str:
    """Build the three header lines of a P3 image."""
    return f"P3\n{width} {height}\n{MAX_COLOUR_VALUE}\n"


def format_ppm(pixels: npt.NDArray[np.uint8]) -> str:
    """Format pixels as a P3 image.

    Args:
        pixels: Array of shape (height, width, 3), top row first.

    Returns:
        The full image text, ending with a newline.

    Raises:
        ValueError: If the pixel array is malformed.
    """
    _check_pixels(pixels)
    height, width, _ = pixels.shape
    rows = pixels.reshape(-1, 3)
    body = "".join(f"{r} {g} {b}\n" for r, g, b in rows.tolist())
    return format_ppm_header(width, height) + body


def write_ppm(stream: TextIO, pixels: npt.NDArray[np.uint8]) -> None:
    """Write pixels to a text stream as a P3 image."""
    stream.write(format_ppm(pixels))


def save_ppm(filepath: str | Path, pixels: npt.NDArray[np.uint8]) -> None:
    """Save pixels to a file as a P3 image."""
    with open(filepath, "w", encoding="ascii", newline="\n") as f:
        write_ppm(f, pixels)


def save_png(filepath: str | Path, pixels: npt.NDArray[np.uint8]) -> None:
    """Save pixels as an 8-bit RGB PNG using Pillow.

    Raises:
        ValueError: If the pixel array is malformed.
    """
    _check_pixels(pixels)
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels))
    pil_image.save(filepath)


def compute_rmse(
    image_a: npt.NDArray[np.number],
    image_b: npt.NDArray[np.number],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
