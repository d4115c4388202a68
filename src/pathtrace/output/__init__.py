"""Output module: writing finished pixels as P3 (PPM) text or PNG files."""

from .ppm import (
    MAX_COLOUR_VALUE,
    compute_rmse,
    format_ppm,
    format_ppm_header,
    save_png,
    save_ppm,
    write_ppm,
)

__all__ = [
    "MAX_COLOUR_VALUE",
    "format_ppm",
    "format_ppm_header",
    "write_ppm",
    "save_ppm",
    "save_png",
    "compute_rmse",
]
