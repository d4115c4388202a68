#!/usr/bin/env python3
"""Render one of the preset sphere scenes.

The P3 image goes to standard output unless --output is given, so progress
is reported on standard error.

Usage:
    python -m examples.render_spheres [options] > image.ppm

Options:
    --width WIDTH       Image width in pixels (default: 384)
    --aspect RATIO      Aspect ratio, width/height (default: 1.7778)
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --depth DEPTH       Maximum bounces per path (default: 50)
    --seed SEED         Random seed (default: 0)
    --scene NAME        Preset scene: two-spheres or metal-spheres
    --output OUTPUT     Write the P3 image to this file instead of stdout
    --png PATH          Also save a PNG copy
    --quiet             Suppress progress output

Example:
    python -m examples.render_spheres --scene metal-spheres --samples 50 --output spheres.ppm
"""

from __future__ import annotations

import argparse
import sys
import time

import taichi as ti

SCENE_NAMES = ("two-spheres", "metal-spheres")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset sphere scene as a P3 image.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=384,
        help="Image width in pixels (default: 384)",
    )
    parser.add_argument(
        "--aspect",
        type=float,
        default=16.0 / 9.0,
        help="Aspect ratio, width/height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_NAMES,
        default="two-spheres",
        help="Preset scene (default: two-spheres)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the P3 image to this file (default: stdout)",
    )
    parser.add_argument(
        "--png",
        type=str,
        default=None,
        help="Also save a PNG copy to this path",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_spheres(args: argparse.Namespace) -> None:
    """Render the selected scene and write the image(s).

    Args:
        args: Parsed command-line arguments.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtrace.core.renderer import Renderer
    from src.pathtrace.core.settings import RenderSettings
    from src.pathtrace.scene.presets import SCENES

    settings = RenderSettings(
        image_width=args.width,
        aspect_ratio=args.aspect,
        samples_per_pixel=args.samples,
        max_depth=args.depth,
        seed=args.seed,
    )

    if not args.quiet:
        print(
            f"Creating {args.scene} scene ({settings.image_width}x{settings.image_height})...",
            file=sys.stderr,
        )
    scene = SCENES[args.scene]()
    renderer = Renderer(settings)

    start_time = time.time()

    def progress_callback(rows_done: int, rows_total: int) -> None:
        if not args.quiet:
            elapsed = time.time() - start_time
            print(
                f"\r  Scanlines: {rows_done}/{rows_total} "
                f"({rows_done / rows_total * 100:.1f}%) - {elapsed:.1f}s",
                end="",
                file=sys.stderr,
                flush=True,
            )

    renderer.render(scene, callback=progress_callback)

    if not args.quiet:
        print(file=sys.stderr)  # Newline after progress

    if args.output is None:
        renderer.write_ppm(sys.stdout)
        sys.stdout.flush()
    else:
        renderer.save_ppm(args.output)
        if not args.quiet:
            print(f"Saved to: {args.output}", file=sys.stderr)

    if args.png is not None:
        renderer.save_png(args.png)
        if not args.quiet:
            print(f"Saved to: {args.png}", file=sys.stderr)

    if not args.quiet:
        print(f"Total time: {time.time() - start_time:.2f}s", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Initialize Taichi
    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
    except Exception:
        ti.init(arch=ti.cpu)

    try:
        render_spheres(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
