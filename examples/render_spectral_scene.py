#!/usr/bin/env python3
"""Render the demo scene with the spectral path tracer.

Usage:
    python examples/render_spectral_scene.py [options]

Options:
    --width WIDTH         Image width in pixels (default: 400)
    --height HEIGHT       Image height in pixels (default: 300)
    --samples SAMPLES     Samples per pixel (default: 16)
    --max-depth DEPTH     Fixed extinction depth (default: 5)
    --half-life [H]       Use half-life extinction instead of a fixed depth (default H: 3)
    --seed SEED           Render seed (default: random)
    --tone-map METHOD     none, reinhard or exposure (default: reinhard)
    --output OUTPUT       Output PNG path (default: spectral_scene.png)
    --spectral OUTPUT     Also save raw spectral buckets as .npz
    --arch ARCH           Taichi backend (default: LUMEN_ARCH or gpu)
    --preview             Show the result in a Matplotlib window
    --geometry            Render the layout only (no light transport)

Example:
    python examples/render_spectral_scene.py --width 200 --height 150 --samples 64 --half-life 3
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from lumen.config import DEFAULT_HALF_LIFE, DEFAULT_MAX_DEPTH, DEFAULT_WAVELENGTHS, init_backend
from lumen.logging_config import setup_logging

logger = logging.getLogger("lumen.examples.render_spectral_scene")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo scene with the spectral path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=400, help="Image width in pixels (default: 400)")
    parser.add_argument("--height", type=int, default=300, help="Image height in pixels (default: 300)")
    parser.add_argument("--samples", type=int, default=16, help="Samples per pixel (default: 16)")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Fixed extinction depth (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--half-life",
        type=float,
        nargs="?",
        const=DEFAULT_HALF_LIFE,
        default=None,
        help=f"Use half-life extinction instead of a fixed depth (bare flag: {DEFAULT_HALF_LIFE})",
    )
    parser.add_argument("--seed", type=int, default=None, help="Render seed (default: random)")
    parser.add_argument(
        "--tone-map",
        choices=("none", "reinhard", "exposure"),
        default="reinhard",
        help="Tone mapping operator (default: reinhard)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spectral_scene.png",
        help="Output PNG path (default: spectral_scene.png)",
    )
    parser.add_argument("--spectral", type=str, default=None, help="Also save spectral buckets to this .npz path")
    parser.add_argument("--arch", type=str, default=None, help="Taichi backend (default: LUMEN_ARCH or gpu)")
    parser.add_argument("--preview", action="store_true", help="Show the result in a Matplotlib window")
    parser.add_argument(
        "--geometry",
        action="store_true",
        help="Render object responses without light transport, to check the layout",
    )
    parser.add_argument("--log-level", type=str, default=None, help="Log level (default: LUMEN_LOG_LEVEL)")
    return parser.parse_args()


def render_spectral_scene(args: argparse.Namespace) -> Path:
    """Render the demo scene and write it to disk.

    Returns:
        Path to the saved PNG.
    """
    # Field-allocating modules are imported after init_backend()
    from lumen.camera.camera import Camera
    from lumen.core.color import spectral_image_to_rgb
    from lumen.core.integrator import Fix, HalfLife, PathTracer
    from lumen.preview.export import save_png_from_array, save_spectral_npz
    from lumen.scene.demo import DemoSceneParams, create_demo_scene

    scene, camera_config = create_demo_scene(DemoSceneParams(resolution=(args.width, args.height)))
    camera = Camera(camera_config)

    extinction = HalfLife(args.half_life) if args.half_life is not None else Fix(args.max_depth)
    tracer = PathTracer(samples_per_pixel=args.samples, extinction=extinction)

    def progress(done: int, total: int) -> None:
        if done == total or done % max(1, total // 10) == 0:
            logger.info("Progress: %d/%d passes", done, total)

    if args.geometry:
        buckets = tracer.render_geometry(scene, camera, DEFAULT_WAVELENGTHS, seed=args.seed or 0)
        rgb = spectral_image_to_rgb(buckets, DEFAULT_WAVELENGTHS)
    else:
        buckets = tracer.render_spectral(scene, camera, DEFAULT_WAVELENGTHS, seed=args.seed, callback=progress)
        rgb = spectral_image_to_rgb(buckets * buckets.shape[-1], DEFAULT_WAVELENGTHS)

    output = Path(args.output)
    save_png_from_array(rgb, str(output), tone_map=args.tone_map)
    if args.spectral is not None:
        save_spectral_npz(buckets, DEFAULT_WAVELENGTHS, args.spectral)

    if args.preview:
        from lumen.preview.display import show_preview

        show_preview(rgb, tone_map=args.tone_map, title=f"Demo scene - {args.samples} spp")

    return output


def main() -> int:
    args = parse_args()
    setup_logging(args.log_level)
    init_backend(args.arch)
    output = render_spectral_scene(args)
    logger.info("Done: %s", output.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
