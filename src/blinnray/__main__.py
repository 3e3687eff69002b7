"""Render the orbiting-light demo animation.

Usage:
    python -m blinnray [options]

Options:
    --width WIDTH         Frame width in pixels (default: 800)
    --height HEIGHT       Frame height in pixels (default: 600)
    --frames FRAMES       Frames in one light orbit (default: 36)
    --samples SAMPLES     Samples per pixel (default: 1)
    --max-depth DEPTH     Reflection recursion bound (default: 5)
    --output OUTPUT       Animated GIF path (default: animation.gif)
    --frame-dumps DIR     Also write every frame as DIR/frame_<i>.ppm
    --gpu                 Render on the GPU, falling back to the CPU
    --adaptive            Render each frame at 1, 2, 4, 8, SAMPLES spp
    --workers N           CPU worker processes (default: CPU count)
    --seed SEED           Seed for CPU sampling
    -v, --verbose         Debug logging

Example:
    python -m blinnray --width 320 --height 240 --frames 12 --gpu
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from blinnray.core.config import DEFAULT_MAX_DEPTH, RenderConfig
from blinnray.scene.animation import AnimationSettings, render_animation, write_animation
from blinnray.scene.demo import create_demo_scene

logger = logging.getLogger("blinnray")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="blinnray",
        description="Render the orbiting-light demo animation.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=800,
        help="Frame width in pixels (default: 800)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=600,
        help="Frame height in pixels (default: 600)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=36,
        help="Frames in one light orbit (default: 36)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=1,
        help="Samples per pixel (default: 1)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Reflection recursion bound (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("animation.gif"),
        help="Animated GIF path (default: animation.gif)",
    )
    parser.add_argument(
        "--frame-dumps",
        type=Path,
        default=None,
        metavar="DIR",
        help="Write every frame as DIR/frame_<i>.ppm",
    )
    parser.add_argument(
        "--gpu",
        action="store_true",
        help="Render on the GPU, falling back to the CPU",
    )
    parser.add_argument(
        "--adaptive",
        action="store_true",
        help="Render each frame at 1, 2, 4, 8 and then --samples spp",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="CPU worker processes (default: CPU count)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for CPU sampling",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    try:
        config = RenderConfig(max_depth=args.max_depth, samples=args.samples, seed=args.seed)
        settings = AnimationSettings(
            width=args.width,
            height=args.height,
            frames=args.frames,
            samples=args.samples,
            use_gpu=args.gpu,
            adaptive=args.adaptive,
            output=args.output,
            frame_dump_dir=args.frame_dumps,
            workers=args.workers,
            seed=args.seed,
        )
    except ValueError as e:
        logger.error("Invalid settings: %s", e)
        return 1

    scene, camera = create_demo_scene(aspect_ratio=args.width / args.height, config=config)

    logger.info(
        "Rendering %d frames at %dx%d, %d spp (%s)",
        settings.frames,
        settings.width,
        settings.height,
        settings.samples,
        "gpu" if settings.use_gpu else "cpu",
    )
    start_time = time.time()
    frames = render_animation(scene, camera, settings)

    try:
        write_animation(frames, settings.output, settings.frame_duration_ms)
    except OSError as e:
        logger.error("Failed to write %s: %s", settings.output, e)
        return 1

    logger.info("Total time: %.2fs", time.time() - start_time)
    return 0


if __name__ == "__main__":
    sys.exit(main())
