#!/usr/bin/env python3
"""Render a single demo frame with adaptive sampling.

This script renders one frame of the demo scene with the light at a chosen
position in its orbit, using the GPU backend when available and the CPU
otherwise, and saves it as a PPM. It shows the library API the CLI is built
from; for the full animation use `python -m blinnray`.

Usage:
    python examples/render_animation.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 300)
    --samples SAMPLES   Target samples per pixel (default: 16)
    --frame INDEX       Frame of a 36-frame orbit (default: 0)
    --output OUTPUT     Output file path (default: frame.ppm)
    --cpu               Skip the GPU backend

Example:
    python examples/render_animation.py --width 200 --height 150 --samples 8
"""

from __future__ import annotations

import argparse
import functools
import sys
import time
from pathlib import Path

from blinnray.core.progressive import ProgressiveRenderer
from blinnray.gpu.errors import GpuError
from blinnray.gpu.renderer import GpuRenderer
from blinnray.preview.export import save_ppm
from blinnray.scene.animation import orbit_light
from blinnray.scene.demo import create_demo_scene

ORBIT_FRAMES = 36


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render one frame of the demo scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=400, help="Image width in pixels (default: 400)")
    parser.add_argument("--height", type=int, default=300, help="Image height in pixels (default: 300)")
    parser.add_argument("--samples", type=int, default=16, help="Target samples per pixel (default: 16)")
    parser.add_argument("--frame", type=int, default=0, help="Frame of a 36-frame orbit (default: 0)")
    parser.add_argument("--output", type=str, default="frame.ppm", help="Output file path (default: frame.ppm)")
    parser.add_argument("--cpu", action="store_true", help="Skip the GPU backend")
    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()

    scene, camera = create_demo_scene(aspect_ratio=args.width / args.height)
    scene.set_lights([orbit_light(args.frame, ORBIT_FRAMES)])

    renderer = None
    if not args.cpu:
        try:
            renderer = GpuRenderer()
            print(f"Using GPU backend ({renderer.device_name})")
        except GpuError as e:
            print(f"GPU unavailable ({e}), using CPU backend")

    if renderer is not None:
        render_fn = functools.partial(renderer.render, scene, camera, args.width, args.height)
    else:
        render_fn = functools.partial(scene.trace, camera, args.width, args.height)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        print(f"\r  Rendering {current}/{target} samples ({elapsed:.1f}s)", end="", flush=True)

    image = ProgressiveRenderer(render_fn).render(args.samples, callback=progress_callback)
    print()  # Newline after progress

    output_file = Path(args.output)
    save_ppm(image, output_file)
    print(f"Saved to: {output_file.absolute()}")
    print(f"Total time: {time.time() - start_time:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
