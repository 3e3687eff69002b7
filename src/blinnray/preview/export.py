"""Image export utilities for rendered images.

Rendered images are (height, width, 3) float arrays with linear channels in
[0, 1]. They are quantized to 8 bits by clamping, scaling by 255 and
truncating; no tone mapping or gamma correction is applied.

Supported formats:
    - PPM (plain-text P3, one "r g b" line per pixel)
    - GIF (animated, via Pillow)

Example:
    >>> from blinnray.preview.export import save_gif, save_ppm
    >>> save_ppm(image, "frame_0.ppm")
    >>> save_gif([image_a, image_b], "animation.gif", frame_duration_ms=100)
"""

from __future__ import annotations

import os
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

PathLike = str | os.PathLike


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8.

    Args:
        image: Image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3).
    """
    clamped = np.clip(np.asarray(image, dtype=np.float64), 0.0, 1.0)
    # Truncation, not rounding: 0.999 maps to 254
    return (clamped * 255.0).astype(np.uint8)


def image_to_rgba(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to opaque RGBA uint8 of shape (H, W, 4)."""
    rgb = image_to_uint8(image)
    alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([rgb, alpha], axis=-1)


def save_ppm(image: npt.NDArray[np.floating], filepath: PathLike) -> None:
    """Save an image as a plain-text PPM (P3) file.

    The header is "P3\\n{width} {height}\\n255\\n" followed by one pixel per
    line in row-major order.

    Raises:
        OSError: If the file cannot be written.
    """
    pixels = image_to_uint8(image)
    height, width = pixels.shape[:2]

    lines = [f"P3\n{width} {height}\n255\n"]
    lines.extend(f"{r} {g} {b}\n" for r, g, b in pixels.reshape(-1, 3))

    with open(filepath, "w", encoding="ascii") as f:
        f.writelines(lines)


def save_gif(
    frames: Sequence[npt.NDArray[np.floating]],
    filepath: PathLike,
    *,
    frame_duration_ms: int = 100,
    loop: int = 0,
) -> None:
    """Save frames as an animated GIF.

    Args:
        frames: Images of identical shape (H, W, 3).
        filepath: Output file path (should end in .gif).
        frame_duration_ms: Display time of each frame.
        loop: Number of repeats; 0 loops forever.

    Raises:
        ValueError: If frames is empty.
        OSError: If the file cannot be written.
    """
    if not frames:
        raise ValueError("Cannot write a GIF with no frames")

    images = [PILImage.fromarray(image_to_rgba(frame), mode="RGBA") for frame in frames]
    images[0].save(
        filepath,
        format="GIF",
        save_all=True,
        append_images=images[1:],
        duration=frame_duration_ms,
        loop=loop,
    )


def compute_rmse(image_a: npt.ArrayLike, image_b: npt.ArrayLike) -> float:
    """Root mean squared difference of two images, computed in float64.

    Used to compare the float64 CPU path with the float32 device output.

    Raises:
        ValueError: If the shapes differ.
    """
    a = np.asarray(image_a, dtype=np.float64)
    b = np.asarray(image_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Image shapes must match: {a.shape} vs {b.shape}")
    return float(np.sqrt(np.mean(np.square(a - b))))
