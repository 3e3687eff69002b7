"""Preview module for image output.

Components:
    export: 8-bit quantization, PPM and animated GIF writers, RMSE

Example:
    >>> from blinnray.preview import save_gif, save_ppm
    >>> save_ppm(image, "frame_0.ppm")
    >>> save_gif(frames, "animation.gif")
"""

from blinnray.preview.export import (
    compute_rmse,
    image_to_rgba,
    image_to_uint8,
    save_gif,
    save_ppm,
)

__all__ = [
    "image_to_uint8",
    "image_to_rgba",
    "save_ppm",
    "save_gif",
    "compute_rmse",
]
