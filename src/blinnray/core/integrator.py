"""Multi-sample pixel integrator for the CPU path.

This module turns a scene and a camera into an image by sampling every pixel
through Scene.cast_ray. Rows are independent and are distributed across
worker processes; each row owns a private random generator for its jitter
offsets, so no state is shared between workers beyond the read-only scene
and camera.

Sampling policy:
    - samples <= 1: one ray through the pixel center (deterministic).
    - samples > 1: that many rays with uniform [0, 1) jitter in x and y,
      averaged with weight 1/samples.

Finished pixels are clamped to [0, 1] per channel. Intermediate shading
results are not clamped.

Example:
    >>> from blinnray.core.integrator import trace_image
    >>> from blinnray.scene.demo import create_demo_scene
    >>> scene, camera = create_demo_scene(aspect_ratio=4.0 / 3.0)
    >>> image = trace_image(scene, camera, 80, 60, samples=4, workers=1)
    >>> image.shape
    (60, 80, 3)
"""

from __future__ import annotations

import functools
import logging
import os
from concurrent.futures import ProcessPoolExecutor
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from blinnray.core.vector import Color

if TYPE_CHECKING:
    from blinnray.camera.pinhole import Camera
    from blinnray.scene.scene import Scene

logger = logging.getLogger(__name__)


# =============================================================================
# Pixel Sampling
# =============================================================================


def pixel_to_ndc(
    x: float,
    y: float,
    width: int,
    height: int,
    offset_x: float = 0.5,
    offset_y: float = 0.5,
) -> tuple[float, float]:
    """Map a position inside pixel (x, y) to normalized device coordinates.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        offset_x: Sub-pixel offset in [0, 1).
        offset_y: Sub-pixel offset in [0, 1).

    Returns:
        (ndc_x, ndc_y) in [-1, 1]. The camera inverts ndc_y.
    """
    ndc_x = ((x + offset_x) / width) * 2.0 - 1.0
    ndc_y = ((y + offset_y) / height) * 2.0 - 1.0
    return ndc_x, ndc_y


def sample_pixel(
    scene: Scene,
    camera: Camera,
    x: int,
    y: int,
    width: int,
    height: int,
    samples: int,
    rng: np.random.Generator,
    max_depth: int,
) -> Color:
    """Estimate the clamped color of one pixel.

    Args:
        scene: The scene to sample.
        camera: The camera generating primary rays.
        x: Pixel column.
        y: Pixel row.
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel. <= 1 selects the centered sample.
        rng: Generator supplying jitter offsets.
        max_depth: Recursion bound passed to cast_ray.

    Returns:
        The pixel color clamped to [0, 1].
    """
    if samples <= 1:
        ndc_x, ndc_y = pixel_to_ndc(x, y, width, height)
        return scene.cast_ray(camera.cast_ray(ndc_x, ndc_y), max_depth).clamp()

    color = Color.black()
    for offset_x, offset_y in rng.random((samples, 2)):
        ndc_x, ndc_y = pixel_to_ndc(x, y, width, height, float(offset_x), float(offset_y))
        color = color + scene.cast_ray(camera.cast_ray(ndc_x, ndc_y), max_depth)

    return (color * (1.0 / samples)).clamp()


def row_generator(row: int, seed: int | None) -> np.random.Generator:
    """Create the private generator for one image row.

    With a seed the stream depends only on (seed, row), so a render is
    reproducible regardless of how rows are distributed across workers.
    """
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng([seed, row])


def trace_row(
    y: int,
    scene: Scene,
    camera: Camera,
    width: int,
    height: int,
    samples: int,
    seed: int | None,
) -> npt.NDArray[np.float64]:
    """Render one image row.

    Returns:
        Array of shape (width, 3).
    """
    rng = row_generator(y, seed)
    max_depth = scene.config.max_depth
    row = np.empty((width, 3), dtype=np.float64)
    for x in range(width):
        row[x] = sample_pixel(scene, camera, x, y, width, height, samples, rng, max_depth).to_tuple()
    return row


# =============================================================================
# Image Rendering
# =============================================================================


def trace_image(
    scene: Scene,
    camera: Camera,
    width: int,
    height: int,
    samples: int = 1,
    *,
    workers: int | None = None,
    seed: int | None = None,
) -> npt.NDArray[np.float64]:
    """Render a full image with rows computed in parallel.

    The call blocks until every row is finished; there is no cancellation
    or timeout. Row order in the output matches the row index regardless of
    completion order.

    Args:
        scene: The scene to render. Must not be mutated during the call.
        camera: The camera to render from.
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel.
        workers: Number of worker processes (default: CPU count). 1 renders
            in the calling process.
        seed: Optional base seed for the per-row generators.

    Returns:
        Array of shape (height, width, 3) with channels in [0, 1].

    Raises:
        ValueError: If width, height or workers is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    if workers is None:
        workers = os.cpu_count() or 1
    if workers < 1:
        raise ValueError(f"workers must be positive, got {workers}")

    render_row = functools.partial(
        trace_row,
        scene=scene,
        camera=camera,
        width=width,
        height=height,
        samples=samples,
        seed=seed,
    )

    logger.debug(
        "Tracing %dx%d image, %d spp, %d worker(s)", width, height, samples, workers
    )

    if workers == 1 or height == 1:
        rows = [render_row(y) for y in range(height)]
    else:
        chunksize = max(1, height // (workers * 4))
        with ProcessPoolExecutor(max_workers=workers) as executor:
            rows = list(executor.map(render_row, range(height), chunksize=chunksize))

    return np.stack(rows)
