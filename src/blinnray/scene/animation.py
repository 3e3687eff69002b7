"""Orbiting-light animation driver.

Each frame replaces the scene's lights with a single point light on a circle
around the z axis and renders the frame on the selected backend. Frames can
be dumped individually as PPM files and are finally written as one animated
GIF.

Backend selection:
    - use_gpu=False: every frame renders on the CPU path.
    - use_gpu=True: a GpuRenderer is created. If that fails, or a GPU render
      fails mid-animation, a warning is logged and the CPU path renders the
      current frame and all remaining ones.

Example:
    >>> from blinnray.scene.animation import AnimationSettings, render_animation
    >>> from blinnray.scene.demo import create_demo_scene
    >>> settings = AnimationSettings(width=160, height=120, frames=12)
    >>> scene, camera = create_demo_scene(aspect_ratio=160 / 120)
    >>> frames = render_animation(scene, camera, settings)
"""

from __future__ import annotations

import functools
import logging
import math
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import numpy.typing as npt

from blinnray.camera.pinhole import Camera
from blinnray.core.progressive import ProgressiveRenderer
from blinnray.core.vector import Vector3D
from blinnray.gpu.errors import GpuError
from blinnray.gpu.renderer import GpuRenderer
from blinnray.preview.export import save_gif, save_ppm
from blinnray.scene.scene import Light, Scene

logger = logging.getLogger(__name__)

# =============================================================================
# Light Orbit
# =============================================================================

ORBIT_RADIUS = 2.0
ORBIT_HEIGHT = 1.0
LIGHT_INTENSITY = 10.0


def orbit_light(
    frame_index: int,
    num_frames: int,
    radius: float = ORBIT_RADIUS,
    height: float = ORBIT_HEIGHT,
    intensity: float = LIGHT_INTENSITY,
) -> Light:
    """Place the light for one frame of a full orbit.

    The light sits at angle 2*pi*frame_index/num_frames on a circle of the
    given radius in the xy plane, at z = height.
    """
    angle = frame_index * 2.0 * math.pi / num_frames
    position = Vector3D(math.cos(angle) * radius, math.sin(angle) * radius, height)
    return Light(position=position, intensity=intensity)


# =============================================================================
# Settings and Backend
# =============================================================================


@dataclass
class AnimationSettings:
    """Options for an animation run.

    Attributes:
        width: Frame width in pixels.
        height: Frame height in pixels.
        frames: Number of frames in one orbit.
        samples: Samples per pixel (the target count in adaptive mode).
        use_gpu: Try the GPU backend first.
        adaptive: Render each frame progressively at 1, 2, 4, 8, samples.
        output: Path of the animated GIF.
        frame_dump_dir: Directory for per-frame PPM files, or None.
        frame_duration_ms: GIF frame display time.
        workers: CPU worker processes (None = CPU count).
        seed: Seed for the CPU sampler, or None.
    """

    width: int = 800
    height: int = 600
    frames: int = 36
    samples: int = 1
    use_gpu: bool = False
    adaptive: bool = False
    output: Path = Path("animation.gif")
    frame_dump_dir: Path | None = None
    frame_duration_ms: int = 100
    workers: int | None = None
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Frame size must be positive, got {self.width}x{self.height}")
        if self.frames <= 0:
            raise ValueError(f"frames must be positive, got {self.frames}")
        self.output = Path(self.output)
        if self.frame_dump_dir is not None:
            self.frame_dump_dir = Path(self.frame_dump_dir)


def select_backend(settings: AnimationSettings) -> GpuRenderer | None:
    """Create the GPU renderer if requested and available.

    Returns:
        A GpuRenderer, or None when frames should render on the CPU.
    """
    if not settings.use_gpu:
        return None
    try:
        return GpuRenderer()
    except GpuError as exc:
        logger.warning("GPU unavailable (%s); falling back to CPU rendering", exc)
        return None


# =============================================================================
# Rendering
# =============================================================================


def _render_cpu(scene: Scene, camera: Camera, settings: AnimationSettings) -> npt.NDArray[np.floating]:
    render_fn = functools.partial(
        scene.trace,
        camera,
        settings.width,
        settings.height,
        workers=settings.workers,
        seed=settings.seed,
    )
    if settings.adaptive:
        return ProgressiveRenderer(render_fn).render(settings.samples)
    return render_fn(settings.samples)


def _render_gpu(
    renderer: GpuRenderer,
    scene: Scene,
    camera: Camera,
    settings: AnimationSettings,
) -> npt.NDArray[np.floating]:
    if settings.adaptive:
        return renderer.render_adaptive(
            scene, camera, settings.width, settings.height, settings.samples
        )
    return renderer.render(scene, camera, settings.width, settings.height, settings.samples)


def _dump_frame(image: npt.NDArray[np.floating], directory: Path, frame_index: int) -> None:
    path = directory / f"frame_{frame_index}.ppm"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        save_ppm(image, path)
    except OSError as exc:
        logger.warning("Could not write %s: %s", path, exc)


def render_animation(
    scene: Scene,
    camera: Camera,
    settings: AnimationSettings,
    gpu_renderer: GpuRenderer | None = None,
) -> list[npt.NDArray[np.floating]]:
    """Render every frame of the light orbit.

    Args:
        scene: Scene to animate. Its lights are replaced on every frame.
        camera: Camera to render from.
        settings: Animation options.
        gpu_renderer: Renderer to use instead of creating one; only
            consulted when settings.use_gpu is set.

    Returns:
        One (height, width, 3) image per frame, in frame order.
    """
    renderer = None
    if settings.use_gpu:
        renderer = gpu_renderer if gpu_renderer is not None else select_backend(settings)

    frames: list[npt.NDArray[np.floating]] = []
    for frame_index in range(settings.frames):
        scene.set_lights([orbit_light(frame_index, settings.frames)])

        image = None
        if renderer is not None:
            try:
                image = _render_gpu(renderer, scene, camera, settings)
            except GpuError as exc:
                logger.warning(
                    "GPU render failed on frame %d (%s); continuing on CPU", frame_index, exc
                )
                renderer = None
        if image is None:
            image = _render_cpu(scene, camera, settings)

        if settings.frame_dump_dir is not None:
            _dump_frame(image, settings.frame_dump_dir, frame_index)

        frames.append(image)
        logger.info("Rendered frame %d/%d", frame_index + 1, settings.frames)

    return frames


def write_animation(
    frames: list[npt.NDArray[np.floating]],
    output: Path | str,
    frame_duration_ms: int = 100,
) -> None:
    """Write rendered frames as a looping animated GIF.

    Raises:
        OSError: If the file cannot be written.
    """
    save_gif(frames, output, frame_duration_ms=frame_duration_ms)
    logger.info("Wrote %d frames to %s", len(frames), output)
