"""GPU renderer: packs a scene, runs the device program, reads pixels back.

Every render call is self-contained. Scene data is packed into fresh device
buffers, the kernel is dispatched over a grid of 8x8 work-groups and the
RGBA output is copied back synchronously. Nothing is cached between calls,
so the scene and its lights may change freely between frames.

Before any buffer is created the total device memory of the call is
estimated and compared against MAX_MEMORY_MB; oversize renders fail with
OutOfMemoryError and allocate nothing.

Example:
    >>> from blinnray.gpu.renderer import GpuRenderer
    >>> from blinnray.scene.demo import create_demo_scene
    >>> scene, camera = create_demo_scene(aspect_ratio=4.0 / 3.0)
    >>> renderer = GpuRenderer()
    >>> image = renderer.render(scene, camera, 320, 240, samples=4)
    >>> image.shape
    (240, 320, 3)
"""

from __future__ import annotations

import functools
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti

from blinnray.core.config import RenderConfig
from blinnray.core.progressive import ProgressCallback, ProgressiveRenderer
from blinnray.gpu.device import acquire_device
from blinnray.gpu.errors import DeviceExecutionError, OutOfMemoryError
from blinnray.gpu.kernels import WORKGROUP_SIZE_X, WORKGROUP_SIZE_Y, render_kernel
from blinnray.gpu.layout import (
    CAMERA_DTYPE,
    LIGHT_DTYPE,
    PIXEL_BYTES,
    PIXEL_WORDS,
    PLANE_DTYPE,
    RENDER_PARAMS_DTYPE,
    SPHERE_DTYPE,
    pack_scene,
    validate_layout,
)

if TYPE_CHECKING:
    from blinnray.camera.pinhole import Camera
    from blinnray.scene.scene import Scene

logger = logging.getLogger(__name__)

# Device memory budget for a single render call
MAX_MEMORY_MB = 2048.0

WORKGROUP_SIZE = (WORKGROUP_SIZE_X, WORKGROUP_SIZE_Y, 1)

_BYTES_PER_MB = 1024.0 * 1024.0


def estimate_memory_mb(
    width: int,
    height: int,
    num_spheres: int,
    num_planes: int,
    num_lights: int,
) -> float:
    """Estimate device memory for one render, in megabytes.

    Counts the RGBA output buffer, its readback staging copy, and the
    params, camera and primitive storage buffers.
    """
    output_bytes = width * height * PIXEL_BYTES
    staging_bytes = output_bytes
    storage_bytes = (
        RENDER_PARAMS_DTYPE.itemsize
        + CAMERA_DTYPE.itemsize
        + num_spheres * SPHERE_DTYPE.itemsize
        + num_planes * PLANE_DTYPE.itemsize
        + num_lights * LIGHT_DTYPE.itemsize
    )
    return (output_bytes + staging_bytes + storage_bytes) / _BYTES_PER_MB


def dispatch_size(width: int, height: int) -> tuple[int, int, int]:
    """Work-group counts covering a width x height image."""
    return (
        math.ceil(width / WORKGROUP_SIZE[0]),
        math.ceil(height / WORKGROUP_SIZE[1]),
        1,
    )


@dataclass
class MemoryInfo:
    """Observed device memory use.

    Attributes:
        total_allocated_mb: Estimate for the most recent render call.
        peak_allocated_mb: Largest estimate seen by this renderer.
    """

    total_allocated_mb: float = 0.0
    peak_allocated_mb: float = 0.0


class GpuRenderer:
    """Render scenes with the Taichi device program."""

    def __init__(
        self,
        config: RenderConfig | None = None,
        *,
        arch=None,
        allow_cpu_device: bool = False,
    ) -> None:
        """Acquire a device and check the struct layout.

        Args:
            config: Render settings; a scene's own config is used when None.
            arch: Taichi architecture to initialize if Taichi is not running.
            allow_cpu_device: Accept Taichi's CPU backend as the device.

        Raises:
            NoAdapterError: If no GPU backend is available.
            DeviceRequestError: If the Taichi runtime cannot be initialized.
            LayoutError: If host and device struct layouts disagree.
        """
        validate_layout()
        self._device = acquire_device(arch, allow_cpu=allow_cpu_device)
        self._config = config
        self._memory = MemoryInfo()
        logger.info("GPU renderer initialized on %s", self._device.name)

    @property
    def device_name(self) -> str:
        return self._device.name

    @property
    def memory_info(self) -> MemoryInfo:
        return MemoryInfo(self._memory.total_allocated_mb, self._memory.peak_allocated_mb)

    def render(
        self,
        scene: Scene,
        camera: Camera,
        width: int,
        height: int,
        samples: int | None = None,
    ) -> npt.NDArray[np.float32]:
        """Render one frame.

        Args:
            scene: Scene to render.
            camera: Camera to render from.
            width: Image width in pixels.
            height: Image height in pixels.
            samples: Samples per pixel; defaults to the config's samples.

        Returns:
            Array of shape (height, width, 3), channels in [0, 1].

        Raises:
            ValueError: If width or height is not positive.
            OutOfMemoryError: If the estimate exceeds MAX_MEMORY_MB.
            DeviceExecutionError: If Taichi fails to upload, run or read back.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

        config = self._config if self._config is not None else scene.config
        if samples is None:
            samples = config.samples

        spheres = scene.spheres
        planes = scene.planes
        required_mb = estimate_memory_mb(width, height, len(spheres), len(planes), len(scene.lights))
        logger.debug("Render %dx%d needs %.2fMB", width, height, required_mb)
        if required_mb > MAX_MEMORY_MB:
            raise OutOfMemoryError(required_mb)

        packed = pack_scene(scene, camera, width, height, samples, config)
        groups_x, groups_y, _ = dispatch_size(width, height)
        try:
            buffers = {name: self._upload(words) for name, words in packed.word_buffers().items()}
            output = ti.ndarray(dtype=ti.f32, shape=width * height * PIXEL_WORDS)

            self._memory.total_allocated_mb = required_mb
            self._memory.peak_allocated_mb = max(self._memory.peak_allocated_mb, required_mb)

            render_kernel(
                buffers["params"],
                buffers["camera"],
                buffers["spheres"],
                buffers["planes"],
                buffers["lights"],
                output,
                groups_x,
                groups_y,
            )
            ti.sync()
            words = output.to_numpy()
        except Exception as exc:
            raise DeviceExecutionError(f"{type(exc).__name__}: {exc}") from exc

        pixels = words.reshape(height, width, PIXEL_WORDS)
        return np.ascontiguousarray(pixels[..., :3], dtype=np.float32)

    def render_adaptive(
        self,
        scene: Scene,
        camera: Camera,
        width: int,
        height: int,
        target_samples: int,
        progress_callback: ProgressCallback | None = None,
    ) -> npt.NDArray[np.float32]:
        """Render at 1, 2, 4, 8 then target_samples, returning the last image."""

        def report(current: int, target: int) -> None:
            logger.debug("Adaptive step: %d/%d samples", current, target)
            if progress_callback is not None:
                progress_callback(current, target)

        render_fn = functools.partial(self.render, scene, camera, width, height)
        return ProgressiveRenderer(render_fn).render(target_samples, callback=report)

    @staticmethod
    def _upload(words: npt.NDArray) -> ti.Ndarray:
        dtype = ti.u32 if words.dtype == np.uint32 else ti.f32
        buffer = ti.ndarray(dtype=dtype, shape=words.shape[0])
        buffer.from_numpy(words)
        return buffer

    def __repr__(self) -> str:
        return f"GpuRenderer(device={self.device_name!r})"
