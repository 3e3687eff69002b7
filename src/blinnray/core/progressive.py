"""Progressive refinement by re-rendering at increasing sample counts.

Unlike accumulation, each step renders the whole frame from scratch at the
next sample count of the schedule and only the final (highest-sample) image
is kept. Total work is higher than a single render at the target count; the
benefit is an early low-quality image and progress reports while the
preview converges.

The renderer is backend agnostic: it wraps any callable that maps a sample
count to an image, such as a bound Scene.trace or GpuRenderer.render.

Example:
    >>> import functools
    >>> from blinnray.core.progressive import ProgressiveRenderer
    >>> render_fn = functools.partial(scene.trace, camera, 320, 240, workers=1)
    >>> renderer = ProgressiveRenderer(render_fn)
    >>> def progress(current, target):
    ...     print(f"Progress: {current}/{target} samples")
    >>> image = renderer.render(16, callback=progress)
"""

from __future__ import annotations

from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

# Type alias for progress callback
# Callback receives (current_step_samples, target_samples)
ProgressCallback = Callable[[int, int], None]

# Renders a full frame at the given samples per pixel
RenderFunction = Callable[[int], npt.NDArray[np.floating]]

# Sample counts tried before the target
PROGRESSIVE_STEPS = (1, 2, 4, 8)


def sample_schedule(target_samples: int) -> list[int]:
    """Return the increasing sample counts used to reach target_samples.

    The fixed steps 1, 2, 4, 8 are followed by the target itself; steps above
    the target are dropped and a repeated count is rendered once.

    Args:
        target_samples: The final samples per pixel. Values below 1 are
            treated as 1.

    Returns:
        Strictly increasing list ending at max(target_samples, 1).
    """
    target = max(target_samples, 1)
    schedule: list[int] = []
    for samples in (*PROGRESSIVE_STEPS, target):
        if samples > target:
            continue
        if not schedule or samples > schedule[-1]:
            schedule.append(samples)
    return schedule


class ProgressiveRenderer:
    """Re-render a frame at increasing quality, keeping the last image."""

    def __init__(self, render_fn: RenderFunction) -> None:
        """Initialize the progressive renderer.

        Args:
            render_fn: Callable that renders a full frame at a sample count.
        """
        self._render_fn = render_fn
        self._last_samples = 0

    @property
    def sample_count(self) -> int:
        """Samples per pixel of the most recently rendered step."""
        return self._last_samples

    def render(
        self,
        target_samples: int,
        callback: ProgressCallback | None = None,
    ) -> npt.NDArray[np.floating]:
        """Render every step of the schedule and return the final image.

        Args:
            target_samples: Samples per pixel of the final step.
            callback: Called with (samples, target_samples) before each step.

        Returns:
            The image rendered at the last step.
        """
        image = None
        for _, _, image in self.render_progressive(target_samples, callback):
            pass
        return image

    def render_progressive(
        self,
        target_samples: int,
        callback: ProgressCallback | None = None,
    ) -> Generator[tuple[int, int, npt.NDArray[np.floating]], None, None]:
        """Render step by step, yielding each intermediate image.

        Yields:
            Tuple of (samples, target_samples, image).
        """
        for samples in sample_schedule(target_samples):
            if callback is not None:
                callback(samples, target_samples)
            image = self._render_fn(samples)
            self._last_samples = samples
            yield samples, target_samples, image

    def __repr__(self) -> str:
        return f"ProgressiveRenderer(samples={self.sample_count})"
