"""Render configuration shared by the CPU and GPU backends.

Both backends read the recursion bound, the self-intersection epsilon and the
sample count from the same RenderConfig instance, so a scene rendered on
either path uses identical termination and offset policies.

Example:
    >>> from blinnray.core.config import RenderConfig
    >>> config = RenderConfig(max_depth=3, samples=16)
    >>> preview = config.with_samples(1)
"""

from __future__ import annotations

from dataclasses import dataclass, replace

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum reflection bounces (primary hit counts as the first level)
DEFAULT_MAX_DEPTH = 5

# Ray offset epsilon to avoid self-intersection ("shadow acne")
DEFAULT_EPSILON = 1e-3

# Rays with |normal . direction| below this are treated as parallel to a plane
PARALLEL_EPSILON = 1e-8


@dataclass(frozen=True)
class RenderConfig:
    """Parameters that control a single render call.

    Attributes:
        max_depth: Recursion bound for reflections. A depth of 0 renders black.
        epsilon: Offset used for shadow and reflection rays and as t_min for
            closest-hit queries.
        samples: Samples per pixel. Values <= 1 select a single centered,
            deterministic sample.
        seed: Optional seed for the per-row random generators of the CPU
            path. None draws fresh entropy for every render.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    epsilon: float = DEFAULT_EPSILON
    samples: int = 1
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.epsilon <= 0.0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        if self.samples < 0:
            raise ValueError(f"samples must be non-negative, got {self.samples}")

    def with_samples(self, samples: int) -> RenderConfig:
        """Return a copy of this configuration with a different sample count."""
        return replace(self, samples=samples)
