"""Errors reported by the GPU backend.

Acquisition, execution and budget errors are recoverable: callers are expected to fall
back to the CPU path. LayoutError signals a programming error in the host
packing code and should not be caught.
"""

from __future__ import annotations


class GpuError(RuntimeError):
    """Base class for GPU backend failures."""


class NoAdapterError(GpuError):
    """No compatible compute device is available."""

    def __init__(self, detail: str | None = None) -> None:
        message = "No compatible GPU adapter found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DeviceRequestError(GpuError):
    """The compute runtime rejected device creation."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to request GPU device: {reason}")
        self.reason = reason


class OutOfMemoryError(GpuError):
    """The estimated device memory for a render exceeds the budget.

    Attributes:
        requested_mb: The computed requirement in megabytes.
    """

    def __init__(self, requested_mb: float) -> None:
        super().__init__(
            f"Insufficient GPU memory: {requested_mb:.1f}MB required "
            "(try lower resolution or fewer samples)"
        )
        self.requested_mb = requested_mb


class LayoutError(GpuError):
    """Host struct layout does not match the device program."""


class DeviceExecutionError(GpuError):
    """The compute runtime failed while uploading, running or reading back."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"GPU render failed: {reason}")
        self.reason = reason
