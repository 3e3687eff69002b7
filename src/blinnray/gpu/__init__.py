"""GPU backend.

Components:
    errors: Recoverable device and budget errors
    layout: Fixed 32-bit word layout of every device buffer, and packing
    kernels: Taichi device program, one invocation per pixel
    device: Compute device acquisition
    renderer: GpuRenderer, the host side of a render call

Example:
    >>> from blinnray.gpu import GpuRenderer, GpuError
    >>> try:
    ...     renderer = GpuRenderer()
    ... except GpuError:
    ...     renderer = None
"""

from .device import DeviceInfo, acquire_device
from .errors import (
    DeviceExecutionError,
    DeviceRequestError,
    GpuError,
    LayoutError,
    NoAdapterError,
    OutOfMemoryError,
)
from .layout import PackedScene, pack_scene, validate_layout
from .renderer import (
    MAX_MEMORY_MB,
    WORKGROUP_SIZE,
    GpuRenderer,
    MemoryInfo,
    dispatch_size,
    estimate_memory_mb,
)

__all__ = [
    # Errors
    "GpuError",
    "NoAdapterError",
    "DeviceRequestError",
    "DeviceExecutionError",
    "OutOfMemoryError",
    "LayoutError",
    # Layout
    "PackedScene",
    "pack_scene",
    "validate_layout",
    # Device
    "DeviceInfo",
    "acquire_device",
    # Renderer
    "GpuRenderer",
    "MemoryInfo",
    "MAX_MEMORY_MB",
    "WORKGROUP_SIZE",
    "dispatch_size",
    "estimate_memory_mb",
]
