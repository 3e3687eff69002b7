"""Compute device acquisition for the GPU backend.

The backend runs on whatever Taichi runtime is active. If Taichi has not been
initialized yet, acquire_device() initializes it on a GPU architecture
(ti.gpu lets Taichi pick CUDA, Vulkan, Metal or OpenGL in order of
preference). When Taichi falls back to its CPU backend the device is reported
as unavailable, unless the caller explicitly accepts a CPU device (used by
the test suite to run the device program without graphics hardware).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import taichi as ti

from blinnray.gpu.errors import DeviceRequestError, NoAdapterError

logger = logging.getLogger(__name__)

_GPU_ARCH_NAMES = ("cuda", "vulkan", "metal", "opengl", "gles", "amdgpu", "dx11", "dx12")


def _gpu_archs() -> tuple:
    # Not every Taichi build exposes every backend
    return tuple(getattr(ti, name) for name in _GPU_ARCH_NAMES if hasattr(ti, name))


def _arch_name(arch) -> str:
    return str(arch).rsplit(".", 1)[-1]


def _runtime_arch():
    """Return the architecture of the running Taichi program.

    Returns None before ti.init(). Taichi exposes no public query for this,
    so the runtime internals are read here and nowhere else.

    Raises:
        DeviceRequestError: If this Taichi version does not expose them.
    """
    try:
        runtime = ti.lang.impl.get_runtime()
        if getattr(runtime, "prog", None) is None:
            return None
        return ti.lang.impl.current_cfg().arch
    except (AttributeError, RuntimeError) as exc:
        raise DeviceRequestError(f"cannot query the Taichi runtime: {exc}") from exc


@dataclass(frozen=True)
class DeviceInfo:
    """The compute device a renderer is bound to.

    Attributes:
        name: Backend name reported by Taichi (e.g. "vulkan", "cuda").
        is_gpu: False only for an explicitly allowed CPU device.
    """

    name: str
    is_gpu: bool


def acquire_device(arch=None, *, allow_cpu: bool = False) -> DeviceInfo:
    """Bind to a compute device.

    Args:
        arch: Taichi architecture used when Taichi is not yet initialized
            (default: ti.gpu). Ignored if a runtime already exists.
        allow_cpu: Accept Taichi's CPU backend as the device.

    Returns:
        DeviceInfo describing the active backend.

    Raises:
        DeviceRequestError: If Taichi fails to initialize.
        NoAdapterError: If no GPU backend is active and allow_cpu is False.
    """
    active = _runtime_arch()
    if active is None:
        logger.debug("Initializing Taichi on %s", "gpu" if arch is None else _arch_name(arch))
        try:
            ti.init(arch=ti.gpu if arch is None else arch)
        except Exception as exc:
            raise DeviceRequestError(str(exc)) from exc
        active = _runtime_arch()
        if active is None:
            raise DeviceRequestError("Taichi did not start a program")

    name = _arch_name(active)
    is_gpu = active in _gpu_archs()

    if not is_gpu and not allow_cpu:
        raise NoAdapterError(f"active Taichi backend is {name}")

    return DeviceInfo(name=name, is_gpu=is_gpu)
