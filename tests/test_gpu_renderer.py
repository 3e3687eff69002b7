"""Tests for the GPU renderer.

The session runs Taichi on its CPU backend, so the device program is
exercised through GpuRenderer(allow_cpu_device=True). Without that flag the
renderer must refuse the CPU backend.

Tests cover:
- Device acquisition errors
- Runtime failures surfacing as GpuError
- Memory estimate, budget guard and dispatch size
- Agreement of the device program with the CPU path
- Depth bound, reflections and empty scenes on the device
- Adaptive rendering
"""

import numpy as np
import pytest
import taichi as ti
from taichi.lang.exception import TaichiRuntimeError

from blinnray.core.config import RenderConfig
from blinnray.core.vector import Color, Vector3D
from blinnray.geometry.sphere import Sphere
from blinnray.gpu import renderer as renderer_module
from blinnray.gpu.device import acquire_device
from blinnray.gpu.errors import (
    DeviceExecutionError,
    DeviceRequestError,
    GpuError,
    NoAdapterError,
    OutOfMemoryError,
)
from blinnray.gpu.renderer import (
    MAX_MEMORY_MB,
    WORKGROUP_SIZE,
    GpuRenderer,
    dispatch_size,
    estimate_memory_mb,
)
from blinnray.materials.material import Material
from blinnray.preview.export import compute_rmse
from blinnray.scene.scene import Scene


@pytest.fixture
def renderer():
    return GpuRenderer(allow_cpu_device=True)


def background_mask(image, background, atol=1e-3):
    return np.all(np.abs(image - np.asarray(background)) <= atol, axis=-1)


class TestDeviceAcquisition:
    """Test device selection."""

    def test_cpu_backend_is_not_an_adapter(self):
        with pytest.raises(NoAdapterError, match="No compatible GPU adapter found"):
            GpuRenderer()

    def test_cpu_backend_allowed_explicitly(self, renderer):
        assert renderer.device_name
        assert "GpuRenderer" in repr(renderer)

    def test_reports_the_running_backend(self):
        device = acquire_device(allow_cpu=True)
        assert not device.is_gpu
        assert device.name

    def test_unreadable_runtime_is_a_device_error(self, monkeypatch):
        def missing_cfg():
            raise AttributeError("current_cfg")

        monkeypatch.setattr(ti.lang.impl, "current_cfg", missing_cfg)

        with pytest.raises(DeviceRequestError, match="cannot query the Taichi runtime"):
            GpuRenderer(allow_cpu_device=True)


class TestMemoryBudget:
    """Test the memory estimate and guard."""

    def test_estimate_counts_output_and_staging(self):
        # 16 bytes per pixel, twice, plus params (48) and camera (64)
        expected = (2 * 800 * 600 * 16 + 48 + 64) / (1024 * 1024)
        assert estimate_memory_mb(800, 600, 0, 0, 0) == pytest.approx(expected)

    def test_estimate_counts_primitives(self):
        base = estimate_memory_mb(10, 10, 0, 0, 0)
        extra = estimate_memory_mb(10, 10, 2, 1, 3) - base
        assert extra == pytest.approx((2 * 48 + 64 + 3 * 16) / (1024 * 1024))

    def test_oversize_render_is_rejected(self, renderer, single_sphere_scene, camera):
        with pytest.raises(OutOfMemoryError) as exc_info:
            renderer.render(single_sphere_scene, camera, 100000, 100000)

        assert exc_info.value.requested_mb == pytest.approx(305175.78, abs=0.01)
        assert exc_info.value.requested_mb > MAX_MEMORY_MB
        assert "Insufficient GPU memory: 305175.8MB required" in str(exc_info.value)
        # Nothing was allocated
        assert renderer.memory_info.total_allocated_mb == 0.0

    def test_memory_info_tracks_last_and_peak(self, renderer, single_sphere_scene, camera):
        renderer.render(single_sphere_scene, camera, 16, 16)
        renderer.render(single_sphere_scene, camera, 8, 8)

        info = renderer.memory_info
        assert info.total_allocated_mb == pytest.approx(estimate_memory_mb(8, 8, 1, 0, 1))
        assert info.peak_allocated_mb == pytest.approx(estimate_memory_mb(16, 16, 1, 0, 1))

    def test_dispatch_size(self):
        assert WORKGROUP_SIZE == (8, 8, 1)
        assert dispatch_size(800, 600) == (100, 75, 1)
        assert dispatch_size(801, 1) == (101, 1, 1)
        assert dispatch_size(1, 1) == (1, 1, 1)

    def test_rejects_invalid_size(self, renderer, single_sphere_scene, camera):
        with pytest.raises(ValueError):
            renderer.render(single_sphere_scene, camera, 0, 10)

    def test_runtime_failure_is_a_gpu_error(self, renderer, single_sphere_scene, camera, monkeypatch):
        def lost_device(*args):
            raise TaichiRuntimeError("device lost")

        monkeypatch.setattr(renderer_module, "render_kernel", lost_device)

        with pytest.raises(DeviceExecutionError, match="TaichiRuntimeError: device lost") as exc_info:
            renderer.render(single_sphere_scene, camera, 8, 8)

        assert isinstance(exc_info.value, GpuError)
        assert isinstance(exc_info.value.__cause__, TaichiRuntimeError)


class TestDeviceProgram:
    """Test the device program against the CPU path."""

    def test_output_shape_and_range(self, renderer, mixed_scene, camera):
        image = renderer.render(mixed_scene, camera, 20, 12)
        assert image.shape == (12, 20, 3)
        assert image.dtype == np.float32
        assert image.min() >= 0.0
        assert image.max() <= 1.0

    def test_hit_classification_matches_cpu(self, renderer, mixed_scene, camera):
        """Background and object pixels agree between backends."""
        width, height = 32, 24
        cpu = mixed_scene.trace(camera, width, height, 1, workers=1)
        gpu = renderer.render(mixed_scene, camera, width, height, samples=1)

        background = mixed_scene.background_color.to_tuple()
        mismatches = np.count_nonzero(
            background_mask(cpu, background) != background_mask(gpu, background)
        )
        assert mismatches <= 1

    def test_colors_match_cpu(self, renderer, mixed_scene, camera):
        cpu = mixed_scene.trace(camera, 32, 24, 1, workers=1)
        gpu = renderer.render(mixed_scene, camera, 32, 24, samples=1)

        close = np.all(np.abs(cpu - gpu) < 1e-3, axis=-1)
        # Only silhouette pixels may differ between single and double precision
        assert close.mean() > 0.97
        assert compute_rmse(cpu, gpu) < 0.08

    def test_single_sample_is_deterministic(self, renderer, mixed_scene, camera):
        first = renderer.render(mixed_scene, camera, 16, 16, samples=1)
        second = renderer.render(mixed_scene, camera, 16, 16, samples=1)
        np.testing.assert_array_equal(first, second)

    def test_multi_sample_in_range(self, renderer, mixed_scene, camera):
        image = renderer.render(mixed_scene, camera, 16, 16, samples=8)
        assert image.min() >= 0.0
        assert image.max() <= 1.0

    def test_depth_zero_is_black(self, mixed_scene, camera):
        renderer = GpuRenderer(RenderConfig(max_depth=0), allow_cpu_device=True)
        image = renderer.render(mixed_scene, camera, 8, 8)
        assert not image.any()

    def test_empty_scene_is_background(self, renderer, camera):
        scene = Scene(background_color=Color(0.25, 0.5, 0.75))
        image = renderer.render(scene, camera, 9, 7)
        np.testing.assert_allclose(image, np.broadcast_to([0.25, 0.5, 0.75], (7, 9, 3)), rtol=1e-6)

    def test_reflective_sphere_reflects_background(self, renderer, camera):
        mirror = Material(Color(1.0, 1.0, 1.0), diffuse=0.0, reflectivity=0.5)
        scene = Scene(background_color=Color(0.8, 0.8, 0.8))
        scene.add_object(Sphere(Vector3D(0.0, 0.0, 4.0), 1.0, mirror))

        image = renderer.render(scene, camera, 9, 9)

        # The center pixel looks straight at the sphere and bounces back
        np.testing.assert_allclose(image[4, 4], [0.4, 0.4, 0.4], atol=1e-5)
        np.testing.assert_allclose(image[0, 0], [0.8, 0.8, 0.8], atol=1e-6)

    def test_lights_can_change_between_calls(self, renderer, single_sphere_scene, camera):
        lit = renderer.render(single_sphere_scene, camera, 9, 9)
        single_sphere_scene.set_lights([])
        unlit = renderer.render(single_sphere_scene, camera, 9, 9)

        assert lit[4, 4].sum() > 0.0
        assert not unlit[4, 4].any()


class TestAdaptive:
    """Test adaptive rendering on the device."""

    def test_progress_callback_and_final_image(self, renderer, mixed_scene, camera):
        progress = []
        image = renderer.render_adaptive(
            mixed_scene, camera, 8, 8, 4, progress_callback=lambda c, t: progress.append((c, t))
        )
        assert progress == [(1, 4), (2, 4), (4, 4)]
        assert image.shape == (8, 8, 3)
