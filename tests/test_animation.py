"""Tests for the animation driver, demo scene and CLI."""

import logging
import math

import numpy as np
import pytest
from PIL import Image as PILImage
from taichi.lang.exception import TaichiRuntimeError

from blinnray.__main__ import main
from blinnray.gpu import renderer as renderer_module
from blinnray.gpu.errors import OutOfMemoryError
from blinnray.gpu.renderer import GpuRenderer
from blinnray.scene.animation import (
    AnimationSettings,
    orbit_light,
    render_animation,
    select_backend,
    write_animation,
)
from blinnray.scene.demo import create_demo_scene


@pytest.fixture
def demo():
    return create_demo_scene(aspect_ratio=12 / 8)


def small_settings(**overrides):
    options = {"width": 12, "height": 8, "frames": 3, "workers": 1}
    options.update(overrides)
    return AnimationSettings(**options)


class FailingRenderer:
    """Stand-in GPU renderer that fails after a number of frames."""

    def __init__(self, good_frames):
        self.good_frames = good_frames
        self.calls = 0

    def render(self, scene, camera, width, height, samples=None):
        self.calls += 1
        if self.calls > self.good_frames:
            raise OutOfMemoryError(4096.0)
        return np.zeros((height, width, 3), dtype=np.float32)


class TestOrbitLight:
    """Test light placement."""

    def test_first_frame(self):
        light = orbit_light(0, 36)
        assert light.position.to_tuple() == pytest.approx((2.0, 0.0, 1.0))
        assert light.intensity == 10.0

    def test_quarter_orbit(self):
        light = orbit_light(9, 36)
        assert light.position.to_tuple() == pytest.approx((0.0, 2.0, 1.0), abs=1e-12)

    def test_custom_radius(self):
        light = orbit_light(1, 4, radius=3.0, height=0.5)
        assert light.position.x == pytest.approx(3.0 * math.cos(math.pi / 2), abs=1e-12)
        assert light.position.y == pytest.approx(3.0)
        assert light.position.z == 0.5


class TestDemoScene:
    """Test the demo scene contents."""

    def test_contents(self, demo):
        scene, camera = demo
        assert len(scene.spheres) == 2
        assert len(scene.planes) == 1
        assert scene.lights == []
        assert scene.background_color.to_tuple() == (0.8, 0.8, 0.8)
        assert scene.spheres[0].center.to_tuple() == (0.0, 0.0, 4.0)
        assert camera.aspect_ratio == pytest.approx(1.5)


class TestSettings:
    """Test animation settings validation."""

    def test_rejects_empty_frames(self):
        with pytest.raises(ValueError):
            AnimationSettings(frames=0)

    def test_rejects_invalid_size(self):
        with pytest.raises(ValueError):
            AnimationSettings(width=0)


class TestRenderAnimation:
    """Test frame rendering and backend fallback."""

    def test_cpu_frames(self, demo):
        scene, camera = demo
        frames = render_animation(scene, camera, small_settings())

        assert len(frames) == 3
        assert all(frame.shape == (8, 12, 3) for frame in frames)
        # The light moves, so consecutive frames differ
        assert not np.array_equal(frames[0], frames[1])
        assert scene.lights[0] == orbit_light(2, 3)

    def test_gpu_unavailable_falls_back(self, demo, caplog):
        scene, camera = demo
        settings = small_settings(frames=1, use_gpu=True)

        with caplog.at_level(logging.WARNING, logger="blinnray.scene.animation"):
            assert select_backend(settings) is None
            frames = render_animation(scene, camera, settings)

        assert len(frames) == 1
        assert "falling back to CPU" in caplog.text

    def test_gpu_frames_on_device(self, demo):
        scene, camera = demo
        renderer = GpuRenderer(allow_cpu_device=True)
        settings = small_settings(frames=2, use_gpu=True)

        frames = render_animation(scene, camera, settings, gpu_renderer=renderer)

        assert all(frame.dtype == np.float32 for frame in frames)

    def test_mid_run_gpu_failure_continues_on_cpu(self, demo, caplog):
        scene, camera = demo
        renderer = FailingRenderer(good_frames=1)
        settings = small_settings(frames=3, use_gpu=True)

        with caplog.at_level(logging.WARNING, logger="blinnray.scene.animation"):
            frames = render_animation(scene, camera, settings, gpu_renderer=renderer)

        assert len(frames) == 3
        # One good frame, one failure, then the CPU for the rest
        assert renderer.calls == 2
        assert not frames[0].any()
        assert frames[1].any()
        assert "continuing on CPU" in caplog.text

    def test_runtime_failure_on_device_continues_on_cpu(self, demo, caplog, monkeypatch):
        scene, camera = demo
        renderer = GpuRenderer(allow_cpu_device=True)
        settings = small_settings(frames=2, use_gpu=True)

        def lost_device(*args):
            raise TaichiRuntimeError("device lost")

        monkeypatch.setattr(renderer_module, "render_kernel", lost_device)

        with caplog.at_level(logging.WARNING, logger="blinnray.scene.animation"):
            frames = render_animation(scene, camera, settings, gpu_renderer=renderer)

        assert len(frames) == 2
        # Both frames come from the CPU path, which returns float64
        assert all(frame.dtype == np.float64 for frame in frames)
        assert "GPU render failed on frame 0" in caplog.text
        assert "continuing on CPU" in caplog.text

    def test_adaptive_cpu_frames(self, demo):
        scene, camera = demo
        frames = render_animation(scene, camera, small_settings(frames=1, adaptive=True, samples=2, seed=1))
        assert frames[0].shape == (8, 12, 3)

    def test_frame_dumps(self, demo, tmp_path):
        scene, camera = demo
        dump_dir = tmp_path / "frames"

        render_animation(scene, camera, small_settings(frame_dump_dir=dump_dir))

        assert sorted(p.name for p in dump_dir.iterdir()) == [
            "frame_0.ppm",
            "frame_1.ppm",
            "frame_2.ppm",
        ]
        assert (dump_dir / "frame_0.ppm").read_text().startswith("P3\n12 8\n255\n")

    def test_dump_failure_is_logged(self, demo, tmp_path, caplog):
        scene, camera = demo
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")

        with caplog.at_level(logging.WARNING, logger="blinnray.scene.animation"):
            frames = render_animation(scene, camera, small_settings(frame_dump_dir=blocker))

        assert len(frames) == 3
        assert "Could not write" in caplog.text

    def test_write_animation(self, demo, tmp_path):
        scene, camera = demo
        frames = render_animation(scene, camera, small_settings())
        path = tmp_path / "animation.gif"

        write_animation(frames, path)

        with PILImage.open(path) as gif:
            assert gif.size == (12, 8)
            assert gif.n_frames == 3


class TestCli:
    """Test the command-line entry point."""

    def test_renders_gif(self, tmp_path):
        output = tmp_path / "out.gif"
        code = main(
            ["--width", "8", "--height", "6", "--frames", "2", "--workers", "1", "--output", str(output)]
        )
        assert code == 0
        assert output.exists()

    def test_frame_dumps_flag(self, tmp_path):
        code = main(
            [
                "--width", "4", "--height", "4", "--frames", "1", "--workers", "1",
                "--output", str(tmp_path / "out.gif"), "--frame-dumps", str(tmp_path / "dumps"),
            ]
        )
        assert code == 0
        assert (tmp_path / "dumps" / "frame_0.ppm").exists()

    def test_unwritable_output_fails(self, tmp_path):
        output = tmp_path / "missing" / "out.gif"
        code = main(["--width", "4", "--height", "4", "--frames", "1", "--workers", "1", "--output", str(output)])
        assert code == 1

    def test_invalid_settings_fail(self, tmp_path):
        code = main(["--frames", "0", "--output", str(tmp_path / "out.gif")])
        assert code == 1
