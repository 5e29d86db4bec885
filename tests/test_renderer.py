"""Tests for the snowfall frame orchestrator."""

import logging

import numpy as np
import pytest

from snowfall.renderer import RenderConfig, SnowfallRenderer
from snowfall.simulator import SnowConfig
from snowfall.timeline import build_manifest, parse_windows


def _manifest(n_frames: int, fps: int = 30, active: str = "0-") -> dict:
    return build_manifest(n_frames / fps, fps, parse_windows(active))


@pytest.fixture
def renderer(tiny_render_config) -> SnowfallRenderer:
    return SnowfallRenderer(tiny_render_config, SnowConfig(count=300), seed=11)


class TestSnowfallRenderer:
    def test_single_frame(self, renderer):
        frame = renderer.render_frame({"frame_index": 0, "time": 0.0, "active": True}, 0)
        assert frame.shape == (60, 80, 3)
        assert frame.dtype == np.uint8

    def test_frame_advances_simulation(self, renderer):
        renderer.render_frame({"active": True}, 0)
        assert renderer.simulator.elapsed_time == pytest.approx(1.0 / 30.0)
        assert renderer.simulator.opacity > 0

    def test_missing_flag_means_inactive(self, renderer):
        renderer.render_frame({}, 0)
        assert renderer.simulator.opacity == 0.0

    def test_frame_index_is_logged(self, renderer, caplog):
        caplog.set_level(logging.DEBUG, logger="snowfall.renderer")
        renderer.render_frame({"active": True}, 7)
        assert any("Frame 7: active=True" in r.getMessage() for r in caplog.records)

    def test_render_manifest_yields_every_frame(self, renderer):
        frames = list(renderer.render_manifest(_manifest(5)))
        assert len(frames) == 5
        assert all(f.shape == (60, 80, 3) for f in frames)

    def test_progress_callback(self, renderer):
        progress = []
        list(renderer.render_manifest(_manifest(4), progress_callback=lambda c, t: progress.append((c, t))))
        assert progress == [(1, 4), (2, 4), (3, 4), (4, 4)]

    def test_repeat_renders_match(self, renderer):
        manifest = _manifest(6)
        first = list(renderer.render_manifest(manifest))
        second = list(renderer.render_manifest(manifest))
        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)

    def test_inactive_frames_show_only_the_sky(self, renderer):
        frames = list(renderer.render_manifest(_manifest(4, active="")))
        for frame in frames[1:]:
            np.testing.assert_array_equal(frame, frames[0])

    def test_active_snow_brightens_frames(self, renderer):
        dark = list(renderer.render_manifest(_manifest(20, active="")))[-1]
        lit = list(renderer.render_manifest(_manifest(20)))[-1]
        assert int(lit.astype(np.int64).sum()) > int(dark.astype(np.int64).sum())

    def test_post_processing_can_be_disabled(self):
        cfg = RenderConfig(width=40, height=30, fps=30, glow_enabled=False, vignette_strength=0.0)
        renderer = SnowfallRenderer(cfg, SnowConfig(count=50), seed=2)
        frame = renderer.render_frame({"active": False}, 0)
        # No flakes, no glow, no vignette: the backdrop passes straight through
        np.testing.assert_array_equal(frame, renderer._background)

    def test_render_state_accepts_external_buffers(self, renderer):
        positions = np.array([[0.0, 4.0, 0.0]], dtype=np.float32)
        sizes = np.array([0.06], dtype=np.float32)
        bright = renderer.render_state(positions, sizes, 1.0)
        dark = renderer.render_state(positions, sizes, 0.0)
        assert bright[30, 40].sum() > dark[30, 40].sum()
