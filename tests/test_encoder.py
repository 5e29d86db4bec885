"""Tests for video encoding and PNG output."""

import numpy as np
import pytest
from PIL import Image

from snowfall import encoder
from snowfall.encoder import build_ffmpeg_command, encode_video, ffmpeg_available, write_frames

needs_ffmpeg = pytest.mark.skipif(not ffmpeg_available(), reason="ffmpeg not installed")


def _solid_frames(n: int, width: int, height: int, color=(200, 210, 255)):
    """Generate N solid-color frames."""
    frame = np.full((height, width, 3), color, dtype=np.uint8)
    for _ in range(n):
        yield frame.copy()


class TestCommand:
    def test_video_only(self, tmp_path):
        cmd = build_ffmpeg_command(tmp_path / "out.mp4", 320, 240, 30, "fast")
        assert cmd[0] == "ffmpeg"
        assert "-an" in cmd
        assert "320x240" in cmd
        assert cmd[cmd.index("-preset") + 1] == "ultrafast"
        assert cmd[-1] == str(tmp_path / "out.mp4")

    def test_with_audio(self, tmp_path):
        cmd = build_ffmpeg_command(tmp_path / "out.mp4", 320, 240, 30, "high", tmp_path / "a.wav")
        assert "-shortest" in cmd
        assert str(tmp_path / "a.wav") in cmd
        assert "-an" not in cmd

    def test_unknown_quality(self, tmp_path):
        with pytest.raises(ValueError, match="quality"):
            build_ffmpeg_command(tmp_path / "out.mp4", 32, 24, 30, "ultra")


class TestWriteFrames:
    def test_writes_numbered_pngs(self, tmp_path):
        paths = write_frames(_solid_frames(3, 32, 24), tmp_path / "frames")
        assert [p.name for p in paths] == ["snow_00000.png", "snow_00001.png", "snow_00002.png"]
        with Image.open(paths[1]) as img:
            assert img.size == (32, 24)
            assert img.getpixel((0, 0)) == (200, 210, 255)

    def test_progress(self, tmp_path):
        progress = []
        write_frames(
            _solid_frames(2, 8, 8), tmp_path,
            progress_callback=lambda c, t: progress.append((c, t)), total_frames=2,
        )
        assert progress == [(1, 2), (2, 2)]


class TestEncodeVideo:
    def test_missing_ffmpeg(self, tmp_path, monkeypatch):
        monkeypatch.setattr(encoder, "ffmpeg_available", lambda: False)
        with pytest.raises(FileNotFoundError, match="ffmpeg"):
            encode_video(_solid_frames(1, 16, 16), tmp_path / "x.mp4", 16, 16)

    @needs_ffmpeg
    def test_produces_mp4(self, tmp_path):
        output = tmp_path / "clip.mp4"
        progress = []
        result = encode_video(
            frame_iterator=_solid_frames(15, 160, 120),
            output_path=output,
            width=160,
            height=120,
            fps=30,
            quality="fast",
            total_frames=15,
            progress_callback=lambda c, t: progress.append((c, t)),
        )
        assert result.exists()
        assert result.stat().st_size > 0
        assert len(progress) == 15

    @needs_ffmpeg
    def test_rejects_wrong_frame_shape(self, tmp_path):
        with pytest.raises(ValueError, match="shape"):
            encode_video(_solid_frames(2, 20, 10), tmp_path / "bad.mp4", width=16, height=16, quality="fast")
