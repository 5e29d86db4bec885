"""Tests for activation windows and timeline manifests."""

import json
import math

import pytest

from snowfall.timeline import (
    ActivationWindow,
    TimelineExporter,
    build_manifest,
    is_active,
    parse_windows,
)


class TestParseWindows:
    def test_closed_and_open_windows(self):
        windows = parse_windows("0-4, 6.5-10,12-")
        assert windows == [
            ActivationWindow(0.0, 4.0),
            ActivationWindow(6.5, 10.0),
            ActivationWindow(12.0, math.inf),
        ]

    def test_empty_means_never(self):
        assert parse_windows("") == []
        assert not is_active(parse_windows(""), 1.0)

    @pytest.mark.parametrize("text", ["abc", "4", "5-3", "2-2", "1-x", "-3"])
    def test_rejects_malformed(self, text):
        with pytest.raises(ValueError):
            parse_windows(text)

    def test_window_is_half_open(self):
        w = ActivationWindow(1.0, 2.0)
        assert w.contains(1.0)
        assert w.contains(1.999)
        assert not w.contains(2.0)
        assert not w.contains(0.5)


class TestBuildManifest:
    def test_structure(self):
        manifest = build_manifest(2.0, 10, parse_windows("0-"))
        meta = manifest["metadata"]
        assert meta["n_frames"] == 20
        assert meta["fps"] == 10
        assert meta["duration"] == 2.0
        assert "schema_version" in meta
        assert len(manifest["frames"]) == 20
        assert set(manifest["frames"][0]) == {"frame_index", "time", "active"}

    def test_active_flags_follow_windows(self):
        manifest = build_manifest(2.0, 10, parse_windows("0-0.5,1.5-"))
        flags = [f["active"] for f in manifest["frames"]]
        assert flags == [True] * 5 + [False] * 10 + [True] * 5

    def test_frame_times(self):
        manifest = build_manifest(1.0, 4, [])
        assert [f["time"] for f in manifest["frames"]] == [0.0, 0.25, 0.5, 0.75]
        assert not any(f["active"] for f in manifest["frames"])

    def test_rejects_bad_fps(self):
        with pytest.raises(ValueError):
            build_manifest(1.0, 0, [])

    def test_rejects_negative_duration(self):
        with pytest.raises(ValueError):
            build_manifest(-1.0, 30, [])


class TestTimelineExporter:
    def test_save_and_load(self, tmp_path):
        manifest = build_manifest(1.0, 5, parse_windows("0-0.5"))
        path = TimelineExporter().save(manifest, tmp_path / "nested" / "timeline.json")
        assert path.exists()
        assert TimelineExporter().load(path) == manifest

    def test_output_is_valid_json(self):
        manifest = build_manifest(0.5, 4, parse_windows("0-"))
        parsed = json.loads(TimelineExporter(indent=None).to_json(manifest))
        assert parsed["metadata"]["n_frames"] == 2

    def test_load_rejects_non_manifest(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"metadata": {}}))
        with pytest.raises(ValueError, match="frames"):
            TimelineExporter().load(path)
