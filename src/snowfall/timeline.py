"""
Activation timeline.

The scene toggles snow on and off from outside the simulator. For offline
renders that toggle is described by activation windows and expanded into a
per-frame manifest, one ``{frame_index, time, active}`` entry per frame.
"""

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Union

SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class ActivationWindow:
    """Half-open interval [start, end) of seconds during which snow is active."""
    start: float
    end: float = math.inf

    def contains(self, t: float) -> bool:
        return self.start <= t < self.end


def parse_windows(text: str) -> list[ActivationWindow]:
    """
    Parse comma-separated activation windows.

    Each token is ``start-end`` or ``start-`` (open-ended), in seconds,
    e.g. ``"0-4,6.5-10,12-"``. An empty string means never active.

    Raises:
        ValueError: On malformed tokens or windows with ``end <= start``.
    """
    windows = []
    for token in text.split(","):
        token = token.strip()
        if not token:
            continue
        start_s, sep, end_s = token.partition("-")
        if not sep:
            raise ValueError(f"Activation window must look like 'start-end': {token!r}")
        try:
            start = float(start_s)
            end = float(end_s) if end_s.strip() else math.inf
        except ValueError:
            raise ValueError(f"Activation window has a non-numeric bound: {token!r}") from None
        if start < 0 or end <= start:
            raise ValueError(f"Activation window is empty or negative: {token!r}")
        windows.append(ActivationWindow(start, end))
    return windows


def is_active(windows: Iterable[ActivationWindow], t: float) -> bool:
    return any(w.contains(t) for w in windows)


def build_manifest(
    duration: float,
    fps: int,
    windows: Iterable[ActivationWindow],
    precision: int = 4,
) -> dict[str, Any]:
    """
    Expand activation windows into a per-frame manifest.

    Args:
        duration: Length of the render in seconds.
        fps: Frames per second.
        windows: Activation windows.
        precision: Decimal places kept for frame times.

    Returns:
        Dict with "metadata" and "frames" keys.
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    if duration < 0:
        raise ValueError(f"duration must not be negative, got {duration}")

    windows = list(windows)
    n_frames = int(round(duration * fps))
    frames = []
    for i in range(n_frames):
        t = i / fps
        frames.append({
            "frame_index": i,
            "time": round(t, precision),
            "active": is_active(windows, t),
        })

    return {
        "metadata": {
            "duration": duration,
            "fps": fps,
            "n_frames": n_frames,
            "schema_version": SCHEMA_VERSION,
        },
        "frames": frames,
    }


class TimelineExporter:
    """Reads and writes timeline manifests as JSON."""

    def __init__(self, indent: int | None = 2):
        self.indent = indent

    def to_json(self, manifest: dict[str, Any]) -> str:
        return json.dumps(manifest, indent=self.indent)

    def save(self, manifest: dict[str, Any], path: Union[str, Path]) -> Path:
        """Write a manifest to disk, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(manifest), encoding="utf-8")
        return path

    def load(self, path: Union[str, Path]) -> dict[str, Any]:
        """
        Read a manifest from disk.

        Raises:
            ValueError: If the file is not a manifest with a "frames" list.
        """
        with open(path, "r", encoding="utf-8") as f:
            manifest = json.load(f)
        if not isinstance(manifest, dict) or not isinstance(manifest.get("frames"), list):
            raise ValueError(f"Not a timeline manifest (missing 'frames'): {path}")
        return manifest
