"""
CLI entry point for offline snowfall renders.

Usage:
    snowfall-render [options]
    python -m snowfall [options]
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

from snowfall.encoder import encode_video, write_frames
from snowfall.log import setup_logging
from snowfall.renderer import RenderConfig, SnowfallRenderer
from snowfall.simulator import SnowConfig, SnowConfigError
from snowfall.timeline import TimelineExporter, build_manifest, parse_windows

logger = logging.getLogger(__name__)

PROFILES = {
    "low": {"width": 640, "height": 360, "fps": 24, "quality": "fast"},
    "medium": {"width": 1280, "height": 720, "fps": 30, "quality": "medium"},
    "high": {"width": 1920, "height": 1080, "fps": 60, "quality": "high"},
}


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snowfall-render",
        description="Render an ambient snowfall clip to MP4 or a PNG sequence",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("snowfall.mp4"),
        help="Output MP4 path (default: snowfall.mp4)",
    )
    parser.add_argument(
        "--frames-dir",
        type=Path,
        default=None,
        help="Write a PNG sequence to this directory instead of encoding video",
    )

    # Resolution & Profile
    parser.add_argument(
        "-p", "--profile", type=str, default="medium",
        choices=sorted(PROFILES),
        help="Target profile (low: 360p 24fps, medium: 720p 30fps, high: 1080p 60fps)",
    )
    parser.add_argument("--width", type=int, default=None, help="Frame width (overrides profile)")
    parser.add_argument("--height", type=int, default=None, help="Frame height (overrides profile)")
    parser.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")

    # Timeline
    parser.add_argument(
        "-d", "--duration", type=float, default=10.0,
        help="Clip length in seconds (default: 10)",
    )
    parser.add_argument(
        "--active", type=str, default="0-",
        help="Seconds during which snow is on, e.g. '0-4,6-' (default: always)",
    )
    parser.add_argument(
        "--manifest-out", type=Path, default=None,
        help="Also write the per-frame activation timeline as JSON",
    )
    parser.add_argument(
        "--manifest-in", type=Path, default=None,
        help="Render from a saved timeline JSON (overrides --duration and --active)",
    )

    # Simulation
    parser.add_argument("-n", "--count", type=int, default=None, help="Number of flakes (default: 800)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible field")
    parser.add_argument(
        "--config", type=Path, default=None,
        help="JSON file of snow config overrides",
    )
    parser.add_argument(
        "--wall-clock", action="store_true",
        help="Phase turbulence from the wall clock instead of simulated time",
    )

    # Post-processing
    parser.add_argument("--no-glow", action="store_true", help="Disable glow")

    # Quality
    parser.add_argument(
        "-q", "--quality", type=str, default=None,
        choices=["high", "medium", "fast"],
        help="Encoding quality (defaults to profile quality)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def load_snow_config(path: Path | None, count: int | None) -> SnowConfig:
    """Merge a JSON override file and the --count flag into a SnowConfig."""
    overrides = {}
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            overrides = json.load(f)
        if not isinstance(overrides, dict):
            raise SnowConfigError(f"Config file must hold a JSON object: {path}")
    if count is not None:
        overrides["count"] = count
    return SnowConfig.from_dict(overrides)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    p_cfg = PROFILES[args.profile]
    width = args.width if args.width is not None else p_cfg["width"]
    height = args.height if args.height is not None else p_cfg["height"]
    fps = args.fps if args.fps is not None else p_cfg["fps"]
    quality = args.quality or p_cfg["quality"]

    try:
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame size must be positive, got {width}x{height}")
        snow_config = load_snow_config(args.config, args.count)
        if args.manifest_in is not None:
            manifest = TimelineExporter().load(args.manifest_in)
            metadata = manifest.get("metadata")
            if isinstance(metadata, dict):
                fps = metadata.get("fps", fps)
        else:
            windows = parse_windows(args.active)
            manifest = build_manifest(args.duration, fps, windows)
        if isinstance(fps, bool) or not isinstance(fps, int) or fps <= 0:
            raise ValueError(f"fps must be a positive integer, got {fps!r}")
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.debug("Snow config: %s", snow_config)

    if args.manifest_out is not None:
        TimelineExporter().save(manifest, args.manifest_out)
        print(f"Timeline written to {args.manifest_out}")

    total_frames = len(manifest["frames"])
    render_config = RenderConfig(
        width=width,
        height=height,
        fps=fps,
        glow_enabled=not args.no_glow,
    )
    renderer = SnowfallRenderer(
        render_config,
        snow_config,
        seed=args.seed,
        clock=time.time if args.wall_clock else None,
    )

    print(f"Rendering {total_frames} frames of {snow_config.count} flakes at {width}x{height} @ {fps}fps")
    t0 = time.time()
    frame_gen = renderer.render_manifest(manifest)

    try:
        if args.frames_dir is not None:
            write_frames(
                frame_gen, args.frames_dir,
                progress_callback=_progress_bar, total_frames=total_frames,
            )
            target = args.frames_dir
        else:
            target = encode_video(
                frame_iterator=frame_gen,
                output_path=args.output,
                width=width,
                height=height,
                fps=fps,
                quality=quality,
                total_frames=total_frames,
                progress_callback=_progress_bar,
            )
    except (OSError, RuntimeError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    elapsed = time.time() - t0
    print(f"\nDone! {total_frames} frames in {elapsed:.1f}s ({total_frames / max(elapsed, 0.01):.1f} fps)")
    print(f"  Output: {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
