"""
Frame output: FFmpeg video encoding and PNG sequences.

Video frames are piped as raw RGB to ffmpeg via stdin, with no
intermediate files.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable, Union

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

# Quality presets: (preset, crf, pix_fmt)
QUALITY_PRESETS = {
    "high": ("slow", "18", "yuv444p"),
    "medium": ("medium", "23", "yuv420p"),
    "fast": ("ultrafast", "28", "yuv420p"),
}


def ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None


def build_ffmpeg_command(
    output_path: Path,
    width: int,
    height: int,
    fps: int,
    quality: str = "medium",
    audio_path: Path | None = None,
) -> list[str]:
    """Assemble the ffmpeg argument list for a raw RGB stdin stream."""
    if quality not in QUALITY_PRESETS:
        raise ValueError(f"Unknown quality {quality!r}; expected one of {sorted(QUALITY_PRESETS)}")
    preset, crf, pix_fmt = QUALITY_PRESETS[quality]

    cmd = [
        "ffmpeg", "-y",
        "-loglevel", "error",
        "-f", "rawvideo",
        "-pix_fmt", "rgb24",
        "-s", f"{width}x{height}",
        "-r", str(fps),
        "-i", "pipe:0",
    ]
    if audio_path is not None:
        cmd += ["-i", str(audio_path)]
    cmd += [
        "-c:v", "libx264",
        "-preset", preset,
        "-crf", crf,
        "-pix_fmt", pix_fmt,
    ]
    if audio_path is not None:
        cmd += ["-c:a", "aac", "-b:a", "192k", "-shortest"]
    else:
        cmd += ["-an"]
    cmd.append(str(output_path))
    return cmd


def encode_video(
    frame_iterator: Iterable[np.ndarray],
    output_path: Union[str, Path],
    width: int = 1280,
    height: int = 720,
    fps: int = 30,
    quality: str = "medium",
    total_frames: int | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
    audio_path: Union[str, Path, None] = None,
) -> Path:
    """
    Encode frames to MP4.

    Args:
        frame_iterator: Yields (H, W, 3) uint8 numpy arrays.
        output_path: Output MP4 path.
        width: Frame width.
        height: Frame height.
        fps: Frames per second.
        quality: "high", "medium", or "fast".
        total_frames: Total frame count for progress reporting.
        progress_callback: Optional callback(current_frame, total_frames).
        audio_path: Optional soundtrack to mux in.

    Returns:
        Path to the output file.

    Raises:
        FileNotFoundError: If ffmpeg is not on PATH.
        RuntimeError: If ffmpeg exits with an error.
    """
    if not ffmpeg_available():
        raise FileNotFoundError("ffmpeg not found on PATH")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = build_ffmpeg_command(
        output_path, width, height, fps, quality,
        Path(audio_path) if audio_path is not None else None,
    )
    logger.debug("Running %s", " ".join(cmd))

    proc = subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
    )

    frame_count = 0
    try:
        for frame in frame_iterator:
            if frame.shape != (height, width, 3):
                raise ValueError(f"Frame {frame_count} has shape {frame.shape}, expected {(height, width, 3)}")
            proc.stdin.write(np.ascontiguousarray(frame, dtype=np.uint8).tobytes())
            frame_count += 1

            if progress_callback and total_frames:
                progress_callback(frame_count, total_frames)
    except BrokenPipeError:
        # ffmpeg died early; its stderr below carries the reason
        pass
    except BaseException:
        proc.kill()
        proc.wait()
        raise
    finally:
        if proc.stdin and not proc.stdin.closed:
            try:
                proc.stdin.close()
            except BrokenPipeError:
                pass

    stderr = proc.stderr.read().decode("utf-8", errors="replace")
    proc.wait()

    if proc.returncode != 0:
        error_lines = [
            line for line in stderr.split("\n")
            if "error" in line.lower() or "invalid" in line.lower()
        ]
        error_msg = "\n".join(error_lines[-5:]) if error_lines else stderr[-500:]
        raise RuntimeError(f"ffmpeg exited with code {proc.returncode}: {error_msg}")

    logger.info("Encoded %d frames to %s", frame_count, output_path)
    return output_path


def write_frames(
    frame_iterator: Iterable[np.ndarray],
    directory: Union[str, Path],
    prefix: str = "snow",
    progress_callback: Callable[[int, int], None] | None = None,
    total_frames: int | None = None,
) -> list[Path]:
    """
    Write frames as a numbered PNG sequence.

    Returns:
        Paths of the written files, in frame order.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    written = []
    for i, frame in enumerate(frame_iterator):
        path = directory / f"{prefix}_{i:05d}.png"
        Image.fromarray(np.asarray(frame, dtype=np.uint8)).save(path)
        written.append(path)
        if progress_callback and total_frames:
            progress_callback(i + 1, total_frames)

    logger.info("Wrote %d frames to %s", len(written), directory)
    return written

