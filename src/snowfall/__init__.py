"""
Snowfall: CPU-simulated ambient snow for real-time 3D scenes.

The simulator advances a fixed field of flakes each frame; the camera,
sprite rasteriser and encoder turn that field into frames or video.
"""

from snowfall.camera import Camera
from snowfall.renderer import RenderConfig, SnowfallRenderer
from snowfall.simulator import SnowConfig, SnowConfigError, SnowfallSimulator, SnowFrame
from snowfall.sprites import PointSpriteRenderer, SpriteMaterial
from snowfall.timeline import ActivationWindow, build_manifest, parse_windows

__version__ = "0.1.0"

__all__ = [
    "ActivationWindow",
    "Camera",
    "PointSpriteRenderer",
    "RenderConfig",
    "SnowConfig",
    "SnowConfigError",
    "SnowFrame",
    "SnowfallRenderer",
    "SnowfallSimulator",
    "SpriteMaterial",
    "build_manifest",
    "parse_windows",
]
