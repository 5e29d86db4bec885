"""
Frame orchestrator for offline snowfall renders.

Reads timeline frames, ticks the simulator, rasterises the flakes and
applies the backdrop and post-processing. Yields frames as a generator so
they can be piped straight into the encoder.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

import numpy as np

from snowfall.camera import Camera
from snowfall.colorgrade import (
    add_glow,
    composite_additive,
    sky_gradient,
    tone_map_soft,
    vignette,
)
from snowfall.simulator import SnowConfig, SnowfallSimulator
from snowfall.sprites import PointSpriteRenderer, SpriteMaterial

logger = logging.getLogger(__name__)


@dataclass
class RenderConfig:
    """Configuration for the snowfall frame renderer."""

    width: int = 1280
    height: int = 720
    fps: int = 30

    # Backdrop
    sky_top: tuple[int, int, int] = (4, 8, 22)
    sky_bottom: tuple[int, int, int] = (22, 30, 52)

    # Post-processing
    glow_enabled: bool = True
    glow_intensity: float = 0.4
    glow_radius: int = 6
    vignette_strength: float = 0.35

    camera: Camera = field(default_factory=Camera)
    material: SpriteMaterial = field(default_factory=SpriteMaterial)


class SnowfallRenderer:
    """
    Renders snowfall frames driven by a timeline manifest.

    The simulator is created here so that ``render_manifest`` can rebuild it
    from the same seed for every pass.
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        snow_config: SnowConfig | None = None,
        seed: int | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.cfg = config or RenderConfig()
        self.snow_cfg = snow_config or SnowConfig()
        self.seed = seed
        self.clock = clock

        self.simulator = SnowfallSimulator(self.snow_cfg, rng=seed, clock=clock)
        self.sprites = PointSpriteRenderer(self.cfg.material, self.cfg.camera)
        self._background = sky_gradient(
            self.cfg.width, self.cfg.height, self.cfg.sky_top, self.cfg.sky_bottom
        )

    def render_state(self, positions: np.ndarray, sizes: np.ndarray, opacity: float) -> np.ndarray:
        """Rasterise and grade one simulator state."""
        cfg = self.cfg
        radiance = self.sprites.render(positions, sizes, opacity, cfg.width, cfg.height)
        frame = composite_additive(self._background, radiance)

        if cfg.glow_enabled:
            frame = add_glow(frame, intensity=cfg.glow_intensity * opacity, radius=cfg.glow_radius)
        if cfg.vignette_strength > 0:
            frame = vignette(frame, strength=cfg.vignette_strength)
        return tone_map_soft(frame)

    def render_frame(self, frame_data: dict[str, Any], frame_index: int) -> np.ndarray:
        """
        Advance one frame and render it.

        Args:
            frame_data: Timeline frame, read for its "active" flag.
            frame_index: Index of the frame in the timeline.

        Returns:
            (H, W, 3) uint8 RGB array.
        """
        dt = 1.0 / self.cfg.fps
        active = bool(frame_data.get("active", False))
        positions, opacity = self.simulator.tick(dt, active)
        logger.debug("Frame %d: active=%s opacity=%.3f", frame_index, active, opacity)
        return self.render_state(positions, self.simulator.sizes, opacity)

    def render_manifest(
        self,
        manifest: dict[str, Any],
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> Iterator[np.ndarray]:
        """
        Render all frames from a timeline manifest as a generator.

        Args:
            manifest: Timeline manifest with a "frames" list.
            progress_callback: Optional callback(current, total).

        Yields:
            (H, W, 3) uint8 RGB arrays, one per frame.
        """
        frames = manifest.get("frames", [])
        total = len(frames)

        # Fresh field from the same seed so repeated renders match
        self.simulator = SnowfallSimulator(self.snow_cfg, rng=self.seed, clock=self.clock)
        logger.info("Rendering %d frames at %dx%d", total, self.cfg.width, self.cfg.height)

        for i, frame_data in enumerate(frames):
            yield self.render_frame(frame_data, i)

            if progress_callback:
                progress_callback(i + 1, total)
