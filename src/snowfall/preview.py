"""
Interactive snowfall preview window.

Controls:
    SPACE        toggle snow on/off
    LEFT/RIGHT   orbit the camera around the scene
    R            reset the field
    ESC          quit

Usage:
    snowfall-preview [--count N] [--seed S] [--width W] [--height H]
"""

import argparse
import logging
import math
import sys

import numpy as np
import pygame

from snowfall.log import setup_logging
from snowfall.renderer import RenderConfig, SnowfallRenderer
from snowfall.simulator import SnowConfig, SnowConfigError

logger = logging.getLogger(__name__)

ORBIT_STEP = math.radians(5.0)


class PreviewSession:
    """Keyboard-driven state for the live preview, independent of the window."""

    def __init__(
        self,
        render_config: RenderConfig | None = None,
        snow_config: SnowConfig | None = None,
        seed: int | None = None,
        active: bool = True,
    ):
        self.renderer = SnowfallRenderer(render_config, snow_config, seed=seed)
        self.active = active
        self.running = True

    @property
    def simulator(self):
        return self.renderer.simulator

    def handle_key(self, key: int):
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_SPACE:
            self.active = not self.active
            logger.info("Snow %s", "on" if self.active else "off")
        elif key == pygame.K_LEFT:
            self.orbit(-ORBIT_STEP)
        elif key == pygame.K_RIGHT:
            self.orbit(ORBIT_STEP)
        elif key == pygame.K_r:
            self.simulator.reset()
            logger.info("Field reset")

    def orbit(self, angle: float):
        cfg = self.renderer.cfg
        cfg.camera = cfg.camera.orbit(angle)
        self.renderer.sprites.camera = cfg.camera

    def step(self, dt: float) -> np.ndarray:
        """Tick the simulator and return the graded (H, W, 3) frame."""
        positions, opacity = self.simulator.tick(dt, self.active)
        return self.renderer.render_state(positions, self.simulator.sizes, opacity)


def frame_to_surface(frame: np.ndarray) -> pygame.Surface:
    """Convert an (H, W, 3) RGB array to a pygame Surface."""
    # pygame surfaces are indexed (width, height)
    return pygame.surfarray.make_surface(np.transpose(frame, (1, 0, 2)))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="snowfall-preview",
        description="Live snowfall preview (SPACE toggles snow)",
    )
    parser.add_argument("--width", type=int, default=960, help="Window width (default: 960)")
    parser.add_argument("--height", type=int, default=540, help="Window height (default: 540)")
    parser.add_argument("-f", "--fps", type=int, default=60, help="Target frame rate (default: 60)")
    parser.add_argument("-n", "--count", type=int, default=800, help="Number of flakes (default: 800)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--start-off", action="store_true", help="Start with snow switched off")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        session = PreviewSession(
            RenderConfig(width=args.width, height=args.height, fps=args.fps),
            SnowConfig(count=args.count),
            seed=args.seed,
            active=not args.start_off,
        )
    except SnowConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    pygame.init()
    try:
        screen = pygame.display.set_mode((args.width, args.height))
        clock = pygame.time.Clock()

        while session.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    session.running = False
                elif event.type == pygame.KEYDOWN:
                    session.handle_key(event.key)

            dt = clock.tick(args.fps) / 1000.0
            frame = session.step(dt)
            screen.blit(frame_to_surface(frame), (0, 0))
            pygame.display.set_caption(
                f"Snowfall  opacity {session.simulator.opacity:.2f}  {clock.get_fps():.0f} fps"
            )
            pygame.display.flip()
    finally:
        pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
