"""
Snowfall particle simulator.

Owns a fixed population of snowflakes and advances them once per frame:
- Velocity integration with per-flake drift and fall speed
- Phase-offset sinusoidal wind turbulence plus a small swirl nudge
- Respawn at the top of the volume once a flake drops below the floor
- Horizontal wrap to the opposite edge of the volume
- Exponential opacity easing toward the activation flag

The simulator never draws anything. Renderers read ``positions``, ``sizes``
and ``opacity`` after each tick.
"""

import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping

import numpy as np

logger = logging.getLogger(__name__)


class SnowConfigError(ValueError):
    """Raised when a snowfall configuration cannot produce a valid field."""


@dataclass
class SnowConfig:
    """Configuration for the snowfall simulator."""

    count: int = 800

    # Viewing volume (X/Z spread is 2 * half_extent)
    half_extent: float = 15.0
    spawn_min_y: float = 5.0
    spawn_range_y: float = 20.0
    respawn_min_y: float = 15.0
    respawn_range_y: float = 5.0
    floor_y: float = -5.0

    # Per-flake motion, drawn once at construction
    fall_speed_min: float = 0.5
    fall_speed_max: float = 2.0
    drift: float = 0.15
    size_min: float = 0.02
    size_max: float = 0.10

    # Fade in/out
    fade_rate: float = 2.0  # 1/s
    visibility_threshold: float = 0.01

    # Turbulence
    wind_strength: float = 0.02
    swirl_strength: float = 0.005
    swirl_per_second: bool = False  # scale the swirl nudge by delta time

    def validate(self):
        """Raise SnowConfigError if any field is out of range."""
        if isinstance(self.count, bool) or not isinstance(self.count, (int, np.integer)):
            raise SnowConfigError(f"count must be an integer, got {self.count!r}")
        if self.count <= 0:
            raise SnowConfigError(f"count must be positive, got {self.count}")
        for f in fields(self):
            if f.name == "count":
                continue
            value = getattr(self, f.name)
            if f.name == "swirl_per_second":
                if not isinstance(value, (bool, np.bool_)):
                    raise SnowConfigError(f"swirl_per_second must be a boolean, got {value!r}")
            elif isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
                raise SnowConfigError(f"{f.name} must be a number, got {value!r}")
        if self.half_extent <= 0:
            raise SnowConfigError(f"half_extent must be positive, got {self.half_extent}")
        if self.spawn_range_y < 0 or self.respawn_range_y < 0:
            raise SnowConfigError("spawn ranges must not be negative")
        if self.fall_speed_min < 0 or self.fall_speed_min > self.fall_speed_max:
            raise SnowConfigError(
                f"invalid fall speed range [{self.fall_speed_min}, {self.fall_speed_max}]"
            )
        if self.size_min < 0 or self.size_min > self.size_max:
            raise SnowConfigError(f"invalid size range [{self.size_min}, {self.size_max}]")
        if self.drift < 0:
            raise SnowConfigError(f"drift must not be negative, got {self.drift}")
        if self.fade_rate < 0:
            raise SnowConfigError(f"fade_rate must not be negative, got {self.fade_rate}")
        if not 0.0 <= self.visibility_threshold <= 1.0:
            raise SnowConfigError(
                f"visibility_threshold must lie in [0, 1], got {self.visibility_threshold}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SnowConfig":
        """Build a config from a mapping of field overrides."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise SnowConfigError(f"Unknown snow config keys: {', '.join(unknown)}")
        config = cls(**dict(data))
        config.validate()
        return config


@dataclass
class SnowFrame:
    """Snapshot of the render-facing state after a tick."""
    positions: np.ndarray  # (N, 3) float32
    sizes: np.ndarray  # (N,) float32
    opacity: float


class SnowfallSimulator:
    """
    CPU snowfall simulation over a bounded volume.

    Call ``tick`` once per frame. The returned position buffer is the
    simulator's own array and is mutated in place on the next tick.
    """

    def __init__(
        self,
        config: SnowConfig | None = None,
        rng: np.random.Generator | int | None = None,
        clock: Callable[[], float] | None = None,
    ):
        """
        Build the particle field.

        Args:
            config: Simulation configuration. Uses defaults if None.
            rng: Generator or seed for all random draws.
            clock: Optional callable returning seconds. When given, the
                turbulence phase follows it instead of accumulated tick time.
        """
        self.cfg = config or SnowConfig()
        self.cfg.validate()

        if isinstance(rng, np.random.Generator):
            self.rng = rng
        else:
            self.rng = np.random.default_rng(rng)
        self.clock = clock

        n = self.cfg.count
        self._phase_index = np.arange(n, dtype=np.float64)

        self.positions = self._spawn_positions(n)
        self.initial_positions = self.positions.copy()
        self.velocities = self._sample_velocities(n)
        self.sizes = self._sample_sizes(n)

        self.opacity = 0.0
        self.active = False
        self.elapsed_time = 0.0
        self._was_visible = False

        logger.info(
            "Snowfall field created: %d flakes, volume +/-%.1f, %s clock",
            n, self.cfg.half_extent, "wall" if clock is not None else "simulated",
        )

    @property
    def count(self) -> int:
        return self.cfg.count

    @property
    def is_visible(self) -> bool:
        return self.opacity >= self.cfg.visibility_threshold

    def _spawn_positions(self, n: int) -> np.ndarray:
        cfg = self.cfg
        spread = cfg.half_extent * 2.0
        u = self.rng.random((n, 3))
        positions = np.empty((n, 3), dtype=np.float32)
        positions[:, 0] = (u[:, 0] - 0.5) * spread
        positions[:, 1] = u[:, 1] * cfg.spawn_range_y + cfg.spawn_min_y
        positions[:, 2] = (u[:, 2] - 0.5) * spread
        return positions

    def _sample_velocities(self, n: int) -> np.ndarray:
        cfg = self.cfg
        u = self.rng.random((n, 3))
        velocities = np.empty((n, 3), dtype=np.float32)
        velocities[:, 0] = (u[:, 0] - 0.5) * 2.0 * cfg.drift
        velocities[:, 1] = -(u[:, 1] * (cfg.fall_speed_max - cfg.fall_speed_min) + cfg.fall_speed_min)
        velocities[:, 2] = (u[:, 2] - 0.5) * 2.0 * cfg.drift
        return velocities

    def _sample_sizes(self, n: int) -> np.ndarray:
        cfg = self.cfg
        return (self.rng.random(n) * (cfg.size_max - cfg.size_min) + cfg.size_min).astype(np.float32)

    def _ease_opacity(self, dt: float, active: bool):
        target = 1.0 if active else 0.0
        # Factor capped at 1 so one long frame lands on the target instead of past it
        factor = min(dt * self.cfg.fade_rate, 1.0)
        self.opacity = float(np.clip(self.opacity + (target - self.opacity) * factor, 0.0, 1.0))

    def _advance(self, dt: float, phase: float):
        cfg = self.cfg
        pos = self.positions
        vel = self.velocities
        idx = self._phase_index

        wind_x = np.sin(phase * 0.5 + idx * 0.1) * cfg.wind_strength
        wind_z = np.cos(phase * 0.3 + idx * 0.15) * cfg.wind_strength

        pos[:, 0] += (vel[:, 0] + wind_x) * dt
        pos[:, 1] += vel[:, 1] * dt
        pos[:, 2] += (vel[:, 2] + wind_z) * dt

        swirl = np.sin(phase + idx) * cfg.swirl_strength
        if cfg.swirl_per_second:
            swirl *= dt
        pos[:, 0] += swirl

        self._respawn_fallen()
        self._wrap_horizontal()

    def _respawn_fallen(self):
        cfg = self.cfg
        fallen = np.flatnonzero(self.positions[:, 1] < cfg.floor_y)
        if fallen.size == 0:
            return
        spread = cfg.half_extent * 2.0
        u = self.rng.random((fallen.size, 3))
        self.positions[fallen, 0] = (u[:, 0] - 0.5) * spread
        self.positions[fallen, 1] = u[:, 1] * cfg.respawn_range_y + cfg.respawn_min_y
        self.positions[fallen, 2] = (u[:, 2] - 0.5) * spread

    def _wrap_horizontal(self):
        edge = self.cfg.half_extent
        for axis in (0, 2):
            coord = self.positions[:, axis]
            over = coord > edge
            under = coord < -edge
            coord[over] = -edge
            coord[under] = edge

    def tick(self, delta_time: float, active: bool) -> tuple[np.ndarray, float]:
        """
        Advance the field by one frame.

        Args:
            delta_time: Seconds since the previous tick. Values that are not positive
                and finite make the tick a no-op (stalled or rewound host clocks).
            active: Whether snow should be showing; drives the opacity target.

        Returns:
            Tuple of (positions, opacity). ``positions`` is the live (N, 3)
            buffer, not a copy.
        """
        self.active = bool(active)
        if not (delta_time > 0 and math.isfinite(delta_time)):
            return self.positions, self.opacity

        dt = float(delta_time)
        self.elapsed_time += dt
        self._ease_opacity(dt, self.active)

        visible = self.is_visible
        if visible != self._was_visible:
            logger.debug(
                "Snowfall %s at t=%.2fs (opacity %.3f)",
                "visible" if visible else "faded out", self.elapsed_time, self.opacity,
            )
            self._was_visible = visible

        # Invisible fields keep their positions frozen
        if not visible:
            return self.positions, self.opacity

        phase = self.clock() if self.clock is not None else self.elapsed_time
        self._advance(dt, phase)
        return self.positions, self.opacity

    def state(self) -> SnowFrame:
        """Copy of the current render-facing state."""
        return SnowFrame(
            positions=self.positions.copy(),
            sizes=self.sizes,
            opacity=self.opacity,
        )

    def reset(self):
        """Return every flake to its spawn position and fade fully out."""
        self.positions[:] = self.initial_positions
        self.opacity = 0.0
        self.active = False
        self.elapsed_time = 0.0
        self._was_visible = False
