"""Pytest configuration and shared fixtures."""

import logging

import numpy as np
import pytest

from snowfall.renderer import RenderConfig
from snowfall.simulator import SnowConfig, SnowfallSimulator

# Typical frame time for tests
FRAME_DT = 1.0 / 60.0


@pytest.fixture(autouse=True)
def reset_snowfall_logger():
    """Undo handler/propagation changes made by setup_logging between tests."""
    yield
    logger = logging.getLogger("snowfall")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def frame_dt() -> float:
    return FRAME_DT


@pytest.fixture
def small_config() -> SnowConfig:
    """A small field that is cheap to tick."""
    return SnowConfig(count=200)


@pytest.fixture
def simulator(small_config: SnowConfig) -> SnowfallSimulator:
    """Seeded simulator over the small field."""
    return SnowfallSimulator(small_config, rng=1234)


@pytest.fixture
def tiny_render_config() -> RenderConfig:
    """Low-resolution render settings for fast frame tests."""
    return RenderConfig(width=80, height=60, fps=30)


def run_ticks(sim: SnowfallSimulator, n: int, dt: float, active: bool) -> float:
    """Tick ``n`` times and return the final opacity."""
    opacity = sim.opacity
    for _ in range(n):
        _, opacity = sim.tick(dt, active)
    return opacity


@pytest.fixture
def ticker():
    return run_ticks


@pytest.fixture
def calm_config() -> SnowConfig:
    """Field with no drift or wind, so only fall and swirl move flakes."""
    return SnowConfig(count=50, drift=0.0, wind_strength=0.0)


@pytest.fixture
def centred(calm_config: SnowConfig):
    """Factory for calm simulators with every flake moved to x = z = 0, y = 10."""
    def make(**kwargs) -> SnowfallSimulator:
        sim = SnowfallSimulator(calm_config, rng=7, **kwargs)
        sim.positions[:, 0] = 0.0
        sim.positions[:, 1] = 10.0
        sim.positions[:, 2] = 0.0
        return sim
    return make


@pytest.fixture
def phase_index(calm_config: SnowConfig) -> np.ndarray:
    return np.arange(calm_config.count, dtype=np.float64)
