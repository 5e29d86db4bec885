"""
Backdrop and post-processing for snowfall frames.

Turns the sprite radiance buffer into a finished RGB frame: a night-sky
gradient behind the flakes, additive compositing, soft bloom, a radial
vignette and a highlight shoulder.
"""

import numpy as np
from PIL import Image, ImageFilter


def sky_gradient(
    width: int,
    height: int,
    top: tuple[int, int, int] = (4, 8, 22),
    bottom: tuple[int, int, int] = (22, 30, 52),
) -> np.ndarray:
    """
    Vertical two-colour gradient.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    t = np.linspace(0.0, 1.0, height, dtype=np.float32)[:, None]
    top_c = np.asarray(top, dtype=np.float32)
    bottom_c = np.asarray(bottom, dtype=np.float32)
    column = top_c[None, :] * (1.0 - t) + bottom_c[None, :] * t  # (H, 3)
    rows = np.broadcast_to(column[:, None, :], (height, width, 3))
    return np.round(rows).astype(np.uint8)


def composite_additive(background: np.ndarray, radiance: np.ndarray) -> np.ndarray:
    """
    Add a [0, 1]-scaled radiance buffer onto a uint8 background.

    Args:
        background: (H, W, 3) uint8.
        radiance: (H, W, 3) float, 1.0 maps to full white.

    Returns:
        (H, W, 3) uint8, saturated at 255.
    """
    if background.shape != radiance.shape:
        raise ValueError(
            f"Shape mismatch: background {background.shape} vs radiance {radiance.shape}"
        )
    summed = background.astype(np.float32) + radiance * 255.0
    return np.clip(summed, 0, 255).astype(np.uint8)


def add_glow(
    frame: np.ndarray,
    intensity: float = 0.4,
    radius: int = 6,
) -> np.ndarray:
    """
    Screen-blend a blurred copy of the frame over itself.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: Bloom strength (0 disables).
        radius: Gaussian blur radius in pixels.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    if intensity <= 0 or radius <= 0:
        return frame

    halo = Image.fromarray(frame).filter(ImageFilter.GaussianBlur(radius=radius))
    base = frame.astype(np.float32) / 255.0
    bloom = np.asarray(halo, dtype=np.float32) / 255.0 * min(intensity, 1.0)
    screened = base + bloom - base * bloom
    return np.round(np.clip(screened, 0.0, 1.0) * 255).astype(np.uint8)


def vignette(frame: np.ndarray, strength: float = 0.35) -> np.ndarray:
    """
    Darken toward the corners.

    ``strength`` of 1 takes the corners to black; 0 is a pass-through.
    """
    if strength <= 0:
        return frame

    h, w = frame.shape[:2]
    y, x = np.ogrid[:h, :w]
    dy = (y - (h - 1) / 2.0) / (h / 2.0)
    dx = (x - (w - 1) / 2.0) / (w / 2.0)
    r = np.sqrt(dx ** 2 + dy ** 2) / np.sqrt(2.0)
    falloff = 1.0 - np.clip(strength * r ** 2, 0.0, 1.0)
    return (frame.astype(np.float32) * falloff[:, :, None]).astype(np.uint8)


def tone_map_soft(frame: np.ndarray, shoulder: float = 0.8) -> np.ndarray:
    """
    Roll off highlights above ``shoulder`` instead of clipping them.

    Values below ``shoulder * 255`` are untouched; values above approach 255
    along a Reinhard curve.
    """
    knee = shoulder * 255.0
    room = 255.0 - knee
    if room <= 0:
        return frame

    f = frame.astype(np.float32)
    excess = np.maximum(f - knee, 0.0)
    rolled = knee + excess * room / (excess + room)
    return np.where(f > knee, rolled, f).astype(np.uint8)
