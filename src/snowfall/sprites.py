"""
CPU point-sprite rasteriser.

Draws simulator positions the way the scene's points material does:
white, additively blended, size-attenuated sprites that never write depth.
Sprites are splatted as impulses into a few radius layers, and each layer is
softened with a Gaussian whose width matches the layer's sprite radius.
"""

from dataclasses import dataclass

import numpy as np
from scipy.ndimage import gaussian_filter

from snowfall.camera import Camera

# Mean of the default flake size range; a flake of this size draws at the base point size.
SIZE_REFERENCE = 0.06


@dataclass
class SpriteMaterial:
    """Point-sprite material parameters."""
    size: float = 0.1  # base point size, world units when attenuated
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    additive: bool = True
    size_attenuation: bool = True
    point_scale_px: float = 20.0  # pixels per unit of size when not attenuated
    softness: float = 0.5  # Gaussian sigma as a fraction of sprite radius
    min_radius_px: float = 0.5
    max_radius_px: float = 24.0
    n_layers: int = 4


class PointSpriteRenderer:
    """Rasterises a position buffer into a float radiance image."""

    def __init__(self, material: SpriteMaterial | None = None, camera: Camera | None = None):
        self.material = material or SpriteMaterial()
        self.camera = camera or Camera()

    def sprite_radii(self, sizes: np.ndarray, depth: np.ndarray, height: int) -> np.ndarray:
        """Pixel radius of each sprite."""
        mat = self.material
        scaled = mat.size * (np.asarray(sizes, dtype=np.float64) / SIZE_REFERENCE)
        if mat.size_attenuation:
            diameter = scaled * self.camera.pixels_per_unit(depth, height)
        else:
            diameter = scaled * mat.point_scale_px
        return np.clip(diameter * 0.5, mat.min_radius_px, mat.max_radius_px)

    def _layer_edges(self) -> np.ndarray:
        mat = self.material
        n = max(1, mat.n_layers)
        return np.geomspace(mat.min_radius_px, mat.max_radius_px, n + 1)

    def render(
        self,
        positions: np.ndarray,
        sizes: np.ndarray,
        opacity: float,
        width: int,
        height: int,
    ) -> np.ndarray:
        """
        Rasterise sprites.

        Args:
            positions: (N, 3) world positions.
            sizes: (N,) per-flake size.
            opacity: Material opacity in [0, 1].
            width: Output width.
            height: Output height.

        Returns:
            (H, W, 3) float32 radiance, unclipped.
        """
        out = np.zeros((height, width, 3), dtype=np.float32)
        if opacity <= 0 or len(positions) == 0:
            return out

        xy, depth, visible = self.camera.project(positions, width, height)
        ix = np.floor(xy[:, 0]).astype(np.int64)
        iy = np.floor(xy[:, 1]).astype(np.int64)
        on_screen = visible & (ix >= 0) & (ix < width) & (iy >= 0) & (iy < height)
        if not on_screen.any():
            return out

        ix, iy = ix[on_screen], iy[on_screen]
        radii = self.sprite_radii(np.asarray(sizes)[on_screen], depth[on_screen], height)

        edges = self._layer_edges()
        layer_of = np.clip(np.searchsorted(edges, radii, side="right") - 1, 0, len(edges) - 2)

        lum = np.zeros((height, width), dtype=np.float32)
        for layer in range(len(edges) - 1):
            members = layer_of == layer
            if not members.any():
                continue
            sigma = max(float(radii[members].mean()) * self.material.softness, 0.5)
            # Impulse weight so a lone sprite peaks at full opacity after blurring
            weight = opacity * 2.0 * np.pi * sigma ** 2
            splat = np.zeros((height, width), dtype=np.float32)
            if self.material.additive:
                np.add.at(splat, (iy[members], ix[members]), weight)
                lum += gaussian_filter(splat, sigma=sigma)
            else:
                np.maximum.at(splat, (iy[members], ix[members]), weight)
                lum = np.maximum(lum, gaussian_filter(splat, sigma=sigma))

        color = np.asarray(self.material.color, dtype=np.float32)
        out[:] = lum[:, :, None] * color[None, None, :]
        return out
