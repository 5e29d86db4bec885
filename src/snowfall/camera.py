"""
Look-at perspective camera for projecting the snow volume onto the screen.
"""

import math
from dataclasses import dataclass, replace

import numpy as np


_WORLD_UP = np.array([0.0, 1.0, 0.0])


@dataclass
class Camera:
    """Perspective camera looking from ``position`` toward ``target``."""

    position: tuple[float, float, float] = (0.0, 4.0, 22.0)
    target: tuple[float, float, float] = (0.0, 4.0, 0.0)
    fov: float = 50.0  # vertical, degrees
    near: float = 0.1
    far: float = 100.0
    zoom: float = 1.0

    def basis(self) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Return (eye, right, up, forward) as float64 vectors."""
        eye = np.asarray(self.position, dtype=np.float64)
        forward = np.asarray(self.target, dtype=np.float64) - eye
        norm = np.linalg.norm(forward)
        if norm == 0:
            raise ValueError("Camera position and target must differ")
        forward /= norm

        right = np.cross(forward, _WORLD_UP)
        right_norm = np.linalg.norm(right)
        if right_norm == 0:
            raise ValueError("Camera cannot look straight up or down")
        right /= right_norm
        up = np.cross(right, forward)
        return eye, right, up, forward

    @property
    def focal_scale(self) -> float:
        return self.zoom / math.tan(math.radians(self.fov) / 2.0)

    def project(
        self,
        points: np.ndarray,
        width: int,
        height: int,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Project world points to pixel coordinates.

        Args:
            points: (N, 3) world positions.
            width: Frame width in pixels.
            height: Frame height in pixels.

        Returns:
            Tuple of (xy, depth, visible): (N, 2) pixel coordinates with the
            origin at the top-left, (N,) camera-space depth, and a boolean
            mask of points between the near and far planes.
        """
        eye, right, up, forward = self.basis()
        rel = np.asarray(points, dtype=np.float64) - eye

        x_cam = rel @ right
        y_cam = rel @ up
        depth = rel @ forward

        visible = (depth > self.near) & (depth < self.far)
        safe_depth = np.where(visible, depth, 1.0)

        aspect = width / height
        scale = self.focal_scale
        x_ndc = x_cam / safe_depth * scale / aspect
        y_ndc = y_cam / safe_depth * scale

        xy = np.empty((len(rel), 2), dtype=np.float64)
        xy[:, 0] = (x_ndc + 1.0) * 0.5 * width
        xy[:, 1] = (1.0 - y_ndc) * 0.5 * height
        return xy, depth, visible

    def pixels_per_unit(self, depth: np.ndarray, height: int) -> np.ndarray:
        """Screen pixels covered by one world unit at the given depth."""
        depth = np.maximum(np.asarray(depth, dtype=np.float64), self.near)
        return height * 0.5 * self.focal_scale / depth

    def orbit(self, angle: float) -> "Camera":
        """Return a copy rotated by ``angle`` radians about the target's vertical axis."""
        tx, ty, tz = self.target
        px, py, pz = self.position
        dx, dz = px - tx, pz - tz
        c, s = math.cos(angle), math.sin(angle)
        return replace(self, position=(tx + dx * c + dz * s, py, tz - dx * s + dz * c))
