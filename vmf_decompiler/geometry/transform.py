"""
Rigid transforms for relocated brushes.

Brush models that were compiled at the world origin are written back at the
entity's position: first rotated about the origin by the entity's
``angles`` (pitch, yaw, roll in degrees), then translated by ``origin``.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field

import numpy as np

from .vector_math import Vec3, to_vec3


def angles_to_matrix(angles: Vec3) -> np.ndarray:
    """Build the 3x3 rotation matrix for Source ``(pitch, yaw, roll)`` angles.

    The columns are the rotated forward, left and up axes.
    """
    pitch, yaw, roll = (math.radians(a) for a in angles)
    sp, cp = math.sin(pitch), math.cos(pitch)
    sy, cy = math.sin(yaw), math.cos(yaw)
    sr, cr = math.sin(roll), math.cos(roll)

    return np.array([
        [cp * cy, sr * sp * cy - cr * sy, cr * sp * cy + sr * sy],
        [cp * sy, sr * sp * sy + cr * cy, cr * sp * sy - sr * cy],
        [-sp, sr * cp, cr * cp],
    ], dtype=np.float64)


@dataclass(frozen=True)
class Transform:
    """Rotation about the origin followed by a translation."""
    origin: Vec3 = (0.0, 0.0, 0.0)
    angles: Vec3 = (0.0, 0.0, 0.0)
    _matrix: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'origin', to_vec3(self.origin))
        object.__setattr__(self, 'angles', to_vec3(self.angles))
        object.__setattr__(self, '_matrix', angles_to_matrix(self.angles))

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    @property
    def has_rotation(self) -> bool:
        return any(a != 0.0 for a in self.angles)

    def rotate_vector(self, v: Vec3) -> Vec3:
        """Rotate a direction vector (no translation)."""
        if not self.has_rotation:
            return to_vec3(v)
        return to_vec3(self._matrix @ np.asarray(v, dtype=np.float64))

    def apply_point(self, p: Vec3) -> Vec3:
        rotated = np.asarray(self.rotate_vector(p), dtype=np.float64)
        return to_vec3(rotated + np.asarray(self.origin))

    def apply_points(self, points: np.ndarray) -> np.ndarray:
        """Transform an (n, 3) array of points."""
        out = np.asarray(points, dtype=np.float64)
        if self.has_rotation:
            out = out @ self._matrix.T
        return out + np.asarray(self.origin, dtype=np.float64)
