"""
Geometry helpers for brush reconstruction.

Public API:
    - Winding: Convex polygon clipped out of a side plane
    - build_side_winding(): Reconstruct and validate one brush side polygon
    - Transform: Rotation + translation for relocated brushes
    - plane_normal(): Outward normal of three VMF plane points
"""

from .transform import Transform, angles_to_matrix
from .vector_math import plane_normal
from .winding import Winding, build_side_winding, clip_side_winding

__all__ = [
    'Transform',
    'angles_to_matrix',
    'plane_normal',
    'Winding',
    'build_side_winding',
    'clip_side_winding',
]
