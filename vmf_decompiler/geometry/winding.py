"""
Winding (polygon) reconstruction for brush sides.

A compiled brush only stores its bounding planes.  The visible polygon of a
side is recovered by seeding a huge square on the side's plane and clipping
it successively by every other plane of the brush.  Floating point error
accumulates over the clips, so the result is cleaned up and checked before
it is accepted:

1. vertices closer than the merge epsilon are collapsed
2. empty and < 3 vertex polygons are rejected
3. polygons exceeding the coordinate limit are rejected (unbounded clip)
4. the three plane points derived from the polygon must be finite and unique

Failures are returned as a tagged ``WindingResult``; nothing in this module
raises for bad geometry.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Iterator, Optional, Sequence, Tuple

import numpy as np

from vmf_decompiler.validation.core import SideFailure, WindingResult
from .transform import Transform
from .vector_math import Vec3, is_finite, to_vec3

if TYPE_CHECKING:
    from vmf_decompiler.config import DecompileConfig

logger = logging.getLogger(__name__)

SIDE_FRONT = 1
SIDE_BACK = -1
SIDE_ON = 0


class Winding:
    """Ordered, clockwise (seen from the front) loop of 3D points."""

    def __init__(self, points=None):
        if points is None:
            points = np.empty((0, 3), dtype=np.float64)
        self.points = np.asarray(points, dtype=np.float64).reshape(-1, 3)

    # ---------------------------------------------------------------
    # Constructors
    # ---------------------------------------------------------------

    @classmethod
    def from_plane(cls, normal: Vec3, dist: float, extent: float) -> "Winding":
        """Square of half-size ``extent`` lying on the plane ``n . p = dist``."""
        n = np.asarray(normal, dtype=np.float64)
        n = n / np.linalg.norm(n)

        # Pick an up vector that isn't parallel to the major axis
        major = int(np.argmax(np.abs(n)))
        vup = np.array([1.0, 0.0, 0.0]) if major == 2 else np.array([0.0, 0.0, 1.0])
        vup = vup - np.dot(vup, n) * n
        vup /= np.linalg.norm(vup)
        vright = np.cross(vup, n)

        org = n * dist
        vup *= extent
        vright *= extent

        return cls([
            org - vright + vup,
            org + vright + vup,
            org + vright - vup,
            org - vright - vup,
        ])

    # ---------------------------------------------------------------
    # Container protocol
    # ---------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Vec3]:
        for p in self.points:
            yield to_vec3(p)

    def __getitem__(self, index: int) -> Vec3:
        return to_vec3(self.points[index])

    def is_empty(self) -> bool:
        return len(self.points) == 0

    def __str__(self) -> str:
        return " ".join(f"({p[0]:g} {p[1]:g} {p[2]:g})" for p in self)

    # ---------------------------------------------------------------
    # Operations
    # ---------------------------------------------------------------

    def clip(self, normal: Vec3, dist: float, epsilon: float) -> "Winding":
        """Keep the part of the winding behind the plane (``n . p <= dist``).

        Points within ``epsilon`` of the plane are kept.  A winding that only
        touches the plane collapses to its "on" points.
        """
        if self.is_empty():
            return Winding()

        n = np.asarray(normal, dtype=np.float64)
        dists = self.points @ n - dist
        sides = np.where(dists > epsilon, SIDE_FRONT,
                         np.where(dists < -epsilon, SIDE_BACK, SIDE_ON))

        if not np.any(sides == SIDE_FRONT):
            return Winding(self.points.copy())

        count = len(self.points)
        out = []
        for i in range(count):
            p = self.points[i]
            side = sides[i]
            if side != SIDE_FRONT:
                out.append(p)

            j = (i + 1) % count
            if side == SIDE_ON or sides[j] == SIDE_ON or side == sides[j]:
                continue

            # Edge crosses the plane
            q = self.points[j]
            t = dists[i] / (dists[i] - dists[j])
            mid = p + t * (q - p)

            # Avoid round off error on axial planes
            for axis in range(3):
                if n[axis] == 1.0:
                    mid[axis] = dist
                elif n[axis] == -1.0:
                    mid[axis] = -dist
            out.append(mid)

        return Winding(out)

    def remove_degenerated(self, epsilon: float) -> "Winding":
        """Collapse consecutive vertices that are closer than ``epsilon``."""
        kept = []
        for p in self.points:
            if kept and np.linalg.norm(p - kept[-1]) < epsilon:
                continue
            kept.append(p)

        # The loop closes on itself
        while len(kept) > 1 and np.linalg.norm(kept[-1] - kept[0]) < epsilon:
            kept.pop()

        return Winding(kept)

    def is_huge(self, max_coord: float) -> bool:
        return bool(np.any(np.abs(self.points) > max_coord))

    def build_plane(self) -> Tuple[Vec3, Vec3, Vec3]:
        """Pick three well separated vertices that describe the winding's plane.

        The two vertices farthest apart are taken first, then the vertex
        farthest from the line through them.  The points are returned in
        loop order so the winding's orientation is preserved.
        """
        pts = self.points
        if len(pts) < 3:
            raise ValueError("winding needs at least 3 points to build a plane")

        deltas = pts[:, None, :] - pts[None, :, :]
        dist_sq = np.einsum('ijk,ijk->ij', deltas, deltas)
        i, j = np.unravel_index(int(np.argmax(dist_sq)), dist_sq.shape)

        edge = pts[j] - pts[i]
        offsets = np.cross(pts - pts[i], edge)
        k = int(np.argmax(np.einsum('ij,ij->i', offsets, offsets)))

        a, b, c = sorted((int(i), int(j), k))
        return to_vec3(pts[a]), to_vec3(pts[b]), to_vec3(pts[c])

    def transformed(self, transform: Transform) -> "Winding":
        return Winding(transform.apply_points(self.points))


# ---------------------------------------------------------------
# Side reconstruction
# ---------------------------------------------------------------

def clip_side_winding(plane, clip_planes: Sequence, extent: float,
                      epsilon: float) -> Winding:
    """Seed a winding on ``plane`` and clip it by every plane in ``clip_planes``.

    Planes are any objects with ``normal`` and ``dist`` attributes whose
    normals point out of the brush.
    """
    winding = Winding.from_plane(plane.normal, plane.dist, extent)
    for clip_plane in clip_planes:
        winding = winding.clip(clip_plane.normal, clip_plane.dist, epsilon)
        if winding.is_empty():
            break
    return winding


def check_plane_points(points: Sequence[Vec3]) -> Optional[WindingResult]:
    """Return the failure for unusable plane points, or None if they are fine."""
    if not all(is_finite(p) for p in points):
        return WindingResult.fail(SideFailure.INVALID_PLANE_POINTS)

    # All three plane points must be unique or it isn't a valid plane
    for a in range(3):
        for b in range(a + 1, 3):
            if points[a] == points[b]:
                return WindingResult.fail(SideFailure.DUPLICATE_PLANE_POINT, str(points[a]))

    return None


def build_side_winding(plane, clip_planes: Sequence, config: DecompileConfig,
                       transform: Optional[Transform] = None) -> WindingResult:
    """Reconstruct and validate the polygon of one brush side.

    Args:
        plane: The side's own plane
        clip_planes: Planes of the brush's other non-bevel sides
        config: DecompileConfig supplying the tolerances
        transform: Optional rotation + translation applied to the result

    Returns:
        WindingResult holding either the winding or the failure reason
    """
    winding = clip_side_winding(plane, clip_planes, config.seed_extent, config.clip_epsilon)

    # Remove close vertices
    winding = winding.remove_degenerated(config.vertex_merge_epsilon)

    if winding.is_empty():
        return WindingResult.fail(SideFailure.EMPTY_POLYGON)

    if len(winding) < 3:
        return WindingResult.fail(SideFailure.DEGENERATE_POLYGON, f"{len(winding)} vertices")

    if winding.is_huge(config.max_coord):
        return WindingResult.fail(SideFailure.OVERSIZED_POLYGON)

    failure = check_plane_points(winding.build_plane())
    if failure is not None:
        return failure

    if transform is not None:
        winding = winding.transformed(transform)

    return WindingResult.success(winding)
