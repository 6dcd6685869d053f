"""
Vector helpers for brush side planes.

Planes in the VMF format are stored as three points.  The plane normal
follows the Source convention: ``normalize((p1 - p2) x (p3 - p2))``, which
points out of the solid when the points are listed clockwise as seen from
outside.
"""

from __future__ import annotations
import math
from typing import Sequence, Tuple

Vec3 = Tuple[float, float, float]

EPSILON = 1e-6


def cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def scale(v: Vec3, s: float) -> Vec3:
    return (v[0] * s, v[1] * s, v[2] * s)


def length(v: Vec3) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def normalize(v: Vec3) -> Vec3:
    ln = length(v)
    if ln < EPSILON:
        return (0.0, 0.0, 1.0)
    return (v[0] / ln, v[1] / ln, v[2] / ln)


def to_vec3(values: Sequence[float]) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


def is_finite(v: Vec3) -> bool:
    return all(math.isfinite(c) for c in v)


def plane_normal(p1: Vec3, p2: Vec3, p3: Vec3) -> Vec3:
    """Outward normal of the plane through three points (Source winding order)."""
    return normalize(cross(sub(p1, p2), sub(p3, p2)))

