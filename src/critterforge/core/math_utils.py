"""NumPy-backed 2D math utilities.

Points and directions are plain numpy arrays of shape (2,).  All helpers
are zero-guarded: degenerate vectors fall back instead of producing NaNs.
"""

import math

import numpy as np
from numpy.typing import NDArray

# Type aliases
Vec2 = NDArray[np.float64]

DOWN = (0.0, 1.0)


def vec2(x: float = 0.0, y: float = 0.0) -> Vec2:
    return np.array([x, y], dtype=np.float64)


def as_vec2(p) -> Vec2:
    """Coerce a point-like (tuple, list, array) to a float64 Vec2 copy."""
    return np.array(p, dtype=np.float64).reshape(2)


def length(v: Vec2) -> float:
    return math.hypot(v[0], v[1])


def distance(a: Vec2, b: Vec2) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def normalize(v: Vec2) -> Vec2:
    n = length(v)
    if n < 1e-10:
        return np.zeros_like(v, dtype=np.float64)
    return v / n


def safe_normalize(v: Vec2, fallback=DOWN) -> Vec2:
    """Normalize *v*, or return *fallback* unchanged if *v* has zero length."""
    n = length(v)
    if n < 1e-10:
        return as_vec2(fallback)
    return v / n


def perpendicular(v: Vec2) -> Vec2:
    """Rotate 90 degrees: (x, y) -> (-y, x)."""
    return np.array([-v[1], v[0]], dtype=np.float64)


def cross2(a: Vec2, b: Vec2) -> float:
    """Z component of the 3D cross product of two planar vectors."""
    return float(a[0] * b[1] - a[1] * b[0])


def dot2(a: Vec2, b: Vec2) -> float:
    return float(a[0] * b[0] + a[1] * b[1])


def rotate2(v: Vec2, angle_rad: float) -> Vec2:
    c, s = math.cos(angle_rad), math.sin(angle_rad)
    return np.array([v[0] * c - v[1] * s, v[0] * s + v[1] * c], dtype=np.float64)


def turn_angle(v1: Vec2, v2: Vec2) -> float:
    """Unsigned angle between two vectors (0 when parallel, pi when opposed).

    Returns 0 if either vector is degenerate.
    """
    l1, l2 = length(v1), length(v2)
    if l1 == 0.0 or l2 == 0.0:
        return 0.0
    cos_angle = dot2(v1, v2) / (l1 * l2)
    return math.acos(clamp(cos_angle, -1.0, 1.0))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def lerp_vec2(a: Vec2, b: Vec2, t: float) -> Vec2:
    return a + (b - a) * t


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def smoothstep(t: float) -> float:
    """Cubic ease t^2 (3 - 2t) on [0, 1]."""
    return t * t * (3.0 - 2.0 * t)


def deg_to_rad(degrees: float) -> float:
    return degrees * math.pi / 180.0


def rad_to_deg(radians: float) -> float:
    return radians * 180.0 / math.pi
