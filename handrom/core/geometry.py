"""
vector math shared by every rom calculator.

the one primitive everybody calls is flexion_angle: the deviation of a
three-point joint from a straight line, in degrees.
"""

from __future__ import annotations

import numpy as np


# ============================================================
# numeric configuration
# ============================================================

EPSILON = 1e-6  # vectors shorter than this are treated as zero-length


def as_vector(point) -> np.ndarray:
    """landmark (namedtuple / array / object with x,y,z) -> float64 [3]."""
    if hasattr(point, "x") and hasattr(point, "y"):
        return np.array([point.x, point.y, getattr(point, "z", 0.0)], dtype=np.float64)
    v = np.asarray(point, dtype=np.float64).reshape(-1)
    if v.shape[0] == 2:
        return np.array([v[0], v[1], 0.0])
    return v[:3]


def angle_between(v1: np.ndarray, v2: np.ndarray) -> float:
    """
    unsigned angle between two vectors in degrees [0, 180].

    returns 0.0 when either vector is (near) zero-length.
    """
    n1 = float(np.linalg.norm(v1))
    n2 = float(np.linalg.norm(v2))
    if n1 < EPSILON or n2 < EPSILON:
        return 0.0

    cos_angle = float(np.dot(v1, v2)) / (n1 * n2)
    # float error can push the cosine just outside [-1, 1]
    cos_angle = float(np.clip(cos_angle, -1.0, 1.0))
    return float(np.degrees(np.arccos(cos_angle)))


def flexion_angle(p1, vertex, p3) -> float:
    """
    flexion at `vertex` for the chain p1 - vertex - p3.

    a straight joint (p1, vertex, p3 collinear, vertex between) reads 0,
    a fully folded one reads 180.

    args:
      p1, vertex, p3: landmarks (x, y, z)

    returns:
      flexion in degrees, max(0, 180 - interior angle)
    """
    a = as_vector(p1)
    b = as_vector(vertex)
    c = as_vector(p3)

    v1 = a - b
    v2 = c - b
    if np.linalg.norm(v1) < EPSILON or np.linalg.norm(v2) < EPSILON:
        return 0.0

    interior = angle_between(v1, v2)
    return max(0.0, 180.0 - interior)


def cross_z(v1: np.ndarray, v2: np.ndarray) -> float:
    """z component of the image-plane (x, y) cross product v1 x v2."""
    return float(v1[0] * v2[1] - v1[1] * v2[0])


def planar(v: np.ndarray) -> np.ndarray:
    """project onto the image plane (drop depth)."""
    return np.array([v[0], v[1], 0.0], dtype=np.float64)


def distance(p1, p2) -> float:
    """euclidean distance between two landmarks."""
    return float(np.linalg.norm(as_vector(p1) - as_vector(p2)))


def midpoint(*points) -> np.ndarray:
    """mean position of any number of landmarks."""
    return np.mean([as_vector(p) for p in points], axis=0)
