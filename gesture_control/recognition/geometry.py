"""
Geometry helpers for landmark-based gesture predicates.

All functions are pure. Degenerate input (coincident landmarks, missing
depth, NaN coordinates) yields ``nan`` rather than raising, so every
threshold comparison made by callers evaluates to ``False``.
"""

import math
from itertools import combinations
from typing import Iterable, Optional

import numpy as np

from gesture_control.core.types import Landmark


def planar(landmark: Optional[Landmark]) -> np.ndarray:
    """Landmark as a 2D vector (x, y); nan vector if the point is missing."""
    if landmark is None or landmark.x is None or landmark.y is None:
        return np.full(2, math.nan)
    return np.array([landmark.x, landmark.y], dtype=np.float64)


def spatial(landmark: Optional[Landmark]) -> Optional[np.ndarray]:
    """Landmark as a 3D vector, or None when depth is missing."""
    if landmark is None or None in (landmark.x, landmark.y, landmark.z):
        return None
    return np.array([landmark.x, landmark.y, landmark.z], dtype=np.float64)


def angle_degrees(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
    """Angle at vertex b formed by points a-b-c, in degrees.

    Returns nan when either ray has zero or undefined length.
    """
    ba = a - b
    bc = c - b
    norm_ba = float(np.linalg.norm(ba))
    norm_bc = float(np.linalg.norm(bc))
    if not (norm_ba > 0.0 and norm_bc > 0.0):
        return math.nan
    cos_angle = float(np.dot(ba, bc)) / (norm_ba * norm_bc)
    # acos domain guard for rounding only
    cos_angle = min(1.0, max(-1.0, cos_angle))
    return math.degrees(math.acos(cos_angle))


def unit_normal(v1: np.ndarray, v2: np.ndarray) -> np.ndarray:
    """Normalized 3D cross product v1 x v2 (nan vector if degenerate)."""
    normal = np.cross(v1, v2)
    magnitude = float(np.linalg.norm(normal))
    if not magnitude > 0.0:
        return np.full(3, math.nan)
    return normal / magnitude


def mean_pairwise_distance(points: Iterable[np.ndarray]) -> float:
    """Mean Euclidean distance over all unordered pairs of points."""
    distances = [float(np.linalg.norm(p - q)) for p, q in combinations(list(points), 2)]
    if not distances:
        return math.nan
    return sum(distances) / len(distances)
