# src/gestyx/geometry/angles.py
from typing import Optional, Tuple  # type hints for structured data
import math  # math operations for trigonometry
import numpy as np  # numerical computations

# Type alias for clarity
Point = Tuple[float, float]  # (x, y)

EPS = 1e-6  # below this a reference length counts as degenerate


def midpoint(a: Point, b: Point) -> Point:
    # Compute midpoint between two 2D points
    return ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)


def vec(a: Point, b: Point) -> np.ndarray:
    # Return 2D vector from b → a
    return np.array([a[0] - b[0], a[1] - b[1]], dtype=np.float64)


def distance(a: Point, b: Point) -> float:
    # Euclidean distance between two points
    return float(np.hypot(a[0] - b[0], a[1] - b[1]))


def angle_deg(a: Point, j: Point, b: Point, eps: float = EPS) -> Optional[float]:
    # Compute angle (in degrees) at joint j formed by points a-j-b
    v1 = vec(a, j)
    v2 = vec(b, j)
    n1 = np.linalg.norm(v1); n2 = np.linalg.norm(v2)
    if n1 < eps or n2 < eps:  # avoid division by zero
        return None
    cosv = float(np.clip(np.dot(v1, v2) / (n1 * n2), -1.0, 1.0))  # cosine law
    return float(math.degrees(math.acos(cosv)))  # convert to degrees


def tilt_from_vertical_deg(top: Point, bottom: Point, eps: float = EPS) -> Optional[float]:
    """Angle between the segment bottom→top and the image vertical, in [0, 90]."""
    dx = abs(top[0] - bottom[0])
    dy = abs(top[1] - bottom[1])
    if dx < eps and dy < eps:  # coincident points → no direction
        return None
    return float(math.degrees(math.atan2(dx, dy)))


def normalized_ratio(value: float, reference: float, eps: float = EPS) -> Optional[float]:
    """``value / reference`` or None when the reference length is degenerate."""
    if not np.isfinite(value) or not np.isfinite(reference) or abs(reference) < eps:
        return None
    return float(value) / float(reference)


def clamp_pct(value: float) -> int:
    """Round and clamp to an integer percentage; non-finite input maps to 0."""
    if value is None or not np.isfinite(value):
        return 0
    return int(round(min(100.0, max(0.0, float(value)))))


def deviation_to_pct(normalized_deviation: Optional[float], k: float) -> Optional[int]:
    """Map a body-scale-normalized deviation to a 0-100 score.

    ``pct = clamp(0, (1 - deviation * k) * 100, 100)``; ``k`` sets how quickly
    the score falls, i.e. at which deviation it crosses the concerning band.
    """
    if normalized_deviation is None or not np.isfinite(normalized_deviation):
        return None
    return clamp_pct((1.0 - abs(normalized_deviation) * k) * 100.0)
