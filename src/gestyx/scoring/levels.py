# src/gestyx/scoring/levels.py
from typing import List, Sequence  # type hints
import numpy as np  # numerical operations


def clamp_score(value: float) -> int:
    # Bounded integer score in [0, 100]; NaN/inf collapse to 0
    if value is None or not np.isfinite(value):
        return 0
    return int(round(float(np.clip(value, 0.0, 100.0))))


def color_for_value(value: float) -> str:
    if value is None or not np.isfinite(value):  # invalid value → fail
        return "Red"
    if value >= 75: return "Green"  # comfortable
    if value >= 50: return "Amber"  # concerning
    return "Red"  # else poor


def rating_for_score(score: float) -> str:
    if score >= 80: return "excellent"
    if score >= 65: return "good"
    if score >= 50: return "fair"
    return "poor"


def engagement_level(score: float) -> str:
    if score >= 85: return "VERY HIGH"
    if score >= 65: return "HIGH"
    if score >= 40: return "MEDIUM"
    return "LOW"


def professionalism_level(score: float) -> str:
    if score >= 80: return "EXCELLENT"
    if score >= 65: return "GOOD"
    if score >= 45: return "FAIR"
    return "POOR"


def mean_or_zero(values: Sequence[float]) -> float:
    # Arithmetic mean; empty input → 0 (no divide-by-zero)
    arr = np.array([v for v in values if v is not None and np.isfinite(v)], dtype=float)
    return float(arr.mean()) if arr.size else 0.0


def push_capped(items: List[str], text: str, cap: int) -> bool:
    """Append ``text`` if the list has room and does not already hold it.

    Lists keep insertion (first-found) order, not severity order.
    """
    if len(items) >= cap or text in items:
        return False
    items.append(text)
    return True
