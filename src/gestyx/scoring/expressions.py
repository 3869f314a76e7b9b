# src/gestyx/scoring/expressions.py
from dataclasses import dataclass, field  # result container
from typing import Dict, List, Optional  # type hints
import math  # floor for remainder split

from ..geometry.landmarks import ExpressionVector
from ..metrics.extractor import Metric


def to_percentages(ex: ExpressionVector) -> Dict[str, int]:
    """Integer percentages that sum to exactly 100 (all zeros if the input does).

    Largest-remainder split: floor every share, then hand the leftover points
    to the largest fractional parts (ties → declaration order).
    """
    raw = ex.as_dict()
    total = sum(raw.values())
    if total <= 0:
        return {k: 0 for k in raw}
    exact = {k: 100.0 * v / total for k, v in raw.items()}
    out = {k: int(math.floor(v)) for k, v in exact.items()}
    leftover = 100 - sum(out.values())
    order = sorted(exact, key=lambda k: exact[k] - out[k], reverse=True)  # stable sort keeps ties in order
    for k in order[:leftover]:
        out[k] += 1
    return out


@dataclass
class ExpressionReading:
    expressions: Optional[ExpressionVector] = None  # passthrough of the provider's vector
    percentages: Dict[str, int] = field(default_factory=dict)
    dominant: Optional[str] = None
    has_signal: bool = False

    def as_metrics(self) -> List[Metric]:
        return [Metric.of(k.capitalize(), v) for k, v in self.percentages.items()]

    def as_dict(self) -> dict:
        return {
            "expressions": self.expressions.as_dict() if self.expressions else None,
            "percentages": dict(self.percentages),
            "dominant": self.dominant,
        }


def read_expressions(ex: Optional[ExpressionVector]) -> ExpressionReading:
    if ex is None:
        return ExpressionReading()
    pct = to_percentages(ex)
    if not any(pct.values()):
        return ExpressionReading(expressions=ex, percentages=pct)
    return ExpressionReading(expressions=ex, percentages=pct, dominant=ex.dominant(), has_signal=True)
