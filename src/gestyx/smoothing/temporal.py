# src/gestyx/smoothing/temporal.py
"""Temporal smoothing for the composure stream.

Four independent smoothers share one :class:`SmoothingState`:

* metric smoothing: exponential fold over the last 5 metric vectors,
* score smoothing: linearly weighted moving average over the last 8 scores,
* label hysteresis: the descriptor only changes when the smoothed score moves
  at least ``HYSTERESIS_DELTA`` away from the score it was picked at,
* box smoothing: exponential fold over the last 4 face boxes.

Each is a function of (new sample, state) and touches only its own FIFO.
"""
from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..config import BOX_ALPHA, BOX_HISTORY, HYSTERESIS_DELTA, METRIC_ALPHA, METRIC_HISTORY, SCORE_HISTORY
from ..errors import StateCorruptionError
from ..geometry.landmarks import FaceBox, KeypointFrame
from ..metrics.extractor import Metric
from ..scoring.levels import clamp_score
from .descriptors import NEUTRAL_LABEL, pick_descriptor


@dataclass
class StableLabel:
    label: str
    anchor_score: int  # smoothed score at which `label` was picked


class SmoothingState:
    """Per-mode smoothing memory. Owned by exactly one active mode."""

    def __init__(self, neutral_label: str = NEUTRAL_LABEL):
        self.neutral_label = neutral_label
        self.metric_history: Deque[Dict[str, int]] = deque(maxlen=METRIC_HISTORY)
        self.score_history: Deque[int] = deque(maxlen=SCORE_HISTORY)
        self.box_history: Deque[FaceBox] = deque(maxlen=BOX_HISTORY)
        self.stable_label = StableLabel(neutral_label, 0)
        self.last_pose: Optional[KeypointFrame] = None  # previous frame, for velocity-style deltas

    def reset(self) -> None:
        self.metric_history.clear()
        self.score_history.clear()
        self.box_history.clear()
        self.stable_label = StableLabel(self.neutral_label, 0)
        self.last_pose = None

    def is_empty(self) -> bool:
        return not (self.metric_history or self.score_history or self.box_history or self.last_pose is not None)

    @property
    def is_warm(self) -> bool:
        # metric window full → output has settled enough to allow frame skipping
        return len(self.metric_history) == METRIC_HISTORY

    def check_invariants(self) -> None:
        for name, fifo, cap in (
            ("metric_history", self.metric_history, METRIC_HISTORY),
            ("score_history", self.score_history, SCORE_HISTORY),
            ("box_history", self.box_history, BOX_HISTORY),
        ):
            if len(fifo) > cap:
                raise StateCorruptionError(f"{name} holds {len(fifo)} entries (capacity {cap})")


def ema_fold(values: Sequence[float], alpha: float) -> float:
    """Fold oldest → newest: ``result = v * (1 - alpha) + result * alpha``."""
    it = iter(values)
    result = float(next(it))
    for v in it:
        result = float(v) * (1.0 - alpha) + result * alpha
    return result


def smooth_metrics(state: SmoothingState, metrics: List[Metric], alpha: float = METRIC_ALPHA) -> List[Metric]:
    """Push a metric vector and return its smoothed counterpart.

    History is aligned by label: a metric missing from an older frame simply
    contributes no sample. Colors are recomputed from the smoothed value.
    """
    state.metric_history.append({m.label: m.value for m in metrics})
    if len(state.metric_history) == 1:
        return [Metric(m.label, m.value, m.color) for m in metrics]

    out: List[Metric] = []
    for m in metrics:
        series = [frame[m.label] for frame in state.metric_history if m.label in frame]
        out.append(Metric.of(m.label, ema_fold(series, alpha)))
    return out


def smooth_score(state: SmoothingState, score: int) -> int:
    # Linearly weighted average: oldest weight 1 ... newest weight len(history)
    state.score_history.append(int(score))
    vals = np.array(state.score_history, dtype=float)
    weights = np.arange(1, len(vals) + 1, dtype=float)
    return clamp_score(float(np.dot(vals, weights) / weights.sum()))


def select_label(
    state: SmoothingState,
    score: int,
    rng: Optional[random.Random] = None,
    picker: Callable[..., str] = pick_descriptor,
) -> Tuple[str, bool]:
    """Return ``(label, is_stable)`` for a new smoothed score.

    A new label is picked only while the neutral default is showing or when
    ``|score - anchor| >= HYSTERESIS_DELTA``; otherwise the previous label is
    kept and reported stable.
    """
    current = state.stable_label
    if current.label != state.neutral_label and abs(score - current.anchor_score) < HYSTERESIS_DELTA:
        return current.label, True
    exclude = None if current.label == state.neutral_label else current.label
    label = picker(score, rng, exclude)
    state.stable_label = StableLabel(label, int(score))
    return label, False


def smooth_box(state: SmoothingState, box: FaceBox, alpha: float = BOX_ALPHA) -> FaceBox:
    state.box_history.append(box)
    if len(state.box_history) == 1:
        return box
    hist = list(state.box_history)
    return FaceBox(
        ema_fold([b.x for b in hist], alpha),
        ema_fold([b.y for b in hist], alpha),
        ema_fold([b.width for b in hist], alpha),
        ema_fold([b.height for b in hist], alpha),
    )
