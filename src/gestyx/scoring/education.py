# src/gestyx/scoring/education.py
"""Classroom engagement scoring.

Additive point system: ``attention_score`` starts at 100 and each rule either
subtracts a penalty (and records a distraction flag) or adds a bonus (and
records a participation signal). Rules whose inputs are missing are skipped.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional

from ..analysis.gestures import is_arms_crossed, is_raising_left, is_raising_right, is_slouching, is_thinking
from ..analysis.movement import MovementReading
from ..config import MAX_LIST_ITEMS
from ..geometry.angles import normalized_ratio
from ..geometry.landmarks import BodyPart, ExpressionVector, FaceLandmarks, KeypointFrame, compute_derived
from ..metrics.extractor import Metric
from .levels import clamp_score, engagement_level, push_capped


@dataclass
class EducationScore:
    attention_score: int = 0
    participation_score: int = 0
    distraction_score: int = 0
    engagement_score: int = 0
    engagement_level: str = "LOW"
    distraction_flags: List[str] = field(default_factory=list)
    participation_signals: List[str] = field(default_factory=list)
    has_signal: bool = False

    def as_metrics(self) -> List[Metric]:
        return [
            Metric.of("Attention", self.attention_score),
            Metric.of("Engagement", self.engagement_score),
            Metric.of("Participation", self.participation_score),
        ]

    def as_dict(self) -> dict:
        return asdict(self)


class _Tally:
    # Running scores/lists for one evaluation
    def __init__(self) -> None:
        self.attention = 100.0
        self.bonus = 0.0
        self.penalty = 0.0
        self.flags: List[str] = []
        self.signals: List[str] = []

    def penalize(self, points: float, flag: str) -> None:
        self.attention -= points
        self.penalty += points
        push_capped(self.flags, flag, MAX_LIST_ITEMS)

    def reward(self, points: float, signal: str) -> None:
        self.attention += points
        self.bonus += points
        push_capped(self.signals, signal, MAX_LIST_ITEMS)


def _posture_rules(t: _Tally, frame: KeypointFrame, d: dict) -> None:
    nose = frame.get(BodyPart.NOSE)
    sw = d.get("shoulder_width")
    if nose is not None and sw:
        turn = normalized_ratio(abs(nose[0] - d["shoulder_center"][0]), sw)
        if turn is not None and turn > 0.35:
            t.penalize(20, "Head turned away from the lesson")
        lift = normalized_ratio(d["shoulder_center"][1] - nose[1], sw)
        if lift is not None and lift < 0.25:
            t.penalize(20, "Head down - possibly reading or disengaged")
    if sw:
        if is_slouching(frame, d):
            t.penalize(10, "Slouching in seat")
        if is_arms_crossed(frame, d):
            t.penalize(8, "Arms crossed")
        if is_raising_right(frame, d) or is_raising_left(frame, d):
            t.reward(10, "Hand raised to participate")
        elif is_thinking(frame, d):
            t.reward(8, "Thinking pose - working through the material")


def _delta_rules(t: _Tally, d: dict, last_pose: KeypointFrame) -> None:
    # Compare against the previous frame's body scale/position
    prev = compute_derived(last_pose)
    if "shoulder_width" not in d or "shoulder_width" not in prev:
        return
    growth = normalized_ratio(d["shoulder_width"] - prev["shoulder_width"], prev["shoulder_width"])
    if growth is not None and growth > 0.05:
        t.reward(8, "Leaning in toward the screen")
    shift = normalized_ratio(
        abs(d["shoulder_center"][0] - prev["shoulder_center"][0]), d["shoulder_width"])
    if shift is not None and shift > 0.3:
        t.penalize(10, "Shifting around in seat")


def _movement_rules(t: _Tally, movement: MovementReading) -> None:
    if movement.gaze is not None and movement.gaze != "center":
        t.penalize(15, f"Looking {movement.gaze}, away from the screen")
    if movement.drowsy:
        t.penalize(25, "Signs of drowsiness")
    if movement.fidgeting:
        t.penalize(10, "Fidgeting or restless movement")
    if movement.nodding:
        t.reward(8, "Nodding along")


def _expression_rules(t: _Tally, ex: ExpressionVector) -> None:
    if ex.happy >= 0.5:
        t.reward(5, "Positive expression")
    if ex.surprise >= 0.5:
        t.reward(8, "Curious or surprised reaction")
    if ex.sad + ex.angry + ex.disgust + ex.fear >= 0.5:
        t.penalize(10, "Appears frustrated or upset")


def score_education(
    frame: Optional[KeypointFrame],
    expressions: Optional[ExpressionVector] = None,
    face: Optional[FaceLandmarks] = None,
    last_pose: Optional[KeypointFrame] = None,
    movement: Optional[MovementReading] = None,
) -> EducationScore:
    """Score one frame for classroom engagement.

    Body keypoints are required; without them the result is a no-signal
    record (``has_signal=False``). ``face`` only matters through ``movement``
    (eye-aspect ratio, gaze), which the caller computes.
    """
    if frame is None or frame.is_empty():
        return EducationScore()

    t = _Tally()
    d = compute_derived(frame)
    _posture_rules(t, frame, d)
    if last_pose is not None:
        _delta_rules(t, d, last_pose)
    if movement is not None:
        _movement_rules(t, movement)
    if expressions is not None:
        _expression_rules(t, expressions)

    attention = clamp_score(t.attention)
    participation = clamp_score(30 + 2.5 * t.bonus)
    distraction = clamp_score(t.penalty)
    engagement = clamp_score(0.6 * attention + 0.4 * participation)
    return EducationScore(
        attention_score=attention,
        participation_score=participation,
        distraction_score=distraction,
        engagement_score=engagement,
        engagement_level=engagement_level(engagement),
        distraction_flags=t.flags,
        participation_signals=t.signals,
        has_signal=True,
    )
