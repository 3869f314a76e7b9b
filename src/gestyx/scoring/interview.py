# src/gestyx/scoring/interview.py
"""Interview readiness scoring.

Confidence, communication, energy and authenticity start from fixed baselines
and move additively; stress starts low and accumulates. Each rule inspects
one posture, movement or expression condition. Strengths and improvements
are capped lists in first-found order.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional

from ..analysis.gestures import is_arms_crossed, is_slouching
from ..analysis.movement import MovementReading
from ..config import MAX_LIST_ITEMS
from ..geometry.angles import distance, normalized_ratio
from ..geometry.landmarks import BodyPart, ExpressionVector, FaceLandmarks, KeypointFrame, compute_derived
from ..metrics.extractor import (
    HEAD_ORIENTATION, SHOULDER_LEVEL, SHOULDER_OPENNESS, SPINAL_ALIGNMENT, ExtractionResult, Metric, extract_metrics,
)
from .levels import clamp_score, mean_or_zero, professionalism_level, push_capped

CONFIDENCE_BASE = 60
COMMUNICATION_BASE = 60
ENERGY_BASE = 50
AUTHENTICITY_BASE = 70
STRESS_BASE = 20


@dataclass
class InterviewScore:
    confidence_score: int = 0
    communication_quality: int = 0
    energy_level: int = 0
    authenticity_score: int = 0
    stress_level: int = 0
    professionalism_score: int = 0
    professionalism_level: str = "POOR"
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    has_signal: bool = False

    def as_metrics(self) -> List[Metric]:
        return [
            Metric.of("Confidence", self.confidence_score),
            Metric.of("Communication", self.communication_quality),
            Metric.of("Energy", self.energy_level),
            Metric.of("Authenticity", self.authenticity_score),
            Metric.of("Composure", 100 - self.stress_level),
        ]

    def as_dict(self) -> dict:
        return asdict(self)


class _Tally:
    def __init__(self) -> None:
        self.confidence = float(CONFIDENCE_BASE)
        self.communication = float(COMMUNICATION_BASE)
        self.energy = float(ENERGY_BASE)
        self.authenticity = float(AUTHENTICITY_BASE)
        self.stress = float(STRESS_BASE)
        self.strengths: List[str] = []
        self.improvements: List[str] = []

    def strength(self, text: str) -> None:
        push_capped(self.strengths, text, MAX_LIST_ITEMS)

    def improve(self, text: str) -> None:
        push_capped(self.improvements, text, MAX_LIST_ITEMS)


def _posture_rules(t: _Tally, frame: KeypointFrame, d: dict, posture: ExtractionResult) -> None:
    spine = posture.value_of(SPINAL_ALIGNMENT)
    level = posture.value_of(SHOULDER_LEVEL)
    if spine is not None and level is not None and spine >= 80 and level >= 80:
        t.confidence += 15
        t.strength("Upright, balanced posture")
    if d.get("shoulder_width") and "hip_center" in d and is_slouching(frame, d):
        t.confidence -= 15
        t.energy -= 10
        t.improve("Sit up straight to project confidence")

    openness = posture.value_of(SHOULDER_OPENNESS)
    if openness is not None and openness >= 75:
        t.confidence += 8
        t.strength("Open, relaxed shoulders")
    if d.get("shoulder_width") and is_arms_crossed(frame, d):
        t.confidence -= 12
        t.authenticity -= 8
        t.improve("Uncross your arms to appear more open")

    facing = posture.value_of(HEAD_ORIENTATION)
    if facing is not None and facing >= 80:
        t.communication += 8

    # hand near the face reads as self-soothing
    nose = frame.get(BodyPart.NOSE)
    sw = d.get("shoulder_width")
    if nose is not None and sw:
        for wr in (BodyPart.LEFT_WRIST, BodyPart.RIGHT_WRIST):
            w = frame.get(wr)
            if w is not None and distance(w, nose) < 0.5 * sw:
                t.stress += 10
                t.authenticity -= 8
                t.improve("Avoid touching your face")
                break


def _gesture_rules(t: _Tally, d: dict, frame: KeypointFrame, last_pose: KeypointFrame) -> None:
    # moderate hand movement between frames reads as expressive gesturing
    sw = d.get("shoulder_width")
    if not sw:
        return
    steps = []
    for wr in (BodyPart.LEFT_WRIST, BodyPart.RIGHT_WRIST):
        a = frame.get(wr); b = last_pose.get(wr)
        if a and b:
            steps.append(normalized_ratio(distance(a, b), sw))
    travel = max((s for s in steps if s is not None), default=0.0)
    if 0.05 <= travel <= 0.4:
        t.energy += 10
        t.communication += 8
        t.strength("Expressive hand gestures")


def _movement_rules(t: _Tally, movement: MovementReading) -> None:
    if movement.gaze == "center":
        t.communication += 12
        t.strength("Steady eye contact")
    elif movement.gaze is not None:
        t.communication -= 12
        t.improve("Maintain eye contact with the camera")
    if movement.fidgeting:
        t.stress += 15
        t.confidence -= 8
        t.improve("Keep your hands still and relaxed")
    if movement.nodding:
        t.communication += 8
        t.strength("Active listening (nodding)")
    if movement.drowsy:
        t.energy -= 15
        t.improve("Bring more energy - you look tired")


def _expression_rules(t: _Tally, ex: ExpressionVector) -> None:
    if 0.3 <= ex.happy <= 0.9:
        t.authenticity += 10
        t.energy += 10
        t.strength("Natural, friendly smile")
    elif ex.happy > 0.9:
        t.authenticity -= 8  # sustained maximal smile reads as forced
    if ex.fear + ex.sad + ex.angry >= 0.4:
        t.stress += 20
        t.confidence -= 10
        t.improve("Try to relax your facial expression")
    if ex.neutral >= 0.8:
        t.energy -= 10
        t.improve("Show more enthusiasm in your expression")
    if ex.surprise >= 0.6:
        t.authenticity += 8


def score_interview(
    frame: Optional[KeypointFrame],
    expressions: Optional[ExpressionVector] = None,
    face: Optional[FaceLandmarks] = None,
    last_pose: Optional[KeypointFrame] = None,
    movement: Optional[MovementReading] = None,
    posture: Optional[ExtractionResult] = None,
) -> InterviewScore:
    """Score one frame for interview readiness.

    ``posture`` is the metric extractor output for ``frame``; it is computed
    here when not supplied. ``face`` contributes through ``movement``.
    """
    if frame is None or frame.is_empty():
        return InterviewScore()

    t = _Tally()
    d = compute_derived(frame)
    _posture_rules(t, frame, d, posture if posture is not None else extract_metrics(frame))
    if last_pose is not None:
        _gesture_rules(t, d, frame, last_pose)
    if movement is not None:
        _movement_rules(t, movement)
    if expressions is not None:
        _expression_rules(t, expressions)

    confidence = clamp_score(t.confidence)
    communication = clamp_score(t.communication)
    authenticity = clamp_score(t.authenticity)
    professionalism = clamp_score(mean_or_zero([confidence, communication, authenticity]))
    return InterviewScore(
        confidence_score=confidence,
        communication_quality=communication,
        energy_level=clamp_score(t.energy),
        authenticity_score=authenticity,
        stress_level=clamp_score(t.stress),
        professionalism_score=professionalism,
        professionalism_level=professionalism_level(professionalism),
        strengths=t.strengths,
        improvements=t.improvements,
        has_signal=True,
    )
