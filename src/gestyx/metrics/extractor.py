# src/gestyx/metrics/extractor.py
"""Per-frame posture metrics.

Each metric measures a raw geometric deviation, normalizes it by a body-scale
reference (torso height, shoulder width, eye distance) so it does not depend
on distance to the camera, and maps it to a percentage with
:func:`deviation_to_pct`. A metric whose keypoints fail the confidence gate
is omitted for the frame, never emitted as 0.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np

from ..config import FINE_CONF_THRESH, KP_CONF_THRESH, MAX_FEEDBACK
from ..geometry.angles import clamp_pct, deviation_to_pct, distance, midpoint, normalized_ratio, tilt_from_vertical_deg
from ..geometry.landmarks import BodyPart, KeypointFrame, compute_derived
from ..scoring.levels import color_for_value

SPINAL_ALIGNMENT = "Spinal Alignment"
SHOULDER_LEVEL = "Shoulder Levelness"
SHOULDER_OPENNESS = "Shoulder Openness"
HEAD_STABILITY = "Head Stability"
HEAD_ORIENTATION = "Head Orientation"
UPRIGHTNESS = "Uprightness"
DETECTION_QUALITY = "Detection Quality"

IDEAL_SHOULDER_TO_TORSO = 0.75  # shoulder width / torso height for an open, square stance
IDEAL_HEAD_LIFT = 0.5  # (shoulder line - nose) / shoulder width when sitting tall
CORE_PARTS = (
    BodyPart.NOSE, BodyPart.LEFT_SHOULDER, BodyPart.RIGHT_SHOULDER,
    BodyPart.LEFT_ELBOW, BodyPart.RIGHT_ELBOW, BodyPart.LEFT_HIP, BodyPart.RIGHT_HIP,
)


@dataclass
class Metric:
    label: str
    value: int  # 0..100
    color: str  # "Green" / "Amber" / "Red", from value

    @classmethod
    def of(cls, label: str, value: float) -> "Metric":
        v = clamp_pct(value)
        return cls(label, v, color_for_value(v))

    def as_dict(self) -> dict:
        return {"label": self.label, "value": self.value, "color": self.color}


@dataclass
class ExtractionResult:
    metrics: List[Metric] = field(default_factory=list)
    feedback: List[str] = field(default_factory=list)  # at most MAX_FEEDBACK, definition order
    score: int = 0  # mean of metrics; 0 when no metric qualified

    @property
    def has_signal(self) -> bool:
        return bool(self.metrics)

    def value_of(self, label: str) -> Optional[int]:
        for m in self.metrics:
            if m.label == label:
                return m.value
        return None


# ---------------------------------------------------------------------
# Individual metrics: each returns an int percentage or None (undetectable)
# ---------------------------------------------------------------------
def spinal_alignment(frame: KeypointFrame) -> Optional[int]:
    # horizontal offset of shoulder midpoint over hip midpoint, per unit torso height
    d = compute_derived(frame)
    if "torso_height" not in d:
        return None
    dx = abs(d["shoulder_center"][0] - d["hip_center"][0])
    return deviation_to_pct(normalized_ratio(dx, d["torso_height"]), k=1.5)


def shoulder_levelness(frame: KeypointFrame) -> Optional[int]:
    ls = frame.get(BodyPart.LEFT_SHOULDER); rs = frame.get(BodyPart.RIGHT_SHOULDER)
    if not (ls and rs):
        return None
    return deviation_to_pct(normalized_ratio(abs(ls[1] - rs[1]), distance(ls, rs)), k=4.0)


def shoulder_openness(frame: KeypointFrame) -> Optional[int]:
    # shoulders rolled forward read as a narrow shoulder line relative to the torso
    d = compute_derived(frame)
    if "torso_height" not in d:
        return None
    ratio = normalized_ratio(d["shoulder_width"], d["torso_height"])
    if ratio is None:
        return None
    shortfall = max(0.0, 1.0 - ratio / IDEAL_SHOULDER_TO_TORSO)
    return deviation_to_pct(shortfall, k=2.0)


def head_stability(frame: KeypointFrame) -> Optional[int]:
    # nose offset from the shoulder midline, per unit shoulder width
    nose = frame.get(BodyPart.NOSE)
    d = compute_derived(frame)
    if nose is None or "shoulder_width" not in d:
        return None
    dx = abs(nose[0] - d["shoulder_center"][0])
    return deviation_to_pct(normalized_ratio(dx, d["shoulder_width"]), k=2.0)


def head_orientation(frame: KeypointFrame) -> Optional[int]:
    # yaw from nose offset between the eyes plus roll from the eye line slope
    nose = frame.get(BodyPart.NOSE, FINE_CONF_THRESH)
    le = frame.get(BodyPart.LEFT_EYE, FINE_CONF_THRESH)
    re = frame.get(BodyPart.RIGHT_EYE, FINE_CONF_THRESH)
    if not (nose and le and re):
        return None
    eye_dist = distance(le, re)
    eye_mid = midpoint(le, re)
    yaw = normalized_ratio(abs(nose[0] - eye_mid[0]), eye_dist)
    roll = normalized_ratio(abs(le[1] - re[1]), eye_dist)
    if yaw is None or roll is None:
        return None
    return deviation_to_pct(yaw + roll, k=1.2)


def uprightness(frame: KeypointFrame) -> Optional[int]:
    # head lift above the shoulder line combined with torso tilt from vertical
    nose = frame.get(BodyPart.NOSE)
    d = compute_derived(frame)
    if nose is None or "torso_height" not in d:
        return None
    lift = normalized_ratio(d["shoulder_center"][1] - nose[1], d["shoulder_width"])
    tilt = tilt_from_vertical_deg(d["shoulder_center"], d["hip_center"])
    if lift is None or tilt is None:
        return None
    sag = max(0.0, (IDEAL_HEAD_LIFT - lift) / IDEAL_HEAD_LIFT)
    return deviation_to_pct(sag + tilt / 90.0, k=1.0)


def detection_quality(frame: KeypointFrame) -> Optional[int]:
    # mean confidence of the core upper-body keypoints; needs at least 3 detected
    confs = np.array([frame.confidence(p) for p in CORE_PARTS])
    if int(np.sum(confs >= KP_CONF_THRESH)) < 3:
        return None
    return clamp_pct(float(np.mean(confs)) * 100.0)


# (label, function, feedback threshold, feedback text) in definition order
MetricRule = Tuple[str, Callable[[KeypointFrame], Optional[int]], int, str]
METRIC_RULES: List[MetricRule] = [
    (SPINAL_ALIGNMENT, spinal_alignment, 75, "Center your body over your hips"),
    (SHOULDER_LEVEL, shoulder_levelness, 75, "Level your shoulders"),
    (SHOULDER_OPENNESS, shoulder_openness, 70, "Open up your shoulders"),
    (HEAD_STABILITY, head_stability, 70, "Keep your head centered over your shoulders"),
    (HEAD_ORIENTATION, head_orientation, 70, "Face the camera directly"),
    (UPRIGHTNESS, uprightness, 70, "Sit up straight and lift your chin"),
    (DETECTION_QUALITY, detection_quality, 60, "Improve lighting or step fully into frame"),
]


def extract_metrics(frame: Optional[KeypointFrame]) -> ExtractionResult:
    """Convert one frame of body keypoints into metrics, feedback and a raw score.

    An empty result (no metrics, no feedback, score 0) means "no signal",
    not bad posture.
    """
    if frame is None or frame.is_empty():
        return ExtractionResult()

    metrics: List[Metric] = []
    feedback: List[str] = []
    for label, fn, threshold, text in METRIC_RULES:
        value = fn(frame)
        if value is None:
            continue  # undetectable this frame → omitted
        metrics.append(Metric.of(label, value))
        if value < threshold and len(feedback) < MAX_FEEDBACK:
            feedback.append(text)

    if not metrics:
        return ExtractionResult()
    score = clamp_pct(float(np.mean([m.value for m in metrics])))
    return ExtractionResult(metrics, feedback, score)
