# src/gestyx/analysis/movement.py
from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Tuple

import numpy as np

from ..config import (
    DROWSY_MIN_HISTORY, EAR_HISTORY, EAR_MIN_HISTORY, EAR_THRESHOLD, FIDGET_MOTION, FINE_CONF_THRESH,
    GAZE_HISTORY, GAZE_THRESHOLD, HEAD_MOTION_MIN, MIN_SIGN_CHANGES, MOVEMENT_HISTORY, SIGN_CHANGE_WINDOW,
)
from ..errors import StateCorruptionError
from ..geometry.angles import Point, distance, midpoint, normalized_ratio
from ..geometry.landmarks import (
    LEFT_EYE_IDX, NOSE_TIP_IDX, RIGHT_EYE_IDX, BodyPart, FaceLandmarks, KeypointFrame, compute_derived,
)
from ..scoring.levels import clamp_score

GAZE_BUCKETS = ("center", "left", "right", "up", "down")
FACE_NOSE_DROP = 0.6  # nose tip sits ~0.6 eye distances below the eye line (68-point layout)
BODY_NOSE_DROP = 0.5  # same for body nose/eye keypoints


@dataclass
class MovementParams:
    # Thresholds for the cross-frame movement classifiers
    window: int = SIGN_CHANGE_WINDOW          # samples inspected for oscillation
    min_sign_changes: int = MIN_SIGN_CHANGES  # direction reversals that make a nod/shake
    head_motion_min: float = HEAD_MOTION_MIN  # latest displacement (shoulder widths) must exceed this
    fidget_motion: float = FIDGET_MOTION      # mean wrist travel per frame (shoulder widths)
    ear_threshold: float = EAR_THRESHOLD      # eye-aspect ratio below this reads as closed
    ear_min_history: int = EAR_MIN_HISTORY    # samples needed before flagging a blink
    drowsy_min_history: int = DROWSY_MIN_HISTORY  # samples averaged for drowsiness
    gaze_threshold: float = GAZE_THRESHOLD    # normalized offset units before leaving "center"


@dataclass
class MovementReading:
    nodding: bool = False
    shaking: bool = False
    fidgeting: bool = False
    fidget_level: int = 0  # 0..100
    ear: Optional[float] = None
    blinking: bool = False
    drowsy: bool = False
    gaze: Optional[str] = None  # one of GAZE_BUCKETS, None when no face/eyes


def count_sign_changes(samples: List[float]) -> int:
    # Direction reversals in a displacement series; zero samples carry no direction
    signs = [np.sign(s) for s in samples if s != 0]
    return sum(1 for a, b in zip(signs, signs[1:]) if a != b)


def eye_aspect_ratio(face: FaceLandmarks) -> Optional[float]:
    """Mean EAR of both eyes: ``(|p2-p6| + |p3-p5|) / (2 |p1-p4|)``."""
    ears = []
    for idx in (LEFT_EYE_IDX, RIGHT_EYE_IDX):
        p1, p2, p3, p4, p5, p6 = (face.point(i) for i in idx)
        r = normalized_ratio(distance(p2, p6) + distance(p3, p5), 2.0 * distance(p1, p4))
        if r is not None:
            ears.append(r)
    return float(np.mean(ears)) if ears else None


def gaze_offsets(frame: Optional[KeypointFrame], face: Optional[FaceLandmarks]) -> Optional[Tuple[float, float]]:
    """Horizontal/vertical nose offsets from the eye midpoint, in 1/100 eye distances."""
    if face is not None:
        le, re = face.eye_center(True), face.eye_center(False)
        nose: Optional[Point] = face.point(NOSE_TIP_IDX)
        drop = FACE_NOSE_DROP
    elif frame is not None:
        le = frame.get(BodyPart.LEFT_EYE, FINE_CONF_THRESH)
        re = frame.get(BodyPart.RIGHT_EYE, FINE_CONF_THRESH)
        nose = frame.get(BodyPart.NOSE, FINE_CONF_THRESH)
        drop = BODY_NOSE_DROP
        if not (le and re and nose):
            return None
    else:
        return None
    eye_dist = distance(le, re)
    mid = midpoint(le, re)
    ox = normalized_ratio(nose[0] - mid[0], eye_dist)
    oy = normalized_ratio(nose[1] - mid[1], eye_dist)
    if ox is None or oy is None:
        return None
    return ox * 100.0, (oy - drop) * 100.0


def gaze_bucket(ox: float, oy: float, threshold: float = GAZE_THRESHOLD) -> str:
    # The larger offset decides the axis; within the threshold → center
    if abs(ox) >= abs(oy):
        if ox > threshold: return "right"
        if ox < -threshold: return "left"
    else:
        if oy > threshold: return "down"
        if oy < -threshold: return "up"
    return "center"


class MovementTracker:
    """
    Frame-to-frame movement classifiers over short rolling histories.

    - Nodding / head shaking: vertical / horizontal nose displacement between
      consecutive frames; oscillation = enough sign changes in the recent
      window with the latest step above a minimum size, which separates a nod
      from a single directional drift.
    - Fidgeting: mean wrist travel per frame.
    - Blinking / drowsiness: eye-aspect ratio from the 68-point face set.
    - Gaze: nose offset from the eye midpoint, bucketed. The full bucket
      history is kept; scoring currently reads only the latest bucket.

    The previous frame is not stored here: callers pass it in as ``last_pose``
    from their smoothing state.
    """
    def __init__(self, params: Optional[MovementParams] = None) -> None:
        self.p = params if params is not None else MovementParams()
        self.reset()

    def reset(self) -> None:
        self.vertical: Deque[float] = deque(maxlen=MOVEMENT_HISTORY)
        self.horizontal: Deque[float] = deque(maxlen=MOVEMENT_HISTORY)
        self.wrist_motion: Deque[float] = deque(maxlen=MOVEMENT_HISTORY)
        self.ear_history: Deque[float] = deque(maxlen=EAR_HISTORY)
        self.gaze_history: Deque[str] = deque(maxlen=GAZE_HISTORY)

    def is_empty(self) -> bool:
        return not (self.vertical or self.horizontal or self.wrist_motion or self.ear_history or self.gaze_history)

    def check_invariants(self) -> None:
        for name, fifo, cap in (
            ("vertical", self.vertical, MOVEMENT_HISTORY),
            ("horizontal", self.horizontal, MOVEMENT_HISTORY),
            ("wrist_motion", self.wrist_motion, MOVEMENT_HISTORY),
            ("ear_history", self.ear_history, EAR_HISTORY),
            ("gaze_history", self.gaze_history, GAZE_HISTORY),
        ):
            if len(fifo) > cap:
                raise StateCorruptionError(f"{name} holds {len(fifo)} entries (capacity {cap})")

    # ---------------- per-signal updates ----------------
    def _update_head(self, frame: KeypointFrame, last_pose: Optional[KeypointFrame], scale: float) -> None:
        if last_pose is None:
            return
        now = frame.get(BodyPart.NOSE); prev = last_pose.get(BodyPart.NOSE)
        if now is None or prev is None:
            return
        self.vertical.append((now[1] - prev[1]) / scale)
        self.horizontal.append((now[0] - prev[0]) / scale)

    def _update_wrists(self, frame: KeypointFrame, last_pose: Optional[KeypointFrame], scale: float) -> None:
        if last_pose is None:
            return
        steps = []
        for wr in (BodyPart.LEFT_WRIST, BodyPart.RIGHT_WRIST):
            a = frame.get(wr); b = last_pose.get(wr)
            if a and b:
                steps.append(distance(a, b) / scale)
        if steps:
            self.wrist_motion.append(float(np.mean(steps)))

    def _oscillating(self, series: Deque[float]) -> bool:
        recent = list(series)[-self.p.window:]
        if len(recent) < self.p.window:
            return False
        return count_sign_changes(recent) >= self.p.min_sign_changes and abs(recent[-1]) >= self.p.head_motion_min

    def update(self, frame: Optional[KeypointFrame], face: Optional[FaceLandmarks] = None,
               last_pose: Optional[KeypointFrame] = None) -> MovementReading:
        out = MovementReading()

        if frame is not None and not frame.is_empty():
            sw = compute_derived(frame).get("shoulder_width")
            if sw and sw > 1e-6:
                self._update_head(frame, last_pose, sw)
                self._update_wrists(frame, last_pose, sw)
            out.nodding = self._oscillating(self.vertical)
            out.shaking = self._oscillating(self.horizontal)
            if len(self.wrist_motion) >= 3:
                motion = float(np.mean(self.wrist_motion))
                out.fidgeting = motion > self.p.fidget_motion
                out.fidget_level = clamp_score(100.0 * motion / (2.0 * self.p.fidget_motion))

        if face is not None:
            ear = eye_aspect_ratio(face)
            if ear is not None:
                self.ear_history.append(ear)
                out.ear = ear
                out.blinking = len(self.ear_history) >= self.p.ear_min_history and ear < self.p.ear_threshold
                if len(self.ear_history) >= self.p.drowsy_min_history:
                    recent = list(self.ear_history)[-self.p.drowsy_min_history:]
                    out.drowsy = float(np.mean(recent)) < self.p.ear_threshold

        offsets = gaze_offsets(frame, face)
        if offsets is not None:
            out.gaze = gaze_bucket(*offsets, threshold=self.p.gaze_threshold)
            self.gaze_history.append(out.gaze)
        return out
