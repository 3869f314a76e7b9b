# src/gestyx/geometry/landmarks.py
"""Per-frame landmark containers.

Keypoints arrive as loose records from the landmark provider. They are packed
once per frame into fixed enum-indexed arrays so every rule gets O(1) named
access instead of re-scanning a list.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from ..config import KP_CONF_THRESH
from ..errors import InvalidFrameError
from .angles import Point, distance, midpoint

logger = logging.getLogger(__name__)


class BodyPart(str, Enum):
    # 17 COCO/MoveNet landmarks
    NOSE = "nose"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"
    # extended landmarks (face corners, hands, feet)
    MOUTH_LEFT = "mouth_left"
    MOUTH_RIGHT = "mouth_right"
    LEFT_PINKY = "left_pinky"
    RIGHT_PINKY = "right_pinky"
    LEFT_INDEX = "left_index"
    RIGHT_INDEX = "right_index"
    LEFT_THUMB = "left_thumb"
    RIGHT_THUMB = "right_thumb"
    LEFT_HEEL = "left_heel"
    RIGHT_HEEL = "right_heel"
    LEFT_FOOT_INDEX = "left_foot_index"
    RIGHT_FOOT_INDEX = "right_foot_index"


BODY_PARTS = list(BodyPart)
_INDEX = {p: i for i, p in enumerate(BODY_PARTS)}
_BY_NAME = {p.value: p for p in BODY_PARTS}

PartLike = Union[BodyPart, str]


def _part(p: PartLike) -> BodyPart:
    if isinstance(p, BodyPart):
        return p
    return _BY_NAME[p]


class KeypointFrame:
    """One frame of body keypoints: ``xy`` is (29, 2), ``conf`` is (29,).

    Parts the provider did not report carry confidence 0.
    """

    __slots__ = ("xy", "conf")

    def __init__(self, xy: np.ndarray, conf: np.ndarray):
        self.xy = xy
        self.conf = conf

    @classmethod
    def empty(cls) -> "KeypointFrame":
        n = len(BODY_PARTS)
        return cls(np.zeros((n, 2), dtype=np.float64), np.zeros(n, dtype=np.float64))

    @classmethod
    def from_keypoints(cls, kps: Union[Sequence[Mapping[str, Any]], Mapping[str, Mapping[str, Any]]]) -> "KeypointFrame":
        """Pack provider records ``{name, x, y, conf|confidence|score}``.

        Also accepts a mapping of name → record. Unknown names are ignored;
        non-finite coordinates or more records than body parts raise
        :class:`InvalidFrameError`.
        """
        if isinstance(kps, Mapping):
            bad = [k for k, v in kps.items() if not isinstance(v, Mapping)]
            if bad:
                raise InvalidFrameError(f"keypoint record for {bad[0]!r} must be a mapping")
            records: Iterable[Any] = [dict(v, name=k) for k, v in kps.items()]
        elif isinstance(kps, (str, bytes)):
            raise InvalidFrameError("keypoints must be a list of records, got a string")
        else:
            records = kps
        try:
            records = list(records)
        except TypeError as e:
            raise InvalidFrameError(f"keypoints must be a list of records, got {type(kps).__name__}") from e
        if len(records) > len(BODY_PARTS):
            raise InvalidFrameError(f"expected at most {len(BODY_PARTS)} keypoints, got {len(records)}")

        frame = cls.empty()
        for rec in records:
            if not isinstance(rec, Mapping):
                raise InvalidFrameError(f"keypoint record must be a mapping, got {type(rec).__name__}")
            part = _BY_NAME.get(str(rec.get("name", "")))
            if part is None:
                logger.debug("ignoring unknown keypoint %r", rec.get("name"))
                continue
            try:
                x = float(rec["x"]); y = float(rec["y"])
                c = rec.get("conf", rec.get("confidence", rec.get("score", 0.0)))
                c = 0.0 if c is None else float(c)
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidFrameError(f"malformed keypoint {part.value}: {e}") from e
            if not (np.isfinite(x) and np.isfinite(y) and np.isfinite(c)):
                raise InvalidFrameError(f"non-finite keypoint {part.value}")
            i = _INDEX[part]
            frame.xy[i] = (x, y)
            frame.conf[i] = min(1.0, max(0.0, c))
        return frame

    def copy(self) -> "KeypointFrame":
        return KeypointFrame(self.xy.copy(), self.conf.copy())

    def confidence(self, part: PartLike) -> float:
        return float(self.conf[_INDEX[_part(part)]])

    def get(self, part: PartLike, min_conf: float = KP_CONF_THRESH) -> Optional[Point]:
        # Return (x, y) if keypoint confidence ≥ min_conf
        i = _INDEX[_part(part)]
        if self.conf[i] < min_conf:
            return None
        return (float(self.xy[i, 0]), float(self.xy[i, 1]))

    def visible(self, *parts: PartLike, min_conf: float = KP_CONF_THRESH) -> bool:
        return all(self.conf[_INDEX[_part(p)]] >= min_conf for p in parts)

    def hidden(self, part: PartLike, max_conf: float) -> bool:
        return self.conf[_INDEX[_part(part)]] < max_conf

    def is_empty(self, min_conf: float = KP_CONF_THRESH) -> bool:
        return not bool(np.any(self.conf >= min_conf))


def compute_derived(frame: KeypointFrame, min_conf: float = KP_CONF_THRESH) -> Dict[str, Any]:
    # Body reference points: shoulder and hip centers, shoulder width, torso height
    out: Dict[str, Any] = {}
    ls = frame.get(BodyPart.LEFT_SHOULDER, min_conf)
    rs = frame.get(BodyPart.RIGHT_SHOULDER, min_conf)
    lh = frame.get(BodyPart.LEFT_HIP, min_conf)
    rh = frame.get(BodyPart.RIGHT_HIP, min_conf)

    if ls and rs:
        out["shoulder_center"] = midpoint(ls, rs)
        out["shoulder_width"] = distance(ls, rs)
    if lh and rh:
        out["hip_center"] = midpoint(lh, rh)
    if "shoulder_center" in out and "hip_center" in out:
        sc, hc = out["shoulder_center"], out["hip_center"]
        out["torso_height"] = abs(hc[1] - sc[1])  # vertical extent shoulders → hips
    return out


# ---------------------------------------------------------------------
# Face
# ---------------------------------------------------------------------
FACE_POINTS = 68
LEFT_EYE_IDX = (36, 37, 38, 39, 40, 41)  # p1..p6 in EAR order
RIGHT_EYE_IDX = (42, 43, 44, 45, 46, 47)
NOSE_TIP_IDX = 30
MOUTH_LEFT_IDX, MOUTH_RIGHT_IDX = 48, 54
LIP_TOP_IDX, LIP_BOTTOM_IDX = 62, 66


@dataclass(frozen=True)
class FaceBox:
    x: float
    y: float
    width: float
    height: float


class FaceLandmarks:
    """68 ordered 2D facial landmarks, shape (68, 2)."""

    __slots__ = ("points",)

    def __init__(self, points: np.ndarray):
        self.points = points

    @classmethod
    def from_points(cls, pts: Sequence[Any]) -> "FaceLandmarks":
        if isinstance(pts, (str, bytes, Mapping)):
            raise InvalidFrameError(f"face landmarks must be a point list, got {type(pts).__name__}")
        try:
            arr = np.asarray([(float(p["x"]), float(p["y"])) if isinstance(p, Mapping) else (float(p[0]), float(p[1]))
                              for p in pts], dtype=np.float64)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise InvalidFrameError(f"malformed face landmarks: {e}") from e
        if arr.shape != (FACE_POINTS, 2):
            raise InvalidFrameError(f"expected {FACE_POINTS} face landmarks, got {len(arr)}")
        if not np.isfinite(arr).all():
            raise InvalidFrameError("non-finite face landmark")
        return cls(arr)

    def point(self, idx: int) -> Point:
        return (float(self.points[idx, 0]), float(self.points[idx, 1]))

    def eye_center(self, left: bool) -> Point:
        idx = LEFT_EYE_IDX if left else RIGHT_EYE_IDX
        c = self.points[list(idx)].mean(axis=0)
        return (float(c[0]), float(c[1]))

    def box(self) -> FaceBox:
        lo = self.points.min(axis=0); hi = self.points.max(axis=0)
        return FaceBox(float(lo[0]), float(lo[1]), float(hi[0] - lo[0]), float(hi[1] - lo[1]))


# ---------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------
_EXPRESSION_ALIASES = {"surprise": "surprised", "disgust": "disgusted", "fear": "fearful"}  # face-api naming


@dataclass
class ExpressionVector:
    # Expression probabilities, each in [0, 1]; need not sum to 1
    neutral: float = 0.0
    happy: float = 0.0
    surprise: float = 0.0
    angry: float = 0.0
    disgust: float = 0.0
    fear: float = 0.0
    sad: float = 0.0

    @classmethod
    def from_mapping(cls, m: Mapping[str, Any]) -> "ExpressionVector":
        if not isinstance(m, Mapping):
            raise InvalidFrameError(f"expressions must be a mapping, got {type(m).__name__}")
        vals: Dict[str, float] = {}
        for f in fields(cls):
            raw = m.get(f.name, m.get(_EXPRESSION_ALIASES.get(f.name, f.name), 0.0))
            try:
                v = float(raw if raw is not None else 0.0)
            except (TypeError, ValueError) as e:
                raise InvalidFrameError(f"malformed expression {f.name}: {e}") from e
            if not np.isfinite(v):
                raise InvalidFrameError(f"non-finite expression {f.name}")
            vals[f.name] = min(1.0, max(0.0, v))
        return cls(**vals)

    def as_dict(self) -> Dict[str, float]:
        return {f.name: float(getattr(self, f.name)) for f in fields(self)}

    def dominant(self) -> str:
        d = self.as_dict()
        return max(d, key=lambda k: d[k])  # ties → first in declaration order
