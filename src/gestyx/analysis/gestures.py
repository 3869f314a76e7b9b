# src/gestyx/analysis/gestures.py
"""Single-frame gesture rules and the decoder-mode action log.

Every rule is an independent predicate over the current frame only. Rules are
tried in priority order and the first match wins; unmatched frames classify
as :data:`NEUTRAL_STANCE`. All involved keypoints must clear the general
confidence gate (hands-behind-back instead requires the wrists to be hidden).
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Tuple

from ..config import DECODER_LOG_SIZE, HIDDEN_CONF_THRESH
from ..geometry.angles import angle_deg, distance, tilt_from_vertical_deg
from ..geometry.landmarks import BodyPart, KeypointFrame, compute_derived

logger = logging.getLogger(__name__)

NEUTRAL_STANCE = "Neutral stance"

B = BodyPart
_SIDES = {
    "left": (B.LEFT_SHOULDER, B.LEFT_ELBOW, B.LEFT_WRIST, B.LEFT_HIP, B.LEFT_THUMB, B.LEFT_INDEX, B.LEFT_KNEE, B.LEFT_ANKLE),
    "right": (B.RIGHT_SHOULDER, B.RIGHT_ELBOW, B.RIGHT_WRIST, B.RIGHT_HIP, B.RIGHT_THUMB, B.RIGHT_INDEX, B.RIGHT_KNEE, B.RIGHT_ANKLE),
}


def _sw(d: Dict) -> Optional[float]:
    sw = d.get("shoulder_width")
    return sw if sw and sw > 1e-6 else None


# ---------------------------------------------------------------------
# Predicates: (frame, derived) -> bool
# ---------------------------------------------------------------------
def is_thumbs_up(f: KeypointFrame, d: Dict) -> bool:
    sw = _sw(d)
    if sw is None:
        return False
    for side in ("left", "right"):
        sh, _, wr, _, th, ix, _, _ = _SIDES[side]
        if not f.visible(sh, wr, th, ix):
            continue
        s, w, t, i = f.get(sh), f.get(wr), f.get(th), f.get(ix)
        # thumb clearly above the index tip and the wrist, hand held at chest level
        if t[1] < i[1] - 0.15 * sw and t[1] < w[1] - 0.1 * sw and w[1] > s[1]:
            return True
    return False


def is_thinking(f: KeypointFrame, d: Dict) -> bool:
    sw = _sw(d)
    nose = f.get(B.NOSE)
    if sw is None or nose is None:
        return False
    for wr in (B.LEFT_WRIST, B.RIGHT_WRIST):
        w = f.get(wr)
        # hand at the chin: close to the nose and not raised above the face
        if w and distance(w, nose) < 0.6 * sw and w[1] > nose[1] - 0.1 * sw:
            return True
    return False


def _hand_raised(f: KeypointFrame, d: Dict, side: str) -> bool:
    sw = _sw(d)
    sh, _, wr = _SIDES[side][:3]
    if sw is None or not f.visible(sh, wr):
        return False
    return f.get(wr)[1] < f.get(sh)[1] - 0.1 * sw


def is_raising_right(f: KeypointFrame, d: Dict) -> bool:
    return _hand_raised(f, d, "right")


def is_raising_left(f: KeypointFrame, d: Dict) -> bool:
    return _hand_raised(f, d, "left")


def is_arms_crossed(f: KeypointFrame, d: Dict) -> bool:
    sw = _sw(d)
    if sw is None or not f.visible(B.LEFT_WRIST, B.RIGHT_WRIST):
        return False
    mid = d["shoulder_center"][0]
    ls, rs = f.get(B.LEFT_SHOULDER), f.get(B.RIGHT_SHOULDER)
    lw, rw = f.get(B.LEFT_WRIST), f.get(B.RIGHT_WRIST)
    # each wrist sits on the opposite shoulder's side of the midline
    crossed = (lw[0] - mid) * (rs[0] - mid) > 0 and (rw[0] - mid) * (ls[0] - mid) > 0
    at_chest = all(w[1] > d["shoulder_center"][1] for w in (lw, rw))
    close = all(abs(w[0] - mid) < sw for w in (lw, rw))
    return crossed and at_chest and close


def is_hands_on_hips(f: KeypointFrame, d: Dict) -> bool:
    sw = _sw(d)
    if sw is None or "hip_center" not in d:
        return False
    if not f.visible(B.LEFT_WRIST, B.RIGHT_WRIST, B.LEFT_ELBOW, B.RIGHT_ELBOW):
        return False
    mid = d["shoulder_center"][0]
    for side in ("left", "right"):
        sh, el, wr, hp = _SIDES[side][:4]
        s, e, w, h = f.get(sh), f.get(el), f.get(wr), f.get(hp)
        if distance(w, h) >= 0.4 * sw:
            return False
        if abs(e[0] - mid) <= abs(s[0] - mid):  # elbows must flare outward
            return False
    return True


def is_open_arms(f: KeypointFrame, d: Dict) -> bool:
    sw = _sw(d)
    if sw is None or not f.visible(B.LEFT_WRIST, B.RIGHT_WRIST):
        return False
    lw, rw = f.get(B.LEFT_WRIST), f.get(B.RIGHT_WRIST)
    sy = d["shoulder_center"][1]
    spread = abs(lw[0] - rw[0]) > 2.2 * sw
    level = all(w[1] > sy - 0.3 * sw for w in (lw, rw))
    return spread and level


def _pointing_side(f: KeypointFrame, d: Dict) -> Optional[str]:
    sw = _sw(d)
    if sw is None:
        return None
    for side in ("right", "left"):
        sh, el, wr = _SIDES[side][:3]
        if not f.visible(sh, el, wr):
            continue
        s, e, w = f.get(sh), f.get(el), f.get(wr)
        ang = angle_deg(s, e, w)
        if ang is None or ang < 150:  # arm must be straight
            continue
        if abs(w[1] - s[1]) < 0.35 * sw and abs(w[0] - s[0]) > 0.9 * sw:
            return "left" if w[0] < s[0] else "right"  # image-space direction
    return None


def is_pointing_left(f: KeypointFrame, d: Dict) -> bool:
    return _pointing_side(f, d) == "left"


def is_pointing_right(f: KeypointFrame, d: Dict) -> bool:
    return _pointing_side(f, d) == "right"


def is_hands_behind_back(f: KeypointFrame, d: Dict) -> bool:
    if _sw(d) is None or "hip_center" not in d:
        return False
    if not f.visible(B.LEFT_ELBOW, B.RIGHT_ELBOW):
        return False
    wrists_hidden = f.hidden(B.LEFT_WRIST, HIDDEN_CONF_THRESH) and f.hidden(B.RIGHT_WRIST, HIDDEN_CONF_THRESH)
    elbows_low = all(f.get(e)[1] > d["shoulder_center"][1] for e in (B.LEFT_ELBOW, B.RIGHT_ELBOW))
    return wrists_hidden and elbows_low


def is_slouching(f: KeypointFrame, d: Dict) -> bool:
    sw = _sw(d)
    nose = f.get(B.NOSE)
    if sw is None or nose is None or "hip_center" not in d:
        return False
    lift = (d["shoulder_center"][1] - nose[1]) / sw
    tilt = tilt_from_vertical_deg(d["shoulder_center"], d["hip_center"])
    return lift < 0.3 or (tilt is not None and tilt > 20.0)


def is_standing_tall(f: KeypointFrame, d: Dict) -> bool:
    sw = _sw(d)
    nose = f.get(B.NOSE)
    if sw is None or nose is None or "hip_center" not in d:
        return False
    for side in ("left", "right"):
        _, _, _, hp, _, _, kn, an = _SIDES[side]
        if not f.visible(kn, an):
            return False
        knee = angle_deg(f.get(hp), f.get(kn), f.get(an))
        if knee is None or knee < 160:  # legs straight
            return False
    ls, rs = f.get(B.LEFT_SHOULDER), f.get(B.RIGHT_SHOULDER)
    tilt = tilt_from_vertical_deg(d["shoulder_center"], d["hip_center"])
    lift = (d["shoulder_center"][1] - nose[1]) / sw
    return tilt is not None and tilt < 6.0 and lift >= 0.45 and abs(ls[1] - rs[1]) / sw < 0.08


# Priority order: first match wins
GestureRule = Tuple[str, str, Callable[[KeypointFrame, Dict], bool]]
GESTURE_RULES: List[GestureRule] = [
    ("thumbs_up", "Thumbs up - approval or agreement", is_thumbs_up),
    ("thinking", "Thinking pose - hand resting near the chin", is_thinking),
    ("raising_right", "Raising right hand - waving or asking to speak", is_raising_right),
    ("raising_left", "Raising left hand - waving or asking to speak", is_raising_left),
    ("arms_crossed", "Arms crossed - guarded or closed off", is_arms_crossed),
    ("hands_on_hips", "Hands on hips - assertive or impatient", is_hands_on_hips),
    ("open_arms", "Open arms - welcoming and receptive", is_open_arms),
    ("pointing_left", "Pointing to the left", is_pointing_left),
    ("pointing_right", "Pointing to the right", is_pointing_right),
    ("hands_behind_back", "Hands clasped behind back - composed or reserved", is_hands_behind_back),
    ("slouching", "Slouching - low energy or disengaged", is_slouching),
    ("standing_tall", "Standing tall - confident posture", is_standing_tall),
]


def classify_gesture(frame: Optional[KeypointFrame]) -> Tuple[str, str]:
    """Return ``(gesture_key, label)`` for one frame; ``("neutral", NEUTRAL_STANCE)`` if nothing matches."""
    if frame is None or frame.is_empty():
        return "neutral", NEUTRAL_STANCE
    d = compute_derived(frame)
    if "shoulder_width" not in d:  # every rule is anchored on the shoulder line
        return "neutral", NEUTRAL_STANCE
    for key, label, pred in GESTURE_RULES:
        if pred(frame, d):
            return key, label
    return "neutral", NEUTRAL_STANCE


@dataclass
class DecodedAction:
    decoded_action: str
    is_new_action: bool
    gesture: str = "neutral"


@dataclass
class ActionLogEntry:
    timestamp: float
    action: str


class GestureDecoder:
    """Turns per-frame gestures into a log of distinct actions.

    An action is logged only when it differs from the previous frame's
    classification and is not the neutral stance.
    """

    def __init__(self, log_size: int = DECODER_LOG_SIZE):
        self.history: Deque[ActionLogEntry] = deque(maxlen=log_size)
        self._last_label: Optional[str] = None  # dedup sentinel

    def reset(self) -> None:
        self.history.clear()
        self._last_label = None

    def update(self, frame: Optional[KeypointFrame], timestamp: float) -> DecodedAction:
        key, label = classify_gesture(frame)
        is_new = label != self._last_label and label != NEUTRAL_STANCE
        self._last_label = label
        if is_new:
            self.history.append(ActionLogEntry(timestamp, label))
            logger.debug("decoded new action %r at %.3f", label, timestamp)
        return DecodedAction(label, is_new, key)
