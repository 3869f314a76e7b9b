# src/gestyx/config.py
"""Tunable thresholds and frame-loop settings.

Every constant can be overridden through a ``GESTYX_*`` environment variable,
read once at import time.
"""
import os  # environment overrides
from dataclasses import dataclass  # frame-loop settings bundle
from typing import Optional


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default  # malformed override → keep the default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ---------------- confidence gates ----------------
KP_CONF_THRESH = _env_float("GESTYX_KP_CONF_THRESH", 0.5)  # general keypoint gate
FINE_CONF_THRESH = _env_float("GESTYX_FINE_CONF_THRESH", 0.6)  # facial-orientation metrics
HIDDEN_CONF_THRESH = 0.3  # below this a keypoint counts as occluded

# ---------------- bounded history sizes ----------------
METRIC_HISTORY = 5
SCORE_HISTORY = 8
BOX_HISTORY = 4
MOVEMENT_HISTORY = 10
EAR_HISTORY = 15
GAZE_HISTORY = 30
DECODER_LOG_SIZE = 20

# ---------------- smoothing ----------------
METRIC_ALPHA = _env_float("GESTYX_METRIC_ALPHA", 0.3)  # EMA fold factor for metrics
BOX_ALPHA = _env_float("GESTYX_BOX_ALPHA", 0.4)  # EMA fold factor for face boxes
HYSTERESIS_DELTA = _env_int("GESTYX_HYSTERESIS_DELTA", 10)  # score change needed to relabel

# ---------------- output caps ----------------
MAX_FEEDBACK = 3
MAX_LIST_ITEMS = 4

# ---------------- movement classifiers ----------------
SIGN_CHANGE_WINDOW = 6  # samples inspected for oscillation
MIN_SIGN_CHANGES = 3
HEAD_MOTION_MIN = 0.02  # latest displacement (shoulder widths) for a nod/shake
FIDGET_MOTION = 0.05  # mean wrist travel per frame (shoulder widths)
EAR_THRESHOLD = 0.2
EAR_MIN_HISTORY = 3
DROWSY_MIN_HISTORY = 10
GAZE_THRESHOLD = 15.0  # normalized offset units

# ---------------- frame loop ----------------
FRAME_SKIP = max(1, _env_int("GESTYX_FRAME_SKIP", 2))  # process every Nth frame once stable
LOG_LEVEL = os.getenv("GESTYX_LOG_LEVEL", "WARNING")


@dataclass
class PipelineConfig:
    # Frame-loop knobs for ModeController
    frame_skip: int = FRAME_SKIP  # N in "process every Nth frame"
    skip_when_stable: bool = True  # only skip once the composure label has settled
    seed: Optional[int] = None  # seed for descriptor selection (None → nondeterministic)
