"""
Synthetic pose generator for pipeline tests.

Builds keypoint records ({name, x, y, conf}) in normalized image coordinates
(x right, y down) for a seated, upper-body-only subject facing the camera,
plus 68-point face landmark sets with controllable eye openness.

Reference geometry of the neutral pose:
  - shoulders 0.2 apart at y=0.40, hips at y=0.70 (torso height 0.3)
  - nose 0.12 above the shoulder line, eyes level on either side of it
  - forearms resting in front of the torso, clear of hips and face
  - knees/ankles not reported (confidence 0)
"""

from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from gestyx.geometry.landmarks import (
    FACE_POINTS, LEFT_EYE_IDX, NOSE_TIP_IDX, RIGHT_EYE_IDX, KeypointFrame,
)

NEUTRAL_POSE: Dict[str, Tuple[float, float]] = {
    "nose": (0.50, 0.28),
    "left_eye": (0.47, 0.25),
    "right_eye": (0.53, 0.25),
    "left_ear": (0.44, 0.26),
    "right_ear": (0.56, 0.26),
    "left_shoulder": (0.40, 0.40),
    "right_shoulder": (0.60, 0.40),
    "left_elbow": (0.41, 0.55),
    "right_elbow": (0.59, 0.55),
    "left_wrist": (0.44, 0.60),
    "right_wrist": (0.56, 0.60),
    "left_hip": (0.43, 0.70),
    "right_hip": (0.57, 0.70),
}

HEAD_PARTS = ("nose", "left_eye", "right_eye", "left_ear", "right_ear")
UPPER_PARTS = HEAD_PARTS + ("left_shoulder", "right_shoulder")

# torso height is 0.3; one step moves the upper body 1/30 of a 0.6 body height
SHIFT_STEP = 0.02


def make_keypoints(
    pose: Optional[Dict[str, Tuple[float, float]]] = None,
    conf: float = 0.9,
    overrides: Optional[Dict[str, Tuple[float, float]]] = None,
    low_conf: Iterable[str] = (),
) -> List[Dict[str, float]]:
    """Keypoint records for ``pose`` with optional per-part position overrides."""
    pts = dict(pose or NEUTRAL_POSE)
    pts.update(overrides or {})
    low = set(low_conf)
    return [
        {"name": name, "x": float(x), "y": float(y), "conf": 0.1 if name in low else conf}
        for name, (x, y) in pts.items()
    ]


def neutral_pose(conf: float = 0.9) -> List[Dict[str, float]]:
    return make_keypoints(conf=conf)


def raised_right_hand_pose() -> List[Dict[str, float]]:
    # right wrist well above the shoulder and away from the face
    return make_keypoints(overrides={"right_elbow": (0.64, 0.33), "right_wrist": (0.66, 0.22)})


def head_down_pose() -> List[Dict[str, float]]:
    # nose drops to just above the shoulder line
    return make_keypoints(overrides={
        "nose": (0.50, 0.38), "left_eye": (0.47, 0.35), "right_eye": (0.53, 0.35),
    })


def shifted_pose(step: int, delta: float = SHIFT_STEP) -> List[Dict[str, float]]:
    """Upper body (head + shoulders) shifted sideways by ``step * delta``; hips fixed."""
    moved = {n: (NEUTRAL_POSE[n][0] + step * delta, NEUTRAL_POSE[n][1]) for n in UPPER_PARTS}
    return make_keypoints(overrides=moved)


def nod_sequence(n: int, amplitude: float = 0.02) -> List[List[Dict[str, float]]]:
    """``n`` frames with the head bobbing up and down by ``amplitude``."""
    frames = []
    for i in range(n):
        dy = amplitude if i % 2 else 0.0
        moved = {p: (NEUTRAL_POSE[p][0], NEUTRAL_POSE[p][1] + dy) for p in HEAD_PARTS}
        frames.append(make_keypoints(overrides=moved))
    return frames


def shake_sequence(n: int, amplitude: float = 0.02) -> List[List[Dict[str, float]]]:
    """``n`` frames with the head swinging left and right by ``amplitude``."""
    frames = []
    for i in range(n):
        dx = amplitude if i % 2 else 0.0
        moved = {p: (NEUTRAL_POSE[p][0] + dx, NEUTRAL_POSE[p][1]) for p in HEAD_PARTS}
        frames.append(make_keypoints(overrides=moved))
    return frames


def make_frame(records: List[Dict[str, float]]) -> KeypointFrame:
    return KeypointFrame.from_keypoints(records)


def _eye(points: np.ndarray, idx: Tuple[int, ...], cx: float, cy: float, half_h: float) -> None:
    # p1/p4 corners, p2/p3 upper lid, p5/p6 lower lid; centroid stays at (cx, cy)
    p1, p2, p3, p4, p5, p6 = idx
    points[p1] = (cx - 0.015, cy)
    points[p4] = (cx + 0.015, cy)
    points[p2] = (cx - 0.005, cy - half_h)
    points[p3] = (cx + 0.005, cy - half_h)
    points[p5] = (cx + 0.005, cy + half_h)
    points[p6] = (cx - 0.005, cy + half_h)


def make_face(eyes_open: bool = True, dx: float = 0.0) -> List[List[float]]:
    """68 face landmarks; open eyes give EAR 0.4, closed eyes 0.1.

    The nose tip sits 0.6 eye distances below the eye line, so gaze reads
    centered. ``dx`` shifts the whole face sideways.
    """
    half_h = 0.006 if eyes_open else 0.0015
    pts = np.tile(np.array([0.50, 0.288]), (FACE_POINTS, 1))
    pts[0] = (0.40, 0.15)   # jaw start
    pts[16] = (0.60, 0.15)  # jaw end
    pts[8] = (0.50, 0.40)   # chin
    _eye(pts, LEFT_EYE_IDX, 0.46, 0.24, half_h)
    _eye(pts, RIGHT_EYE_IDX, 0.54, 0.24, half_h)
    pts[NOSE_TIP_IDX] = (0.50, 0.24 + 0.6 * 0.08)
    pts[:, 0] += dx
    return pts.tolist()


def replay_data(
    keypoints: List[List[Dict[str, float]]],
    faces: Optional[List] = None,
    expressions: Optional[List] = None,
    fps: float = 10.0,
) -> Dict:
    """Replay-file dict in the extractor's JSON shape."""
    data = {
        "timestamps": [i / fps for i in range(len(keypoints))],
        "keypoints": keypoints,
    }
    if faces is not None:
        data["faces"] = faces
    if expressions is not None:
        data["expressions"] = expressions
    return data
