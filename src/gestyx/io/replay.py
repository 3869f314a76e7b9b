# src/gestyx/io/replay.py
"""Replay recorded landmarks as a LandmarkProvider.

Input is the keypoint JSON written by the GIF/video extractor::

    {"timestamps": [t0, t1, ...],
     "keypoints": [[{"name", "x", "y", "conf"}, ...], ...],
     "faces": [[[x, y] * 68] | null, ...],          # optional
     "expressions": [{"happy": .., ...} | null, ...]} # optional

Call :meth:`JsonReplayProvider.advance` once per frame; the three getters
then serve that frame's data.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List, Optional

from ..errors import ProviderUnavailableError

logger = logging.getLogger(__name__)


class JsonReplayProvider:
    def __init__(self, data: Dict[str, Any]):
        kps = data.get("keypoints")
        if not isinstance(kps, list):
            raise ProviderUnavailableError("replay data has no 'keypoints' list")
        n = len(kps)
        self.keypoints: List[Any] = kps
        self.timestamps: List[float] = [float(t) for t in data.get("timestamps") or []]
        if len(self.timestamps) != n:
            # fall back to the recorded fps (or 10 fps) when timestamps are missing/short
            fps = float(data.get("fps") or 10.0)
            self.timestamps = [i / fps for i in range(n)]
        self.faces: List[Any] = self._per_frame(data.get("faces"), n)
        self.expressions: List[Any] = self._per_frame(data.get("expressions"), n)
        self.index = -1

    @staticmethod
    def _per_frame(values: Optional[List[Any]], n: int) -> List[Any]:
        values = list(values or [])
        return (values + [None] * n)[:n]

    @classmethod
    def from_file(cls, path: str) -> "JsonReplayProvider":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ProviderUnavailableError(f"cannot read replay file {path}: {e}") from e
        provider = cls(data)
        logger.info("loaded %d replay frames from %s", len(provider), path)
        return provider

    def __len__(self) -> int:
        return len(self.keypoints)

    def advance(self) -> Optional[float]:
        """Move to the next frame; returns its timestamp, or None when exhausted."""
        if self.index + 1 >= len(self):
            return None
        self.index += 1
        return self.timestamps[self.index]

    def frames(self) -> Iterator[float]:
        while True:
            ts = self.advance()
            if ts is None:
                return
            yield ts

    def _current(self, values: List[Any]) -> Any:
        if self.index < 0:
            raise ProviderUnavailableError("replay not started; call advance() first")
        return values[self.index]

    # ---- LandmarkProvider ----
    def get_body_keypoints(self) -> Any:
        return self._current(self.keypoints)

    def get_face_landmarks(self) -> Any:
        return self._current(self.faces)

    def get_expressions(self) -> Any:
        return self._current(self.expressions)


class NullCapture:
    """MediaCapture stand-in for offline replay; only counts acquire/release calls."""

    def __init__(self) -> None:
        self.acquired = 0
        self.released = 0

    @property
    def held(self) -> bool:
        return self.acquired > self.released

    def acquire(self) -> None:
        self.acquired += 1

    def release(self) -> None:
        self.released += 1
