# src/gestyx/pipeline/controller.py
"""Mode controller and per-frame pipeline.

One :class:`ModeController` owns the active mode, its smoothing state, the
movement history, the gesture decoder and the session recorder. The host
calls :meth:`ModeController.on_frame_ready` once per video frame; every call
runs to completion before returning, and nothing here spawns threads.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from ..analysis.gestures import DecodedAction, GestureDecoder
from ..analysis.movement import MovementTracker
from ..config import PipelineConfig
from ..errors import InvalidFrameError, ModeError
from ..geometry.landmarks import ExpressionVector, FaceBox, FaceLandmarks, KeypointFrame
from ..metrics.extractor import Metric, extract_metrics
from ..scoring.education import EducationScore, score_education
from ..scoring.expressions import ExpressionReading, read_expressions
from ..scoring.interview import InterviewScore, score_interview
from ..session.recorder import SessionRecord, SessionRecorder
from ..smoothing.descriptors import NEUTRAL_LABEL, NO_SIGNAL_LABEL
from ..smoothing.temporal import SmoothingState, select_label, smooth_box, smooth_metrics, smooth_score

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    EDUCATION = "education"
    INTERVIEW = "interview"
    EXPRESSIONS = "expressions"
    COMPOSURE = "composure"
    DECODER = "decoder"


# ---------------------------------------------------------------------
# Collaborator interfaces
# ---------------------------------------------------------------------
class LandmarkProvider(Protocol):
    def get_body_keypoints(self) -> Any: ...
    def get_face_landmarks(self) -> Any: ...
    def get_expressions(self) -> Any: ...


class MediaCapture(Protocol):
    def acquire(self) -> None: ...
    def release(self) -> None: ...


class SessionSink(Protocol):
    def save(self, payload: Dict[str, Any]) -> Any: ...


# ---------------------------------------------------------------------
# Per-frame outputs
# ---------------------------------------------------------------------
@dataclass
class ComposureFrame:
    metrics: List[Metric] = field(default_factory=list)
    feedback: List[str] = field(default_factory=list)
    label: str = NO_SIGNAL_LABEL
    is_stable: bool = False
    score: int = 0
    face_box: Optional[FaceBox] = None

    def as_dict(self) -> dict:
        return {
            "metrics": [m.as_dict() for m in self.metrics],
            "feedback": list(self.feedback),
            "label": self.label,
            "isStable": self.is_stable,
            "score": self.score,
            "faceBox": asdict(self.face_box) if self.face_box else None,
        }


ModeOutput = Union[ComposureFrame, EducationScore, InterviewScore, ExpressionReading, DecodedAction]


@dataclass
class FrameResult:
    mode: Mode
    timestamp: float
    output: ModeOutput
    metrics: List[Metric] = field(default_factory=list)  # what the session timeline records
    has_signal: bool = False
    is_stable: bool = False
    skipped: bool = False  # True when the frame-skip policy reused the previous output


@dataclass
class FrameInputs:
    body: Optional[KeypointFrame] = None
    face: Optional[FaceLandmarks] = None
    expressions: Optional[ExpressionVector] = None


def _present(value: Any) -> bool:
    # None and empty containers are missing signal; unsized values go on to the constructors
    if value is None:
        return False
    try:
        return len(value) > 0
    except TypeError:
        return True


def parse_inputs(body: Any, face: Any, expressions: Any) -> FrameInputs:
    """Pack raw provider data; raises InvalidFrameError on malformed input."""
    return FrameInputs(
        body=KeypointFrame.from_keypoints(body) if _present(body) else None,
        face=FaceLandmarks.from_points(face) if _present(face) else None,
        expressions=ExpressionVector.from_mapping(expressions) if _present(expressions) else None,
    )


class ModeController:
    """Supervises which scorer consumes each frame.

    Every mode switch and every stream stop tears everything down: the open
    session is discarded (unless already saved), media capture is released,
    smoothing state, movement history and the decoder sentinel are cleared.
    Entering a mode re-acquires capture and starts from fresh state.
    """

    def __init__(
        self,
        provider: LandmarkProvider,
        capture: Optional[MediaCapture] = None,
        sink: Optional[SessionSink] = None,
        config: Optional[PipelineConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.provider = provider
        self.capture = capture
        self.sink = sink
        self.config = config or PipelineConfig()
        self.clock = clock
        self.rng = random.Random(self.config.seed)

        self._mode: Optional[Mode] = None
        self._capture_held = False
        self.streaming = False
        self.smoothing = SmoothingState(NEUTRAL_LABEL)
        self.tracker = MovementTracker()
        self.decoder = GestureDecoder()
        self.recorder = SessionRecorder(clock)
        self._frame_index = 0
        self._last_result: Optional[FrameResult] = None

    # ---------------- mode lifecycle ----------------
    @property
    def mode(self) -> Optional[Mode]:
        return self._mode

    def switch_mode(self, mode: Union[Mode, str]) -> None:
        try:
            target = Mode(mode)
        except ValueError as e:
            raise ModeError(f"unknown mode {mode!r}") from e
        previous = self._mode
        self._teardown()
        self._mode = target
        self.smoothing = SmoothingState(NEUTRAL_LABEL)  # fresh, never resumed
        self._acquire()
        logger.info("mode switched: %s -> %s", previous.value if previous else None, target.value)

    def close(self) -> None:
        self._teardown()
        self._mode = None

    def _acquire(self) -> None:
        if self.capture is None or self._capture_held:
            return
        self.capture.acquire()  # ProviderUnavailableError propagates to the host
        self._capture_held = True

    def _release(self) -> None:
        if self.capture is not None and self._capture_held:
            self.capture.release()
        self._capture_held = False

    def _reset_state(self) -> None:
        self.smoothing.reset()
        self.tracker.reset()
        self.decoder.reset()
        self._frame_index = 0
        self._last_result = None

    def _teardown(self) -> None:
        self.streaming = False
        self.recorder.discard()  # no-op unless still recording
        self.recorder.reset()
        self._release()
        self._reset_state()

    # ---------------- streaming / sessions ----------------
    def start_session(self, timestamp: Optional[float] = None) -> SessionRecord:
        if self._mode is None:
            raise ModeError("no active mode")
        if self.streaming:
            self.stop_session()
        self._reset_state()
        self._acquire()
        self.streaming = True
        return self.recorder.start(self._mode.value, timestamp if timestamp is not None else self.clock())

    def save_session(self, timestamp: Optional[float] = None) -> SessionRecord:
        rec = self.recorder.save(timestamp if timestamp is not None else self.clock())
        if self.sink is not None:
            self.sink.save(rec.to_payload())
        return rec

    def stop_session(self, save: bool = False, timestamp: Optional[float] = None) -> Optional[SessionRecord]:
        """Halt the frame loop; state is flushed before this returns, even if saving fails."""
        try:
            return self.save_session(timestamp) if save and self.recorder.is_recording else None
        finally:
            self.streaming = False
            self.recorder.discard()
            self._reset_state()

    # ---------------- frame loop ----------------
    def on_frame_ready(self, timestamp: Optional[float] = None) -> Optional[FrameResult]:
        # Media capture callback; ignored while the stream is stopped
        if not self.streaming:
            return None
        return self.process_frame(timestamp)

    def _should_skip(self) -> bool:
        n = self.config.frame_skip
        last = self._last_result
        if n <= 1 or last is None or self._frame_index % n == 0:
            return False
        if not self.config.skip_when_stable:
            return True
        if self._mode == Mode.COMPOSURE and not self.smoothing.is_warm:
            return False
        return last.is_stable

    def process_frame(self, timestamp: Optional[float] = None) -> FrameResult:
        if self._mode is None:
            raise ModeError("no active mode")
        ts = self.clock() if timestamp is None else float(timestamp)
        self._frame_index += 1

        if self._should_skip():
            logger.debug("frame %d skipped", self._frame_index)
            self._track_skipped()
            last = self._last_result
            return FrameResult(last.mode, ts, last.output, last.metrics, last.has_signal, last.is_stable, skipped=True)

        inputs = self._read_inputs()
        result = self._dispatch(inputs, ts)
        if inputs.body is not None:
            self.smoothing.last_pose = inputs.body.copy()
        self.smoothing.check_invariants()
        self.tracker.check_invariants()

        if self.streaming and result.metrics:
            self.recorder.record_frame(ts, result.metrics, self._mode_data(result))
        self._last_result = result
        return result

    def _track_skipped(self) -> None:
        # Movement classifiers measure frame-to-frame steps, so they see every frame
        if self._mode not in (Mode.EDUCATION, Mode.INTERVIEW):
            return
        inputs = self._read_inputs()
        self.tracker.update(inputs.body, inputs.face, self.smoothing.last_pose)
        if inputs.body is not None:
            self.smoothing.last_pose = inputs.body.copy()

    def _read_inputs(self) -> FrameInputs:
        body = self.provider.get_body_keypoints()
        face = self.provider.get_face_landmarks()
        expressions = self.provider.get_expressions()
        try:
            return parse_inputs(body, face, expressions)
        except InvalidFrameError as e:
            logger.warning("dropping invalid frame %d: %s", self._frame_index, e)
            return FrameInputs()

    def _dispatch(self, inputs: FrameInputs, ts: float) -> FrameResult:
        handlers: Dict[Mode, Callable[[FrameInputs, float], FrameResult]] = {
            Mode.COMPOSURE: self._composure,
            Mode.EDUCATION: self._education,
            Mode.INTERVIEW: self._interview,
            Mode.EXPRESSIONS: self._expressions,
            Mode.DECODER: self._decoder,
        }
        return handlers[self._mode](inputs, ts)

    # ---------------- per-mode handlers ----------------
    def _composure(self, inputs: FrameInputs, ts: float) -> FrameResult:
        extraction = extract_metrics(inputs.body)
        if not extraction.has_signal:
            return FrameResult(Mode.COMPOSURE, ts, ComposureFrame())  # smoothing state untouched
        smoothed = smooth_metrics(self.smoothing, extraction.metrics)
        score = smooth_score(self.smoothing, extraction.score)
        label, stable = select_label(self.smoothing, score, self.rng)
        box = smooth_box(self.smoothing, inputs.face.box()) if inputs.face is not None else None
        out = ComposureFrame(smoothed, extraction.feedback, label, stable, score, box)
        return FrameResult(Mode.COMPOSURE, ts, out, smoothed, True, stable)

    def _education(self, inputs: FrameInputs, ts: float) -> FrameResult:
        movement = self.tracker.update(inputs.body, inputs.face, self.smoothing.last_pose)
        out = score_education(inputs.body, inputs.expressions, inputs.face, self.smoothing.last_pose, movement)
        return self._scored(Mode.EDUCATION, ts, out, "engagement_level")

    def _interview(self, inputs: FrameInputs, ts: float) -> FrameResult:
        movement = self.tracker.update(inputs.body, inputs.face, self.smoothing.last_pose)
        out = score_interview(inputs.body, inputs.expressions, inputs.face, self.smoothing.last_pose, movement)
        return self._scored(Mode.INTERVIEW, ts, out, "professionalism_level")

    def _scored(self, mode: Mode, ts: float, out: Union[EducationScore, InterviewScore], level_field: str) -> FrameResult:
        if not out.has_signal:
            return FrameResult(mode, ts, out)
        prev = self._last_result.output if self._last_result is not None else None
        stable = prev is not None and getattr(prev, level_field, None) == getattr(out, level_field)
        return FrameResult(mode, ts, out, out.as_metrics(), True, stable)

    def _expressions(self, inputs: FrameInputs, ts: float) -> FrameResult:
        out = read_expressions(inputs.expressions)
        if not out.has_signal:
            return FrameResult(Mode.EXPRESSIONS, ts, out)
        prev = self._last_result.output if self._last_result is not None else None
        stable = isinstance(prev, ExpressionReading) and prev.dominant == out.dominant
        return FrameResult(Mode.EXPRESSIONS, ts, out, out.as_metrics(), True, stable)

    def _decoder(self, inputs: FrameInputs, ts: float) -> FrameResult:
        out = self.decoder.update(inputs.body, ts)
        metrics = extract_metrics(inputs.body).metrics
        return FrameResult(Mode.DECODER, ts, out, metrics, bool(metrics), not out.is_new_action)

    def _mode_data(self, result: FrameResult) -> Dict[str, Any]:
        out = result.output
        if isinstance(out, DecodedAction):
            return {
                "last_action": out.decoded_action,
                "history": [{"timestamp": e.timestamp, "action": e.action} for e in self.decoder.history],
            }
        return out.as_dict()
