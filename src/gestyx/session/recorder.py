# src/gestyx/session/recorder.py
"""Session aggregation.

State machine: IDLE → RECORDING → (SAVED | DISCARDED). While recording,
every processed frame appends a timeline snapshot and raises the running
per-label peaks. The summary is computed only on an explicit save.
"""
from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import MAX_LIST_ITEMS
from ..errors import ModeError
from ..metrics.extractor import Metric
from ..scoring.levels import clamp_score, mean_or_zero, push_capped, rating_for_score

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    SAVED = "saved"
    DISCARDED = "discarded"


@dataclass
class TimelineEntry:
    timestamp: float
    metrics: List[Dict[str, Any]]  # [{label, value}]


@dataclass
class SessionSummary:
    overall_score: int = 0
    rating: str = "poor"
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    key_insights: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "overallScore": self.overall_score,
            "rating": self.rating,
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
            "keyInsights": list(self.key_insights),
        }


@dataclass
class SessionRecord:
    mode: str
    start_timestamp: float
    duration_seconds: float = 0.0
    timeline: List[TimelineEntry] = field(default_factory=list)
    peak_metrics: Dict[str, int] = field(default_factory=dict)
    mode_data: Optional[Dict[str, Any]] = None  # last mode-specific record
    summary: Optional[SessionSummary] = None

    def average_metrics(self) -> List[Metric]:
        # Per-label mean over the timeline, labels in first-seen order
        buckets: Dict[str, List[float]] = {}
        for entry in self.timeline:
            for m in entry.metrics:
                buckets.setdefault(m["label"], []).append(m["value"])
        return [Metric.of(label, mean_or_zero(vals)) for label, vals in buckets.items()]

    def final_metrics(self) -> List[Dict[str, Any]]:
        return list(self.timeline[-1].metrics) if self.timeline else []

    def to_payload(self) -> Dict[str, Any]:
        """Plain dict handed to the persistence collaborator."""
        return {
            "mode": self.mode,
            "duration": int(round(self.duration_seconds)),
            "averageMetrics": [m.as_dict() for m in self.average_metrics()],
            "summary": (self.summary or SessionSummary()).as_dict(),
            "modeSpecificData": self.mode_data or {},
            "peakMetrics": dict(self.peak_metrics),
            "timeline": [{"timestamp": e.timestamp, "metrics": list(e.metrics)} for e in self.timeline],
        }


# ---------------------------------------------------------------------
# Mode-specific summary rules: (record, strengths, improvements, insights) -> None
# ---------------------------------------------------------------------
def _education_summary(rec: SessionRecord, s: List[str], i: List[str], k: List[str]) -> None:
    data = rec.mode_data or {}
    attention = data.get("attention_score")
    if attention is not None:
        if attention >= 70:
            push_capped(s, "Maintained strong attention", MAX_LIST_ITEMS)
        elif attention < 60:
            push_capped(i, "Work on keeping your attention on the lesson", MAX_LIST_ITEMS)
    if data.get("participation_score", 0) >= 60:
        push_capped(s, "Actively participated", MAX_LIST_ITEMS)
    for flag in data.get("distraction_flags", [])[:1]:
        push_capped(i, f"Watch for: {flag.lower()}", MAX_LIST_ITEMS)
    if data.get("engagement_level"):
        k.append(f"Final engagement level: {data['engagement_level']}")


def _interview_summary(rec: SessionRecord, s: List[str], i: List[str], k: List[str]) -> None:
    data = rec.mode_data or {}
    for key, good, bad in (
        ("confidence_score", "Projected confidence", "Work on projecting confidence"),
        ("communication_quality", "Clear, engaged communication", "Improve eye contact and engagement"),
        ("authenticity_score", "Came across as genuine", "Let your natural expression show"),
    ):
        value = data.get(key)
        if value is None:
            continue
        if value >= 70:
            push_capped(s, good, MAX_LIST_ITEMS)
        elif value < 60:
            push_capped(i, bad, MAX_LIST_ITEMS)
    if data.get("stress_level", 0) > 60:
        push_capped(i, "Manage visible signs of stress", MAX_LIST_ITEMS)
    if data.get("professionalism_level"):
        k.append(f"Professionalism: {data['professionalism_level']}")


def _composure_summary(rec: SessionRecord, s: List[str], i: List[str], k: List[str]) -> None:
    for m in rec.final_metrics():
        if m["value"] >= 80:
            push_capped(s, f"Strong {m['label'].lower()}", MAX_LIST_ITEMS)
        elif m["value"] < 60:
            push_capped(i, f"Improve {m['label'].lower()}", MAX_LIST_ITEMS)
    label = (rec.mode_data or {}).get("label")
    if label:
        k.append(f"Overall impression: {label}")


def _expressions_summary(rec: SessionRecord, s: List[str], i: List[str], k: List[str]) -> None:
    dominant = Counter(
        max(e.metrics, key=lambda m: m["value"])["label"] for e in rec.timeline if e.metrics
    )
    if dominant:
        label, n = dominant.most_common(1)[0]
        k.append(f"Most frequent expression: {label} ({n} of {len(rec.timeline)} frames)")
    avg = {m.label: m.value for m in rec.average_metrics()}
    if avg.get("Happy", 0) >= 40:
        push_capped(s, "Warm, positive expressions", MAX_LIST_ITEMS)
    if avg.get("Neutral", 0) >= 70:
        push_capped(i, "Let more expression show", MAX_LIST_ITEMS)
    if avg.get("Angry", 0) + avg.get("Sad", 0) + avg.get("Fear", 0) >= 40:
        push_capped(i, "Ease tension in your expression", MAX_LIST_ITEMS)


def _decoder_summary(rec: SessionRecord, s: List[str], i: List[str], k: List[str]) -> None:
    actions = [a["action"] for a in (rec.mode_data or {}).get("history", [])]
    k.append(f"{len(actions)} distinct actions decoded")
    if any(a.startswith(("Open arms", "Standing tall", "Thumbs up")) for a in actions):
        push_capped(s, "Used open, confident body language", MAX_LIST_ITEMS)
    if any(a.startswith(("Arms crossed", "Slouching")) for a in actions):
        push_capped(i, "Avoid closed or slumped postures", MAX_LIST_ITEMS)


SummaryRule = Callable[[SessionRecord, List[str], List[str], List[str]], None]
SUMMARY_RULES: Dict[str, SummaryRule] = {
    "education": _education_summary,
    "interview": _interview_summary,
    "composure": _composure_summary,
    "expressions": _expressions_summary,
    "decoder": _decoder_summary,
}


def summarize(rec: SessionRecord) -> SessionSummary:
    """Overall score = mean of the final metric set; empty timeline → 0 / poor."""
    final = rec.final_metrics()
    if not final:
        return SessionSummary()
    overall = clamp_score(mean_or_zero([m["value"] for m in final]))
    strengths: List[str] = []
    improvements: List[str] = []
    insights: List[str] = []
    rule = SUMMARY_RULES.get(rec.mode)
    if rule is not None:
        rule(rec, strengths, improvements, insights)
    insights.append(f"Analyzed {len(rec.timeline)} frames over {rec.duration_seconds:.0f} seconds")
    if rec.peak_metrics:
        label, value = max(rec.peak_metrics.items(), key=lambda kv: kv[1])
        insights.append(f"Peak {label}: {value}%")
    return SessionSummary(overall, rating_for_score(overall), strengths, improvements, insights[:MAX_LIST_ITEMS])


class SessionRecorder:
    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self.state = SessionState.IDLE
        self.record: Optional[SessionRecord] = None

    @property
    def is_recording(self) -> bool:
        return self.state == SessionState.RECORDING

    def start(self, mode: str, timestamp: Optional[float] = None) -> SessionRecord:
        # IDLE/SAVED/DISCARDED → RECORDING with a fresh timeline
        if self.is_recording:
            self.discard()
        ts = self.clock() if timestamp is None else float(timestamp)
        self.record = SessionRecord(mode=mode, start_timestamp=ts)
        self.state = SessionState.RECORDING
        logger.info("session started: mode=%s", mode)
        return self.record

    def record_frame(self, timestamp: float, metrics: Sequence[Metric], mode_data: Optional[Dict[str, Any]] = None) -> None:
        if not self.is_recording or self.record is None:
            return
        rec = self.record
        rec.timeline.append(TimelineEntry(float(timestamp), [{"label": m.label, "value": m.value} for m in metrics]))
        for m in metrics:
            rec.peak_metrics[m.label] = max(rec.peak_metrics.get(m.label, m.value), m.value)
        if mode_data is not None:
            rec.mode_data = mode_data
        rec.duration_seconds = max(0.0, float(timestamp) - rec.start_timestamp)

    def save(self, timestamp: Optional[float] = None) -> SessionRecord:
        if not self.is_recording or self.record is None:
            raise ModeError(f"cannot save a session in state {self.state.value}")
        rec = self.record
        if timestamp is not None:
            rec.duration_seconds = max(rec.duration_seconds, float(timestamp) - rec.start_timestamp)
        rec.summary = summarize(rec)
        self.state = SessionState.SAVED
        logger.info("session saved: mode=%s frames=%d score=%d", rec.mode, len(rec.timeline), rec.summary.overall_score)
        return rec

    def discard(self) -> None:
        if self.is_recording:
            logger.info("session discarded: mode=%s", self.record.mode if self.record else "?")
            self.state = SessionState.DISCARDED
        self.record = None

    def reset(self) -> None:
        self.state = SessionState.IDLE
        self.record = None
