"""
Metric extractor tests.

Checks per-metric values on the synthetic neutral pose, omission of metrics
whose keypoints fall below the confidence gates, bounded integer output on
degenerate geometry, and the feedback cap.
"""

import sys
import os
import unittest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, "src"))

from gestyx.geometry.landmarks import KeypointFrame
from gestyx.metrics.extractor import (
    DETECTION_QUALITY, HEAD_ORIENTATION, HEAD_STABILITY, SHOULDER_LEVEL, SHOULDER_OPENNESS,
    SPINAL_ALIGNMENT, UPRIGHTNESS, extract_metrics,
)
from tests.fixtures.synthetic_pose import make_frame, make_keypoints, neutral_pose, shifted_pose


class TestNeutralPose(unittest.TestCase):
    """A centered, upright pose scores high and yields no feedback."""

    def setUp(self):
        self.result = extract_metrics(make_frame(neutral_pose()))

    def test_all_metrics_present(self):
        """Every metric is computable from the neutral pose."""
        labels = [m.label for m in self.result.metrics]
        self.assertEqual(labels, [
            SPINAL_ALIGNMENT, SHOULDER_LEVEL, SHOULDER_OPENNESS, HEAD_STABILITY,
            HEAD_ORIENTATION, UPRIGHTNESS, DETECTION_QUALITY,
        ])

    def test_values(self):
        """Known values for the reference geometry."""
        r = self.result
        self.assertEqual(r.value_of(SPINAL_ALIGNMENT), 100)
        self.assertEqual(r.value_of(SHOULDER_LEVEL), 100)
        self.assertEqual(r.value_of(SHOULDER_OPENNESS), 78)
        self.assertEqual(r.value_of(DETECTION_QUALITY), 90)
        self.assertEqual(r.score, 95)
        self.assertEqual(r.feedback, [])

    def test_colors(self):
        """High values are Green; detection quality of 90 too."""
        self.assertTrue(all(m.color == "Green" for m in self.result.metrics))


class TestConfidenceGates(unittest.TestCase):
    """Metrics are omitted, not zeroed, when their keypoints are unreliable."""

    def test_low_nose_confidence_drops_head_metrics(self):
        """A low-confidence nose removes the head-based metrics only."""
        r = extract_metrics(make_frame(make_keypoints(low_conf=["nose"])))
        labels = {m.label for m in r.metrics}
        self.assertNotIn(HEAD_STABILITY, labels)
        self.assertNotIn(UPRIGHTNESS, labels)
        self.assertNotIn(HEAD_ORIENTATION, labels)
        self.assertIn(SPINAL_ALIGNMENT, labels)

    def test_fine_gate_for_head_orientation(self):
        """Head orientation needs 0.6 on the face keypoints; 0.55 passes the general gate only."""
        recs = neutral_pose()
        for rec in recs:
            if rec["name"] in ("left_eye", "right_eye"):
                rec["conf"] = 0.55
        labels = {m.label for m in extract_metrics(make_frame(recs)).metrics}
        self.assertNotIn(HEAD_ORIENTATION, labels)
        self.assertIn(HEAD_STABILITY, labels)

    def test_empty_frame_is_no_signal(self):
        """No confident keypoints → empty result with score 0."""
        r = extract_metrics(KeypointFrame.empty())
        self.assertFalse(r.has_signal)
        self.assertEqual(r.score, 0)
        self.assertEqual(r.feedback, [])
        self.assertFalse(extract_metrics(None).has_signal)


class TestDegenerateGeometry(unittest.TestCase):
    """Collapsed keypoints never produce NaN or out-of-range values."""

    def test_all_points_coincide(self):
        """Every emitted value is an int in [0, 100]."""
        pose = {name: (0.5, 0.5) for name in (
            "nose", "left_eye", "right_eye", "left_shoulder", "right_shoulder",
            "left_elbow", "right_elbow", "left_hip", "right_hip")}
        r = extract_metrics(make_frame(make_keypoints(pose=pose)))
        for m in r.metrics:
            self.assertIsInstance(m.value, int)
            self.assertGreaterEqual(m.value, 0)
            self.assertLessEqual(m.value, 100)
        self.assertIsInstance(r.score, int)

    def test_shoulders_coincide(self):
        """Zero shoulder width collapses openness to 0 but stays bounded."""
        r = extract_metrics(make_frame(make_keypoints(overrides={
            "left_shoulder": (0.5, 0.4), "right_shoulder": (0.5, 0.4)})))
        self.assertEqual(r.value_of(SHOULDER_OPENNESS), 0)
        self.assertIsNone(r.value_of(HEAD_STABILITY))


class TestFeedback(unittest.TestCase):
    """Feedback strings follow definition order and are capped at three."""

    def test_shift_triggers_alignment_feedback(self):
        """Shoulders 0.08 off the hip line fall below the alignment threshold."""
        r = extract_metrics(make_frame(shifted_pose(4)))
        self.assertEqual(r.value_of(SPINAL_ALIGNMENT), 60)
        self.assertEqual(r.feedback[0], "Center your body over your hips")

    def test_cap_and_order(self):
        """Several poor metrics → first three by definition order."""
        r = extract_metrics(make_frame(make_keypoints(overrides={
            "left_shoulder": (0.45, 0.35),
            "right_shoulder": (0.55, 0.45),
            "nose": (0.60, 0.38),
        })))
        self.assertEqual(r.feedback, [
            "Level your shoulders",
            "Open up your shoulders",
            "Keep your head centered over your shoulders",
        ])


if __name__ == "__main__":
    unittest.main()
