"""
Mode scorer tests.

Education engagement, interview readiness, expression percentages and the
shared score bands.
"""

import sys
import os
import unittest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, "src"))

from gestyx.analysis.movement import MovementReading
from gestyx.geometry.landmarks import ExpressionVector
from gestyx.scoring.education import score_education
from gestyx.scoring.expressions import read_expressions, to_percentages
from gestyx.scoring.interview import score_interview
from gestyx.scoring.levels import (
    color_for_value, engagement_level, professionalism_level, push_capped, rating_for_score,
)
from tests.fixtures.synthetic_pose import head_down_pose, make_frame, neutral_pose, raised_right_hand_pose


class TestLevels(unittest.TestCase):
    """Breakpoints for colors, ratings and levels."""

    def test_color_breakpoints(self):
        """75 and 50 are inclusive lower bounds."""
        self.assertEqual(color_for_value(75), "Green")
        self.assertEqual(color_for_value(74), "Amber")
        self.assertEqual(color_for_value(50), "Amber")
        self.assertEqual(color_for_value(49), "Red")

    def test_rating_and_levels(self):
        """Rating and level ladders."""
        self.assertEqual(rating_for_score(80), "excellent")
        self.assertEqual(rating_for_score(65), "good")
        self.assertEqual(rating_for_score(0), "poor")
        self.assertEqual(engagement_level(85), "VERY HIGH")
        self.assertEqual(engagement_level(39), "LOW")
        self.assertEqual(professionalism_level(45), "FAIR")

    def test_push_capped(self):
        """Lists keep first-found order, skip duplicates and stop at the cap."""
        items = []
        for text in ("a", "b", "a", "c", "d"):
            push_capped(items, text, 3)
        self.assertEqual(items, ["a", "b", "c"])


class TestEducation(unittest.TestCase):
    """Classroom engagement scoring."""

    def test_no_frame_no_signal(self):
        """Without body keypoints the record is a no-signal default."""
        out = score_education(None)
        self.assertFalse(out.has_signal)
        self.assertEqual(out.engagement_score, 0)

    def test_neutral(self):
        """Attentive, passive student: full attention, base participation."""
        out = score_education(make_frame(neutral_pose()))
        self.assertEqual(out.attention_score, 100)
        self.assertEqual(out.participation_score, 30)
        self.assertEqual(out.engagement_score, 72)
        self.assertEqual(out.engagement_level, "HIGH")
        self.assertEqual(out.distraction_flags, [])

    def test_raised_hand_raises_participation(self):
        """A raised hand is a participation signal."""
        out = score_education(make_frame(raised_right_hand_pose()))
        self.assertEqual(out.participation_score, 55)
        self.assertIn("Hand raised to participate", out.participation_signals)

    def test_head_down_penalized(self):
        """Head down and slouching both cost attention."""
        out = score_education(make_frame(head_down_pose()))
        self.assertEqual(out.attention_score, 70)
        self.assertEqual(out.distraction_score, 30)
        self.assertEqual(out.distraction_flags[0], "Head down - possibly reading or disengaged")

    def test_movement_and_expressions(self):
        """Drowsiness and gaze aversion stack; scores stay in range."""
        mv = MovementReading(drowsy=True, gaze="left", fidgeting=True)
        ex = ExpressionVector(sad=0.4, angry=0.3)
        out = score_education(make_frame(neutral_pose()), ex, movement=mv)
        self.assertEqual(out.attention_score, 40)
        self.assertIn("Signs of drowsiness", out.distraction_flags)
        self.assertLessEqual(len(out.distraction_flags), 4)
        self.assertEqual(out.engagement_score, 36)
        self.assertEqual(out.engagement_level, "LOW")

    def test_metrics_view(self):
        """as_metrics exposes the three headline scores."""
        labels = [m.label for m in score_education(make_frame(neutral_pose())).as_metrics()]
        self.assertEqual(labels, ["Attention", "Engagement", "Participation"])


class TestInterview(unittest.TestCase):
    """Interview readiness scoring."""

    def test_no_frame_no_signal(self):
        """Missing body keypoints → default record."""
        self.assertFalse(score_interview(None).has_signal)

    def test_neutral(self):
        """Upright, open, camera-facing posture."""
        out = score_interview(make_frame(neutral_pose()))
        self.assertEqual(out.confidence_score, 83)
        self.assertEqual(out.communication_quality, 68)
        self.assertEqual(out.authenticity_score, 70)
        self.assertEqual(out.stress_level, 20)
        self.assertEqual(out.professionalism_score, 74)
        self.assertEqual(out.professionalism_level, "GOOD")
        self.assertEqual(out.strengths[0], "Upright, balanced posture")

    def test_eye_contact(self):
        """Centered gaze adds to communication."""
        out = score_interview(make_frame(neutral_pose()), movement=MovementReading(gaze="center"))
        self.assertEqual(out.communication_quality, 80)
        self.assertIn("Steady eye contact", out.strengths)

    def test_fearful_expression_adds_stress(self):
        """Negative expressions raise stress and lower confidence."""
        out = score_interview(make_frame(neutral_pose()), ExpressionVector(fear=0.5))
        self.assertEqual(out.stress_level, 40)
        self.assertEqual(out.confidence_score, 73)
        self.assertIn("Try to relax your facial expression", out.improvements)

    def test_composure_metric(self):
        """Composure is the inverse of stress."""
        metrics = {m.label: m.value for m in score_interview(make_frame(neutral_pose())).as_metrics()}
        self.assertEqual(metrics["Composure"], 80)


class TestExpressions(unittest.TestCase):
    """Expression percentages always sum to 100."""

    def test_sum_to_100(self):
        """Largest remainder hands out the leftover points."""
        pct = to_percentages(ExpressionVector(neutral=1.0, happy=1.0, sad=1.0))
        self.assertEqual(sum(pct.values()), 100)
        self.assertEqual(pct["neutral"], 34)
        self.assertEqual(pct["happy"], 33)
        self.assertEqual(pct["sad"], 33)

    def test_uneven(self):
        """Unnormalized inputs are rescaled."""
        pct = to_percentages(ExpressionVector(happy=0.7, surprise=0.2, neutral=0.2))
        self.assertEqual(sum(pct.values()), 100)
        self.assertEqual(pct["happy"], 64)

    def test_all_zero(self):
        """All-zero input yields all-zero output and no signal."""
        reading = read_expressions(ExpressionVector())
        self.assertEqual(sum(reading.percentages.values()), 0)
        self.assertFalse(reading.has_signal)
        self.assertFalse(read_expressions(None).has_signal)

    def test_reading(self):
        """Dominant emotion and one capitalized metric per emotion."""
        reading = read_expressions(ExpressionVector(happy=0.8, neutral=0.2))
        self.assertEqual(reading.dominant, "happy")
        metrics = {m.label: m.value for m in reading.as_metrics()}
        self.assertEqual(metrics["Happy"], 80)
        self.assertEqual(len(metrics), 7)


if __name__ == "__main__":
    unittest.main()
