"""
Temporal smoothing tests.

Exponential metric folding, weighted score averaging, face-box smoothing,
label hysteresis with a seeded generator, and bounded FIFO capacities.
"""

import sys
import os
import random
import unittest
from collections import deque

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, "src"))

from gestyx.config import BOX_HISTORY, METRIC_HISTORY, SCORE_HISTORY
from gestyx.errors import StateCorruptionError
from gestyx.geometry.landmarks import FaceBox
from gestyx.metrics.extractor import Metric
from gestyx.smoothing.descriptors import (
    DESCRIPTOR_BANK, DESCRIPTOR_BUCKETS, NEUTRAL_LABEL, bucket_for_score, pick_descriptor,
)
from gestyx.smoothing.temporal import (
    SmoothingState, ema_fold, select_label, smooth_box, smooth_metrics, smooth_score,
)


class TestMetricSmoothing(unittest.TestCase):
    """EMA over the metric history window."""

    def setUp(self):
        self.state = SmoothingState()

    def test_first_frame_passes_through(self):
        """A single sample is returned unchanged."""
        out = smooth_metrics(self.state, [Metric.of("A", 40)])
        self.assertEqual(out[0].value, 40)

    def test_fold_values(self):
        """Newest samples weigh 0.7, the running result 0.3."""
        smooth_metrics(self.state, [Metric.of("A", 40)])
        self.assertEqual(smooth_metrics(self.state, [Metric.of("A", 80)])[0].value, 68)
        self.assertEqual(smooth_metrics(self.state, [Metric.of("A", 80)])[0].value, 76)

    def test_converges_to_constant_input(self):
        """After a full window of constant input the output equals it."""
        smooth_metrics(self.state, [Metric.of("A", 40)])
        values = [smooth_metrics(self.state, [Metric.of("A", 80)])[0].value for _ in range(METRIC_HISTORY)]
        self.assertEqual(values, sorted(values))  # monotone approach
        self.assertEqual(values[-1], 80)

    def test_color_follows_smoothed_value(self):
        """Colors are recomputed from the smoothed value, not copied."""
        smooth_metrics(self.state, [Metric.of("A", 100)])
        out = smooth_metrics(self.state, [Metric.of("A", 60)])[0]  # 72 → Amber
        self.assertEqual(out.value, 72)
        self.assertEqual(out.color, "Amber")

    def test_history_aligned_by_label(self):
        """Metrics missing from older frames contribute no samples."""
        smooth_metrics(self.state, [Metric.of("A", 50), Metric.of("B", 90)])
        out = smooth_metrics(self.state, [Metric.of("A", 70)])
        self.assertEqual([m.label for m in out], ["A"])
        self.assertEqual(out[0].value, 64)
        out = smooth_metrics(self.state, [Metric.of("C", 30)])
        self.assertEqual(out[0].value, 30)

    def test_ema_fold(self):
        """ema_fold folds oldest to newest."""
        self.assertAlmostEqual(ema_fold([10, 20], 0.5), 15.0)
        self.assertAlmostEqual(ema_fold([7], 0.3), 7.0)


class TestScoreAndBox(unittest.TestCase):
    """Weighted score average and face box EMA."""

    def test_weighted_score(self):
        """Newest score gets the largest weight."""
        state = SmoothingState()
        self.assertEqual(smooth_score(state, 80), 80)
        self.assertEqual(smooth_score(state, 100), 93)

    def test_box(self):
        """Boxes fold per coordinate with factor 0.4."""
        state = SmoothingState()
        first = smooth_box(state, FaceBox(0.0, 0.0, 1.0, 1.0))
        self.assertEqual(first, FaceBox(0.0, 0.0, 1.0, 1.0))
        out = smooth_box(state, FaceBox(1.0, 0.0, 1.0, 2.0))
        self.assertAlmostEqual(out.x, 0.6)
        self.assertAlmostEqual(out.height, 1.6)


class TestHysteresis(unittest.TestCase):
    """Labels change only when the score moves by the hysteresis delta."""

    def test_sequence(self):
        """Pick, hold within the band, re-pick outside it."""
        state = SmoothingState()
        rng = random.Random(7)
        first, stable = select_label(state, 62, rng)
        self.assertFalse(stable)
        self.assertIn(first, bucket_for_score(62))

        held, stable = select_label(state, 68, rng)
        self.assertTrue(stable)
        self.assertEqual(held, first)

        moved, stable = select_label(state, 72, rng)
        self.assertFalse(stable)
        self.assertNotEqual(moved, first)
        self.assertIn(moved, bucket_for_score(72))

    def test_oscillation_within_band_holds(self):
        """Scores wandering up to 9 points either side of the anchor never relabel."""
        state = SmoothingState()
        rng = random.Random(5)
        first, _ = select_label(state, 80, rng)
        for score in (71, 89, 75, 84, 88, 72, 80):
            label, stable = select_label(state, score, rng)
            self.assertEqual(label, first)
            self.assertTrue(stable)

    def test_neutral_always_replaced(self):
        """While the neutral default shows, any score selects a word."""
        state = SmoothingState()
        self.assertEqual(state.stable_label.label, NEUTRAL_LABEL)
        label, _ = select_label(state, 0, random.Random(1))
        self.assertNotEqual(label, NEUTRAL_LABEL)

    def test_seeded_selection_is_repeatable(self):
        """Same seed, same word."""
        a = pick_descriptor(95, random.Random(42))
        b = pick_descriptor(95, random.Random(42))
        self.assertEqual(a, b)

    def test_bank_slices(self):
        """Each bucket draws from its fixed slice of the full word bank."""
        self.assertEqual(len(DESCRIPTOR_BANK), 600)
        self.assertEqual([len(words) for _, words in DESCRIPTOR_BUCKETS], [50, 100, 100, 100, 100])
        self.assertEqual(bucket_for_score(95)[0], "Confident")
        self.assertEqual(bucket_for_score(80)[0], "Articulate")
        self.assertEqual(bucket_for_score(65)[0], "Patient")
        self.assertEqual(bucket_for_score(45)[0], "Consistent")
        self.assertEqual(bucket_for_score(10)[0], "Tired")
        self.assertEqual(bucket_for_score(-5), bucket_for_score(0))
        self.assertNotIn("Lifted", {w for _, words in DESCRIPTOR_BUCKETS for w in words})

    def test_exclude(self):
        """The excluded word is never picked from a multi-word bucket."""
        rng = random.Random(3)
        for _ in range(50):
            self.assertNotEqual(pick_descriptor(50, rng, exclude="Nervous"), "Nervous")


class TestFifoCapacity(unittest.TestCase):
    """Smoothing histories are bounded."""

    def test_capacities_hold(self):
        """Pushing far past capacity keeps the newest entries only."""
        state = SmoothingState()
        for i in range(20):
            smooth_metrics(state, [Metric.of("A", i)])
            smooth_score(state, i)
            smooth_box(state, FaceBox(i, i, 1, 1))
        self.assertEqual(len(state.metric_history), METRIC_HISTORY)
        self.assertEqual(len(state.score_history), SCORE_HISTORY)
        self.assertEqual(len(state.box_history), BOX_HISTORY)
        self.assertEqual(state.score_history[-1], 19)
        state.check_invariants()

    def test_corruption_detected(self):
        """An over-full history is a defect."""
        state = SmoothingState()
        state.metric_history = deque({"A": i} for i in range(METRIC_HISTORY + 1))
        with self.assertRaises(StateCorruptionError):
            state.check_invariants()

    def test_reset(self):
        """reset() empties every history and restores the neutral label."""
        state = SmoothingState()
        smooth_metrics(state, [Metric.of("A", 50)])
        select_label(state, 50, random.Random(0))
        state.reset()
        self.assertTrue(state.is_empty())
        self.assertEqual(state.stable_label.label, NEUTRAL_LABEL)


if __name__ == "__main__":
    unittest.main()
