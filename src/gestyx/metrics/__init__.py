"""Per-frame posture metrics."""
