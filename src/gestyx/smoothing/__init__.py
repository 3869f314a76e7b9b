"""Temporal smoothing of metrics, scores, labels and face boxes."""
