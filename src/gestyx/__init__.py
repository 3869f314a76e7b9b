"""Gestyx: rule-based landmark-to-behavior inference pipeline."""

__version__ = "0.10"
