"""Gesture and movement classifiers."""
