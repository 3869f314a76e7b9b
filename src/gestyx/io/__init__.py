"""Landmark providers for offline replay."""
