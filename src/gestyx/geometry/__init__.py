"""Geometry helpers and landmark containers."""
