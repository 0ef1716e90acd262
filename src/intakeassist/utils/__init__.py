"""Utility helpers shared across intakeassist."""
