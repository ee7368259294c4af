"""Utility helpers for sauce-reporter."""
