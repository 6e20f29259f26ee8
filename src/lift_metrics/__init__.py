"""Workout metrics, personal records and body-measurement progress."""

__version__ = "0.1.0"
