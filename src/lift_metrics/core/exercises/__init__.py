"""
Exercise definitions for lift-metrics.

Each exercise is described by an ExerciseDefinition object used for
exercise lookup, muscle-group summaries and strength standards.
"""

from .base import ExerciseDefinition
from .registry import EXERCISE_REGISTRY, get_exercise, register_exercise

__all__ = [
    "ExerciseDefinition",
    "EXERCISE_REGISTRY",
    "get_exercise",
    "register_exercise",
]
