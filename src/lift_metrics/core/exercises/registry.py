"""
Exercise registry.

All known exercises are registered here.  Use get_exercise() to look up an
ExerciseDefinition by its exercise_id string.

Exercises are loaded from per-exercise YAML files in the bundled
``src/lift_metrics/exercises/`` directory at import time.  If YAML loading
fails for any reason (parse error, missing field), a RuntimeError is
raised; the engine cannot resolve exercises without valid definitions.

User overrides: place matching files in ``~/.lift-metrics/exercises/``.
"""

from ..errors import MissingDependencyError
from .base import ExerciseDefinition


def _build_registry() -> dict[str, ExerciseDefinition]:
    from .loader import load_exercises_from_yaml

    loaded = load_exercises_from_yaml()
    if not loaded:
        raise RuntimeError(
            "lift-metrics: no exercise definitions could be loaded from YAML. "
            "Check that src/lift_metrics/exercises/*.yaml files are present and valid."
        )
    return loaded


EXERCISE_REGISTRY: dict[str, ExerciseDefinition] = _build_registry()


def get_exercise(exercise_id: str) -> ExerciseDefinition:
    """
    Return the ExerciseDefinition for the given exercise_id.

    Args:
        exercise_id: Any exercise in the registry (e.g. "bench_press")

    Returns:
        ExerciseDefinition for the requested exercise

    Raises:
        MissingDependencyError: If exercise_id is not in the registry
    """
    if exercise_id not in EXERCISE_REGISTRY:
        valid = ", ".join(sorted(EXERCISE_REGISTRY))
        raise MissingDependencyError(f"Unknown exercise '{exercise_id}'. Valid IDs: {valid}")
    return EXERCISE_REGISTRY[exercise_id]


def register_exercise(exercise: ExerciseDefinition) -> None:
    """Add or replace an exercise definition at runtime."""
    EXERCISE_REGISTRY[exercise.exercise_id] = exercise
