"""
Pure metric computation functions for logged workouts.

Per-set and per-workout totals (sets, reps, volume), average RPE,
workout intensity and the calorie estimate.  Every function recomputes from
the sets, so applying compute_workout_totals() twice yields identical output.
"""

import math
from typing import Iterable

from .config import (
    DEFAULT_INTENSITY,
    INTENSITY_RPE_CUTOFFS,
    REFERENCE_BODY_WEIGHT_KG,
    Intensity,
)
from .config_loader import calorie_baselines
from .models import ExerciseEntry, ExerciseSet, WorkoutLog


def set_volume(s: ExerciseSet) -> float:
    """
    Volume of one set: weight × reps.

    A set missing either factor contributes 0.

    Args:
        s: Logged set

    Returns:
        Volume in kg
    """
    if s.weight_kg is None or s.reps is None:
        return 0.0
    return s.weight_kg * s.reps


def total_reps(sets: Iterable[ExerciseSet]) -> int:
    """Sum of reps, treating missing reps as 0."""
    return sum(s.reps or 0 for s in sets)


def total_volume(sets: Iterable[ExerciseSet]) -> float:
    """Sum of weight × reps over the sets."""
    return sum(set_volume(s) for s in sets)


def average_rpe(sets: Iterable[ExerciseSet]) -> float | None:
    """
    Arithmetic mean RPE of the sets that have one.

    Returns:
        Mean RPE, or None if no set carries an RPE (never 0)
    """
    values = [s.rpe for s in sets if s.rpe is not None]
    if not values:
        return None
    return sum(values) / len(values)


def exercise_totals(entry: ExerciseEntry) -> ExerciseEntry:
    """
    Recompute the sub-totals of one exercise in place.

    Args:
        entry: Exercise entry with its sets

    Returns:
        The same entry, for chaining
    """
    entry.total_sets = len(entry.sets)
    entry.total_reps = total_reps(entry.sets)
    entry.total_weight = sum(s.weight_kg or 0.0 for s in entry.sets)
    entry.total_volume = total_volume(entry.sets)
    entry.avg_rpe = average_rpe(entry.sets)
    return entry


def intensity_from_rpe(avg_rpe: float | None) -> Intensity:
    """
    Map an average RPE onto a workout intensity.

    ≤4 low, ≤6 moderate, ≤8 high, >8 very_high; None → moderate.
    """
    if avg_rpe is None:
        return DEFAULT_INTENSITY
    for upper, label in INTENSITY_RPE_CUTOFFS:
        if avg_rpe <= upper:
            return label
    return "very_high"


def workout_intensity(log: WorkoutLog) -> Intensity:
    """
    Intensity of a whole workout from the per-exercise average RPEs.

    Exercises without any RPE are left out of the mean rather than counted
    as zero.

    Args:
        log: Workout log (sub-totals are recomputed from the sets)

    Returns:
        One of "low", "moderate", "high", "very_high"
    """
    per_exercise = [average_rpe(e.sets) for e in log.exercises]
    rated = [r for r in per_exercise if r is not None]
    if not rated:
        return intensity_from_rpe(None)
    return intensity_from_rpe(sum(rated) / len(rated))


def estimate_calories(log: WorkoutLog, body_weight_kg: float) -> int:
    """
    Estimate calories burned by a workout.

    calories = duration_min × baseline(intensity) × (BW / 70)

    Args:
        log: Workout log
        body_weight_kg: Body weight on the workout day

    Returns:
        Calories rounded half up to an integer (0 for non-positive BW)
    """
    if body_weight_kg is None or body_weight_kg <= 0:
        return 0
    baseline = calorie_baselines()[workout_intensity(log)]
    weight_factor = body_weight_kg / REFERENCE_BODY_WEIGHT_KG
    # Halves round up
    return math.floor(log.duration_minutes * baseline * weight_factor + 0.5)


def compute_workout_totals(log: WorkoutLog, body_weight_kg: float | None = None) -> WorkoutLog:
    """
    Recompute every derived field of a workout log in place.

    Calories are only (re)estimated when a body weight is known, either from
    the argument or from ``log.body_weight_kg``; otherwise the existing
    ``calories_burned`` is kept as supplied.

    Args:
        log: Workout log with its sets
        body_weight_kg: Optional body weight overriding the log's own

    Returns:
        The same log, for chaining
    """
    for entry in log.exercises:
        exercise_totals(entry)

    log.total_sets = sum(e.total_sets for e in log.exercises)
    log.total_reps = sum(e.total_reps for e in log.exercises)
    log.total_weight = sum(e.total_weight for e in log.exercises)
    log.total_volume = sum(e.total_volume for e in log.exercises)

    bw = body_weight_kg if body_weight_kg is not None else log.body_weight_kg
    if bw is not None and bw > 0:
        log.calories_burned = estimate_calories(log, bw)

    return log
