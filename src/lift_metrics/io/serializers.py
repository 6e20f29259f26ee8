"""
JSON serialization for workout, record and progress models.

Handles conversion between dataclasses and JSON-compatible dicts, plus the
compact command-line formats for sets and goals.  Numeric input is
validated here before it reaches the engine; out-of-range values are
rejected, never clamped.
"""

import json
import re
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from typing import Any

from ..core.config import RPE_MAX, RPE_MIN
from ..core.errors import ValidationError
from ..core.metrics import compute_workout_totals
from ..core.models import (
    BodyMeasurements,
    ExerciseEntry,
    ExerciseSet,
    Goal,
    MEASUREMENT_FIELDS,
    PersonalRecord,
    PRSummary,
    PreviousRecord,
    ProgressEntry,
    WorkoutLog,
)

__all__ = [
    "ValidationError",
    "dict_to_personal_record",
    "dict_to_progress_entry",
    "dict_to_workout_log",
    "parse_exercise_arg",
    "parse_goal_string",
    "parse_sets_string",
    "personal_record_to_dict",
    "progress_entry_to_dict",
    "report_to_dict",
    "to_json_line",
    "workout_log_to_dict",
]


# =============================================================================
# Validation helpers
# =============================================================================


def validate_non_negative(value: int | float | None, name: str) -> int | float | None:
    """
    Validate that an optional value is non-negative.

    Args:
        value: Value to validate (None passes)
        name: Name for error message

    Returns:
        The value if valid

    Raises:
        ValidationError: If value is negative
    """
    if value is not None and value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_positive(value: int | float, name: str) -> int | float:
    """
    Validate that a value is positive.

    Raises:
        ValidationError: If value is not positive
    """
    if value is None or value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


def validate_rpe(value: float | None) -> float | None:
    """Validate an optional RPE in [1, 10]."""
    if value is not None and not (RPE_MIN <= value <= RPE_MAX):
        raise ValidationError(f"rpe must be between 1 and 10, got {value}")
    return value


def parse_datetime(value: str | datetime) -> datetime:
    """
    Parse an ISO timestamp (a bare YYYY-MM-DD means midnight).

    Raises:
        ValidationError: If the string is not ISO formatted
    """
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value}. Expected ISO format") from e


def parse_date(value: str | date) -> date:
    """
    Parse an ISO date string YYYY-MM-DD.

    Raises:
        ValidationError: If the string is not a valid date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", str(value)):
        raise ValidationError(f"Invalid date format: {value}. Expected YYYY-MM-DD")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value}") from e


def _opt_int(value: Any) -> int | None:
    return int(value) if value is not None else None


def _opt_float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _drop_none(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


# =============================================================================
# Workout logs
# =============================================================================


def exercise_set_to_dict(s: ExerciseSet) -> dict[str, Any]:
    """Compact serializer for a set: unset optional fields are omitted."""
    d = _drop_none(
        {
            "reps": s.reps,
            "weight_kg": s.weight_kg,
            "duration_seconds": s.duration_seconds,
            "distance_m": s.distance_m,
            "rpe": s.rpe,
            "rest_seconds": s.rest_seconds,
            "notes": s.notes,
        }
    )
    if s.personal_record:
        d["personal_record"] = True
    return d


def dict_to_exercise_set(data: dict[str, Any]) -> ExerciseSet:
    """
    Convert dict to ExerciseSet.

    Raises:
        ValidationError: If data is invalid
    """
    for name in ("reps", "weight_kg", "duration_seconds", "distance_m", "rest_seconds"):
        validate_non_negative(data.get(name), name)
    validate_rpe(data.get("rpe"))

    return ExerciseSet(
        reps=_opt_int(data.get("reps")),
        weight_kg=_opt_float(data.get("weight_kg")),
        duration_seconds=_opt_int(data.get("duration_seconds")),
        distance_m=_opt_float(data.get("distance_m")),
        rpe=_opt_float(data.get("rpe")),
        rest_seconds=_opt_int(data.get("rest_seconds")),
        personal_record=bool(data.get("personal_record", False)),
        notes=data.get("notes"),
    )


def workout_log_to_dict(log: WorkoutLog) -> dict[str, Any]:
    """
    Convert WorkoutLog to JSON-compatible dict.

    Derived totals are included for readers of the file but are ignored on
    load; they are recomputed from the sets.
    """
    d: dict[str, Any] = {
        "log_id": log.log_id,
        "user_id": log.user_id,
        "completed_at": log.completed_at.isoformat(),
        "duration_minutes": log.duration_minutes,
        "exercises": [
            _drop_none(
                {
                    "exercise_id": e.exercise_id,
                    "sets": [exercise_set_to_dict(s) for s in e.sets],
                    "notes": e.notes,
                }
            )
            for e in log.exercises
        ],
        "total_sets": log.total_sets,
        "total_reps": log.total_reps,
        "total_volume": log.total_volume,
        "calories_burned": log.calories_burned,
    }
    d.update(
        _drop_none(
            {
                "body_weight_kg": log.body_weight_kg,
                "workout_rating": log.workout_rating,
                "notes": log.notes,
            }
        )
    )
    if log.is_personal_record:
        d["is_personal_record"] = True
        d["personal_records_achieved"] = [
            {
                "exercise_id": pr.exercise_id,
                "record_type": pr.record_type,
                "value": pr.value,
                "previous_value": pr.previous_value,
            }
            for pr in log.personal_records_achieved
        ]
    return d


def dict_to_workout_log(data: dict[str, Any]) -> WorkoutLog:
    """
    Convert dict to WorkoutLog.

    Raises:
        ValidationError: If data is invalid
    """
    if "user_id" not in data:
        raise ValidationError("Workout log is missing user_id")
    validate_positive(data.get("duration_minutes", 0), "duration_minutes")

    exercises = [
        ExerciseEntry(
            exercise_id=str(e["exercise_id"]),
            sets=[dict_to_exercise_set(s) for s in e.get("sets", [])],
            notes=e.get("notes"),
        )
        for e in data.get("exercises", [])
    ]
    achieved = [
        PRSummary(
            exercise_id=p["exercise_id"],
            record_type=p["record_type"],
            value=float(p["value"]),
            previous_value=_opt_float(p.get("previous_value")),
        )
        for p in data.get("personal_records_achieved", [])
    ]

    kwargs: dict[str, Any] = {}
    if data.get("log_id"):
        kwargs["log_id"] = str(data["log_id"])

    log = WorkoutLog(
        user_id=str(data["user_id"]),
        completed_at=parse_datetime(data["completed_at"]),
        duration_minutes=int(data["duration_minutes"]),
        exercises=exercises,
        body_weight_kg=_opt_float(data.get("body_weight_kg")),
        workout_rating=_opt_int(data.get("workout_rating")),
        notes=data.get("notes"),
        calories_burned=int(data.get("calories_burned", 0)),
        is_personal_record=bool(data.get("is_personal_record", False)),
        personal_records_achieved=achieved,
        **kwargs,
    )
    return compute_workout_totals(log)


# =============================================================================
# Personal records
# =============================================================================


def personal_record_to_dict(record: PersonalRecord) -> dict[str, Any]:
    """Convert PersonalRecord to JSON-compatible dict."""
    d = _drop_none(
        {
            "record_id": record.record_id,
            "user_id": record.user_id,
            "exercise_id": record.exercise_id,
            "record_type": record.record_type,
            "date_achieved": record.date_achieved.isoformat(),
            "weight_kg": record.weight_kg,
            "reps": record.reps,
            "volume": record.volume,
            "one_rep_max": record.one_rep_max,
            "duration_seconds": record.duration_seconds,
            "distance_m": record.distance_m,
            "body_weight_kg": record.body_weight_kg,
            "workout_log_id": record.workout_log_id,
            "wilks_score": record.wilks_score,
        }
    )
    d["improvement"] = record.improvement
    if record.previous_record is not None:
        d["previous_record"] = {
            "value": record.previous_record.value,
            "date": record.previous_record.date.isoformat(),
        }
    return d


def dict_to_personal_record(data: dict[str, Any]) -> PersonalRecord:
    """
    Convert dict to PersonalRecord.

    Raises:
        ValidationError: If data is invalid
    """
    previous = data.get("previous_record")
    kwargs: dict[str, Any] = {}
    if data.get("record_id"):
        kwargs["record_id"] = str(data["record_id"])

    return PersonalRecord(
        user_id=str(data["user_id"]),
        exercise_id=str(data["exercise_id"]),
        record_type=str(data["record_type"]),
        date_achieved=parse_datetime(data["date_achieved"]),
        weight_kg=_opt_float(data.get("weight_kg")),
        reps=_opt_int(data.get("reps")),
        volume=_opt_float(data.get("volume")),
        one_rep_max=_opt_float(data.get("one_rep_max")),
        duration_seconds=_opt_int(data.get("duration_seconds")),
        distance_m=_opt_float(data.get("distance_m")),
        body_weight_kg=_opt_float(data.get("body_weight_kg")),
        workout_log_id=data.get("workout_log_id"),
        previous_record=(
            PreviousRecord(value=float(previous["value"]), date=parse_datetime(previous["date"]))
            if previous
            else None
        ),
        improvement=float(data.get("improvement", 0.0)),
        wilks_score=_opt_float(data.get("wilks_score")),
        **kwargs,
    )


# =============================================================================
# Progress entries and goals
# =============================================================================


def goal_to_dict(goal: Goal) -> dict[str, Any]:
    """Convert Goal to JSON-compatible dict."""
    return _drop_none(
        {
            "goal_type": goal.goal_type,
            "target": goal.target,
            "current": goal.current,
            "unit": goal.unit,
            "baseline": goal.baseline,
            "deadline": goal.deadline.isoformat() if goal.deadline else None,
            "achieved": goal.achieved,
        }
    )


def dict_to_goal(data: dict[str, Any]) -> Goal:
    """Convert dict to Goal."""
    return Goal(
        goal_type=str(data["goal_type"]),
        target=float(data["target"]),
        current=float(data["current"]),
        unit=str(data["unit"]),
        baseline=_opt_float(data.get("baseline")),
        deadline=parse_date(data["deadline"]) if data.get("deadline") else None,
        achieved=bool(data.get("achieved", False)),
    )


def progress_entry_to_dict(entry: ProgressEntry) -> dict[str, Any]:
    """Convert ProgressEntry to JSON-compatible dict."""
    measurements = _drop_none({m: getattr(entry.measurements, m) for m in MEASUREMENT_FIELDS})
    d: dict[str, Any] = {
        "entry_id": entry.entry_id,
        "user_id": entry.user_id,
        "date": entry.date.isoformat(),
        "milestone": entry.milestone,
    }
    d.update(
        _drop_none(
            {
                "weight_kg": entry.weight_kg,
                "body_fat_percentage": entry.body_fat_percentage,
                "muscle_mass_kg": entry.muscle_mass_kg,
                "notes": entry.notes,
            }
        )
    )
    if measurements:
        d["measurements"] = measurements
    if entry.goals:
        d["goals"] = [goal_to_dict(g) for g in entry.goals]
    return d


def dict_to_progress_entry(data: dict[str, Any]) -> ProgressEntry:
    """
    Convert dict to ProgressEntry.

    Raises:
        ValidationError: If data is invalid
    """
    raw_measurements = data.get("measurements") or {}
    unknown = set(raw_measurements) - set(MEASUREMENT_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown body measurements: {sorted(unknown)}")

    kwargs: dict[str, Any] = {}
    if data.get("entry_id"):
        kwargs["entry_id"] = str(data["entry_id"])

    return ProgressEntry(
        user_id=str(data["user_id"]),
        date=parse_date(data["date"]),
        weight_kg=_opt_float(data.get("weight_kg")),
        body_fat_percentage=_opt_float(data.get("body_fat_percentage")),
        muscle_mass_kg=_opt_float(data.get("muscle_mass_kg")),
        measurements=BodyMeasurements(
            **{k: _opt_float(v) for k, v in raw_measurements.items()}
        ),
        goals=[dict_to_goal(g) for g in data.get("goals", [])],
        milestone=bool(data.get("milestone", False)),
        notes=data.get("notes"),
        **kwargs,
    )


def to_json_line(data: dict[str, Any]) -> str:
    """
    Serialize a dict to a single JSON line.

    Returns:
        JSON string (single line, no trailing newline)
    """
    return json.dumps(data, separators=(",", ":"))


def report_to_dict(obj: Any) -> Any:
    """
    Convert a report dataclass (or a list/dict of them) to JSON-compatible data.

    Dates and datetimes become ISO strings.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: report_to_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): report_to_dict(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [report_to_dict(v) for v in obj]
    return obj


# =============================================================================
# Compact command-line formats
# =============================================================================

_STRENGTH_SET = re.compile(
    r"^(\d+)"                       # reps
    r"(?:\s*[xX×]\s*(\d+))?"        # optional number of sets
    r"(?:\s*@\s*(\d+(?:\.\d+)?))?"  # optional weight in kg
    r"(?:\s*:\s*(\d+(?:\.\d+)?))?$"  # optional RPE
)
_DURATION_SET = re.compile(r"^(\d+)\s*s(?:\s*:\s*(\d+(?:\.\d+)?))?$")
_DISTANCE_SET = re.compile(r"^(\d+(?:\.\d+)?)\s*m(?:\s*:\s*(\d+(?:\.\d+)?))?$")


def parse_sets_string(sets_str: str) -> list[ExerciseSet]:
    """
    Parse a comma-separated sets string.

    Per-set formats:
        reps@kg:rpe     e.g. "5@100:8"   5 reps at 100 kg, RPE 8
        reps@kg         e.g. "5@100"
        repsxN@kg       e.g. "5x3@100"   3 identical sets of 5 reps
        reps            e.g. "12"         body-weight reps, no load
        Ns              e.g. "60s"        timed set (duration in seconds)
        Nm              e.g. "500m"       distance set (meters)

    An RPE suffix ":rpe" is accepted on every format.

    Args:
        sets_str: Sets string to parse

    Returns:
        List of ExerciseSet

    Raises:
        ValidationError: If format is invalid or a value is out of range
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    sets: list[ExerciseSet] = []
    parts = [p.strip() for p in sets_str.split(",") if p.strip()]

    for part in parts:
        m_strength = _STRENGTH_SET.match(part)
        m_duration = _DURATION_SET.match(part)
        m_distance = _DISTANCE_SET.match(part)

        if m_strength:
            reps = int(m_strength.group(1))
            n_sets = int(m_strength.group(2)) if m_strength.group(2) else 1
            weight = _opt_float(m_strength.group(3))
            rpe = validate_rpe(_opt_float(m_strength.group(4)))
            if n_sets < 1:
                raise ValidationError(f"Set count must be at least 1: '{part}'")
            for _ in range(n_sets):
                sets.append(ExerciseSet(reps=reps, weight_kg=weight, rpe=rpe))
        elif m_duration:
            rpe = validate_rpe(_opt_float(m_duration.group(2)))
            sets.append(ExerciseSet(duration_seconds=int(m_duration.group(1)), rpe=rpe))
        elif m_distance:
            rpe = validate_rpe(_opt_float(m_distance.group(2)))
            sets.append(ExerciseSet(distance_m=float(m_distance.group(1)), rpe=rpe))
        else:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                f"Use: reps@kg:rpe (e.g. 5@100:8), repsxN@kg (e.g. 5x3@100),\n"
                f"     reps (e.g. 12), seconds (e.g. 60s) or meters (e.g. 500m)."
            )

    if not sets:
        raise ValidationError("No valid sets found in sets string")

    return sets


def parse_exercise_arg(arg: str) -> ExerciseEntry:
    """
    Parse "exercise_id=SETS" into an ExerciseEntry.

    Example: "bench_press=5@100:8,5@100:9"
    """
    exercise_id, sep, sets_str = arg.partition("=")
    if not sep or not exercise_id.strip():
        raise ValidationError(
            f"Invalid exercise argument: '{arg}'. Expected exercise_id=SETS, "
            f"e.g. bench_press=5@100,5@100"
        )
    return ExerciseEntry(exercise_id=exercise_id.strip(), sets=parse_sets_string(sets_str))


def parse_goal_string(goal_str: str) -> Goal:
    """
    Parse "type:target:current:unit[:baseline]" into a Goal.

    Example: "weight_loss:75:82:kg:85"
    """
    parts = [p.strip() for p in goal_str.split(":")]
    if len(parts) not in (4, 5):
        raise ValidationError(
            f"Invalid goal: '{goal_str}'. Expected type:target:current:unit[:baseline]"
        )
    try:
        target = float(parts[1])
        current = float(parts[2])
        baseline = float(parts[4]) if len(parts) == 5 else None
    except ValueError as e:
        raise ValidationError(f"Invalid goal numbers in '{goal_str}'") from e
    return Goal(goal_type=parts[0], target=target, current=current, unit=parts[3], baseline=baseline)
