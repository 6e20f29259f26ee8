"""
Data models for lift-metrics.

All core dataclasses representing logged workouts, personal records,
body-measurement entries, goals and the report structures derived from them.
Derived fields (totals, calories, milestone, achieved) are filled in by the
engine modules and are never authoritative on input.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date as Date
from datetime import datetime
from typing import Literal

from .config import GOAL_TYPES, GOAL_UNITS, RATING_MAX, RATING_MIN, RPE_MAX, RPE_MIN
from .errors import ValidationError

RecordType = Literal[
    "max_weight",
    "max_reps",
    "max_volume",
    "one_rep_max",
    "max_duration",
    "max_distance",
]
RECORD_TYPES: tuple[str, ...] = (
    "max_weight",
    "max_reps",
    "max_volume",
    "one_rep_max",
    "max_duration",
    "max_distance",
)

# Field on PersonalRecord that holds the ranked value of each record type
RECORD_VALUE_FIELDS: dict[str, str] = {
    "max_weight": "weight_kg",
    "max_reps": "reps",
    "max_volume": "volume",
    "one_rep_max": "one_rep_max",
    "max_duration": "duration_seconds",
    "max_distance": "distance_m",
}

Sex = Literal["male", "female"]

MEASUREMENT_FIELDS: tuple[str, ...] = (
    "chest",
    "waist",
    "hips",
    "biceps",
    "thighs",
    "neck",
    "forearms",
    "calves",
)


def _new_id() -> str:
    return uuid.uuid4().hex


def _check_non_negative(value: int | float | None, name: str) -> None:
    if value is not None and value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")


@dataclass
class ExerciseSet:
    """
    A single performed set.

    All measured fields are optional: a strength set has reps/weight, a plank
    has only a duration, a row has a distance. ``personal_record`` is set by
    the RecordTracker once the set produced a PR.
    """

    reps: int | None = None
    weight_kg: float | None = None
    duration_seconds: int | None = None
    distance_m: float | None = None
    rpe: float | None = None
    rest_seconds: int | None = None
    personal_record: bool = False
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        _check_non_negative(self.reps, "reps")
        _check_non_negative(self.weight_kg, "weight_kg")
        _check_non_negative(self.duration_seconds, "duration_seconds")
        _check_non_negative(self.distance_m, "distance_m")
        _check_non_negative(self.rest_seconds, "rest_seconds")
        if self.rpe is not None and not (RPE_MIN <= self.rpe <= RPE_MAX):
            raise ValidationError(f"rpe must be between 1 and 10, got {self.rpe}")


@dataclass
class ExerciseEntry:
    """
    One exercise performed within a workout, with its sets and sub-totals.

    The sub-totals are derived by metrics.exercise_totals().
    """

    exercise_id: str
    sets: list[ExerciseSet] = field(default_factory=list)
    total_sets: int = 0
    total_reps: int = 0
    total_weight: float = 0.0
    total_volume: float = 0.0
    avg_rpe: float | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if not self.exercise_id:
            raise ValidationError("exercise_id must be a non-empty string")


@dataclass
class PRSummary:
    """Compact description of a record fired while processing a workout log."""

    exercise_id: str
    record_type: str
    value: float
    previous_value: float | None = None


@dataclass
class WorkoutLog:
    """
    A completed workout session.

    ``total_*``, ``calories_burned`` and the personal-record fields are
    derived; recompute them with metrics.compute_workout_totals() after
    any edit to the sets.
    """

    user_id: str
    completed_at: datetime
    duration_minutes: int
    exercises: list[ExerciseEntry] = field(default_factory=list)
    log_id: str = field(default_factory=_new_id)
    body_weight_kg: float | None = None
    workout_rating: int | None = None
    notes: str | None = None
    total_sets: int = 0
    total_reps: int = 0
    total_weight: float = 0.0
    total_volume: float = 0.0
    calories_burned: int = 0
    is_personal_record: bool = False
    personal_records_achieved: list[PRSummary] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate workout log data."""
        if not self.user_id:
            raise ValidationError("user_id must be a non-empty string")
        if not isinstance(self.completed_at, datetime):
            raise ValidationError(f"completed_at must be a datetime, got {self.completed_at!r}")
        if self.duration_minutes <= 0:
            raise ValidationError("duration_minutes must be positive")
        if self.body_weight_kg is not None and self.body_weight_kg <= 0:
            raise ValidationError("body_weight_kg must be positive")
        if self.workout_rating is not None and not (
            RATING_MIN <= self.workout_rating <= RATING_MAX
        ):
            raise ValidationError(
                f"workout_rating must be between 1 and 5, got {self.workout_rating}"
            )
        _check_non_negative(self.calories_burned, "calories_burned")

    def iter_sets(self):
        """Yield (exercise_id, set) pairs in logged order."""
        for entry in self.exercises:
            for s in entry.sets:
                yield entry.exercise_id, s


@dataclass
class PreviousRecord:
    """The value and date of a superseded personal record."""

    value: float
    date: datetime


@dataclass
class PersonalRecord:
    """
    Best-known achievement for one (user, exercise, record type) triple.

    Only the field named by RECORD_VALUE_FIELDS[record_type] is ranked; the
    others describe the set the record came from.
    """

    user_id: str
    exercise_id: str
    record_type: str
    date_achieved: datetime
    record_id: str = field(default_factory=_new_id)
    weight_kg: float | None = None
    reps: int | None = None
    volume: float | None = None
    one_rep_max: float | None = None
    duration_seconds: int | None = None
    distance_m: float | None = None
    body_weight_kg: float | None = None
    workout_log_id: str | None = None
    previous_record: PreviousRecord | None = None
    improvement: float = 0.0
    wilks_score: float | None = None

    def __post_init__(self) -> None:
        """Validate record data."""
        if self.record_type not in RECORD_VALUE_FIELDS:
            raise ValidationError(f"Invalid record_type: {self.record_type}")
        for name in ("weight_kg", "reps", "volume", "one_rep_max", "duration_seconds", "distance_m"):
            _check_non_negative(getattr(self, name), name)

    @property
    def key(self) -> tuple[str, str, str]:
        """The uniqueness key of this record."""
        return (self.user_id, self.exercise_id, self.record_type)

    @property
    def value(self) -> float:
        """Ranked value for this record's type (0 when the field is unset)."""
        return getattr(self, RECORD_VALUE_FIELDS[self.record_type]) or 0


@dataclass
class BodyMeasurements:
    """Circumference measurements in cm; any of them may be missing."""

    chest: float | None = None
    waist: float | None = None
    hips: float | None = None
    biceps: float | None = None
    thighs: float | None = None
    neck: float | None = None
    forearms: float | None = None
    calves: float | None = None

    def __post_init__(self) -> None:
        for name in MEASUREMENT_FIELDS:
            _check_non_negative(getattr(self, name), name)


@dataclass
class Goal:
    """
    A user-defined numeric goal.

    ``baseline`` is the value when the goal was set; it is optional and only
    used to normalize progress. ``achieved`` is derived by goals.py.
    """

    goal_type: str
    target: float
    current: float
    unit: str
    baseline: float | None = None
    deadline: Date | None = None
    achieved: bool = False

    def __post_init__(self) -> None:
        """Validate goal data."""
        if self.goal_type not in GOAL_TYPES:
            raise ValidationError(f"Invalid goal type: {self.goal_type}")
        if self.unit not in GOAL_UNITS:
            raise ValidationError(f"Invalid goal unit: {self.unit}")


@dataclass
class ProgressEntry:
    """
    One body-measurement snapshot.

    ``milestone`` is computed against the chronologically previous entry of
    the same user (see progress.check_milestone).
    """

    user_id: str
    date: Date
    entry_id: str = field(default_factory=_new_id)
    weight_kg: float | None = None
    body_fat_percentage: float | None = None
    muscle_mass_kg: float | None = None
    measurements: BodyMeasurements = field(default_factory=BodyMeasurements)
    goals: list[Goal] = field(default_factory=list)
    milestone: bool = False
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate progress entry data."""
        if not self.user_id:
            raise ValidationError("user_id must be a non-empty string")
        if isinstance(self.date, datetime):
            self.date = self.date.date()
        if not isinstance(self.date, Date):
            raise ValidationError(f"date must be a date, got {self.date!r}")
        if self.weight_kg is not None and self.weight_kg <= 0:
            raise ValidationError("weight_kg must be positive")
        if self.body_fat_percentage is not None and not (0 <= self.body_fat_percentage <= 100):
            raise ValidationError(
                f"body_fat_percentage must be between 0 and 100, got {self.body_fat_percentage}"
            )
        _check_non_negative(self.muscle_mass_kg, "muscle_mass_kg")


# =============================================================================
# Derived report structures
# =============================================================================


@dataclass
class GoalProgress:
    """Progress of one goal (see goals.goal_progress)."""

    goal: Goal
    percent_complete: float | None  # None when target == 0 and current != 0
    remaining: float
    progress: float  # Normalized 0-100 in the goal's direction
    achieved: bool


@dataclass
class PeriodSummary:
    """Sums and means over the workout logs of a time window."""

    total_workouts: int = 0
    total_duration: int = 0
    total_sets: int = 0
    total_reps: int = 0
    total_volume: float = 0.0
    avg_duration: float = 0.0
    avg_workout_rating: float = 0.0
    total_calories: int = 0


@dataclass
class UserStats:
    """On-demand user statistics for a window."""

    user_id: str
    summary: PeriodSummary
    last_workout_at: datetime | None = None


@dataclass
class FrequencyBucket:
    """Workouts grouped by calendar day."""

    day: Date
    count: int
    total_duration: int
    avg_rating: float | None


@dataclass
class LeaderboardEntry:
    """One ranked row of an exercise leaderboard."""

    rank: int
    record: PersonalRecord

    @property
    def value(self) -> float:
        return self.record.value


@dataclass
class UserRank:
    """A user's position on a leaderboard, whether or not inside the top N."""

    rank: int
    record: PersonalRecord
    in_top: bool


@dataclass
class NextLevel:
    """The next strength tier and the ratio still needed to reach it."""

    level: str
    ratio: float
    needed: float


@dataclass
class StrengthStandard:
    """Strength-standard classification of a lift relative to body weight."""

    level: str
    ratio: float
    standards: dict[str, float]
    next_level: NextLevel | None = None


@dataclass
class CompositionPoint:
    """Body composition of one entry; fat/lean mass need weight and body fat."""

    date: Date
    weight_kg: float | None
    body_fat_percentage: float | None
    muscle_mass_kg: float | None
    fat_mass_kg: float | None = None
    lean_mass_kg: float | None = None


@dataclass
class MetricTrend:
    """First-to-last change of one progress metric."""

    metric: str
    first: float
    last: float
    change: float
    percentage_change: float | None  # None when the first value is 0
    direction: Literal["up", "down", "stable"]


@dataclass
class MonthlyProgress:
    """Progress entries grouped by calendar month."""

    year: int
    month: int
    entries: int
    milestones: int
    avg_weight_kg: float | None
    avg_body_fat: float | None


@dataclass
class WeightChange:
    """Weight change between the first and last weighed entries."""

    first_kg: float
    last_kg: float
    total: float
    percentage: float


@dataclass
class GroupCount:
    """Number of records in a group and the date of the latest one."""

    count: int
    latest: datetime


@dataclass
class RecordsSummary:
    """Overview of a user's live personal records."""

    total_records: int
    by_type: dict[str, GroupCount]
    by_muscle_group: dict[str, GroupCount]
    recent_count: int
    best_improvements: list[PersonalRecord]
