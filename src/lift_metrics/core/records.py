"""
Personal-record detection.

For every (user, exercise, record type) triple the tracker holds at most
one live record.  A candidate value from a logged set replaces it only when
it is strictly greater; ties never fire.

Record types are resolved through RECORD_KINDS.  Each RecordKind extracts
a candidate from a set, compares it with the held record and builds the
replacement:

  max_weight    weight            (set needs weight and reps)
  max_volume    weight × reps
  max_reps      reps              (a record held at a heavier load never blocks)
  one_rep_max   Epley 1RM
  max_duration  duration_seconds
  max_distance  distance_m

Writes go through Store.replace_record(), a compare-and-swap, under a
per-key lock.  A lost swap re-reads and retries just that comparison.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass

from .config import IMPROVEMENT_FROM_ZERO_PCT, MAX_CONFLICT_RETRIES
from .errors import ConflictError, MissingDependencyError
from .exercises import ExerciseDefinition, get_exercise
from .logging import get_logger
from .metrics import set_volume
from .models import (
    RECORD_VALUE_FIELDS,
    ExerciseSet,
    PersonalRecord,
    PreviousRecord,
    PRSummary,
    WorkoutLog,
)
from .strength import epley_1rm, wilks_score

logger = get_logger(__name__)

RecordKey = tuple[str, str, str]


def _has_load(s: ExerciseSet) -> bool:
    return bool(s.weight_kg) and bool(s.reps)


def _weight_candidate(s: ExerciseSet) -> float | None:
    return s.weight_kg if _has_load(s) else None


def _reps_candidate(s: ExerciseSet) -> float | None:
    return s.reps if _has_load(s) else None


def _volume_candidate(s: ExerciseSet) -> float | None:
    return set_volume(s) if _has_load(s) else None


def _one_rep_max_candidate(s: ExerciseSet) -> float | None:
    return epley_1rm(s.weight_kg, s.reps) if _has_load(s) else None


def _duration_candidate(s: ExerciseSet) -> float | None:
    return s.duration_seconds or None


def _distance_candidate(s: ExerciseSet) -> float | None:
    return s.distance_m or None


def _beats(existing: PersonalRecord, held: float, s: ExerciseSet, value: float) -> bool:
    return value > held


def _beats_at_load(existing: PersonalRecord, held: float, s: ExerciseSet, value: float) -> bool:
    # Nothing at or below this set's weight is held, so the pool is empty
    if existing.weight_kg is not None and s.weight_kg is not None and existing.weight_kg > s.weight_kg:
        return True
    return value > held


@dataclass(frozen=True)
class RecordKind:
    """
    One record type: how a set yields a candidate value, how that value is
    compared with the held record, and how the replacement record is built.
    """

    record_type: str
    candidate: Callable[[ExerciseSet], float | None]
    compare: Callable[[PersonalRecord, float, ExerciseSet, float], bool]

    @property
    def value_field(self) -> str:
        return RECORD_VALUE_FIELDS[self.record_type]

    def value(self, record: PersonalRecord) -> float:
        """The ranked value of a record of this type."""
        return getattr(record, self.value_field) or 0

    def admits(self, existing: PersonalRecord | None, s: ExerciseSet, value: float) -> bool:
        """Whether a candidate value from set ``s`` replaces the held record."""
        if existing is None:
            return True
        return self.compare(existing, self.value(existing), s, value)

    def build(
        self,
        log: WorkoutLog,
        exercise_id: str,
        s: ExerciseSet,
        value: float,
        existing: PersonalRecord | None,
        sex: str | None = None,
    ) -> PersonalRecord:
        return build_record(log, exercise_id, s, self.record_type, value, existing, sex)


RECORD_KINDS: dict[str, RecordKind] = {
    kind.record_type: kind
    for kind in (
        RecordKind("max_weight", _weight_candidate, _beats),
        RecordKind("max_reps", _reps_candidate, _beats_at_load),
        RecordKind("max_volume", _volume_candidate, _beats),
        RecordKind("one_rep_max", _one_rep_max_candidate, _beats),
        RecordKind("max_duration", _duration_candidate, _beats),
        RecordKind("max_distance", _distance_candidate, _beats),
    )
}


def improvement_pct(new_value: float, previous_value: float | None) -> float:
    """
    Percentage improvement of a new record over the one it supersedes.

    Args:
        new_value: Value of the new record
        previous_value: Value of the superseded record, or None for a first record

    Returns:
        round((new - prev) / prev × 100, 1); 100.0 when prev is 0, 0.0 when
        there was no previous record
    """
    if previous_value is None:
        return 0.0
    if previous_value == 0:
        return IMPROVEMENT_FROM_ZERO_PCT
    return round((new_value - previous_value) / previous_value * 100, 1)


def build_record(
    log: WorkoutLog,
    exercise_id: str,
    s: ExerciseSet,
    record_type: str,
    value: float,
    existing: PersonalRecord | None,
    sex: str | None = None,
) -> PersonalRecord:
    """
    Build the record a qualifying set would install.

    The record keeps every measured field of the set; wilks_score is filled
    in when sex, lift weight and body weight are all known.
    """
    has_load = _has_load(s)
    one_rep_max = epley_1rm(s.weight_kg, s.reps) if has_load else None
    lift = one_rep_max if record_type == "one_rep_max" else s.weight_kg

    previous = None
    previous_value = None
    if existing is not None:
        previous_value = existing.value
        previous = PreviousRecord(value=previous_value, date=existing.date_achieved)

    return PersonalRecord(
        user_id=log.user_id,
        exercise_id=exercise_id,
        record_type=record_type,
        date_achieved=log.completed_at,
        weight_kg=s.weight_kg,
        reps=s.reps,
        volume=set_volume(s) if has_load else None,
        one_rep_max=one_rep_max,
        duration_seconds=s.duration_seconds,
        distance_m=s.distance_m,
        body_weight_kg=log.body_weight_kg,
        workout_log_id=log.log_id,
        previous_record=previous,
        improvement=improvement_pct(value, previous_value),
        wilks_score=wilks_score(lift, log.body_weight_kg, sex) if sex else None,
    )


class RecordTracker:
    """
    Detect and persist personal records for workout logs.

    Args:
        store: Store collaborator (get_best_record / replace_record)
        exercise_lookup: Resolves an exercise_id, raising MissingDependencyError
    """

    def __init__(
        self,
        store,
        exercise_lookup: Callable[[str], ExerciseDefinition] = get_exercise,
    ):
        self.store = store
        self.exercise_lookup = exercise_lookup
        self._locks: dict[RecordKey, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: RecordKey) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def evaluate(
        self,
        log: WorkoutLog,
        exercise_id: str,
        s: ExerciseSet,
        kind: RecordKind,
        value: float,
        sex: str | None = None,
    ) -> tuple[PersonalRecord, PersonalRecord | None] | None:
        """
        Run one read-compare-replace for a single set and record type.

        Returns:
            (new record, superseded record) when the set fired, else None
        """
        key = (log.user_id, exercise_id, kind.record_type)
        with self._lock_for(key):
            for attempt in range(MAX_CONFLICT_RETRIES + 1):
                existing = self.store.get_best_record(*key)
                if not kind.admits(existing, s, value):
                    return None
                new = kind.build(log, exercise_id, s, value, existing, sex)
                try:
                    return self.store.replace_record(existing, new), existing
                except ConflictError:
                    logger.info(
                        "pr_conflict_retry",
                        user_id=log.user_id,
                        exercise_id=exercise_id,
                        record_type=kind.record_type,
                        attempt=attempt + 1,
                    )
        logger.warning(
            "pr_conflict_dropped",
            user_id=log.user_id,
            exercise_id=exercise_id,
            record_type=kind.record_type,
            retries=MAX_CONFLICT_RETRIES,
        )
        return None

    def process_log(self, log: WorkoutLog, sex: str | None = None) -> list[PersonalRecord]:
        """
        Detect every personal record achieved in a workout log.

        Sets already marked ``personal_record`` are skipped.  A set that fires
        any record type is marked, and the log's is_personal_record and
        personal_records_achieved fields are updated.

        Args:
            log: Workout log to process
            sex: "male"/"female" to compute Wilks scores, or None to skip them

        Returns:
            Records installed while processing this log, in set order
        """
        fired: list[PersonalRecord] = []
        for entry in log.exercises:
            try:
                self.exercise_lookup(entry.exercise_id)
            except MissingDependencyError as exc:
                logger.warning(
                    "pr_skipped_missing_exercise",
                    exercise_id=entry.exercise_id,
                    log_id=log.log_id,
                    error=str(exc),
                )
                continue

            for s in entry.sets:
                if s.personal_record:
                    continue
                set_fired = False
                for kind in RECORD_KINDS.values():
                    value = kind.candidate(s)
                    if value is None:
                        continue
                    result = self.evaluate(log, entry.exercise_id, s, kind, value, sex)
                    if result is None:
                        continue
                    record, superseded = result
                    set_fired = True
                    fired.append(record)
                    log.personal_records_achieved.append(
                        PRSummary(
                            exercise_id=entry.exercise_id,
                            record_type=kind.record_type,
                            value=record.value,
                            previous_value=superseded.value if superseded else None,
                        )
                    )
                    logger.info(
                        "personal_record",
                        user_id=log.user_id,
                        exercise_id=entry.exercise_id,
                        record_type=kind.record_type,
                        value=record.value,
                        improvement=record.improvement,
                    )
                if set_fired:
                    s.personal_record = True

        log.is_personal_record = bool(log.personal_records_achieved)
        return fired
