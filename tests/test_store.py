"""
Tests for storage: the in-memory store and the JSON data directory.
"""

import json
from datetime import date, datetime

import pytest

from lift_metrics.core.errors import ConflictError, ValidationError
from lift_metrics.core.models import (
    BodyMeasurements,
    ExerciseEntry,
    ExerciseSet,
    Goal,
    PersonalRecord,
    PreviousRecord,
    ProgressEntry,
    WorkoutLog,
)
from lift_metrics.core.records import RecordTracker
from lift_metrics.io.store import InMemoryStore, JsonStore, sort_records


def _record(user: str, weight: float, day: int, improvement: float = 0.0,
            exercise_id: str = "bench_press") -> PersonalRecord:
    return PersonalRecord(
        user_id=user,
        exercise_id=exercise_id,
        record_type="max_weight",
        date_achieved=datetime(2026, 3, day, 18, 0),
        weight_kg=weight,
        reps=3,
        improvement=improvement,
    )


def _log(when: datetime, exercise_id: str = "bench_press") -> WorkoutLog:
    return WorkoutLog(
        user_id="u1",
        completed_at=when,
        duration_minutes=50,
        exercises=[ExerciseEntry(exercise_id=exercise_id, sets=[ExerciseSet(reps=5, weight_kg=100, rpe=8)])],
        workout_rating=4,
    )


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


class TestReplaceRecord:

    def test_insert_then_replace(self):
        store = InMemoryStore()
        first = store.replace_record(None, _record("u1", 90, 1))
        second = store.replace_record(first, _record("u1", 100, 2))
        assert store.get_best_record("u1", "bench_press", "max_weight") is second

    def test_insert_over_existing_conflicts(self):
        store = InMemoryStore()
        store.replace_record(None, _record("u1", 90, 1))
        with pytest.raises(ConflictError) as exc:
            store.replace_record(None, _record("u1", 100, 2))
        assert exc.value.key == ("u1", "bench_press", "max_weight")

    def test_keys_are_independent(self):
        store = InMemoryStore()
        store.replace_record(None, _record("u1", 90, 1))
        store.replace_record(None, _record("u2", 95, 1))
        store.replace_record(None, _record("u1", 140, 1, exercise_id="squat"))
        assert len(store.list_records()) == 3


class TestListRecords:

    def _store(self) -> InMemoryStore:
        store = InMemoryStore()
        store.replace_record(None, _record("a", 100, 5, improvement=2.0))
        store.replace_record(None, _record("b", 120, 2, improvement=8.0))
        store.replace_record(None, _record("c", 110, 9, improvement=5.0))
        return store

    def test_default_sort_newest_first(self):
        assert [r.user_id for r in self._store().list_records()] == ["c", "a", "b"]

    def test_sort_by_value_with_limit(self):
        records = self._store().list_records(sort="-value", limit=2)
        assert [r.weight_kg for r in records] == [120, 110]

    def test_sort_ascending_by_improvement(self):
        records = self._store().list_records(sort="improvement")
        assert [r.improvement for r in records] == [2.0, 5.0, 8.0]

    def test_since_filter(self):
        records = self._store().list_records(since=datetime(2026, 3, 5))
        assert {r.user_id for r in records} == {"a", "c"}

    def test_invalid_sort_rejected(self):
        with pytest.raises(ValidationError):
            sort_records([], "-reps")


class TestListWorkoutLogs:

    def test_window_and_exercise_filters(self):
        store = InMemoryStore()
        store.save_workout_log(_log(datetime(2026, 3, 10, 18)))
        store.save_workout_log(_log(datetime(2026, 3, 1, 7), exercise_id="squat"))
        store.save_workout_log(_log(datetime(2026, 3, 20, 18)))

        in_range = store.list_workout_logs(user_id="u1", start=date(2026, 3, 1), end=date(2026, 3, 10))
        assert [log.completed_at.day for log in in_range] == [1, 10]

        bench = store.list_workout_logs(exercise_id="bench_press")
        assert [log.completed_at.day for log in bench] == [10, 20]


class TestListProgressEntries:

    def test_before_is_strict(self):
        store = InMemoryStore()
        for day in (1, 8, 15):
            store.save_progress_entry(ProgressEntry(user_id="u1", date=date(2026, 3, day), weight_kg=80))
        earlier = store.list_progress_entries(user_id="u1", before=date(2026, 3, 15))
        assert [e.date.day for e in earlier] == [1, 8]


class TestJsonStore:

    def test_fresh_directory(self, data_dir):
        store = JsonStore(data_dir)
        assert not store.exists()
        store.init()
        assert store.exists()
        assert json.loads((data_dir / "records.json").read_text()) == []

    def test_round_trip_through_disk(self, data_dir):
        store = JsonStore(data_dir)
        store.init()
        log = _log(datetime(2026, 3, 10, 18))
        store.save_workout_log(log)
        old = store.replace_record(None, _record("u1", 90, 1))
        new = _record("u1", 100, 10, improvement=11.1)
        new.previous_record = PreviousRecord(value=90, date=old.date_achieved)
        store.replace_record(old, new)
        store.save_progress_entry(ProgressEntry(
            user_id="u1",
            date=date(2026, 3, 10),
            weight_kg=81.5,
            measurements=BodyMeasurements(waist=84),
            goals=[Goal(goal_type="weight_loss", target=78, current=81.5, unit="kg", baseline=85)],
            milestone=True,
        ))

        reloaded = JsonStore(data_dir)

        logs = reloaded.list_workout_logs(user_id="u1")
        assert [l.log_id for l in logs] == [log.log_id]
        assert logs[0].total_volume == pytest.approx(500.0)

        record = reloaded.get_best_record("u1", "bench_press", "max_weight")
        assert record.record_id == new.record_id
        assert record.previous_record.value == 90
        assert record.improvement == pytest.approx(11.1)

        entry = reloaded.list_progress_entries(user_id="u1")[0]
        assert entry.measurements.waist == 84
        assert entry.goals[0].baseline == 85
        assert entry.milestone is True

    def test_reloaded_store_still_compares_and_swaps(self, data_dir):
        store = JsonStore(data_dir)
        store.init()
        stale = store.replace_record(None, _record("u1", 90, 1))
        store.replace_record(stale, _record("u1", 95, 2))

        reloaded = JsonStore(data_dir)
        with pytest.raises(ConflictError):
            reloaded.replace_record(stale, _record("u1", 97, 3))

    def test_two_stores_on_one_directory_keep_both_logs(self, data_dir):
        first = JsonStore(data_dir)
        first.init()
        second = JsonStore(data_dir)

        first.save_workout_log(_log(datetime(2026, 3, 10, 18)))
        second.save_workout_log(_log(datetime(2026, 3, 11, 18)))

        assert len(JsonStore(data_dir).list_workout_logs(user_id="u1")) == 2

    def test_stale_store_swap_conflicts_against_disk(self, data_dir):
        first = JsonStore(data_dir)
        first.init()
        second = JsonStore(data_dir)

        first.replace_record(None, _record("u1", 90, 1))

        with pytest.raises(ConflictError):
            second.replace_record(None, _record("u1", 95, 2))
        assert second.get_best_record("u1", "bench_press", "max_weight").weight_kg == 90

    def test_tracker_on_stale_store_supersedes_record_on_disk(self, data_dir):
        first = JsonStore(data_dir)
        first.init()
        second = JsonStore(data_dir)
        heavier = WorkoutLog(
            user_id="u1",
            completed_at=datetime(2026, 3, 11, 18),
            duration_minutes=50,
            exercises=[ExerciseEntry(exercise_id="bench_press", sets=[ExerciseSet(reps=5, weight_kg=110)])],
        )

        RecordTracker(first).process_log(_log(datetime(2026, 3, 10, 18)))
        fired = RecordTracker(second).process_log(heavier)

        [max_weight] = [r for r in fired if r.record_type == "max_weight"]
        assert max_weight.previous_record.value == 100
        record = JsonStore(data_dir).get_best_record("u1", "bench_press", "max_weight")
        assert record.record_id == max_weight.record_id


    def test_corrupt_line_reported(self, data_dir):
        data_dir.mkdir()
        (data_dir / "workouts.jsonl").write_text("{not json}\n")
        with pytest.raises(ValidationError, match="line 1"):
            JsonStore(data_dir)
