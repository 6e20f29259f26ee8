"""
Formula-focused unit tests for the metrics engine.

Each class covers one function; expected values are hand-computed from the
formulas so the tests double as documentation:

- set/workout totals, average RPE, intensity and calories (core.metrics)
- Epley 1RM and Wilks (core.strength)
- milestone criteria and composition analytics (core.progress)
- goal completion (core.goals)
"""

from datetime import date, datetime

import pytest

from lift_metrics.core.config import REFERENCE_BODY_WEIGHT_KG
from lift_metrics.core.errors import ValidationError
from lift_metrics.core.models import (
    BodyMeasurements,
    ExerciseEntry,
    ExerciseSet,
    Goal,
    ProgressEntry,
    WorkoutLog,
)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _log(*entries: ExerciseEntry, duration: int = 60, bw: float | None = None) -> WorkoutLog:
    return WorkoutLog(
        user_id="u1",
        completed_at=datetime(2026, 3, 10, 18, 0),
        duration_minutes=duration,
        exercises=list(entries),
        body_weight_kg=bw,
    )


def _entry(exercise_id: str = "bench_press", *sets: ExerciseSet) -> ExerciseEntry:
    return ExerciseEntry(exercise_id=exercise_id, sets=list(sets))


def _progress(day: int, weight: float | None = None, body_fat: float | None = None, **measurements) -> ProgressEntry:
    return ProgressEntry(
        user_id="u1",
        date=date(2026, 3, day),
        weight_kg=weight,
        body_fat_percentage=body_fat,
        measurements=BodyMeasurements(**measurements),
    )


# ---------------------------------------------------------------------------
# Model validation
# ---------------------------------------------------------------------------


class TestModelValidation:
    """Out-of-range input is rejected, never clamped."""

    def test_negative_reps_rejected(self):
        with pytest.raises(ValidationError):
            ExerciseSet(reps=-1, weight_kg=100)

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            ExerciseSet(reps=5, weight_kg=-5)

    @pytest.mark.parametrize("rpe", [0.5, 10.5])
    def test_rpe_outside_range_rejected(self, rpe):
        with pytest.raises(ValidationError):
            ExerciseSet(reps=5, weight_kg=100, rpe=rpe)

    def test_rpe_bounds_accepted(self):
        assert ExerciseSet(reps=5, rpe=1).rpe == 1
        assert ExerciseSet(reps=5, rpe=10).rpe == 10

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            ExerciseSet(reps=-3)

    def test_zero_duration_workout_rejected(self):
        with pytest.raises(ValidationError):
            _log(duration=0)

    def test_rating_outside_range_rejected(self):
        with pytest.raises(ValidationError):
            WorkoutLog(
                user_id="u1",
                completed_at=datetime(2026, 3, 10),
                duration_minutes=30,
                workout_rating=6,
            )

    def test_unknown_goal_type_rejected(self):
        with pytest.raises(ValidationError):
            Goal(goal_type="speed", target=10, current=5, unit="kg")


# ---------------------------------------------------------------------------
# Workout metrics
# ---------------------------------------------------------------------------


class TestSetVolume:
    """volume = weight × reps, 0 when either is missing"""

    def test_weight_times_reps(self):
        from lift_metrics.core.metrics import set_volume
        assert set_volume(ExerciseSet(reps=5, weight_kg=100)) == pytest.approx(500.0)

    def test_missing_weight_is_zero(self):
        from lift_metrics.core.metrics import set_volume
        assert set_volume(ExerciseSet(reps=12)) == 0.0

    def test_missing_reps_is_zero(self):
        from lift_metrics.core.metrics import set_volume
        assert set_volume(ExerciseSet(duration_seconds=60)) == 0.0


class TestExerciseTotals:

    def test_sums_sets_reps_and_volume(self):
        from lift_metrics.core.metrics import exercise_totals
        entry = exercise_totals(_entry(
            "bench_press",
            ExerciseSet(reps=5, weight_kg=100),
            ExerciseSet(reps=5, weight_kg=100),
            ExerciseSet(reps=8, weight_kg=80),
        ))
        assert entry.total_sets == 3
        assert entry.total_reps == 18
        assert entry.total_volume == pytest.approx(1640.0)
        assert entry.total_weight == pytest.approx(280.0)

    def test_avg_rpe_ignores_unrated_sets(self):
        from lift_metrics.core.metrics import exercise_totals
        entry = exercise_totals(_entry(
            "bench_press",
            ExerciseSet(reps=5, weight_kg=100, rpe=7),
            ExerciseSet(reps=5, weight_kg=100, rpe=9),
            ExerciseSet(reps=5, weight_kg=100),
        ))
        assert entry.avg_rpe == pytest.approx(8.0)

    def test_avg_rpe_none_without_rpe(self):
        from lift_metrics.core.metrics import exercise_totals
        entry = exercise_totals(_entry("bench_press", ExerciseSet(reps=5, weight_kg=100)))
        assert entry.avg_rpe is None


class TestWorkoutIntensity:
    """≤4 low, ≤6 moderate, ≤8 high, >8 very_high"""

    @pytest.mark.parametrize(
        "rpe, expected",
        [(3, "low"), (4, "low"), (5, "moderate"), (6, "moderate"), (8, "high"), (9, "very_high")],
    )
    def test_rpe_buckets(self, rpe, expected):
        from lift_metrics.core.metrics import intensity_from_rpe
        assert intensity_from_rpe(rpe) == expected

    def test_no_rpe_is_moderate(self):
        from lift_metrics.core.metrics import workout_intensity
        log = _log(_entry("bench_press", ExerciseSet(reps=5, weight_kg=100)))
        assert workout_intensity(log) == "moderate"

    def test_every_intensity_has_a_calorie_baseline(self):
        from typing import get_args

        from lift_metrics.core.config import CALORIE_BASELINES, INTENSITY_RPE_CUTOFFS, Intensity
        assert set(CALORIE_BASELINES) == set(get_args(Intensity))
        assert {label for _, label in INTENSITY_RPE_CUTOFFS} <= set(CALORIE_BASELINES)

    def test_unrated_exercise_left_out_of_mean(self):
        # bench avg 9, squat unrated → mean 9, not (9 + 0) / 2
        from lift_metrics.core.metrics import workout_intensity
        log = _log(
            _entry("bench_press", ExerciseSet(reps=3, weight_kg=120, rpe=9)),
            _entry("squat", ExerciseSet(reps=5, weight_kg=140)),
        )
        assert workout_intensity(log) == "very_high"


class TestEstimateCalories:
    """calories = duration × baseline × BW / 70, halves rounded up"""

    def test_reference_weight_moderate(self):
        # 60 min × 5 kcal/min × 70/70 = 300
        from lift_metrics.core.metrics import estimate_calories
        log = _log(_entry("bench_press", ExerciseSet(reps=5, weight_kg=100)))
        assert estimate_calories(log, REFERENCE_BODY_WEIGHT_KG) == 300

    def test_heavier_lifter_very_high(self):
        # 60 × 9 × 80/70 = 617.14 → 617
        from lift_metrics.core.metrics import estimate_calories
        log = _log(_entry("bench_press", ExerciseSet(reps=3, weight_kg=120, rpe=9)))
        assert estimate_calories(log, 80.0) == 617

    def test_half_rounds_up(self):
        # 1 × 5 × 35/70 = 2.5 → 3
        from lift_metrics.core.metrics import estimate_calories
        log = _log(_entry("bench_press", ExerciseSet(reps=5, weight_kg=100)), duration=1)
        assert estimate_calories(log, 35.0) == 3


class TestComputeWorkoutTotals:

    def test_totals_over_all_exercises(self):
        from lift_metrics.core.metrics import compute_workout_totals
        log = compute_workout_totals(_log(
            _entry("bench_press", ExerciseSet(reps=5, weight_kg=100), ExerciseSet(reps=5, weight_kg=100)),
            _entry("plank", ExerciseSet(duration_seconds=60)),
        ))
        assert log.total_sets == 3
        assert log.total_reps == 10
        assert log.total_volume == pytest.approx(1000.0)

    def test_idempotent(self):
        from lift_metrics.core.metrics import compute_workout_totals
        log = _log(
            _entry("bench_press", ExerciseSet(reps=5, weight_kg=100, rpe=8)),
            bw=82.0,
        )
        compute_workout_totals(log)
        first = (log.total_sets, log.total_reps, log.total_volume, log.calories_burned)
        compute_workout_totals(log)
        assert (log.total_sets, log.total_reps, log.total_volume, log.calories_burned) == first

    def test_calories_kept_without_body_weight(self):
        from lift_metrics.core.metrics import compute_workout_totals
        log = _log(_entry("bench_press", ExerciseSet(reps=5, weight_kg=100)))
        log.calories_burned = 250
        compute_workout_totals(log)
        assert log.calories_burned == 250

    def test_body_weight_argument_overrides_log(self):
        # 60 × 5 × 70/70 = 300 regardless of the log's 100 kg
        from lift_metrics.core.metrics import compute_workout_totals
        log = _log(_entry("bench_press", ExerciseSet(reps=5, weight_kg=100)), bw=100.0)
        compute_workout_totals(log, body_weight_kg=70.0)
        assert log.calories_burned == 300


# ---------------------------------------------------------------------------
# One-rep max and Wilks
# ---------------------------------------------------------------------------


class TestEpley1RM:
    """1RM = weight × (1 + reps / 30), weight itself for a single"""

    def test_single_is_exact_weight(self):
        from lift_metrics.core.strength import epley_1rm
        assert epley_1rm(142.5, 1) == 142.5

    def test_five_reps(self):
        # 100 × (1 + 5/30) = 116.67 → 116.7
        from lift_metrics.core.strength import epley_1rm
        assert epley_1rm(100, 5) == pytest.approx(116.7)

    def test_ten_reps(self):
        # 80 × (1 + 10/30) = 106.67 → 106.7
        from lift_metrics.core.strength import epley_1rm
        assert epley_1rm(80, 10) == pytest.approx(106.7)

    @pytest.mark.parametrize("weight, reps", [(None, 5), (0, 5), (100, None), (100, 0)])
    def test_missing_or_zero_input_is_zero(self, weight, reps):
        from lift_metrics.core.strength import epley_1rm
        assert epley_1rm(weight, reps) == 0.0


class TestWilks:
    """wilks = weight × 500 / poly(bw)"""

    def test_male_reference_value(self):
        # poly(100) ≈ 821.572 → 200 × 500 / 821.572 ≈ 121.72
        from lift_metrics.core.strength import wilks_score
        assert wilks_score(200, 100, "male") == pytest.approx(121.72, abs=0.01)

    def test_rounded_to_two_decimals(self):
        from lift_metrics.core.strength import wilks_score
        score = wilks_score(150, 82.5, "female")
        assert score == round(score, 2)

    def test_female_coefficient_higher_than_male_at_same_bw(self):
        from lift_metrics.core.strength import wilks_coefficient
        assert wilks_coefficient(60, "female") > wilks_coefficient(60, "male")

    @pytest.mark.parametrize("weight, bw", [(None, 80), (0, 80), (100, None), (100, 0), (100, -5)])
    def test_missing_or_non_positive_input_is_none(self, weight, bw):
        from lift_metrics.core.strength import wilks_score
        assert wilks_score(weight, bw, "male") is None

    def test_unknown_sex_rejected(self):
        from lift_metrics.core.strength import wilks_coefficient
        with pytest.raises(ValueError):
            wilks_coefficient(80, "other")


# ---------------------------------------------------------------------------
# Milestones and composition
# ---------------------------------------------------------------------------


class TestMilestone:
    """weight ≥5 %, body fat ≥2 points, chest/waist/hips ≥5 cm"""

    def test_no_previous_entry_is_not_milestone(self):
        from lift_metrics.core.progress import check_milestone
        assert check_milestone(_progress(10, weight=75), None) is False

    def test_weight_drop_over_five_percent(self):
        # 80 → 75 = 6.25 %
        from lift_metrics.core.progress import check_milestone, milestone_reason
        prev, entry = _progress(1, weight=80), _progress(10, weight=75)
        assert milestone_reason(entry, prev) == "weight"
        assert check_milestone(entry, prev) is True
        assert entry.milestone is True

    def test_small_weight_drop(self):
        # 80 → 79 = 1.25 %
        from lift_metrics.core.progress import check_milestone
        assert check_milestone(_progress(10, weight=79), _progress(1, weight=80)) is False

    def test_exactly_five_percent_counts(self):
        from lift_metrics.core.progress import check_milestone
        assert check_milestone(_progress(10, weight=84), _progress(1, weight=80)) is True

    def test_body_fat_two_points(self):
        from lift_metrics.core.progress import milestone_reason
        assert milestone_reason(_progress(10, body_fat=18), _progress(1, body_fat=20)) == "body_fat"

    def test_waist_five_cm(self):
        from lift_metrics.core.progress import milestone_reason
        assert milestone_reason(_progress(10, waist=85), _progress(1, waist=90)) == "waist"

    def test_biceps_not_a_milestone_measurement(self):
        from lift_metrics.core.progress import milestone_reason
        assert milestone_reason(_progress(10, biceps=45), _progress(1, biceps=35)) is None

    def test_missing_value_on_one_side_skips_criterion(self):
        from lift_metrics.core.progress import milestone_reason
        assert milestone_reason(_progress(10, weight=60), _progress(1, body_fat=20)) is None

    def test_weight_checked_before_body_fat(self):
        from lift_metrics.core.progress import milestone_reason
        prev = _progress(1, weight=80, body_fat=20)
        entry = _progress(10, weight=70, body_fat=15)
        assert milestone_reason(entry, prev) == "weight"


class TestPreviousEntry:

    def test_nearest_earlier_entry_of_same_user(self):
        from lift_metrics.core.progress import previous_entry
        older, newer = _progress(1, weight=80), _progress(5, weight=79)
        other_user = ProgressEntry(user_id="u2", date=date(2026, 3, 8), weight_kg=60)
        later = _progress(20, weight=78)
        entry = _progress(10, weight=77)
        assert previous_entry([later, older, other_user, newer], entry) is newer

    def test_none_when_first_entry(self):
        from lift_metrics.core.progress import previous_entry
        entry = _progress(10, weight=77)
        assert previous_entry([entry, _progress(12, weight=76)], entry) is None

    def test_next_entry_is_nearest_later(self):
        from lift_metrics.core.progress import next_entry
        entry = _progress(10, weight=77)
        nearest, farther = _progress(12, weight=76), _progress(20, weight=75)
        assert next_entry([farther, _progress(1, weight=80), nearest], entry) is nearest


class TestRecordProgressEntry:

    def test_returns_milestone_reason(self):
        from lift_metrics.core.progress import record_progress_entry
        from lift_metrics.io.store import InMemoryStore
        store = InMemoryStore()
        assert record_progress_entry(store, _progress(1, weight=80)) is None
        assert record_progress_entry(store, _progress(10, waist=80)) is None
        assert record_progress_entry(store, _progress(20, weight=75)) == "weight"

    def test_backdated_entry_reevaluates_next_entry(self):
        # 80 → 76 is a 5 % milestone; once 77 sits between them it is 1.3 %
        from lift_metrics.core.progress import record_progress_entry
        from lift_metrics.io.store import InMemoryStore
        store = InMemoryStore()
        record_progress_entry(store, _progress(1, weight=80))
        later = _progress(20, weight=76)
        record_progress_entry(store, later)
        assert later.milestone is True

        assert record_progress_entry(store, _progress(10, weight=77)) is None

        [stored] = store.list_progress_entries(user_id="u1", start=date(2026, 3, 20))
        assert stored.milestone is False

    def test_later_entry_can_become_milestone(self):
        from lift_metrics.core.progress import record_progress_entry
        from lift_metrics.io.store import InMemoryStore
        store = InMemoryStore()
        record_progress_entry(store, _progress(1, weight=80))
        record_progress_entry(store, _progress(20, weight=79))

        record_progress_entry(store, _progress(10, weight=84))

        [stored] = store.list_progress_entries(user_id="u1", start=date(2026, 3, 20))
        assert stored.milestone is True


class TestCompositionAnalytics:

    def test_bmi(self):
        # 80 / 1.8² = 24.69 → 24.7
        from lift_metrics.core.progress import bmi
        assert bmi(80, 180) == pytest.approx(24.7)

    def test_bmi_needs_both_values(self):
        from lift_metrics.core.progress import bmi
        assert bmi(80, None) is None
        assert bmi(None, 180) is None

    def test_body_composition_fat_and_lean_mass(self):
        # 80 kg at 20 % → 16 kg fat, 64 kg lean
        from lift_metrics.core.progress import body_composition
        points = body_composition([_progress(10, weight=80, body_fat=20), _progress(1, weight=82)])
        assert [p.date.day for p in points] == [1, 10]
        assert points[0].fat_mass_kg is None
        assert points[1].fat_mass_kg == pytest.approx(16.0)
        assert points[1].lean_mass_kg == pytest.approx(64.0)

    def test_metric_trends(self):
        from lift_metrics.core.progress import metric_trends
        entries = [_progress(1, weight=80, waist=90), _progress(15, weight=78), _progress(30, weight=76, waist=90)]
        trends = metric_trends(entries, ["weight", "waist", "body_fat"])
        assert trends["weight"].change == pytest.approx(-4.0)
        assert trends["weight"].percentage_change == pytest.approx(-5.0)
        assert trends["weight"].direction == "down"
        assert trends["waist"].direction == "stable"
        assert "body_fat" not in trends

    def test_unknown_metric_rejected(self):
        from lift_metrics.core.progress import metric_trends
        with pytest.raises(ValueError):
            metric_trends([_progress(1, weight=80)], ["height"])

    def test_monthly_progress(self):
        from lift_metrics.core.progress import monthly_progress
        march = [_progress(1, weight=80), _progress(20, weight=78)]
        march[1].milestone = True
        april = ProgressEntry(user_id="u1", date=date(2026, 4, 2), weight_kg=77)
        months = monthly_progress(march + [april])
        assert [(m.year, m.month) for m in months] == [(2026, 3), (2026, 4)]
        assert months[0].entries == 2
        assert months[0].milestones == 1
        assert months[0].avg_weight_kg == pytest.approx(79.0)
        assert months[0].avg_body_fat is None

    def test_weight_change(self):
        from lift_metrics.core.progress import weight_change
        change = weight_change([_progress(20, weight=76), _progress(1, weight=80), _progress(10)])
        assert change.total == pytest.approx(-4.0)
        assert change.percentage == pytest.approx(-5.0)

    def test_weight_change_without_weights(self):
        from lift_metrics.core.progress import weight_change
        assert weight_change([_progress(1, body_fat=20)]) is None


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


class TestGoalProgress:
    """percent = round(current / target × 100, 1); remaining = target − current"""

    def test_increasing_goal_partway(self):
        from lift_metrics.core.goals import goal_progress
        p = goal_progress(Goal(goal_type="strength", target=100, current=80, unit="kg"))
        assert p.percent_complete == pytest.approx(80.0)
        assert p.remaining == pytest.approx(20.0)
        assert p.progress == pytest.approx(80.0)
        assert p.achieved is False

    def test_increasing_goal_passed(self):
        from lift_metrics.core.goals import goal_progress
        p = goal_progress(Goal(goal_type="strength", target=100, current=110, unit="kg"))
        assert p.percent_complete == pytest.approx(110.0)
        assert p.remaining == pytest.approx(-10.0)
        assert p.progress == 100.0
        assert p.achieved is True

    def test_decreasing_goal_with_baseline(self):
        # 85 → 75, now 80: halfway
        from lift_metrics.core.goals import goal_progress
        p = goal_progress(Goal(goal_type="weight_loss", target=75, current=80, unit="kg", baseline=85))
        assert p.progress == pytest.approx(50.0)
        assert p.percent_complete == pytest.approx(106.7)
        assert p.achieved is False

    def test_decreasing_goal_without_baseline(self):
        # target / current = 15 / 20
        from lift_metrics.core.goals import goal_progress
        p = goal_progress(Goal(goal_type="body_fat", target=15, current=20, unit="%"))
        assert p.progress == pytest.approx(75.0)

    def test_decreasing_goal_reached(self):
        from lift_metrics.core.goals import goal_progress
        p = goal_progress(Goal(goal_type="weight_loss", target=75, current=74, unit="kg"))
        assert p.achieved is True
        assert p.progress == 100.0

    def test_moving_away_from_target_clamps_to_zero(self):
        from lift_metrics.core.goals import goal_progress
        p = goal_progress(Goal(goal_type="weight_loss", target=75, current=88, unit="kg", baseline=85))
        assert p.progress == 0.0

    def test_zero_target_zero_current(self):
        from lift_metrics.core.goals import goal_progress
        p = goal_progress(Goal(goal_type="strength", target=0, current=0, unit="kg"))
        assert p.percent_complete == 100.0
        assert p.achieved is True

    def test_zero_target_nonzero_current_is_undefined(self):
        from lift_metrics.core.goals import goal_progress
        p = goal_progress(Goal(goal_type="weight_loss", target=0, current=5, unit="kg"))
        assert p.percent_complete is None
        assert p.progress == 0.0

    def test_progress_is_monotonic(self):
        from lift_metrics.core.goals import goal_progress
        values = [
            goal_progress(Goal(goal_type="weight_loss", target=75, current=c, unit="kg", baseline=85)).progress
            for c in (90, 85, 83, 80, 77, 75, 70)
        ]
        assert values == sorted(values)
        assert all(0.0 <= v <= 100.0 for v in values)

    def test_evaluate_goals_sets_achieved(self):
        from lift_metrics.core.goals import evaluate_goals
        entry = _progress(10, weight=74)
        entry.goals = [
            Goal(goal_type="weight_loss", target=75, current=74, unit="kg"),
            Goal(goal_type="strength", target=100, current=90, unit="kg"),
        ]
        evaluate_goals(entry)
        assert [g.achieved for g in entry.goals] == [True, False]
