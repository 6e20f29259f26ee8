"""
Read-only reporting over workout logs and personal records.

Nothing here writes: user statistics are recomputed on demand from the
logs in a window instead of being cached on the user.

Windows are inclusive on both ends.  A date start means the start of that
day and a date end means the end of that day; datetimes are used as given.
"""

from collections import Counter, defaultdict
from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timedelta

from .config import (
    BEST_IMPROVEMENTS_LIMIT,
    LEADERBOARD_DEFAULT_LIMIT,
    PERIOD_DAYS,
    RECENT_RECORDS_DAYS,
    STRENGTH_LEVELS,
    SUMMARY_RECENT_DAYS,
)
from .errors import MissingDependencyError, ValidationError
from .exercises import ExerciseDefinition, get_exercise
from .logging import get_logger
from .metrics import total_reps, total_volume
from .models import (
    FrequencyBucket,
    GroupCount,
    LeaderboardEntry,
    NextLevel,
    PeriodSummary,
    PersonalRecord,
    RecordsSummary,
    StrengthStandard,
    UserRank,
    UserStats,
    WorkoutLog,
)

logger = get_logger(__name__)


# =============================================================================
# Windows
# =============================================================================


def _as_start(value: date | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _as_end(value: date | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def window_bounds(
    start: date | datetime | None, end: date | datetime | None
) -> tuple[datetime | None, datetime | None]:
    """
    Normalize a window to inclusive datetime bounds.

    Raises:
        ValidationError: If start is after end
    """
    lo, hi = _as_start(start), _as_end(end)
    if lo is not None and hi is not None and lo > hi:
        raise ValidationError(f"Window start {lo.isoformat()} is after end {hi.isoformat()}")
    return lo, hi


def in_window(moment: datetime, start: datetime | None, end: datetime | None) -> bool:
    """Check a moment against inclusive (already normalized) bounds."""
    return (start is None or moment >= start) and (end is None or moment <= end)


def period_window(period: str, now: datetime) -> tuple[datetime | None, datetime]:
    """
    Resolve a named period ("7d", "30d", "90d", "1y", "all") ending at *now*.

    Returns:
        (start, now); start is None for "all"

    Raises:
        ValidationError: If the period name is unknown
    """
    if period not in PERIOD_DAYS:
        raise ValidationError(f"Invalid period {period!r}. Must be one of {', '.join(PERIOD_DAYS)}")
    days = PERIOD_DAYS[period]
    if days is None:
        return None, now
    return now - timedelta(days=days), now


# =============================================================================
# Period summaries
# =============================================================================


def period_summary(
    logs: Iterable[WorkoutLog],
    start: date | datetime | None = None,
    end: date | datetime | None = None,
) -> PeriodSummary:
    """
    Sums and means over the logs completed in the window.

    Set, rep and volume totals are recomputed from the sets, so stale stored
    totals do not leak into the summary.

    Args:
        logs: Workout logs (any user filtering is the caller's)
        start: Window start (inclusive), or None
        end: Window end (inclusive), or None

    Returns:
        PeriodSummary; all zeros when no log falls in the window
    """
    lo, hi = window_bounds(start, end)
    selected = [log for log in logs if in_window(log.completed_at, lo, hi)]
    if not selected:
        return PeriodSummary()

    summary = PeriodSummary(total_workouts=len(selected))
    ratings = []
    for log in selected:
        sets = [s for _, s in log.iter_sets()]
        summary.total_duration += log.duration_minutes
        summary.total_sets += len(sets)
        summary.total_reps += total_reps(sets)
        summary.total_volume += total_volume(sets)
        summary.total_calories += log.calories_burned
        if log.workout_rating is not None:
            ratings.append(log.workout_rating)

    summary.avg_duration = round(summary.total_duration / len(selected), 1)
    summary.avg_workout_rating = round(sum(ratings) / len(ratings), 1) if ratings else 0.0
    return summary


def compute_user_stats(
    store,
    user_id: str,
    start: date | datetime | None = None,
    end: date | datetime | None = None,
) -> UserStats:
    """
    Statistics for one user over a window, read fresh from the store.

    Args:
        store: Store collaborator (list_workout_logs)
        user_id: User to summarize
        start: Window start (inclusive), or None
        end: Window end (inclusive), or None
    """
    logs = store.list_workout_logs(user_id=user_id, start=start, end=end)
    last = max((log.completed_at for log in logs), default=None)
    return UserStats(user_id=user_id, summary=period_summary(logs, start, end), last_workout_at=last)


def frequency_histogram(
    logs: Iterable[WorkoutLog],
    start: date | datetime | None = None,
    end: date | datetime | None = None,
) -> list[FrequencyBucket]:
    """
    Group the logs in the window by calendar day.

    Returns:
        One bucket per day that has a workout, oldest first; avg_rating is
        None for a day without rated workouts
    """
    lo, hi = window_bounds(start, end)
    by_day: dict[date, list[WorkoutLog]] = defaultdict(list)
    for log in logs:
        if in_window(log.completed_at, lo, hi):
            by_day[log.completed_at.date()].append(log)

    buckets = []
    for day in sorted(by_day):
        day_logs = by_day[day]
        ratings = [log.workout_rating for log in day_logs if log.workout_rating is not None]
        buckets.append(
            FrequencyBucket(
                day=day,
                count=len(day_logs),
                total_duration=sum(log.duration_minutes for log in day_logs),
                avg_rating=round(sum(ratings) / len(ratings), 1) if ratings else None,
            )
        )
    return buckets


# =============================================================================
# Leaderboards
# =============================================================================


def _ranked_pool(
    records: Iterable[PersonalRecord], exercise_id: str, record_type: str
) -> list[PersonalRecord]:
    pool = [r for r in records if r.exercise_id == exercise_id and r.record_type == record_type]
    return sorted(pool, key=lambda r: (-r.value, r.date_achieved))


def leaderboard(
    records: Iterable[PersonalRecord],
    exercise_id: str,
    record_type: str = "max_weight",
    limit: int = LEADERBOARD_DEFAULT_LIMIT,
) -> list[LeaderboardEntry]:
    """
    Top records of one exercise and record type.

    Ordered by value descending, ties by earliest date_achieved.
    """
    pool = _ranked_pool(records, exercise_id, record_type)
    return [LeaderboardEntry(rank=i, record=r) for i, r in enumerate(pool[:limit], 1)]


def user_rank(
    records: Iterable[PersonalRecord],
    exercise_id: str,
    record_type: str,
    user_id: str,
    limit: int = LEADERBOARD_DEFAULT_LIMIT,
) -> UserRank | None:
    """
    A user's rank on an exercise leaderboard.

    Inside the top *limit* the rank is the leaderboard position; outside it
    the rank is 1 + the number of records strictly better than the user's.

    Returns:
        UserRank, or None when the user holds no such record
    """
    pool = _ranked_pool(records, exercise_id, record_type)
    mine = next((r for r in pool if r.user_id == user_id), None)
    if mine is None:
        return None
    position = pool.index(mine)
    if position < limit:
        return UserRank(rank=position + 1, record=mine, in_top=True)
    better = sum(1 for r in pool if r.value > mine.value)
    return UserRank(rank=better + 1, record=mine, in_top=False)


# =============================================================================
# Strength standards
# =============================================================================


def next_level(level: str, standards: dict[str, float], ratio: float) -> NextLevel | None:
    """The tier above *level* and the ratio gap to it; None at elite."""
    index = STRENGTH_LEVELS.index(level)
    if index == len(STRENGTH_LEVELS) - 1:
        return None
    upcoming = STRENGTH_LEVELS[index + 1]
    target = standards[upcoming]
    return NextLevel(level=upcoming, ratio=target, needed=max(0.0, round(target - ratio, 2)))


def classify_strength(
    lift_weight_kg: float,
    body_weight_kg: float,
    standards: dict[str, float],
) -> StrengthStandard:
    """
    Classify a lift by its ratio to body weight.

    The level is the highest tier whose threshold the ratio meets or
    exceeds; below every threshold the lifter is "untrained".

    Args:
        lift_weight_kg: Best max_weight lift
        body_weight_kg: Lifter's body weight
        standards: {level: ratio threshold} for the exercise and sex

    Raises:
        ValidationError: For a non-positive body weight or missing tiers
    """
    if body_weight_kg is None or body_weight_kg <= 0:
        raise ValidationError(f"body weight must be positive, got {body_weight_kg}")
    missing = [level for level in STRENGTH_LEVELS if level not in standards]
    if missing:
        raise ValidationError(f"strength standards missing levels: {missing}")

    ratio = lift_weight_kg / body_weight_kg
    # Float noise must not push an exact boundary ratio into the tier below
    comparable = round(ratio, 6)
    level = STRENGTH_LEVELS[0]
    for candidate in STRENGTH_LEVELS[1:]:
        if comparable >= standards[candidate]:
            level = candidate

    return StrengthStandard(
        level=level,
        ratio=round(ratio, 2),
        standards=dict(standards),
        next_level=next_level(level, standards, ratio),
    )


# =============================================================================
# Record overviews
# =============================================================================


def recent_records(
    records: Iterable[PersonalRecord],
    now: datetime,
    days: int = RECENT_RECORDS_DAYS,
) -> list[PersonalRecord]:
    """Records achieved in the last *days* days, newest first."""
    since = now - timedelta(days=days)
    recent = [r for r in records if since <= r.date_achieved <= now]
    return sorted(recent, key=lambda r: r.date_achieved, reverse=True)


def _group_counts(items: Iterable[tuple[str, datetime]]) -> dict[str, GroupCount]:
    counts: Counter[str] = Counter()
    latest: dict[str, datetime] = {}
    for key, when in items:
        counts[key] += 1
        if key not in latest or when > latest[key]:
            latest[key] = when
    return {key: GroupCount(count=n, latest=latest[key]) for key, n in counts.most_common()}


def records_summary(
    records: Iterable[PersonalRecord],
    now: datetime,
    exercise_lookup: Callable[[str], ExerciseDefinition] = get_exercise,
) -> RecordsSummary:
    """
    Overview of a set of live records (normally one user's).

    Records of exercises the lookup cannot resolve still count in every
    group except by_muscle_group.

    Args:
        records: Personal records
        now: Reference time for the recent count
        exercise_lookup: Resolves muscle groups per exercise
    """
    records = list(records)

    muscle_items = []
    for r in records:
        try:
            groups = exercise_lookup(r.exercise_id).muscle_groups
        except MissingDependencyError:
            logger.debug("summary_unknown_exercise", exercise_id=r.exercise_id)
            continue
        muscle_items.extend((group, r.date_achieved) for group in groups)

    improved = sorted(
        (r for r in records if r.improvement > 0), key=lambda r: r.improvement, reverse=True
    )

    return RecordsSummary(
        total_records=len(records),
        by_type=_group_counts((r.record_type, r.date_achieved) for r in records),
        by_muscle_group=_group_counts(muscle_items),
        recent_count=len(recent_records(records, now, SUMMARY_RECENT_DAYS)),
        best_improvements=improved[:BEST_IMPROVEMENTS_LIMIT],
    )
