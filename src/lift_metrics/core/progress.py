"""
Body-measurement progress: milestones and composition analytics.

A progress entry is a milestone when, compared with the same user's nearest
earlier entry, any of these holds (checked in this order):

  weight      |Δ| ≥ 5 % of the earlier weight
  body_fat    |Δ| ≥ 2 percentage points
  chest, waist, hips   |Δ| ≥ 5 cm

A criterion is skipped when either entry lacks the value.  Saving an entry
also re-evaluates the nearest later one, whose previous entry may have
changed.  Thresholds can be overridden in engine.yaml (see
config_loader.milestone_thresholds).
"""

from collections import defaultdict
from collections.abc import Iterable

from .config_loader import milestone_thresholds
from .goals import evaluate_goals
from .logging import get_logger
from .models import (
    MEASUREMENT_FIELDS,
    CompositionPoint,
    MetricTrend,
    MonthlyProgress,
    ProgressEntry,
    WeightChange,
)

logger = get_logger(__name__)

# Metrics accepted by metric_trends() beyond the measurement names
_ENTRY_METRICS = ("weight", "body_fat", "muscle_mass")


def metric_value(entry: ProgressEntry, metric: str) -> float | None:
    """
    Read one metric from an entry.

    Args:
        entry: Progress entry
        metric: "weight", "body_fat", "muscle_mass" or a measurement name

    Raises:
        ValueError: If the metric name is unknown
    """
    if metric == "weight":
        return entry.weight_kg
    if metric == "body_fat":
        return entry.body_fat_percentage
    if metric == "muscle_mass":
        return entry.muscle_mass_kg
    if metric in MEASUREMENT_FIELDS:
        return getattr(entry.measurements, metric)
    raise ValueError(
        f"Unknown metric {metric!r}. Valid: {', '.join(_ENTRY_METRICS + MEASUREMENT_FIELDS)}"
    )


def milestone_reason(entry: ProgressEntry, previous: ProgressEntry | None) -> str | None:
    """
    Name the first criterion that makes *entry* a milestone.

    Args:
        entry: The new entry
        previous: Nearest earlier entry of the same user, or None

    Returns:
        "weight", "body_fat" or a measurement name; None if no criterion holds
    """
    if previous is None:
        return None
    thresholds = milestone_thresholds()

    if entry.weight_kg is not None and previous.weight_kg:
        change_pct = abs(entry.weight_kg - previous.weight_kg) / previous.weight_kg * 100
        if change_pct >= thresholds["weight_change_pct"]:
            return "weight"

    if entry.body_fat_percentage is not None and previous.body_fat_percentage is not None:
        if abs(entry.body_fat_percentage - previous.body_fat_percentage) >= thresholds["body_fat_change"]:
            return "body_fat"

    for name in thresholds["measurements"]:
        now = getattr(entry.measurements, name, None)
        before = getattr(previous.measurements, name, None)
        if now is None or before is None:
            continue
        if abs(now - before) >= thresholds["measurement_change_cm"]:
            return name

    return None


def check_milestone(entry: ProgressEntry, previous: ProgressEntry | None) -> bool:
    """Set and return ``entry.milestone`` (False when there is no earlier entry)."""
    entry.milestone = milestone_reason(entry, previous) is not None
    return entry.milestone


def previous_entry(
    entries: Iterable[ProgressEntry], entry: ProgressEntry
) -> ProgressEntry | None:
    """Return the nearest entry of the same user dated strictly before *entry*."""
    earlier = [
        e
        for e in entries
        if e.user_id == entry.user_id and e.entry_id != entry.entry_id and e.date < entry.date
    ]
    if not earlier:
        return None
    return max(earlier, key=lambda e: e.date)


def next_entry(
    entries: Iterable[ProgressEntry], entry: ProgressEntry
) -> ProgressEntry | None:
    """Return the nearest entry of the same user dated strictly after *entry*."""
    later = [
        e
        for e in entries
        if e.user_id == entry.user_id and e.entry_id != entry.entry_id and e.date > entry.date
    ]
    if not later:
        return None
    return min(later, key=lambda e: e.date)


def evaluate_entry(store, entry: ProgressEntry) -> str | None:
    """
    Recompute every derived field of a progress entry.

    Resolves the previous entry through the store, flags the milestone and
    refreshes goal achievement.  The entry is not saved.

    Args:
        store: Store collaborator (list_progress_entries)
        entry: Entry to evaluate

    Returns:
        The milestone criterion that fired (see milestone_reason), or None
    """
    candidates = store.list_progress_entries(user_id=entry.user_id, before=entry.date)
    previous = previous_entry(candidates, entry)
    reason = milestone_reason(entry, previous)
    entry.milestone = reason is not None
    if reason is not None:
        logger.info("milestone", user_id=entry.user_id, date=entry.date.isoformat(), reason=reason)
    evaluate_goals(entry)
    return reason


def record_progress_entry(store, entry: ProgressEntry) -> str | None:
    """
    Evaluate and save a progress entry.

    An entry inserted before existing ones becomes the previous entry of the
    nearest later one, so that entry is evaluated again and saved too.

    Args:
        store: Store collaborator (list_progress_entries / save_progress_entry)
        entry: New or edited entry

    Returns:
        The milestone criterion that fired for *entry*, or None
    """
    reason = evaluate_entry(store, entry)
    store.save_progress_entry(entry)

    following = next_entry(store.list_progress_entries(user_id=entry.user_id, start=entry.date), entry)
    if following is not None:
        was_milestone = following.milestone
        evaluate_entry(store, following)
        store.save_progress_entry(following)
        if following.milestone != was_milestone:
            logger.info(
                "milestone_reevaluated",
                user_id=following.user_id,
                date=following.date.isoformat(),
                milestone=following.milestone,
            )
    return reason


# =============================================================================
# Composition analytics
# =============================================================================


def bmi(weight_kg: float | None, height_cm: float | None) -> float | None:
    """
    Body-mass index.

    Returns:
        weight / height_m², rounded to 1 decimal; None if either is missing
        or non-positive
    """
    if not weight_kg or not height_cm or weight_kg <= 0 or height_cm <= 0:
        return None
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 1)


def body_composition(entries: Iterable[ProgressEntry]) -> list[CompositionPoint]:
    """
    Fat and lean mass over time, oldest first.

    Entries with none of weight, body fat or muscle mass are left out.
    """
    points = []
    for e in sorted(entries, key=lambda e: e.date):
        if e.weight_kg is None and e.body_fat_percentage is None and e.muscle_mass_kg is None:
            continue
        point = CompositionPoint(
            date=e.date,
            weight_kg=e.weight_kg,
            body_fat_percentage=e.body_fat_percentage,
            muscle_mass_kg=e.muscle_mass_kg,
        )
        if e.weight_kg and e.body_fat_percentage:
            point.fat_mass_kg = round(e.weight_kg * e.body_fat_percentage / 100, 2)
            point.lean_mass_kg = round(e.weight_kg - point.fat_mass_kg, 2)
        points.append(point)
    return points


def metric_trends(
    entries: Iterable[ProgressEntry], metrics: Iterable[str] = ("weight", "body_fat")
) -> dict[str, MetricTrend]:
    """
    First-to-last change of each metric.

    Only metrics with at least two recorded values get a trend.

    Args:
        entries: Progress entries in any order
        metrics: Metric names (see metric_value)

    Returns:
        {metric: MetricTrend}
    """
    ordered = sorted(entries, key=lambda e: e.date)
    trends: dict[str, MetricTrend] = {}
    for metric in metrics:
        values = [v for v in (metric_value(e, metric) for e in ordered) if v is not None]
        if len(values) < 2:
            continue
        first, last = values[0], values[-1]
        change = round(last - first, 2)
        trends[metric] = MetricTrend(
            metric=metric,
            first=first,
            last=last,
            change=change,
            percentage_change=round(change / first * 100, 1) if first else None,
            direction="up" if change > 0 else "down" if change < 0 else "stable",
        )
    return trends


def monthly_progress(entries: Iterable[ProgressEntry]) -> list[MonthlyProgress]:
    """Group entries by calendar month (ascending) with averages and milestone counts."""
    groups: dict[tuple[int, int], list[ProgressEntry]] = defaultdict(list)
    for e in entries:
        groups[(e.date.year, e.date.month)].append(e)

    def _avg(values: list[float]) -> float | None:
        return round(sum(values) / len(values), 2) if values else None

    months = []
    for (year, month), group in sorted(groups.items()):
        months.append(
            MonthlyProgress(
                year=year,
                month=month,
                entries=len(group),
                milestones=sum(1 for e in group if e.milestone),
                avg_weight_kg=_avg([e.weight_kg for e in group if e.weight_kg is not None]),
                avg_body_fat=_avg(
                    [e.body_fat_percentage for e in group if e.body_fat_percentage is not None]
                ),
            )
        )
    return months


def weight_change(entries: Iterable[ProgressEntry]) -> WeightChange | None:
    """Change between the first and last weighed entries; None without a weighed entry."""
    weighed = sorted((e for e in entries if e.weight_kg), key=lambda e: e.date)
    if not weighed:
        return None
    first, last = weighed[0].weight_kg, weighed[-1].weight_kg
    total = round(last - first, 2)
    return WeightChange(
        first_kg=first,
        last_kg=last,
        total=total,
        percentage=round(total / first * 100, 1),
    )
