"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of workouts, records and progress.
"""

from rich.console import Console
from rich.table import Table

from ..core.errors import MissingDependencyError
from ..core.exercises import get_exercise
from ..core.models import (
    CompositionPoint,
    FrequencyBucket,
    GoalProgress,
    LeaderboardEntry,
    MetricTrend,
    MonthlyProgress,
    PersonalRecord,
    ProgressEntry,
    RecordsSummary,
    StrengthStandard,
    UserRank,
    UserStats,
    WeightChange,
    WorkoutLog,
)

console = Console()

RECORD_UNITS = {
    "max_weight": "kg",
    "max_reps": "reps",
    "max_volume": "kg",
    "one_rep_max": "kg",
    "max_duration": "s",
    "max_distance": "m",
}


def exercise_name(exercise_id: str) -> str:
    """Display name of an exercise, falling back to its ID."""
    try:
        return get_exercise(exercise_id).display_name
    except MissingDependencyError:
        return exercise_id


def _fmt_num(value: float | None, digits: int = 1) -> str:
    if value is None:
        return "-"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.{digits}f}"


def fmt_value(record_type: str, value: float | None) -> str:
    """Format a record value with its unit, e.g. '100 kg'."""
    return f"{_fmt_num(value)} {RECORD_UNITS.get(record_type, '')}".strip()


def print_workout_summary(log: WorkoutLog) -> None:
    """Print the derived totals of a logged workout and any records it set."""
    table = Table(title=f"Workout {log.completed_at:%Y-%m-%d %H:%M}", show_header=True)
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Volume(kg)", justify="right")
    table.add_column("Avg RPE", justify="right")

    for entry in log.exercises:
        table.add_row(
            exercise_name(entry.exercise_id),
            str(entry.total_sets),
            str(entry.total_reps),
            _fmt_num(entry.total_volume),
            _fmt_num(entry.avg_rpe),
        )
    console.print(table)
    console.print(
        f"Total: {log.total_sets} sets, {log.total_reps} reps, "
        f"{_fmt_num(log.total_volume)} kg volume, {log.calories_burned} kcal"
    )

    for pr in log.personal_records_achieved:
        previous = fmt_value(pr.record_type, pr.previous_value) if pr.previous_value is not None else "none"
        console.print(
            f"[bold green]New PR[/bold green] {exercise_name(pr.exercise_id)} "
            f"{pr.record_type}: {fmt_value(pr.record_type, pr.value)} (was {previous})"
        )


def format_records_table(records: list[PersonalRecord], title: str = "Personal Records") -> Table:
    """Build a table of personal records."""
    table = Table(title=title)
    table.add_column("Date", style="cyan")
    table.add_column("Exercise")
    table.add_column("Type", style="magenta")
    table.add_column("Value", justify="right", style="bold")
    table.add_column("Previous", justify="right")
    table.add_column("Improv.", justify="right")
    table.add_column("Wilks", justify="right")

    for r in records:
        previous = r.previous_record.value if r.previous_record is not None else None
        table.add_row(
            f"{r.date_achieved:%Y-%m-%d}",
            exercise_name(r.exercise_id),
            r.record_type,
            fmt_value(r.record_type, r.value),
            fmt_value(r.record_type, previous) if previous is not None else "-",
            f"{r.improvement:+.1f}%" if r.previous_record is not None else "-",
            _fmt_num(r.wilks_score, 2),
        )
    return table


def print_records(records: list[PersonalRecord], title: str = "Personal Records") -> None:
    """Print personal records, or a note when there are none."""
    if not records:
        print_info("No personal records yet.")
        return
    console.print(format_records_table(records, title))


def print_records_summary(summary: RecordsSummary) -> None:
    """Print counts per record type and muscle group plus best improvements."""
    console.print(f"[bold]Total records:[/bold] {summary.total_records}")
    console.print(f"[bold]Set in the last 7 days:[/bold] {summary.recent_count}")

    for title, groups in (("By type", summary.by_type), ("By muscle group", summary.by_muscle_group)):
        if not groups:
            continue
        table = Table(title=title)
        table.add_column("Group", style="magenta")
        table.add_column("Count", justify="right")
        table.add_column("Latest", style="cyan")
        for name, group in groups.items():
            table.add_row(name, str(group.count), f"{group.latest:%Y-%m-%d}")
        console.print(table)

    if summary.best_improvements:
        console.print(format_records_table(summary.best_improvements, "Best improvements"))


def print_leaderboard(
    exercise_id: str,
    record_type: str,
    entries: list[LeaderboardEntry],
    rank: UserRank | None = None,
) -> None:
    """Print a leaderboard and, when outside it, the user's own rank."""
    table = Table(title=f"{exercise_name(exercise_id)}: {record_type}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("User", style="cyan")
    table.add_column("Value", justify="right", style="bold")
    table.add_column("Date")
    for e in entries:
        table.add_row(
            str(e.rank),
            e.record.user_id,
            fmt_value(record_type, e.value),
            f"{e.record.date_achieved:%Y-%m-%d}",
        )
    console.print(table)

    if rank is not None and not rank.in_top:
        console.print(
            f"Your rank: [bold]{rank.rank}[/bold] "
            f"({fmt_value(record_type, rank.record.value)})"
        )


def print_strength_standard(exercise_id: str, body_weight_kg: float, std: StrengthStandard) -> None:
    """Print a strength classification with its tier table."""
    console.print(
        f"[bold]{exercise_name(exercise_id)}[/bold] at {_fmt_num(body_weight_kg)} kg body weight: "
        f"ratio {std.ratio:.2f} → [bold green]{std.level}[/bold green]"
    )
    table = Table(show_header=True, header_style="dim")
    table.add_column("Level")
    table.add_column("Ratio", justify="right")
    for level, ratio in std.standards.items():
        marker = " ◀" if level == std.level else ""
        table.add_row(f"{level}{marker}", f"{ratio:.2f}")
    console.print(table)
    if std.next_level is not None:
        console.print(
            f"Next: {std.next_level.level} at {std.next_level.ratio:.2f} "
            f"(+{std.next_level.needed:.2f} × body weight)"
        )
    else:
        console.print("Top tier reached.")


def print_user_stats(stats: UserStats, title: str) -> None:
    """Print a period summary."""
    s = stats.summary
    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Workouts", str(s.total_workouts))
    table.add_row("Duration (min)", str(s.total_duration))
    table.add_row("Avg duration (min)", _fmt_num(s.avg_duration))
    table.add_row("Sets", str(s.total_sets))
    table.add_row("Reps", str(s.total_reps))
    table.add_row("Volume (kg)", _fmt_num(s.total_volume))
    table.add_row("Avg rating", _fmt_num(s.avg_workout_rating))
    table.add_row("Calories", str(s.total_calories))
    if stats.last_workout_at is not None:
        table.add_row("Last workout", f"{stats.last_workout_at:%Y-%m-%d %H:%M}")
    console.print(table)


def print_histogram(buckets: list[FrequencyBucket]) -> None:
    """Print workouts per day."""
    if not buckets:
        print_info("No workouts in this period.")
        return
    table = Table(title="Workouts per day")
    table.add_column("Day", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Avg rating", justify="right")
    table.add_column("")
    for b in buckets:
        table.add_row(
            b.day.isoformat(),
            str(b.count),
            str(b.total_duration),
            _fmt_num(b.avg_rating),
            "█" * b.count,
        )
    console.print(table)


def print_progress_entry(entry: ProgressEntry, reason: str | None) -> None:
    """Print the outcome of logging a progress entry."""
    console.print(f"Progress entry for [cyan]{entry.date.isoformat()}[/cyan] saved.")
    if entry.milestone:
        console.print(f"[bold green]Milestone![/bold green] Significant change in {reason}.")


def print_goals(progress: list[GoalProgress]) -> None:
    """Print goal progress rows."""
    if not progress:
        print_info("No goals found.")
        return
    table = Table(title="Goals")
    table.add_column("Goal", style="cyan")
    table.add_column("Current", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Progress", justify="right", style="bold")
    table.add_column("Done")
    for p in progress:
        unit = p.goal.unit
        table.add_row(
            p.goal.goal_type,
            f"{_fmt_num(p.goal.current)} {unit}",
            f"{_fmt_num(p.goal.target)} {unit}",
            f"{_fmt_num(p.remaining)} {unit}",
            f"{p.progress:.1f}%",
            "[green]✓[/green]" if p.achieved else "",
        )
    console.print(table)


def print_milestones(entries: list[ProgressEntry]) -> None:
    """Print milestone entries, newest first."""
    if not entries:
        print_info("No milestones yet.")
        return
    table = Table(title="Milestones")
    table.add_column("Date", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Body fat %", justify="right")
    table.add_column("Waist", justify="right")
    table.add_column("Notes")
    for e in entries:
        table.add_row(
            e.date.isoformat(),
            _fmt_num(e.weight_kg),
            _fmt_num(e.body_fat_percentage),
            _fmt_num(e.measurements.waist),
            e.notes or "",
        )
    console.print(table)


def print_progress_report(
    months: list[MonthlyProgress],
    trends: dict[str, MetricTrend],
    composition: list[CompositionPoint],
    change: WeightChange | None,
    current_bmi: float | None,
) -> None:
    """Print monthly averages, metric trends and the latest body composition."""
    if months:
        table = Table(title="Monthly progress")
        table.add_column("Month", style="cyan")
        table.add_column("Entries", justify="right")
        table.add_column("Milestones", justify="right")
        table.add_column("Avg weight", justify="right")
        table.add_column("Avg body fat %", justify="right")
        for m in months:
            table.add_row(
                f"{m.year}-{m.month:02d}",
                str(m.entries),
                str(m.milestones),
                _fmt_num(m.avg_weight_kg, 2),
                _fmt_num(m.avg_body_fat, 2),
            )
        console.print(table)

    if trends:
        table = Table(title="Trends")
        table.add_column("Metric", style="cyan")
        table.add_column("First", justify="right")
        table.add_column("Last", justify="right")
        table.add_column("Change", justify="right")
        table.add_column("Change %", justify="right")
        table.add_column("Direction")
        for t in trends.values():
            table.add_row(
                t.metric,
                _fmt_num(t.first),
                _fmt_num(t.last),
                f"{t.change:+g}",
                f"{t.percentage_change:+.1f}%" if t.percentage_change is not None else "-",
                t.direction,
            )
        console.print(table)

    if composition:
        latest = composition[-1]
        if latest.fat_mass_kg is not None:
            console.print(
                f"Latest composition ({latest.date.isoformat()}): "
                f"fat {_fmt_num(latest.fat_mass_kg)} kg, lean {_fmt_num(latest.lean_mass_kg)} kg"
            )
    if change is not None:
        console.print(f"Weight change: {change.total:+g} kg ({change.percentage:+.1f}%)")
    if current_bmi is not None:
        console.print(f"Current BMI: {current_bmi:.1f}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
