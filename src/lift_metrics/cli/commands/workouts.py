"""Workout commands: log-workout, stats."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.errors import MissingDependencyError, ValidationError
from ...core.exercises import get_exercise
from ...core.metrics import compute_workout_totals
from ...core.models import WorkoutLog
from ...core.records import RecordTracker
from ...core.reports import compute_user_stats, frequency_histogram, period_window
from ...io.serializers import (
    parse_date,
    parse_datetime,
    parse_exercise_arg,
    personal_record_to_dict,
    report_to_dict,
    workout_log_to_dict,
)
from .. import views
from ..app import DEFAULT_USER, DataDirOption, JsonOption, UserOption, app, get_store


@app.command("log-workout")
def log_workout(
    exercise: Annotated[
        list[str],
        typer.Option(
            "--exercise",
            "-x",
            help="exercise_id=SETS, repeatable. Sets: 5@100, 5x3@100:8, 12, 60s, 500m",
        ),
    ],
    duration: Annotated[
        int,
        typer.Option("--duration", "-m", help="Workout duration in minutes"),
    ],
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER,
    completed_at: Annotated[
        Optional[str],
        typer.Option("--at", help="Completion time, ISO format (default: now)"),
    ] = None,
    body_weight: Annotated[
        Optional[float],
        typer.Option("--body-weight", "-w", help="Body weight in kg (enables calories)"),
    ] = None,
    rating: Annotated[
        Optional[int],
        typer.Option("--rating", "-r", help="Workout rating 1-5"),
    ] = None,
    sex: Annotated[
        Optional[str],
        typer.Option("--sex", "-s", help="male/female, enables Wilks scores on records"),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Free-form notes"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log a completed workout, compute its totals and detect personal records.
    """
    if sex is not None and sex not in ("male", "female"):
        views.print_error(f"Invalid sex: {sex!r}. Must be 'male' or 'female'.")
        raise typer.Exit(1)

    try:
        log = WorkoutLog(
            user_id=user_id,
            completed_at=parse_datetime(completed_at) if completed_at else datetime.now(),
            duration_minutes=duration,
            exercises=[parse_exercise_arg(arg) for arg in exercise],
            body_weight_kg=body_weight,
            workout_rating=rating,
            notes=notes,
        )
        store = get_store(data_dir)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store.init()

    for entry in log.exercises:
        try:
            get_exercise(entry.exercise_id)
        except MissingDependencyError:
            views.print_warning(f"Unknown exercise '{entry.exercise_id}': logged, not checked for records")

    compute_workout_totals(log)
    records = RecordTracker(store).process_log(log, sex=sex)
    store.save_workout_log(log)

    if json_out:
        print(json.dumps({
            "workout": workout_log_to_dict(log),
            "records": [personal_record_to_dict(r) for r in records],
        }, indent=2))
        return

    views.console.print()
    views.print_workout_summary(log)
    views.print_success(f"Logged workout {log.log_id}")


@app.command()
def stats(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER,
    period: Annotated[
        str,
        typer.Option("--period", "-p", help="7d, 30d, 90d, 1y or all"),
    ] = "30d",
    start: Annotated[
        Optional[str],
        typer.Option("--from", help="Window start YYYY-MM-DD (overrides --period)"),
    ] = None,
    end: Annotated[
        Optional[str],
        typer.Option("--to", help="Window end YYYY-MM-DD, inclusive"),
    ] = None,
    histogram: Annotated[
        bool,
        typer.Option("--histogram", help="Also show workouts per day"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """
    Show workout statistics for a period.
    """
    try:
        if start is not None or end is not None:
            window_start = parse_date(start) if start else None
            window_end = parse_date(end) if end else None
            title = f"Stats {start or '…'} to {end or '…'}"
        else:
            window_start, window_end = period_window(period, datetime.now())
            title = f"Stats ({period})"
        store = get_store(data_dir)
        user_stats = compute_user_stats(store, user_id, window_start, window_end)
        logs = store.list_workout_logs(user_id=user_id, start=window_start, end=window_end)
        buckets = frequency_histogram(logs, window_start, window_end) if histogram else []
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        out = report_to_dict(user_stats)
        if histogram:
            out["histogram"] = report_to_dict(buckets)
        print(json.dumps(out, indent=2))
        return

    views.console.print()
    views.print_user_stats(user_stats, title)
    if histogram:
        views.print_histogram(buckets)
