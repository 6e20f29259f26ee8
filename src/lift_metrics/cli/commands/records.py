"""Personal-record commands: records, leaderboard, standards."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.config import LEADERBOARD_DEFAULT_LIMIT
from ...core.errors import MissingDependencyError, ValidationError
from ...core.exercises import get_exercise
from ...core.models import RECORD_TYPES
from ...core.reports import (
    classify_strength,
    leaderboard as build_leaderboard,
    recent_records,
    records_summary,
    user_rank,
)
from ...io.serializers import personal_record_to_dict, report_to_dict
from .. import views
from ..app import DEFAULT_USER, DataDirOption, JsonOption, UserOption, app, get_store

RecordTypeOption = Annotated[
    str,
    typer.Option("--type", "-t", help=f"Record type: {', '.join(RECORD_TYPES)}"),
]


def _check_record_type(record_type: str) -> None:
    if record_type not in RECORD_TYPES:
        views.print_error(f"Invalid record type: {record_type!r}. Valid: {', '.join(RECORD_TYPES)}")
        raise typer.Exit(1)


@app.command()
def records(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER,
    exercise_id: Annotated[
        Optional[str],
        typer.Option("--exercise", "-e", help="Only this exercise"),
    ] = None,
    record_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help=f"Only this record type: {', '.join(RECORD_TYPES)}"),
    ] = None,
    recent: Annotated[
        Optional[int],
        typer.Option("--recent", help="Only records set in the last N days"),
    ] = None,
    summary: Annotated[
        bool,
        typer.Option("--summary", help="Show counts per type and muscle group instead"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """
    List your personal records.
    """
    if record_type is not None:
        _check_record_type(record_type)

    try:
        store = get_store(data_dir)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    now = datetime.now()
    found = store.list_records(user_id=user_id, exercise_id=exercise_id, record_type=record_type)

    if summary:
        overview = records_summary(found, now)
        if json_out:
            print(json.dumps(report_to_dict(overview), indent=2))
            return
        views.console.print()
        views.print_records_summary(overview)
        return

    if recent is not None:
        found = recent_records(found, now, days=recent)

    if json_out:
        print(json.dumps([personal_record_to_dict(r) for r in found], indent=2))
        return

    views.console.print()
    views.print_records(found)


@app.command()
def leaderboard(
    exercise_id: Annotated[str, typer.Argument(help="Exercise ID, e.g. bench_press")],
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER,
    record_type: RecordTypeOption = "max_weight",
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Number of leaderboard rows"),
    ] = LEADERBOARD_DEFAULT_LIMIT,
    json_out: JsonOption = False,
) -> None:
    """
    Rank every user's record for one exercise.
    """
    _check_record_type(record_type)
    if limit < 1:
        views.print_error("--limit must be at least 1")
        raise typer.Exit(1)

    try:
        store = get_store(data_dir)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    pool = store.list_records(exercise_id=exercise_id, record_type=record_type)
    entries = build_leaderboard(pool, exercise_id, record_type, limit)
    rank = user_rank(pool, exercise_id, record_type, user_id, limit)

    if json_out:
        print(json.dumps({
            "exercise_id": exercise_id,
            "record_type": record_type,
            "leaderboard": [
                {"rank": e.rank, "value": e.value, "record": personal_record_to_dict(e.record)}
                for e in entries
            ],
            "user_rank": (
                {"rank": rank.rank, "in_top": rank.in_top, "value": rank.record.value}
                if rank is not None else None
            ),
        }, indent=2))
        return

    views.console.print()
    if not entries:
        views.print_info(f"No {record_type} records for {exercise_id} yet.")
        return
    views.print_leaderboard(exercise_id, record_type, entries, rank)


@app.command()
def standards(
    exercise_id: Annotated[str, typer.Argument(help="Exercise ID, e.g. squat")],
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER,
    body_weight: Annotated[
        Optional[float],
        typer.Option("--body-weight", "-w", help="Body weight in kg (default: from the record)"),
    ] = None,
    sex: Annotated[
        str,
        typer.Option("--sex", "-s", help="male/female"),
    ] = "male",
    json_out: JsonOption = False,
) -> None:
    """
    Classify your max_weight record against strength standards.
    """
    try:
        exercise = get_exercise(exercise_id)
        store = get_store(data_dir)
    except (MissingDependencyError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    thresholds = exercise.standards_for(sex)
    if thresholds is None:
        views.print_error(f"No strength standards for {exercise.display_name} ({sex})")
        raise typer.Exit(1)

    record = store.get_best_record(user_id, exercise_id, "max_weight")
    if record is None or not record.weight_kg:
        views.print_error(f"No max_weight record for {exercise.display_name}")
        views.print_info("Log a workout with this exercise first.")
        raise typer.Exit(1)

    bw = body_weight if body_weight is not None else record.body_weight_kg
    if bw is None:
        views.print_error("Body weight unknown; pass --body-weight")
        raise typer.Exit(1)

    try:
        result = classify_strength(record.weight_kg, bw, thresholds)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        out = report_to_dict(result)
        out["exercise_id"] = exercise_id
        out["lift_weight_kg"] = record.weight_kg
        out["body_weight_kg"] = bw
        print(json.dumps(out, indent=2))
        return

    views.console.print()
    views.print_strength_standard(exercise_id, bw, result)
