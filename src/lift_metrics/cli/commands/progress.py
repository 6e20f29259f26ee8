"""Body-measurement commands: log-progress, goals, milestones, progress-report."""

import json
from datetime import date
from typing import Annotated, Optional

import typer

from ...core.errors import ValidationError
from ...core.goals import evaluate_goals
from ...core.models import BodyMeasurements, ProgressEntry
from ...core.progress import (
    bmi,
    body_composition,
    metric_trends,
    monthly_progress,
    record_progress_entry,
    weight_change,
)
from ...io.serializers import parse_date, parse_goal_string, progress_entry_to_dict, report_to_dict
from .. import views
from ..app import DEFAULT_USER, DataDirOption, JsonOption, UserOption, app, get_store


@app.command("log-progress")
def log_progress(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER,
    entry_date: Annotated[
        Optional[str],
        typer.Option("--date", help="Entry date YYYY-MM-DD (default: today)"),
    ] = None,
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Body weight in kg"),
    ] = None,
    body_fat: Annotated[
        Optional[float],
        typer.Option("--body-fat", "-f", help="Body fat percentage"),
    ] = None,
    muscle_mass: Annotated[
        Optional[float],
        typer.Option("--muscle-mass", help="Muscle mass in kg"),
    ] = None,
    chest: Annotated[Optional[float], typer.Option(help="Chest circumference in cm")] = None,
    waist: Annotated[Optional[float], typer.Option(help="Waist circumference in cm")] = None,
    hips: Annotated[Optional[float], typer.Option(help="Hips circumference in cm")] = None,
    biceps: Annotated[Optional[float], typer.Option(help="Biceps circumference in cm")] = None,
    thighs: Annotated[Optional[float], typer.Option(help="Thighs circumference in cm")] = None,
    neck: Annotated[Optional[float], typer.Option(help="Neck circumference in cm")] = None,
    forearms: Annotated[Optional[float], typer.Option(help="Forearms circumference in cm")] = None,
    calves: Annotated[Optional[float], typer.Option(help="Calves circumference in cm")] = None,
    goal: Annotated[
        Optional[list[str]],
        typer.Option("--goal", "-g", help="type:target:current:unit[:baseline], repeatable"),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Free-form notes"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log body measurements and check for a milestone.
    """
    try:
        entry = ProgressEntry(
            user_id=user_id,
            date=parse_date(entry_date) if entry_date else date.today(),
            weight_kg=weight,
            body_fat_percentage=body_fat,
            muscle_mass_kg=muscle_mass,
            measurements=BodyMeasurements(
                chest=chest,
                waist=waist,
                hips=hips,
                biceps=biceps,
                thighs=thighs,
                neck=neck,
                forearms=forearms,
                calves=calves,
            ),
            goals=[parse_goal_string(g) for g in goal or []],
            notes=notes,
        )
        store = get_store(data_dir)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store.init()
    reason = record_progress_entry(store, entry)

    if json_out:
        out = progress_entry_to_dict(entry)
        out["milestone_reason"] = reason
        print(json.dumps(out, indent=2))
        return

    views.console.print()
    views.print_progress_entry(entry, reason)


@app.command()
def goals(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER,
    json_out: JsonOption = False,
) -> None:
    """
    Show progress toward the goals of your latest entry.
    """
    try:
        store = get_store(data_dir)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    entries = store.list_progress_entries(user_id=user_id)
    progress = evaluate_goals(entries[-1]) if entries else []

    if json_out:
        print(json.dumps(report_to_dict(progress), indent=2))
        return

    views.console.print()
    views.print_goals(progress)


@app.command()
def milestones(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER,
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Maximum number of milestones"),
    ] = 10,
    json_out: JsonOption = False,
) -> None:
    """
    List milestone entries, newest first.
    """
    try:
        store = get_store(data_dir)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    found = [e for e in store.list_progress_entries(user_id=user_id) if e.milestone]
    found = list(reversed(found))[:limit]

    if json_out:
        print(json.dumps([progress_entry_to_dict(e) for e in found], indent=2))
        return

    views.console.print()
    views.print_milestones(found)


@app.command("progress-report")
def progress_report(
    data_dir: DataDirOption = None,
    user_id: UserOption = DEFAULT_USER,
    metric: Annotated[
        Optional[list[str]],
        typer.Option("--metric", "-m", help="Metric to trend (weight, body_fat, waist, ...), repeatable"),
    ] = None,
    height_cm: Annotated[
        Optional[float],
        typer.Option("--height-cm", help="Height in cm, enables BMI"),
    ] = None,
    start: Annotated[
        Optional[str],
        typer.Option("--from", help="Only entries on or after YYYY-MM-DD"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Monthly averages, metric trends and body composition.
    """
    try:
        store = get_store(data_dir)
        entries = store.list_progress_entries(
            user_id=user_id, start=parse_date(start) if start else None
        )
        trends = metric_trends(entries, metric or ("weight", "body_fat"))
    except (ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    months = monthly_progress(entries)
    composition = body_composition(entries)
    change = weight_change(entries)
    weighed = [e for e in entries if e.weight_kg]
    current_bmi = bmi(weighed[-1].weight_kg, height_cm) if weighed and height_cm else None

    if json_out:
        print(json.dumps({
            "monthly": report_to_dict(months),
            "trends": report_to_dict(trends),
            "composition": report_to_dict(composition),
            "weight_change": report_to_dict(change),
            "bmi": current_bmi,
        }, indent=2))
        return

    views.console.print()
    if not entries:
        views.print_info("No progress entries yet.")
        return
    views.print_progress_report(months, trends, composition, change, current_bmi)
