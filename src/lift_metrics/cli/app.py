"""Shared Typer app object, shared option types, and store utility."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.logging import setup_logging
from ..io.store import JsonStore, get_default_data_dir

DEFAULT_USER = "me"

# Shared options used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Data directory (default ~/.lift-metrics)"),
]
UserOption = Annotated[
    str,
    typer.Option("--user", "-u", help="User ID the data belongs to"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="lift-metrics",
    help="Workout metrics, personal records and body-measurement progress.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level (default $LIFT_METRICS_LOG_LEVEL or WARNING)"),
    ] = None,
) -> None:
    """
    lift-metrics: workout totals, personal records, milestones and goals.
    """
    setup_logging(log_level)


def get_store(data_dir: Path | None) -> JsonStore:
    """Get the JSON store from a directory or the default location."""
    if data_dir is None:
        data_dir = get_default_data_dir()
    return JsonStore(data_dir)
