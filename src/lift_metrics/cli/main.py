"""
CLI entry point using Typer.

Provides commands for workout metrics and progress tracking:
- log-workout: Log a workout, compute totals and detect personal records
- stats: Period summary and per-day histogram
- records: List personal records or a summary of them
- leaderboard: Rank records of one exercise across users
- standards: Strength-standard classification of a max_weight record
- log-progress: Log body measurements and flag milestones
- goals: Goal progress of the latest entry
- milestones: List milestone entries
- progress-report: Monthly averages, trends and body composition
"""

from .app import app
from .commands import progress, records, workouts  # noqa: F401  (registers commands)

if __name__ == "__main__":
    app()
