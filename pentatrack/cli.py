from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.progress import Progress

from .config import as_dict as config_as_dict, get_config
from .constants import DISCIPLINES, PERIOD_KINDS
from .models import TrainingSession, ValidationError, normalise_discipline, parse_iso_date
from .services import (
    build_season_report,
    build_stats_report,
    generate_plots,
    render_cell_sessions,
    render_daily_rpe,
    render_month_blocks,
    render_season_grid,
    render_totals_table,
    render_weekly_summary,
)
from .simulation import generate_simulation_sessions
from .storage import append_sessions, load_training_sessions
from .summary import CompositorPolicy

app = typer.Typer(help="Review pentathlon training logs: period statistics and season overviews.")


def _fail(message: str, *, code: int = 1) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _load(file: Optional[Path]) -> list[TrainingSession]:
    try:
        return load_training_sessions(file)
    except ValueError as exc:
        _fail(str(exc))
    return []


def _policy(fold_weekly: Optional[bool], fold_totals: Optional[bool]) -> CompositorPolicy:
    return CompositorPolicy.from_config(fold_in_weekly=fold_weekly, fold_in_totals=fold_totals)


def _parse_optional_date(value: Optional[str], *, field: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return parse_iso_date(value, field=field)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_hint=field) from exc


FILE_OPTION = typer.Option(
    None,
    "--file",
    "-f",
    help="Sessions JSON file (defaults to $PENTATRACK_SESSIONS_FILE or data/sessions.json).",
)
FOLD_WEEKLY_OPTION = typer.Option(
    None,
    "--fold-weekly/--no-fold-weekly",
    help="Count laser-run distance as running in the weekly roll-up (defaults to configuration).",
)
FOLD_TOTALS_OPTION = typer.Option(
    None,
    "--fold-totals/--no-fold-totals",
    help="Merge the laser-run row into the running row of the totals table (defaults to configuration).",
)


@app.command()
def stats(
    athlete: str = typer.Option(..., "--athlete", "-a", help="Athlete identifier."),
    period: Optional[str] = typer.Option(
        None,
        "--period",
        "-p",
        help=f"One of {', '.join(PERIOD_KINDS)} (defaults to configuration).",
    ),
    on: Optional[str] = typer.Option(
        None,
        "--date",
        "-d",
        help="Reference date in YYYY-MM-DD format (defaults to today).",
    ),
    start: Optional[str] = typer.Option(None, "--start", help="Custom period start (YYYY-MM-DD)."),
    end: Optional[str] = typer.Option(None, "--end", help="Custom period end (YYYY-MM-DD)."),
    fold_weekly: Optional[bool] = FOLD_WEEKLY_OPTION,
    fold_totals: Optional[bool] = FOLD_TOTALS_OPTION,
    file: Optional[Path] = FILE_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show the daily RPE series."),
) -> None:
    """Per-discipline totals and weekly roll-up for one period."""
    _configure_logging(verbose)
    period_kind = (period or get_config().default_period).lower()
    if period_kind not in PERIOD_KINDS:
        raise typer.BadParameter(
            f"period must be one of {', '.join(PERIOD_KINDS)}.", param_hint="period"
        )
    reference = _parse_optional_date(on, field="date") or date.today()
    custom_range = (start, end) if period_kind == "custom" else None

    sessions = _load(file)
    try:
        report = build_stats_report(
            sessions,
            subject_id=athlete,
            period=period_kind,
            reference=reference,
            custom_range=custom_range,
            policy=_policy(fold_weekly, fold_totals),
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo(f"[{athlete}] {report.label}")
    if not report.sessions:
        typer.echo("No sessions matched the provided filters.")
        raise typer.Exit(code=0)

    typer.echo(render_totals_table(report.totals))
    typer.echo("")
    typer.echo(render_weekly_summary(report.window_summary))
    if verbose:
        typer.echo("")
        typer.echo(render_daily_rpe(report.daily_rpe))


@app.command()
def season(
    athlete: str = typer.Option(..., "--athlete", "-a", help="Athlete identifier."),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Season year (defaults to this year)."),
    week: Optional[int] = typer.Option(None, "--week", "-w", help="ISO week to focus on."),
    discipline: Optional[str] = typer.Option(
        None,
        "--discipline",
        help="List the sessions behind the focused week for this discipline.",
    ),
    fold_weekly: Optional[bool] = FOLD_WEEKLY_OPTION,
    fold_totals: Optional[bool] = FOLD_TOTALS_OPTION,
    file: Optional[Path] = FILE_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable informational logging."),
) -> None:
    """Season overview: discipline x ISO-week matrix and the focused week."""
    _configure_logging(verbose)
    season_year = year if year is not None else date.today().year
    sessions = _load(file)
    try:
        report = build_season_report(
            sessions,
            subject_id=athlete,
            year=season_year,
            focus_week=week,
            policy=_policy(fold_weekly, fold_totals),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="week") from exc

    typer.echo(f"[{athlete}] Season {report.year}, week {report.focus_week}")
    typer.echo(render_month_blocks(report.month_blocks))
    typer.echo("")
    typer.echo(render_season_grid(report))
    typer.echo("")
    typer.echo(render_weekly_summary(report.summary.week))

    if discipline:
        try:
            key = normalise_discipline(discipline)
        except ValidationError as exc:
            raise typer.BadParameter(str(exc), param_hint="discipline") from exc
        if key not in DISCIPLINES:
            raise typer.BadParameter(
                f"discipline must be one of {', '.join(DISCIPLINES)}.", param_hint="discipline"
            )
        typer.echo("")
        typer.echo(render_cell_sessions(report.cell(key, report.focus_week)))


@app.command()
def plot(
    athlete: str = typer.Option(..., "--athlete", "-a", help="Athlete identifier."),
    period: Optional[str] = typer.Option(None, "--period", "-p", help="Period for the distribution charts."),
    on: Optional[str] = typer.Option(None, "--date", "-d", help="Reference date (YYYY-MM-DD)."),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Season year for the heatmap."),
    output: Path = typer.Option(Path("plots"), "--output", "-o", help="Directory for PNG files."),
    file: Optional[Path] = FILE_OPTION,
) -> None:
    """Render charts for a period and a season to PNG files."""
    _configure_logging(False)
    period_kind = (period or get_config().default_period).lower()
    if period_kind not in PERIOD_KINDS or period_kind == "custom":
        raise typer.BadParameter("period must be day, week, month or year.", param_hint="period")
    reference = _parse_optional_date(on, field="date") or date.today()

    sessions = _load(file)
    stats_report = build_stats_report(
        sessions, subject_id=athlete, period=period_kind, reference=reference
    )
    season_year = year if year is not None else reference.year
    iso_year, iso_week, _ = reference.isocalendar()
    try:
        season_report = build_season_report(
            sessions,
            subject_id=athlete,
            year=season_year,
            focus_week=iso_week if iso_year == season_year else None,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="year") from exc
    try:
        paths = generate_plots(stats_report, season_report, output_dir=output)
    except (RuntimeError, ValueError) as exc:
        _fail(str(exc))
        return
    for path in paths:
        typer.echo(f"Saved plot to {path}")


@app.command()
def simulate(
    athlete: str = typer.Option(..., "--athlete", "-a", help="Athlete identifier."),
    start: str = typer.Option("2023-09-01", "--start", help="First simulated day (YYYY-MM-DD)."),
    end: Optional[str] = typer.Option(None, "--end", help="Last simulated day (defaults to today)."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible data."),
    file: Optional[Path] = FILE_OPTION,
) -> None:
    """Append a synthetic training history for stress-testing the statistics."""
    _configure_logging(False)
    first = _parse_optional_date(start, field="start")
    last = _parse_optional_date(end, field="end") or date.today()

    with Progress() as progress:
        task = progress.add_task(f"Simulating {athlete}", total=100)
        try:
            rows = generate_simulation_sessions(
                athlete,
                first,
                last,
                seed=seed,
                on_progress=lambda percent: progress.update(task, completed=percent),
            )
        except ValidationError as exc:
            raise typer.BadParameter(str(exc)) from exc

    stored = append_sessions(rows, file)
    typer.echo(f"Generated {len(rows)} sessions for {athlete} ({len(stored)} stored in total).")


@app.command("config")
def show_config() -> None:
    """Print the effective configuration."""
    typer.echo(json.dumps(config_as_dict(), indent=2))


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
