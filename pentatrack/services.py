from __future__ import annotations

from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from .aggregation import (
    Accumulator,
    DailyRpe,
    MatrixCell,
    YearMatrix,
    aggregate_by_discipline,
    aggregate_daily_rpe,
    build_year_matrix,
    week_total,
)
from .calendar_utils import MonthBlock, iso_weeks_in_year, month_blocks, week_start
from .constants import DISCIPLINE_PROFILES, DISCIPLINES
from .filters import filter_sessions
from .frames import daily_rpe_frame, discipline_frame, matrix_pivot, sessions_to_dataframe
from .models import TrainingSession
from .scope import END_OF_DAY, CustomRange, ScopeWindow, period_label, resolve_scope
from .summary import (
    CompositorPolicy,
    DisciplineTotal,
    FoldResults,
    Summary,
    WeeklySummary,
    compose_summary,
    discipline_totals,
    matrix_scale,
    summarise_window,
)


@dataclass(frozen=True)
class StatsReport:
    """Everything the statistics view shows for one athlete and one period."""

    subject_id: Optional[str]
    window: ScopeWindow
    label: str
    sessions: list[TrainingSession]
    by_discipline: dict[str, Accumulator]
    totals: list[DisciplineTotal]
    window_summary: WeeklySummary
    daily_rpe: list[DailyRpe]


@dataclass(frozen=True)
class SeasonReport:
    """Season overview: the discipline x week matrix plus the focused week."""

    subject_id: Optional[str]
    year: int
    focus_week: int
    matrix: YearMatrix
    month_blocks: list[MonthBlock]
    scale: dict[str, float]
    summary: Summary

    def cell(self, discipline: str, week: int) -> MatrixCell:
        try:
            return self.matrix[discipline][week]
        except KeyError as exc:
            raise ValueError(f"No season cell for {discipline!r} in week {week}.") from exc


def format_duration(total_minutes: float) -> str:
    """Render minutes as `1h05`, `2h`, `45min` or `0min`."""
    if total_minutes <= 0:
        return "0min"
    hours = int(total_minutes // 60)
    minutes = int(round(total_minutes % 60))
    if minutes == 60:
        hours, minutes = hours + 1, 0
    if hours == 0:
        return f"{minutes}min"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h{minutes:02d}"


def build_stats_report(
    sessions: Sequence[TrainingSession],
    *,
    subject_id: Optional[str],
    period: str,
    reference: date | datetime,
    custom_range: Optional[CustomRange] = None,
    policy: Optional[CompositorPolicy] = None,
    language: Optional[str] = None,
) -> StatsReport:
    """Resolve the period, filter the athlete's sessions and fold them."""
    policy = policy or CompositorPolicy.from_config()
    window = resolve_scope(period, reference, custom_range)
    scoped = filter_sessions(sessions, subject_id, window)
    groups = aggregate_by_discipline(scoped)
    return StatsReport(
        subject_id=subject_id,
        window=window,
        label=period_label(window, language),
        sessions=scoped,
        by_discipline=groups,
        totals=discipline_totals(groups, policy),
        window_summary=summarise_window(groups, policy),
        daily_rpe=aggregate_daily_rpe(scoped),
    )


def default_focus_week(year: int, today: Optional[date] = None) -> int:
    """The current ISO week when looking at the current season, else week 1."""
    today = today or date.today()
    iso_year, iso_week, _ = today.isocalendar()
    if iso_year == year:
        return iso_week
    return 1


def build_season_report(
    sessions: Sequence[TrainingSession],
    *,
    subject_id: Optional[str],
    year: int,
    focus_week: Optional[int] = None,
    policy: Optional[CompositorPolicy] = None,
    language: Optional[str] = None,
) -> SeasonReport:
    """Fold one athlete's season into the week matrix and compose its summary."""
    if not MINYEAR <= year < MAXYEAR:
        raise ValueError(f"year must be between {MINYEAR} and {MAXYEAR - 1}; received {year}.")
    policy = policy or CompositorPolicy.from_config()
    week = focus_week if focus_week is not None else default_focus_week(year)
    weeks = iso_weeks_in_year(year)
    if not 1 <= week <= weeks:
        raise ValueError(f"week must be between 1 and {weeks} for {year}; received {week}.")

    season_window = ScopeWindow(
        kind="custom",
        start=datetime.combine(week_start(year, 1), time.min),
        end=datetime.combine(week_start(year, weeks) + timedelta(days=6), END_OF_DAY),
    )
    scoped = filter_sessions(sessions, subject_id, season_window)
    matrix = build_year_matrix(scoped, year)
    folds = FoldResults(
        by_discipline=aggregate_by_discipline(scoped),
        year_matrix=matrix,
        daily_rpe=aggregate_daily_rpe(scoped),
    )
    return SeasonReport(
        subject_id=subject_id,
        year=year,
        focus_week=week,
        matrix=matrix,
        month_blocks=month_blocks(year, language),
        scale=matrix_scale(matrix),
        summary=compose_summary(folds, week, policy),
    )


def render_totals_table(totals: Sequence[DisciplineTotal]) -> str:
    """Render a fixed-width table of per-discipline totals."""
    headers = ("discipline", "sessions", "duration", "distance")
    rows = [
        {
            "discipline": row.label,
            "sessions": str(row.count),
            "duration": format_duration(row.duration_minutes),
            "distance": f"{row.distance_km:.1f} km" if row.has_distance else "",
        }
        for row in totals
    ]
    widths = {key: len(key) for key in headers}
    for row in rows:
        for key in headers:
            widths[key] = max(widths[key], len(row[key]))

    def _format_line(values: Mapping[str, str]) -> str:
        return "  ".join(values[key].rjust(widths[key]) for key in headers)

    header_line = "  ".join(key.upper().rjust(widths[key]) for key in headers)
    body = "\n".join(_format_line(row) for row in rows)
    return "\n".join(filter(None, [header_line, body]))


def render_weekly_summary(summary: WeeklySummary) -> str:
    lines = [
        f"Running: {summary.run_km:.1f} km (laser run {summary.combined_run_km:.1f} km)",
        f"Swimming: {summary.swim_km:.1f} km",
        (
            f"Sessions: fencing {summary.fencing_count}, obstacles {summary.obstacle_count}, "
            f"shooting {summary.shooting_count}, physical prep {summary.physical_prep_count}, "
            f"medical {summary.medical_count}"
        ),
        (
            f"Total: {summary.total_sessions} sessions, {format_duration(summary.total_minutes)}, "
            f"avg RPE {summary.average_rpe:.1f}"
        ),
    ]
    return "\n".join(lines)


def render_daily_rpe(series: Sequence[DailyRpe]) -> str:
    return "\n".join(
        f"{point.date.isoformat()}  RPE {point.average_rpe:.1f}  ({len(point.sessions)} session"
        f"{'s' if len(point.sessions) != 1 else ''})"
        for point in series
    )


def render_month_blocks(blocks: Sequence[MonthBlock]) -> str:
    return "  ".join(
        f"{block.label} W{block.start_week:02d}-W{block.start_week + block.span - 1:02d}"
        for block in blocks
    )


def render_season_grid(report: SeasonReport) -> str:
    """Weekly counts (or km for distance disciplines) per discipline."""
    counts = matrix_pivot(report.matrix, "count")
    distances = matrix_pivot(report.matrix, "distance_km")
    if counts.empty:
        return ""
    grid = counts.astype(float).copy()
    for key in grid.index:
        if DISCIPLINE_PROFILES[key].has_distance:
            grid.loc[key] = distances.loc[key].round(1)
    grid.index = [DISCIPLINE_PROFILES[key].label for key in grid.index]
    grid.columns = [f"W{week:02d}" for week in grid.columns]
    totals = [week_total(report.matrix, week).count for week in report.matrix[DISCIPLINES[0]]]
    grid.loc["Sessions"] = totals
    return grid.to_string(float_format=lambda value: f"{value:g}")


def render_cell_sessions(cell: MatrixCell) -> str:
    """Drill-down listing of the sessions behind one season cell."""
    if not cell.sessions:
        return "No sessions recorded."
    df = sessions_to_dataframe(cell.sessions)
    df["date"] = df["date"].dt.date
    columns = ["date", "duration_minutes", "distance_km", "rpe", "work_types", "notes"]
    return df[columns].to_string(index=False)


def generate_plots(
    stats: StatsReport,
    season: Optional[SeasonReport],
    *,
    output_dir: Path,
) -> list[Path]:
    """Create the discipline distribution, daily RPE and season heatmap charts."""

    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError as exc:  # pragma: no cover - exercised via CLI
        raise RuntimeError("matplotlib is required to generate plots.") from exc

    if not stats.sessions and (season is None or not _season_has_sessions(season)):
        raise ValueError("No sessions available to plot.")

    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")

    paths = [
        _create_distribution_plot(stats, output_dir, timestamp, plt),
        _create_rpe_plot(stats, output_dir, timestamp, plt),
    ]
    if season is not None:
        paths.append(_create_season_plot(season, output_dir, timestamp, plt))
    return paths


def _season_has_sessions(season: SeasonReport) -> bool:
    return any(cell.count for cells in season.matrix.values() for cell in cells.values())


def _create_distribution_plot(stats: StatsReport, output_dir: Path, timestamp: str, plt: Any) -> Path:
    frame = discipline_frame(stats.by_discipline)
    colors = [DISCIPLINE_PROFILES[key].color for key in frame["discipline"]]

    bar_path = output_dir / f"discipline_distribution_{timestamp}.png"
    fig, ax = plt.subplots()
    ax.bar(frame["label"], frame["hours"], color=colors)
    ax.set_title(f"Training Time by Discipline ({stats.label})")
    ax.set_xlabel("Discipline")
    ax.set_ylabel("Hours")
    if not frame.empty:
        plt.setp(ax.get_xticklabels(), rotation=45, ha="right")
    fig.tight_layout()
    fig.savefig(bar_path, dpi=150)
    plt.close(fig)
    return bar_path


def _create_rpe_plot(stats: StatsReport, output_dir: Path, timestamp: str, plt: Any) -> Path:
    frame = daily_rpe_frame(stats.daily_rpe)

    line_path = output_dir / f"daily_rpe_{timestamp}.png"
    fig, ax = plt.subplots()
    ax.plot(frame["date"], frame["average_rpe"], marker="o", linewidth=2, label="Average RPE")
    ax.set_ylim(0, 10)
    ax.set_title("Daily Intensity")
    ax.set_xlabel("Date")
    ax.set_ylabel("RPE")
    ax.legend()
    fig.autofmt_xdate()
    fig.tight_layout()
    fig.savefig(line_path, dpi=150)
    plt.close(fig)
    return line_path


def _create_season_plot(season: SeasonReport, output_dir: Path, timestamp: str, plt: Any) -> Path:
    counts = matrix_pivot(season.matrix, "count")
    distances = matrix_pivot(season.matrix, "distance_km")
    # Each row is scaled on its own peak so counts and kilometres share one colour map.
    scaled = counts.astype(float).copy()
    for key in scaled.index:
        source = distances if DISCIPLINE_PROFILES[key].has_distance else counts
        scaled.loc[key] = source.loc[key].astype(float) / season.scale[key]

    heat_path = output_dir / f"season_{season.year}_{timestamp}.png"
    fig, ax = plt.subplots(figsize=(14, 4))
    ax.imshow(scaled.to_numpy(), aspect="auto", cmap="Blues", vmin=0, vmax=1)
    ax.set_yticks(range(len(scaled.index)))
    ax.set_yticklabels([DISCIPLINE_PROFILES[key].label for key in scaled.index])
    ax.set_xticks(range(0, len(scaled.columns), 4))
    ax.set_xticklabels([f"W{week}" for week in list(scaled.columns)[::4]])
    ax.axvline(season.focus_week - 1, color="#dc2626", linewidth=1)
    ax.set_title(f"Season {season.year}")
    fig.tight_layout()
    fig.savefig(heat_path, dpi=150)
    plt.close(fig)
    return heat_path
