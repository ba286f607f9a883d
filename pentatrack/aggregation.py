from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from .calendar_utils import iso_weeks_in_year
from .constants import DISCIPLINES, is_known_discipline
from .models import TrainingSession

LOGGER = logging.getLogger(__name__)

YearMatrix = Dict[str, Dict[int, "MatrixCell"]]


@dataclass
class Accumulator:
    """Running totals for one group of sessions."""

    count: int = 0
    duration_minutes: float = 0
    distance_km: float = 0.0
    rpe_sum: float = 0

    def add(self, session: TrainingSession) -> None:
        self.count += 1
        self.duration_minutes += session.duration_minutes
        self.distance_km += session.distance_km or 0.0
        self.rpe_sum += session.rpe

    def merge(self, other: "Accumulator") -> None:
        self.count += other.count
        self.duration_minutes += other.duration_minutes
        self.distance_km += other.distance_km
        self.rpe_sum += other.rpe_sum

    @property
    def average_rpe(self) -> float:
        """Mean RPE of the group; an empty group averages to 0.0."""
        if self.count <= 0:
            return 0.0
        return self.rpe_sum / self.count

    def as_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "duration_minutes": self.duration_minutes,
            "distance_km": round(self.distance_km, 3),
            "average_rpe": round(self.average_rpe, 2),
        }


@dataclass
class MatrixCell(Accumulator):
    """Accumulator that also keeps the sessions folded into it, for drill-down."""

    sessions: List[TrainingSession] = field(default_factory=list)

    def add(self, session: TrainingSession) -> None:
        super().add(session)
        self.sessions.append(session)


@dataclass(frozen=True)
class DailyRpe:
    date: date
    average_rpe: float
    sessions: Tuple[TrainingSession, ...]


def _warn_unknown(unknown: Counter) -> None:
    if unknown:
        LOGGER.warning(
            "Skipped %s session(s) with unrecognised discipline(s): %s",
            sum(unknown.values()),
            ", ".join(sorted(unknown)),
        )


def aggregate_by_discipline(sessions: Iterable[TrainingSession]) -> Dict[str, Accumulator]:
    """
    Fold sessions into one accumulator per discipline present.

    The result is sparse (disciplines without sessions are absent) and ordered
    the way disciplines are displayed.
    """
    groups: Dict[str, Accumulator] = {}
    unknown: Counter = Counter()
    for session in sessions:
        if not is_known_discipline(session.discipline):
            unknown[session.discipline] += 1
            continue
        groups.setdefault(session.discipline, Accumulator()).add(session)
    _warn_unknown(unknown)
    return {key: groups[key] for key in DISCIPLINES if key in groups}


def build_year_matrix(sessions: Iterable[TrainingSession], year: int) -> YearMatrix:
    """
    Dense discipline x ISO-week matrix for one season.

    Every discipline has a cell for each week `1..iso_weeks_in_year(year)`, empty
    cells included. Sessions are routed by the ISO week they fall in, and only
    when that week belongs to `year`.
    """
    weeks = range(1, iso_weeks_in_year(year) + 1)
    matrix: YearMatrix = {key: {week: MatrixCell() for week in weeks} for key in DISCIPLINES}
    unknown: Counter = Counter()
    for session in sessions:
        session_year, week, _ = session.date.isocalendar()
        if session_year != year:
            continue
        row = matrix.get(session.discipline)
        if row is None:
            unknown[session.discipline] += 1
            continue
        row[week].add(session)
    _warn_unknown(unknown)
    return matrix


def aggregate_daily_rpe(sessions: Iterable[TrainingSession]) -> List[DailyRpe]:
    """Average RPE per calendar day, oldest day first."""
    groups: Dict[date, List[TrainingSession]] = {}
    for session in sessions:
        groups.setdefault(session.date, []).append(session)

    series: List[DailyRpe] = []
    for day in sorted(groups):
        members = groups[day]
        average = sum(item.rpe for item in members) / len(members)
        series.append(DailyRpe(date=day, average_rpe=average, sessions=tuple(members)))
    return series


def week_total(matrix: YearMatrix, week: int, disciplines: Sequence[str] = DISCIPLINES) -> Accumulator:
    """Sum one matrix column across the given disciplines."""
    total = Accumulator()
    for key in disciplines:
        cell = matrix.get(key, {}).get(week)
        if cell is not None:
            total.merge(cell)
    return total
