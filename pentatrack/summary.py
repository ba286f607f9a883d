from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .aggregation import Accumulator, DailyRpe, YearMatrix
from .config import get_config
from .constants import (
    DISCIPLINE_PROFILES,
    DISCIPLINES,
    FENCING,
    LASER_RUN,
    MEDICAL,
    OBSTACLE,
    PHYSICAL_PREP,
    RUN,
    SHOOTING,
    SWIM,
)


@dataclass(frozen=True)
class CompositorPolicy:
    """
    Per-output choice of merging the combined run/shoot discipline into running.

    The weekly roll-up counts laser-run kilometres as running by default, while
    the totals table keeps laser run on its own row.
    """

    fold_in_weekly: bool = True
    fold_in_totals: bool = False
    base_discipline: str = RUN
    combined_discipline: str = LASER_RUN

    @classmethod
    def from_config(
        cls,
        fold_in_weekly: Optional[bool] = None,
        fold_in_totals: Optional[bool] = None,
    ) -> "CompositorPolicy":
        """Build a policy from configuration, with explicit flags taking precedence."""
        config = get_config()
        return cls(
            fold_in_weekly=config.fold_in_weekly if fold_in_weekly is None else fold_in_weekly,
            fold_in_totals=config.fold_in_totals if fold_in_totals is None else fold_in_totals,
        )


@dataclass(frozen=True)
class WeeklySummary:
    run_km: float = 0.0
    combined_run_km: float = 0.0
    swim_km: float = 0.0
    fencing_count: int = 0
    obstacle_count: int = 0
    shooting_count: int = 0
    physical_prep_count: int = 0
    medical_count: int = 0
    total_sessions: int = 0
    total_minutes: float = 0
    average_rpe: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "run_km": round(self.run_km, 2),
            "combined_run_km": round(self.combined_run_km, 2),
            "swim_km": round(self.swim_km, 2),
            "fencing_count": self.fencing_count,
            "obstacle_count": self.obstacle_count,
            "shooting_count": self.shooting_count,
            "physical_prep_count": self.physical_prep_count,
            "medical_count": self.medical_count,
            "total_sessions": self.total_sessions,
            "total_minutes": self.total_minutes,
            "average_rpe": round(self.average_rpe, 2),
        }


@dataclass(frozen=True)
class DisciplineTotal:
    discipline: str
    label: str
    count: int
    duration_minutes: float
    distance_km: float
    has_distance: bool

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "discipline": self.discipline,
            "label": self.label,
            "count": self.count,
            "duration_minutes": self.duration_minutes,
        }
        if self.has_distance:
            payload["distance_km"] = round(self.distance_km, 2)
        return payload


@dataclass(frozen=True)
class FoldResults:
    by_discipline: Mapping[str, Accumulator] = field(default_factory=dict)
    year_matrix: YearMatrix = field(default_factory=dict)
    daily_rpe: List[DailyRpe] = field(default_factory=list)


@dataclass(frozen=True)
class Summary:
    week: WeeklySummary
    totals: List[DisciplineTotal]
    daily_rpe: List[DailyRpe]


def _roll_up(groups: Mapping[str, Accumulator], policy: CompositorPolicy) -> WeeklySummary:
    empty = Accumulator()

    def _get(key: str) -> Accumulator:
        return groups.get(key, empty)

    combined = _get(policy.combined_discipline)
    run_km = _get(policy.base_discipline).distance_km
    if policy.fold_in_weekly:
        run_km += combined.distance_km

    total = Accumulator()
    for key in DISCIPLINES:
        if key in groups:
            total.merge(groups[key])

    return WeeklySummary(
        run_km=run_km,
        combined_run_km=combined.distance_km,
        swim_km=_get(SWIM).distance_km,
        fencing_count=_get(FENCING).count,
        obstacle_count=_get(OBSTACLE).count,
        shooting_count=_get(SHOOTING).count,
        physical_prep_count=_get(PHYSICAL_PREP).count,
        medical_count=_get(MEDICAL).count,
        total_sessions=total.count,
        total_minutes=total.duration_minutes,
        average_rpe=total.average_rpe,
    )


def summarise_window(
    by_discipline: Mapping[str, Accumulator],
    policy: Optional[CompositorPolicy] = None,
) -> WeeklySummary:
    """Roll a per-discipline fold up into the dashboard's weekly figures."""
    return _roll_up(by_discipline, policy or CompositorPolicy.from_config())


def discipline_totals(
    by_discipline: Mapping[str, Accumulator],
    policy: Optional[CompositorPolicy] = None,
) -> List[DisciplineTotal]:
    """
    Rows for the statistics table, only for disciplines with sessions.

    When the policy folds the combined discipline into the base one, its count
    and distance are added to the base row and it gets no row of its own.
    """
    policy = policy or CompositorPolicy.from_config()
    merged: Dict[str, Accumulator] = {}
    for key in DISCIPLINES:
        source = by_discipline.get(key)
        if source is None:
            continue
        target_key = key
        if policy.fold_in_totals and key == policy.combined_discipline:
            target_key = policy.base_discipline
        merged.setdefault(target_key, Accumulator()).merge(source)

    rows: List[DisciplineTotal] = []
    for key in DISCIPLINES:
        stats = merged.get(key)
        if stats is None or stats.count <= 0:
            continue
        profile = DISCIPLINE_PROFILES[key]
        rows.append(
            DisciplineTotal(
                discipline=key,
                label=profile.label,
                count=stats.count,
                duration_minutes=stats.duration_minutes,
                distance_km=stats.distance_km,
                has_distance=profile.has_distance,
            )
        )
    return rows


def compose_summary(
    fold_results: FoldResults,
    focus_week: int,
    policy: Optional[CompositorPolicy] = None,
) -> Summary:
    """
    Combine fold outputs into the named roll-ups shown on dashboards.

    `focus_week` selects the season-matrix column (the hovered or selected week);
    a week outside the matrix yields an all-zero weekly summary.
    """
    policy = policy or CompositorPolicy.from_config()
    column = {
        key: cells[focus_week]
        for key, cells in fold_results.year_matrix.items()
        if focus_week in cells
    }
    return Summary(
        week=_roll_up(column, policy),
        totals=discipline_totals(fold_results.by_discipline, policy),
        daily_rpe=list(fold_results.daily_rpe),
    )


def matrix_scale(matrix: YearMatrix) -> Dict[str, float]:
    """
    Largest weekly value per discipline, for scaling season-overview bars.

    Distance-bearing disciplines are scaled on kilometres, the rest on session
    counts. Empty rows scale to 1 so they never divide by zero.
    """
    scale: Dict[str, float] = {}
    for key, cells in matrix.items():
        profile = DISCIPLINE_PROFILES.get(key)
        use_distance = bool(profile and profile.has_distance)
        peak = 0.0
        for cell in cells.values():
            value = cell.distance_km if use_distance else cell.count
            if value > peak:
                peak = value
        scale[key] = peak or 1
    return scale

