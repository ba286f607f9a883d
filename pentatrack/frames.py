from __future__ import annotations

from typing import Mapping, Sequence, Union

import pandas as pd

from .aggregation import Accumulator, DailyRpe, YearMatrix
from .constants import DISCIPLINE_PROFILES, DISCIPLINES
from .models import TrainingSession, session_from_payload

SessionInput = Union[Mapping[str, object], TrainingSession]

SESSION_COLUMNS = [
    "id",
    "subject_id",
    "discipline",
    "date",
    "iso_year",
    "iso_week",
    "duration_minutes",
    "distance_km",
    "rpe",
    "work_types",
    "notes",
    "focus",
]


def sessions_to_dataframe(sessions: Sequence[SessionInput]) -> pd.DataFrame:
    """Normalise raw or typed sessions into a pandas DataFrame."""
    records: list[dict[str, object]] = []
    for item in sessions:
        if isinstance(item, TrainingSession):
            session = item
        elif isinstance(item, Mapping):
            session = session_from_payload(item)
        else:
            raise TypeError(f"Unsupported session type: {type(item)!r}")

        iso_year, iso_week, _ = session.date.isocalendar()
        records.append(
            {
                "id": session.id,
                "subject_id": session.subject_id,
                "discipline": session.discipline,
                "date": pd.Timestamp(session.date),
                "iso_year": iso_year,
                "iso_week": iso_week,
                "duration_minutes": session.duration_minutes,
                "distance_km": session.distance_km if session.distance_km is not None else pd.NA,
                "rpe": session.rpe,
                "work_types": ", ".join(session.work_types),
                "notes": session.notes or "",
                "focus": session.focus or "",
            }
        )

    if not records:
        return pd.DataFrame(columns=SESSION_COLUMNS)

    df = pd.DataFrame(records, columns=SESSION_COLUMNS)
    df.sort_values(["subject_id", "date"], inplace=True, kind="stable")
    df.reset_index(drop=True, inplace=True)
    return df


def discipline_frame(groups: Mapping[str, Accumulator]) -> pd.DataFrame:
    """One row per discipline of a by-discipline fold, hours included for charts."""
    columns = ["discipline", "label", "count", "duration_minutes", "hours", "distance_km", "average_rpe"]
    rows = [
        {
            "discipline": key,
            "label": DISCIPLINE_PROFILES[key].label if key in DISCIPLINE_PROFILES else key,
            "count": stats.count,
            "duration_minutes": stats.duration_minutes,
            "hours": stats.duration_minutes / 60,
            "distance_km": stats.distance_km,
            "average_rpe": stats.average_rpe,
        }
        for key, stats in groups.items()
    ]
    return pd.DataFrame(rows, columns=columns)


def matrix_frame(matrix: YearMatrix) -> pd.DataFrame:
    """Long-format view of the season matrix: one row per discipline and week."""
    columns = ["discipline", "week", "count", "duration_minutes", "distance_km", "average_rpe"]
    rows = [
        {
            "discipline": key,
            "week": week,
            "count": cell.count,
            "duration_minutes": cell.duration_minutes,
            "distance_km": cell.distance_km,
            "average_rpe": cell.average_rpe,
        }
        for key, cells in matrix.items()
        for week, cell in cells.items()
    ]
    return pd.DataFrame(rows, columns=columns)


def matrix_pivot(matrix: YearMatrix, value: str = "count") -> pd.DataFrame:
    """Disciplines as rows, ISO weeks as columns, in display order."""
    frame = matrix_frame(matrix)
    if frame.empty:
        return pd.DataFrame()
    pivot = frame.pivot(index="discipline", columns="week", values=value)
    order = [key for key in DISCIPLINES if key in pivot.index]
    extra = [key for key in pivot.index if key not in order]
    return pivot.reindex(order + extra)


def daily_rpe_frame(series: Sequence[DailyRpe]) -> pd.DataFrame:
    columns = ["date", "average_rpe", "sessions"]
    rows = [
        {
            "date": pd.Timestamp(point.date),
            "average_rpe": point.average_rpe,
            "sessions": len(point.sessions),
        }
        for point in series
    ]
    return pd.DataFrame(rows, columns=columns)
