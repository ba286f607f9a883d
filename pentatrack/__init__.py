"""pentatrack package."""

from importlib import metadata
from typing import Any

try:
    __version__ = metadata.version("pentatrack")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for local edits
    __version__ = "0.0.0"

from .aggregation import aggregate_by_discipline, aggregate_daily_rpe, build_year_matrix
from .calendar_utils import iso_week_number, iso_weeks_in_year, month_label_for_week
from .filters import filter_sessions
from .scope import advance, resolve_scope
from .summary import compose_summary

__all__ = [
    "app",
    "__version__",
    "advance",
    "aggregate_by_discipline",
    "aggregate_daily_rpe",
    "build_year_matrix",
    "compose_summary",
    "filter_sessions",
    "iso_week_number",
    "iso_weeks_in_year",
    "month_label_for_week",
    "resolve_scope",
]


def __getattr__(name: str) -> Any:  # pragma: no cover - exercised indirectly
    if name == "app":
        from .cli import app

        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
