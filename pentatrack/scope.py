from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union

from .config import get_config
from .constants import MONTH_NAMES, PERIOD_KINDS
from .models import ValidationError, parse_iso_date

DateLike = Union[date, datetime]
CustomRange = Tuple[Union[DateLike, str], Union[DateLike, str]]

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class ScopeWindow:
    """Inclusive `[start, end]` window resolved from a period kind."""

    kind: str
    start: datetime
    end: datetime

    def contains(self, value: DateLike) -> bool:
        """Dates are compared as their midnight instant."""
        instant = value if isinstance(value, datetime) else datetime.combine(value, time.min)
        return self.start <= instant <= self.end


def _reference_day(reference: DateLike) -> date:
    return reference.date() if isinstance(reference, datetime) else reference


def _whole_days(kind: str, first: date, last: date) -> ScopeWindow:
    return ScopeWindow(
        kind=kind,
        start=datetime.combine(first, time.min),
        end=datetime.combine(last, END_OF_DAY),
    )


def _check_kind(kind: str) -> str:
    if kind not in PERIOD_KINDS:
        raise ValueError(f"period must be one of {', '.join(PERIOD_KINDS)}; received {kind!r}.")
    return kind


def resolve_scope(
    kind: str,
    reference: DateLike,
    custom_range: Optional[CustomRange] = None,
) -> ScopeWindow:
    """
    Resolve a period kind around `reference` into concrete start/end instants.

    `day`, `week`, `month` and `year` always span whole days. `custom` uses the
    caller's bounds, aligned to whole days unless `normalise_custom_range` is
    disabled in configuration.
    """
    _check_kind(kind)
    day = _reference_day(reference)

    if kind == "day":
        return _whole_days(kind, day, day)
    if kind == "week":
        monday = day - timedelta(days=day.isoweekday() - 1)
        return _whole_days(kind, monday, monday + timedelta(days=6))
    if kind == "month":
        last_day = calendar.monthrange(day.year, day.month)[1]
        return _whole_days(kind, day.replace(day=1), day.replace(day=last_day))
    if kind == "year":
        return _whole_days(kind, date(day.year, 1, 1), date(day.year, 12, 31))

    if not custom_range or custom_range[0] in (None, "") or custom_range[1] in (None, ""):
        raise ValidationError("custom period requires both a start and an end date.")
    first = parse_iso_date(custom_range[0], field="start")
    last = parse_iso_date(custom_range[1], field="end")
    if first > last:
        raise ValidationError(
            f"start must not be after end; received {first.isoformat()} > {last.isoformat()}."
        )
    if get_config().normalise_custom_range:
        return _whole_days(kind, first, last)
    return ScopeWindow(
        kind=kind,
        start=datetime.combine(first, time.min),
        end=datetime.combine(last, time.min),
    )


def _shift_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def advance(kind: str, reference: DateLike, direction: str) -> date:
    """Move the reference date one period back (`prev`) or forward (`next`)."""
    _check_kind(kind)
    if direction not in ("prev", "next"):
        raise ValueError(f"direction must be 'prev' or 'next'; received {direction!r}.")
    if kind == "custom":
        raise ValueError("custom periods cannot be navigated.")

    step = -1 if direction == "prev" else 1
    day = _reference_day(reference)
    if kind == "day":
        return day + timedelta(days=step)
    if kind == "week":
        return day + timedelta(weeks=step)
    if kind == "month":
        return _shift_months(day, step)
    return _shift_months(day, 12 * step)


_LABELS = {
    "en": {"week": "Week of {start} to {end}", "year": "Year {year}", "custom": "Custom period"},
    "fr": {"week": "Semaine du {start} au {end}", "year": "Année {year}", "custom": "Période personnalisée"},
}


def period_label(window: ScopeWindow, language: str | None = None) -> str:
    """Human caption for a resolved window, e.g. `Week of 4 March to 10 March`."""
    lang = language or get_config().language
    months = MONTH_NAMES.get(lang, MONTH_NAMES["en"])
    templates = _LABELS.get(lang, _LABELS["en"])
    start = window.start.date()
    end = window.end.date()

    def _day_month(value: date) -> str:
        return f"{value.day} {months[value.month - 1]}"

    if window.kind == "day":
        return f"{_day_month(start)} {start.year}"
    if window.kind == "week":
        return templates["week"].format(start=_day_month(start), end=_day_month(end))
    if window.kind == "month":
        return f"{months[start.month - 1]} {start.year}"
    if window.kind == "year":
        return templates["year"].format(year=start.year)
    return templates["custom"]
