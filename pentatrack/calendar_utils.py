from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from .config import get_config
from .constants import MONTH_NAMES

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class MonthBlock:
    """A run of consecutive weeks sharing the same month label."""

    label: str
    start_week: int
    span: int


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def iso_week_number(value: DateLike) -> int:
    """
    ISO-8601 week number (1..53) of a date.

    Weeks run Monday to Sunday and belong to the year holding their Thursday, so
    29-31 December can fall in week 1 and 1-3 January in week 52 or 53.
    """
    return _as_date(value).isocalendar()[1]


def iso_year(value: DateLike) -> int:
    """ISO year owning the week that contains `value`."""
    return _as_date(value).isocalendar()[0]


def iso_weeks_in_year(year: int) -> int:
    """Number of ISO weeks in `year`: 52 or 53."""
    last_week = iso_week_number(date(year, 12, 31))
    if last_week == 1:
        # 31 December already belongs to next year's week 1.
        return iso_week_number(date(year, 12, 24))
    return last_week


def _check_week(year: int, week: int) -> None:
    weeks = iso_weeks_in_year(year)
    if not 1 <= week <= weeks:
        raise ValueError(f"week must be between 1 and {weeks} for {year}; received {week}.")


def week_start(year: int, week: int) -> date:
    """Monday of ISO week `week` in ISO year `year`."""
    _check_week(year, week)
    return date.fromisocalendar(year, week, 1)


def _month_names(language: str | None) -> tuple[str, ...]:
    return MONTH_NAMES.get(language or get_config().language, MONTH_NAMES["en"])


def month_label_for_week(year: int, week: int, language: str | None = None) -> str:
    """
    Month name of the Thursday of the given ISO week.

    Weeks straddling two months are attributed to a single one; the label is
    for display grouping only.
    """
    _check_week(year, week)
    middle = date.fromisocalendar(year, week, 4)
    return _month_names(language)[middle.month - 1]


def month_blocks(year: int, language: str | None = None) -> list[MonthBlock]:
    """Group the weeks of `year` into contiguous same-month blocks."""
    blocks: list[MonthBlock] = []
    for week in range(1, iso_weeks_in_year(year) + 1):
        label = month_label_for_week(year, week, language)
        if blocks and blocks[-1].label == label:
            last = blocks[-1]
            blocks[-1] = MonthBlock(label=last.label, start_week=last.start_week, span=last.span + 1)
        else:
            blocks.append(MonthBlock(label=label, start_week=week, span=1))
    return blocks
