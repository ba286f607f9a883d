from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from pentatrack.config import get_config
from pentatrack.models import ValidationError
from pentatrack.scope import ScopeWindow, advance, period_label, resolve_scope


def test_day_scope_spans_whole_day() -> None:
    window = resolve_scope("day", date(2024, 3, 6))
    assert window.start == datetime(2024, 3, 6, 0, 0, 0)
    assert window.end == datetime(2024, 3, 6, 23, 59, 59, 999000)


@pytest.mark.parametrize(
    "reference",
    [date(2024, 3, 4), date(2024, 3, 7), date(2024, 3, 10), datetime(2024, 3, 10, 18, 30)],
)
def test_week_scope_runs_monday_to_sunday(reference) -> None:
    window = resolve_scope("week", reference)
    assert window.start == datetime(2024, 3, 4)
    assert window.end == datetime(2024, 3, 10, 23, 59, 59, 999000)


def test_week_scope_bounds_are_inclusive_to_the_millisecond() -> None:
    window = resolve_scope("week", date(2024, 3, 6))
    one_ms = timedelta(milliseconds=1)

    assert window.contains(window.start)
    assert window.contains(window.end)
    assert not window.contains(window.start - one_ms)
    assert not window.contains(window.end + one_ms)
    assert window.contains(date(2024, 3, 4))
    assert window.contains(date(2024, 3, 10))
    assert not window.contains(date(2024, 3, 11))
    assert not window.contains(date(2024, 3, 3))


def test_month_scope_handles_leap_february() -> None:
    window = resolve_scope("month", date(2024, 2, 14))
    assert window.start == datetime(2024, 2, 1)
    assert window.end == datetime(2024, 2, 29, 23, 59, 59, 999000)


def test_year_scope() -> None:
    window = resolve_scope("year", date(2025, 7, 1))
    assert window.start == datetime(2025, 1, 1)
    assert window.end == datetime(2025, 12, 31, 23, 59, 59, 999000)


def test_custom_scope_is_aligned_to_whole_days_by_default() -> None:
    window = resolve_scope("custom", date(2024, 1, 1), ("2024-02-01", "2024-02-10"))
    assert window.start == datetime(2024, 2, 1)
    assert window.end == datetime(2024, 2, 10, 23, 59, 59, 999000)


def test_custom_scope_can_keep_verbatim_bounds(tmp_path, monkeypatch) -> None:
    config_file = tmp_path / "pentatrack.toml"
    config_file.write_text("[aggregation]\nnormalise_custom_range = false\n", encoding="utf-8")
    monkeypatch.setenv("PENTATRACK_CONFIG", str(config_file))
    get_config.cache_clear()

    window = resolve_scope("custom", date(2024, 1, 1), (date(2024, 2, 1), date(2024, 2, 10)))
    assert window.end == datetime(2024, 2, 10)
    assert window.contains(date(2024, 2, 10))


@pytest.mark.parametrize(
    "custom_range",
    [None, ("", "2024-02-10"), ("2024-02-10", None), ("2024-02-10", "2024-02-01"), ("nope", "2024-02-01")],
)
def test_custom_scope_rejects_incomplete_ranges(custom_range) -> None:
    with pytest.raises(ValidationError):
        resolve_scope("custom", date(2024, 1, 1), custom_range)


def test_unknown_period_kind() -> None:
    with pytest.raises(ValueError):
        resolve_scope("fortnight", date(2024, 1, 1))


@pytest.mark.parametrize(
    "kind, reference, direction, expected",
    [
        ("day", date(2024, 3, 1), "prev", date(2024, 2, 29)),
        ("week", date(2024, 3, 6), "next", date(2024, 3, 13)),
        ("month", date(2024, 1, 31), "next", date(2024, 2, 29)),
        ("month", date(2024, 1, 15), "prev", date(2023, 12, 15)),
        ("year", date(2024, 2, 29), "next", date(2025, 2, 28)),
        ("year", datetime(2024, 6, 1, 12), "prev", date(2023, 6, 1)),
    ],
)
def test_advance_moves_one_unit(kind, reference, direction, expected) -> None:
    assert advance(kind, reference, direction) == expected


def test_custom_scope_is_not_navigable() -> None:
    with pytest.raises(ValueError):
        advance("custom", date(2024, 1, 1), "next")


def test_advance_rejects_unknown_direction() -> None:
    with pytest.raises(ValueError):
        advance("week", date(2024, 1, 1), "sideways")


@pytest.mark.parametrize(
    "kind, language, expected",
    [
        ("day", "en", "6 March 2024"),
        ("week", "en", "Week of 4 March to 10 March"),
        ("week", "fr", "Semaine du 4 mars au 10 mars"),
        ("month", "fr", "mars 2024"),
        ("year", "en", "Year 2024"),
    ],
)
def test_period_label(kind, language, expected) -> None:
    window = resolve_scope(kind, date(2024, 3, 6))
    assert period_label(window, language) == expected


def test_period_label_for_custom_window() -> None:
    window = ScopeWindow(kind="custom", start=datetime(2024, 1, 1), end=datetime(2024, 1, 2))
    assert period_label(window, "fr") == "Période personnalisée"
