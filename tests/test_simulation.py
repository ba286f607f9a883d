from __future__ import annotations

from datetime import date

import pytest

from pentatrack.constants import DISCIPLINES, MEDICAL
from pentatrack.models import ValidationError, parse_iso_date
from pentatrack.simulation import generate_simulation_sessions, is_vacation
from pentatrack.storage import rows_to_sessions


def test_seed_makes_history_reproducible() -> None:
    first = generate_simulation_sessions("alice", date(2024, 1, 1), date(2024, 2, 29), seed=7)
    second = generate_simulation_sessions("alice", date(2024, 1, 1), date(2024, 2, 29), seed=7)
    assert first == second
    assert first


def test_rest_days_are_respected() -> None:
    rows = generate_simulation_sessions("alice", date(2023, 12, 1), date(2024, 4, 30), seed=3)
    for row in rows:
        day = parse_iso_date(row["date"])
        assert day.isoweekday() != 7
        assert not is_vacation(day)


def test_rows_are_valid_sessions() -> None:
    rows = generate_simulation_sessions("alice", date(2024, 5, 1), date(2024, 6, 30), seed=11)
    sessions = rows_to_sessions(rows)
    assert len(sessions) == len(rows)
    assert len({session.id for session in sessions}) == len(sessions)
    for session in sessions:
        assert session.discipline in DISCIPLINES
        assert session.subject_id == "alice"
        if session.discipline == MEDICAL:
            assert session.rpe in (2, 3)
        else:
            assert 4 <= session.rpe <= 8


def test_daily_volume_is_bounded() -> None:
    rows = generate_simulation_sessions("alice", date(2024, 5, 1), date(2024, 6, 30), seed=5)
    per_day: dict[str, int] = {}
    for row in rows:
        per_day[row["date"]] = per_day.get(row["date"], 0) + 1
    assert max(per_day.values()) <= 4


def test_progress_callback_reaches_completion() -> None:
    seen: list[int] = []
    generate_simulation_sessions("alice", date(2024, 1, 1), date(2024, 1, 31), seed=1, on_progress=seen.append)
    assert seen == sorted(seen)
    assert seen[-1] == 100


@pytest.mark.parametrize(
    "subject, start, end",
    [
        ("", date(2024, 1, 1), date(2024, 1, 31)),
        ("alice", date(2024, 2, 1), date(2024, 1, 31)),
    ],
)
def test_invalid_arguments_raise(subject, start, end) -> None:
    with pytest.raises(ValidationError):
        generate_simulation_sessions(subject, start, end)
