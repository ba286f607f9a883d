from __future__ import annotations

import json
import logging
from datetime import date

import pytest

from pentatrack import storage
from pentatrack.models import CURRENT_SCHEMA_VERSION


def _write(path, payload) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_missing_file_is_created_empty(tmp_path) -> None:
    target = tmp_path / "nested" / "sessions.json"
    assert storage.load_sessions(target) == []
    assert json.loads(target.read_text(encoding="utf-8")) == []


def test_legacy_rows_are_migrated_and_rewritten(tmp_path) -> None:
    target = tmp_path / "sessions.json"
    _write(
        target,
        [
            {
                "user_id": 42,
                "discipline": "Natation",
                "date": "2024-03-04",
                "rpe": 6,
                "distance_km": 2.5,
                "work_types": "Technique, Vitesse",
            }
        ],
    )

    rows = storage.load_sessions(target)
    assert rows[0]["subject_id"] == "42"
    assert "user_id" not in rows[0]
    assert rows[0]["discipline"] == "swim"
    assert rows[0]["work_types"] == ["Technique", "Vitesse"]
    assert rows[0]["schema_version"] == CURRENT_SCHEMA_VERSION
    assert rows[0]["id"]

    persisted = json.loads(target.read_text(encoding="utf-8"))
    assert persisted == rows


def test_invalid_json_raises(tmp_path) -> None:
    target = tmp_path / "sessions.json"
    target.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        storage.load_sessions(target)


def test_non_list_payload_raises(tmp_path) -> None:
    target = tmp_path / "sessions.json"
    _write(target, {"sessions": []})
    with pytest.raises(ValueError):
        storage.load_sessions(target)


def test_invalid_rows_are_skipped(tmp_path, caplog) -> None:
    target = tmp_path / "sessions.json"
    _write(
        target,
        [
            {"id": "ok", "subject_id": "alice", "discipline": "run", "date": "2024-03-04", "rpe": 7},
            {"id": "bad-date", "subject_id": "alice", "discipline": "run", "date": "tomorrow", "rpe": 7},
            {"id": "no-rpe", "subject_id": "alice", "discipline": "run", "date": "2024-03-04"},
            "garbage",
        ],
    )

    with caplog.at_level(logging.WARNING, logger="pentatrack.storage"):
        sessions = storage.load_training_sessions(target)

    assert [session.id for session in sessions] == ["ok"]
    assert sessions[0].date == date(2024, 3, 4)
    assert "Skipped 3 invalid session row(s)" in caplog.text


def test_append_and_save_round_trip(tmp_path) -> None:
    target = tmp_path / "sessions.json"
    storage.save_sessions(
        [{"id": "a", "subject_id": "alice", "discipline": "tir", "date": "2024-03-04", "rpe": 5}],
        target,
    )
    stored = storage.append_sessions(
        [{"id": "b", "subject_id": "alice", "discipline": "fencing", "date": "2024-03-05", "rpe": 6}],
        target,
    )
    assert [row["id"] for row in stored] == ["a", "b"]
    sessions = storage.load_training_sessions(target)
    assert [session.discipline for session in sessions] == ["shooting", "fencing"]


def test_environment_selects_sessions_file(monkeypatch, tmp_path) -> None:
    target = tmp_path / "club" / "log.json"
    monkeypatch.setenv("PENTATRACK_SESSIONS_FILE", str(target))
    storage.save_sessions([{"id": "a", "subject_id": "alice", "discipline": "run", "date": "2024-03-04", "rpe": 5}])
    assert target.exists()
    assert len(storage.load_training_sessions()) == 1


def test_environment_selects_data_dir(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv("PENTATRACK_SESSIONS_FILE", raising=False)
    monkeypatch.setenv("PENTATRACK_DATA_DIR", str(tmp_path / "data"))
    assert storage.load_sessions() == []
    assert (tmp_path / "data" / "sessions.json").exists()


def test_non_finite_numbers_are_skipped(tmp_path, caplog) -> None:
    target = tmp_path / "sessions.json"
    target.write_text(
        "["
        '{"id": "ok", "subject_id": "alice", "discipline": "run", "date": "2024-03-04", "rpe": 7},'
        '{"id": "inf-rpe", "subject_id": "alice", "discipline": "run", "date": "2024-03-04", "rpe": "inf"},'
        '{"id": "inf-duration", "subject_id": "alice", "discipline": "run", "date": "2024-03-04",'
        ' "rpe": 5, "duration_minutes": Infinity},'
        '{"id": "inf-distance", "subject_id": "alice", "discipline": "swim", "date": "2024-03-04",'
        ' "rpe": 5, "distance_km": -Infinity}'
        "]",
        encoding="utf-8",
    )

    with caplog.at_level(logging.WARNING, logger="pentatrack.storage"):
        sessions = storage.load_training_sessions(target)

    assert [session.id for session in sessions] == ["ok"]
    assert "Skipped 3 invalid session row(s)" in caplog.text
