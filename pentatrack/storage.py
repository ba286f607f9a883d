from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Iterable, List, Tuple

from .env import get_env
from .models import (
    CURRENT_SCHEMA_VERSION,
    TrainingSession,
    ValidationError,
    normalise_discipline,
    parse_work_types,
    session_from_payload,
)

DEFAULT_DATA_DIR = Path("data")
LOGGER = logging.getLogger(__name__)


def _data_dir() -> Path:
    override = get_env("DATA_DIR")
    base = Path(override).expanduser() if override else DEFAULT_DATA_DIR
    base.mkdir(parents=True, exist_ok=True)
    return base


def _sessions_file(path: Path | str | None = None) -> Path:
    if path is not None:
        target = Path(path).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        return target
    override = get_env("SESSIONS_FILE")
    if override:
        target = Path(override).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        return target
    return _data_dir() / "sessions.json"


def _save_sessions_to_file(sessions_file: Path, sessions: Iterable[Any]) -> None:
    sessions_file.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(list(sessions), indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    with NamedTemporaryFile("w", dir=sessions_file.parent, delete=False, encoding="utf-8") as tmp:
        tmp.write(payload)
        temp_path = Path(tmp.name)
    temp_path.replace(sessions_file)


def _load_sessions_from_file(sessions_file: Path) -> List[Any]:
    if not sessions_file.exists():
        sessions_file.parent.mkdir(parents=True, exist_ok=True)
        sessions_file.write_text("[]\n", encoding="utf-8")
        return []

    raw = sessions_file.read_text(encoding="utf-8").strip() or "[]"
    try:
        sessions = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Could not parse {sessions_file}: {exc}") from exc

    if not isinstance(sessions, list):
        raise ValueError(f"{sessions_file} must contain a JSON list")

    upgraded, changed = _migrate_sessions(sessions)
    if changed:
        LOGGER.info("Migrated session records in %s", sessions_file)
        _save_sessions_to_file(sessions_file, upgraded)
    return upgraded


def load_sessions(path: Path | str | None = None) -> List[Any]:
    """Raw session rows from the JSON store, migrated to the current schema."""
    return _load_sessions_from_file(_sessions_file(path))


def save_sessions(sessions: Iterable[Any], path: Path | str | None = None) -> None:
    _save_sessions_to_file(_sessions_file(path), sessions)


def append_sessions(rows: Iterable[dict[str, Any]], path: Path | str | None = None) -> List[Any]:
    sessions_file = _sessions_file(path)
    sessions = _load_sessions_from_file(sessions_file)
    upgraded, _ = _migrate_sessions(list(rows))
    sessions.extend(upgraded)
    _save_sessions_to_file(sessions_file, sessions)
    return sessions


def load_training_sessions(path: Path | str | None = None) -> List[TrainingSession]:
    """
    Validated `TrainingSession` objects from the store.

    Rows that fail validation are logged and skipped so one bad record does not
    hide a whole club's history.
    """
    return rows_to_sessions(load_sessions(path))


def rows_to_sessions(rows: Iterable[Any]) -> List[TrainingSession]:
    sessions: List[TrainingSession] = []
    skipped = 0
    for index, row in enumerate(rows):
        try:
            sessions.append(session_from_payload(row))
        except ValidationError as exc:
            skipped += 1
            LOGGER.warning("Skipping session row %s: %s", index, exc)
    if skipped:
        LOGGER.warning("Skipped %s invalid session row(s)", skipped)
    return sessions


def _migrate_sessions(sessions: list[Any]) -> Tuple[list[Any], bool]:
    """Upgrade legacy session records when the schema evolves."""
    upgraded: list[Any] = []
    changed = False
    for record in sessions:
        if isinstance(record, dict):
            migrated, mutated = _migrate_record(record)
            upgraded.append(migrated)
            changed = changed or mutated
        else:
            upgraded.append(record)
    return upgraded, changed


def _migrate_record(record: dict[str, Any]) -> Tuple[dict[str, Any], bool]:
    mutated = False
    upgraded = dict(record)

    if "subject_id" not in upgraded and upgraded.get("user_id") is not None:
        upgraded["subject_id"] = str(upgraded.pop("user_id"))
        mutated = True

    if not upgraded.get("id"):
        upgraded["id"] = uuid.uuid4().hex
        mutated = True

    raw_discipline = upgraded.get("discipline")
    try:
        discipline = normalise_discipline(raw_discipline)
    except ValidationError:
        discipline = raw_discipline
    if discipline != raw_discipline:
        upgraded["discipline"] = discipline
        mutated = True

    try:
        work_types = list(parse_work_types(upgraded.get("work_types")))
    except ValidationError:
        work_types = []
    if upgraded.get("work_types") != work_types:
        upgraded["work_types"] = work_types
        mutated = True

    schema_raw = upgraded.get("schema_version")
    if isinstance(schema_raw, int) and schema_raw > CURRENT_SCHEMA_VERSION:
        schema_value = schema_raw
    else:
        schema_value = CURRENT_SCHEMA_VERSION
    if upgraded.get("schema_version") != schema_value:
        upgraded["schema_version"] = schema_value
        mutated = True

    return upgraded, mutated
