from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import DISCIPLINE_ALIASES

CURRENT_SCHEMA_VERSION = 1

__all__ = [
    "parse_iso_date",
    "coerce_number",
    "clamp_rpe",
    "validate_distance",
    "validate_duration",
    "parse_work_types",
    "normalise_discipline",
    "session_from_payload",
    "TrainingSession",
    "ValidationError",
]


class ValidationError(ValueError):
    """Raised when user-supplied data cannot be normalised safely."""


def parse_iso_date(value: Any, *, field: str = "date") -> date:
    """
    Parse user-supplied ISO-8601 dates.

    Accepts `datetime.date`, `datetime.datetime`, or strings. Raises `ValidationError`
    with a friendlier message if the payload cannot be parsed.
    """
    if isinstance(value, date):
        return value if not isinstance(value, datetime) else value.date()

    if not isinstance(value, str):
        raise ValidationError(
            f"{field} must be provided as YYYY-MM-DD text; received {value!r}."
        )

    candidate = value.strip()
    if not candidate:
        raise ValidationError(f"{field} cannot be empty.")

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValidationError(
            f"{field} must be a valid ISO date (YYYY-MM-DD); received {candidate!r}."
        ) from exc

    return parsed.date()


def coerce_number(
    value: Any,
    *,
    field: str = "value",
    minimum: float | None = None,
    maximum: float | None = None,
    allow_float: bool = True,
) -> float:
    """
    Convert arbitrary input into a float with guardrails.

    The `minimum` and `maximum` bounds (inclusive) trigger a ValidationError when
    breached. When `allow_float` is False, the coerced number must be whole.
    """
    if value is None:
        raise ValidationError(f"{field} is required.")

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} is required.")
        try:
            number = float(stripped)
        except ValueError as exc:
            raise ValidationError(f"{field} must be a number; received {value!r}.") from exc
    else:
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if not allow_float and number != round(number):
        raise ValidationError(f"{field} must be an integer; received {value!r}.")

    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be >= {minimum}; received {number}.")

    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be <= {maximum}; received {number}.")

    return number


def clamp_rpe(value: Any, *, field: str = "rpe") -> int:
    """
    Coerce the Rate of Perceived Exertion into an integer between 1 and 10.

    Values outside the bounds are gently clamped to keep datasets consistent.
    """
    coerced = coerce_number(value, field=field, allow_float=False)

    lower, upper = 1, 10
    if coerced < lower:
        return lower
    if coerced > upper:
        return upper
    return int(coerced)


def validate_distance(value: Any, *, field: str = "distance_km") -> float | None:
    """Distances are optional; when present they must be non-negative kilometres."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return coerce_number(value, field=field, minimum=0.0)


def validate_duration(value: Any, *, field: str = "duration_minutes") -> int:
    """Whole, non-negative minutes. A missing duration counts as zero."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    return int(round(coerce_number(value, field=field, minimum=0.0)))


def parse_work_types(payload: Any, *, field: str = "work_types") -> tuple[str, ...]:
    """Normalise comma-separated or sequence work types, keeping first occurrences."""
    if payload is None:
        return ()

    if isinstance(payload, str):
        tokens = [token.strip() for token in payload.split(",")]
    elif isinstance(payload, (list, tuple)):
        tokens = [str(token).strip() for token in payload]
    else:
        raise ValidationError(
            f"{field} must be a comma-separated list or sequence; received {payload!r}."
        )

    seen: dict[str, None] = {}
    for token in tokens:
        if token and token not in seen:
            seen[token] = None
    return tuple(seen)


def normalise_discipline(value: Any, *, field: str = "discipline") -> str:
    """
    Map a discipline label onto its canonical key.

    Unrecognised labels are returned lower-cased rather than rejected so that a
    single stray record does not prevent the rest of a club's data from loading.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required.")
    lowered = value.strip().lower()
    return DISCIPLINE_ALIASES.get(lowered, lowered)


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


@dataclass(frozen=True)
class TrainingSession:
    """A single recorded unit of training for one athlete and one discipline."""

    id: str
    subject_id: str
    discipline: str
    date: date
    duration_minutes: int = 0
    rpe: int = 1
    distance_km: Optional[float] = None
    work_types: Tuple[str, ...] = field(default_factory=tuple)
    notes: Optional[str] = None
    focus: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Make the session JSON serialisable."""
        payload: Dict[str, Any] = {
            "id": self.id,
            "subject_id": self.subject_id,
            "discipline": self.discipline,
            "date": self.date.isoformat(),
            "duration_minutes": self.duration_minutes,
            "rpe": self.rpe,
            "work_types": list(self.work_types),
        }
        if self.distance_km is not None:
            payload["distance_km"] = self.distance_km
        if self.notes:
            payload["notes"] = self.notes
        if self.focus:
            payload["focus"] = self.focus
        if self.created_at:
            payload["created_at"] = self.created_at
        return payload


def session_from_payload(payload: Mapping[str, Any]) -> TrainingSession:
    """
    Build a validated `TrainingSession` from a raw row.

    Accepts the backend's `user_id` column as well as the canonical `subject_id`.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError(f"Session rows must be mappings; received {type(payload)!r}.")

    subject = payload.get("subject_id", payload.get("user_id"))
    subject_id = str(subject).strip() if subject is not None else ""
    if not subject_id:
        raise ValidationError("subject_id is required.")

    session_id = str(payload.get("id") or "").strip() or uuid.uuid4().hex

    return TrainingSession(
        id=session_id,
        subject_id=subject_id,
        discipline=normalise_discipline(payload.get("discipline")),
        date=parse_iso_date(payload.get("date"), field="date"),
        duration_minutes=validate_duration(payload.get("duration_minutes")),
        rpe=clamp_rpe(payload.get("rpe")),
        distance_km=validate_distance(payload.get("distance_km")),
        work_types=parse_work_types(payload.get("work_types")),
        notes=_optional_text(payload.get("notes")),
        focus=_optional_text(payload.get("focus")),
        created_at=_optional_text(payload.get("created_at")),
    )
