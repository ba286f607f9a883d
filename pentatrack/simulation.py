from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Callable, Optional

import numpy as np

from .constants import (
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
from .models import ValidationError

LOGGER = logging.getLogger(__name__)

SIMULATION_FOCUS = "Simulated session"

SIMULATION_WORK_TYPES: dict[str, tuple[str, ...]] = {
    FENCING: ("Assauts", "Leçon individuelle", "Technique", "Compétition"),
    SWIM: ("Série VMA", "Endurance", "Technique", "Récupération"),
    OBSTACLE: ("Parcours complet", "Technique franchissement", "Vitesse"),
    RUN: ("Footing", "VMA", "Seuil", "Sortie longue"),
    SHOOTING: ("Précision", "Vitesse", "Gestion du stress"),
    LASER_RUN: ("Combiné", "Transition", "Séries tir/course"),
    PHYSICAL_PREP: ("Musculation", "Gainage", "Explosivité", "Mobilité"),
    MEDICAL: ("Kiné", "Ostéopathie", "Récupération active"),
}

SIMULATION_NOTES: tuple[str, ...] = (
    "Good feelings today.",
    "A bit tired by the end of the session.",
    "Technique focus paid off.",
    "Hard session but productive.",
    "Need more recovery.",
    "Very good rhythm on the sets.",
    "Interesting specific work.",
    "Tough weather, strong mindset.",
    "Visible progress on the times.",
    "Slight lack of precision early on.",
)

# (month, day) windows repeated every year; no training is simulated inside them.
VACATIONS: tuple[tuple[tuple[int, int], tuple[int, int]], ...] = (
    ((4, 10), (4, 14)),
    ((8, 5), (8, 10)),
    ((12, 22), (12, 28)),
)

# Per discipline: (base minutes, extra minutes range).
DURATIONS: dict[str, tuple[int, int]] = {
    SWIM: (60, 30),
    RUN: (40, 40),
    LASER_RUN: (45, 30),
    FENCING: (90, 60),
    OBSTACLE: (60, 30),
    PHYSICAL_PREP: (45, 45),
    SHOOTING: (30, 30),
    MEDICAL: (30, 15),
}


def is_vacation(day: date) -> bool:
    key = (day.month, day.day)
    return any(start <= key <= end for start, end in VACATIONS)


def _distance(discipline: str, rng: np.random.Generator, progression: float) -> float:
    if discipline == SWIM:
        return 2.5 + rng.random() * 2 * progression
    if discipline == RUN:
        return 5 + rng.random() * 10 * progression
    if discipline == LASER_RUN:
        return 3 + rng.random() * 3
    return 0.0


def generate_simulation_sessions(
    subject_id: str,
    start: date,
    end: date,
    *,
    seed: Optional[int] = None,
    on_progress: Optional[Callable[[int], None]] = None,
) -> list[dict[str, Any]]:
    """
    Synthesise a realistic training history for one athlete.

    Sundays and vacation windows are rest days; other days hold two to four
    distinct disciplines, with medical appointments kept only occasionally.
    Swim and run distances grow over the period to mimic progression.
    """
    if not subject_id or not subject_id.strip():
        raise ValidationError("subject_id is required.")
    if start > end:
        raise ValidationError(
            f"start must not be after end; received {start.isoformat()} > {end.isoformat()}."
        )

    rng = np.random.default_rng(seed)
    total_days = max((end - start).days, 1)
    sessions: list[dict[str, Any]] = []

    current = start
    processed = 0
    while current <= end:
        processed += 1
        if on_progress is not None:
            on_progress(min(100, processed * 100 // total_days))

        if current.isoweekday() == 7 or is_vacation(current):
            current += timedelta(days=1)
            continue

        count = int(rng.integers(2, 5))
        day_disciplines = [str(value) for value in rng.permutation(DISCIPLINES)[:count]]
        progression = processed / total_days

        for discipline in day_disciplines:
            if discipline == MEDICAL and rng.random() > 0.1:
                continue

            vocabulary = SIMULATION_WORK_TYPES[discipline]
            work_types = [vocabulary[int(rng.integers(len(vocabulary)))]]
            if rng.random() > 0.7:
                second = vocabulary[int(rng.integers(len(vocabulary)))]
                if second not in work_types:
                    work_types.append(second)

            base, extra = DURATIONS[discipline]
            duration = base + int(rng.integers(extra))
            rpe = int(rng.integers(4, 9))
            if discipline == MEDICAL:
                rpe = 2 + int(rng.integers(2))

            row: dict[str, Any] = {
                "id": f"sim-{subject_id}-{current.isoformat()}-{discipline}",
                "subject_id": subject_id,
                "discipline": discipline,
                "date": current.isoformat(),
                "duration_minutes": duration,
                "work_types": work_types,
                "rpe": rpe,
                "notes": SIMULATION_NOTES[int(rng.integers(len(SIMULATION_NOTES)))],
                "focus": SIMULATION_FOCUS,
            }
            distance = _distance(discipline, rng, progression)
            if distance > 0:
                row["distance_km"] = round(float(distance), 2)
            sessions.append(row)

        current += timedelta(days=1)

    LOGGER.info(
        "Generated %s simulated sessions for %s (%s to %s)",
        len(sessions),
        subject_id,
        start.isoformat(),
        end.isoformat(),
    )
    return sessions
