from __future__ import annotations

from dataclasses import dataclass

FENCING = "fencing"
SWIM = "swim"
OBSTACLE = "obstacle"
RUN = "run"
SHOOTING = "shooting"
LASER_RUN = "laser_run"
PHYSICAL_PREP = "physical_prep"
MEDICAL = "medical"

# Display order used by every table and matrix.
DISCIPLINES: tuple[str, ...] = (
    FENCING,
    SWIM,
    OBSTACLE,
    RUN,
    SHOOTING,
    LASER_RUN,
    PHYSICAL_PREP,
    MEDICAL,
)

PERIOD_KINDS: tuple[str, ...] = ("day", "week", "month", "year", "custom")
DEFAULT_PERIOD = "week"
DEFAULT_LANGUAGE = "en"
ROLES: tuple[str, ...] = ("athlete", "coach")


@dataclass(frozen=True)
class DisciplineProfile:
    """Static description of a discipline: which dimensions it records."""

    key: str
    label: str
    has_distance: bool
    has_duration: bool
    work_types: tuple[str, ...]
    color: str


DISCIPLINE_PROFILES: dict[str, DisciplineProfile] = {
    FENCING: DisciplineProfile(
        key=FENCING,
        label="Escrime",
        has_distance=False,
        has_duration=True,
        work_types=("Assauts", "Déplacements", "Leçon"),
        color="#2563eb",
    ),
    SWIM: DisciplineProfile(
        key=SWIM,
        label="Natation",
        has_distance=True,
        has_duration=True,
        work_types=("Technique", "Vitesse", "Aérobie", "Récupération"),
        color="#06b6d4",
    ),
    OBSTACLE: DisciplineProfile(
        key=OBSTACLE,
        label="Obstacles",
        has_distance=False,
        has_duration=True,
        work_types=("Technique", "Enchaînement", "Test", "Endurance", "Répétition"),
        color="#ea580c",
    ),
    RUN: DisciplineProfile(
        key=RUN,
        label="Course",
        has_distance=True,
        has_duration=True,
        work_types=("Footing", "Seuil 1", "Seuil 2", "VMA courte", "VMA longue"),
        color="#16a34a",
    ),
    SHOOTING: DisciplineProfile(
        key=SHOOTING,
        label="Tir",
        has_distance=False,
        has_duration=True,
        work_types=("Séance individuelle", "Séance collective", "Confrontations"),
        color="#dc2626",
    ),
    LASER_RUN: DisciplineProfile(
        key=LASER_RUN,
        label="Laser Run",
        has_distance=True,
        has_duration=True,
        work_types=("Footing", "Seuil 1", "Seuil 2", "VMA courte", "VMA longue"),
        color="#9333ea",
    ),
    PHYSICAL_PREP: DisciplineProfile(
        key=PHYSICAL_PREP,
        label="Prépa Physique",
        has_distance=False,
        has_duration=True,
        work_types=(),
        color="#334155",
    ),
    MEDICAL: DisciplineProfile(
        key=MEDICAL,
        label="Médical",
        has_distance=False,
        has_duration=True,
        work_types=("Kiné", "Psy", "Préparation Mentale", "Osthéo"),
        color="#10b981",
    ),
}

# Lower-cased spellings seen in backend exports and user input.
DISCIPLINE_ALIASES: dict[str, str] = {
    "escrime": FENCING,
    "fencing": FENCING,
    "natation": SWIM,
    "swim": SWIM,
    "swimming": SWIM,
    "obstacles": OBSTACLE,
    "obstacle": OBSTACLE,
    "course": RUN,
    "run": RUN,
    "running": RUN,
    "tir": SHOOTING,
    "shooting": SHOOTING,
    "laser run": LASER_RUN,
    "laser_run": LASER_RUN,
    "laser-run": LASER_RUN,
    "laserrun": LASER_RUN,
    "prépa physique": PHYSICAL_PREP,
    "prepa physique": PHYSICAL_PREP,
    "physical_prep": PHYSICAL_PREP,
    "physical prep": PHYSICAL_PREP,
    "médical": MEDICAL,
    "medical": MEDICAL,
}

MONTH_NAMES: dict[str, tuple[str, ...]] = {
    "en": (
        "January",
        "February",
        "March",
        "April",
        "May",
        "June",
        "July",
        "August",
        "September",
        "October",
        "November",
        "December",
    ),
    "fr": (
        "janvier",
        "février",
        "mars",
        "avril",
        "mai",
        "juin",
        "juillet",
        "août",
        "septembre",
        "octobre",
        "novembre",
        "décembre",
    ),
}


def is_known_discipline(value: str) -> bool:
    return value in DISCIPLINE_PROFILES
