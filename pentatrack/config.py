from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from .constants import DEFAULT_LANGUAGE, DEFAULT_PERIOD, MONTH_NAMES, PERIOD_KINDS
from .env import get_env

try:  # pragma: no cover - Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    import tomli as tomllib  # type: ignore


@dataclass(frozen=True)
class AppConfig:
    fold_in_weekly: bool = True
    fold_in_totals: bool = False
    normalise_custom_range: bool = True
    language: str = DEFAULT_LANGUAGE
    default_period: str = DEFAULT_PERIOD


def _config_path() -> Path | None:
    """Resolve the TOML configuration file, if present."""
    env_override = get_env("CONFIG")
    if env_override:
        path = Path(env_override).expanduser()
        return path if path.exists() else None

    default_path = Path("config/pentatrack.toml")
    if default_path.exists():
        return default_path
    return None


def _load_toml(path: Path) -> Mapping[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _coerce_bool(raw: Any, default: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return default


def _coerce_choice(raw: Any, choices: tuple[str, ...] | Mapping[str, Any], default: str) -> str:
    if isinstance(raw, str) and raw.strip().lower() in choices:
        return raw.strip().lower()
    return default


def _build_config(raw: Mapping[str, Any]) -> AppConfig:
    section = raw.get("aggregation")
    aggregation = section if isinstance(section, Mapping) else {}
    base = AppConfig()
    return AppConfig(
        fold_in_weekly=_coerce_bool(aggregation.get("fold_in_weekly"), base.fold_in_weekly),
        fold_in_totals=_coerce_bool(aggregation.get("fold_in_totals"), base.fold_in_totals),
        normalise_custom_range=_coerce_bool(
            aggregation.get("normalise_custom_range"), base.normalise_custom_range
        ),
        language=_coerce_choice(raw.get("language"), MONTH_NAMES, base.language),
        default_period=_coerce_choice(raw.get("default_period"), PERIOD_KINDS, base.default_period),
    )


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load configuration once, falling back to built-in defaults."""
    path = _config_path()
    if not path:
        return AppConfig()
    data = _load_toml(path)
    return _build_config(data)


def as_dict() -> dict[str, Any]:
    """Return the effective configuration for debug/CLI display."""
    config = get_config()
    return {
        "aggregation": {
            "fold_in_weekly": config.fold_in_weekly,
            "fold_in_totals": config.fold_in_totals,
            "normalise_custom_range": config.normalise_custom_range,
        },
        "language": config.language,
        "default_period": config.default_period,
        "source": str(_config_path() or "defaults"),
    }
