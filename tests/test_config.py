from __future__ import annotations

from pathlib import Path

from pentatrack import config


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "pentatrack.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    loaded = config.get_config()
    assert loaded == config.AppConfig()
    assert config.as_dict()["source"] == "defaults"


def test_toml_overrides(monkeypatch, tmp_path) -> None:
    path = _write(
        tmp_path,
        """
language = "fr"
default_period = "Month"

[aggregation]
fold_in_weekly = false
fold_in_totals = "yes"
normalise_custom_range = "no"
""",
    )
    monkeypatch.setenv("PENTATRACK_CONFIG", str(path))
    loaded = config.get_config()
    assert loaded.fold_in_weekly is False
    assert loaded.fold_in_totals is True
    assert loaded.normalise_custom_range is False
    assert loaded.language == "fr"
    assert loaded.default_period == "month"
    assert config.as_dict()["source"] == str(path)


def test_invalid_values_fall_back_to_defaults(monkeypatch, tmp_path) -> None:
    path = _write(
        tmp_path,
        """
language = "de"
default_period = "fortnight"

[aggregation]
fold_in_weekly = "perhaps"
fold_in_totals = 3
""",
    )
    monkeypatch.setenv("PENTATRACK_CONFIG", str(path))
    assert config.get_config() == config.AppConfig()


def test_missing_override_file_uses_defaults(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("PENTATRACK_CONFIG", str(tmp_path / "absent.toml"))
    assert config.get_config() == config.AppConfig()


def test_default_location_is_picked_up(monkeypatch, tmp_path) -> None:
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "pentatrack.toml").write_text('language = "fr"\n', encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert config.get_config().language == "fr"
