"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from note_tutor.config import Settings, YamlSettingsSource, get_settings
from note_tutor.models.level import DifficultyLevel


def test_defaults(tmp_path):
    settings = Settings(data_dir=tmp_path)
    assert settings.port == 8000
    assert settings.history_size == 10
    assert settings.starting_level == DifficultyLevel.EASY
    assert settings.storage_dir == tmp_path


def test_env_override(monkeypatch):
    monkeypatch.setenv("HISTORY_SIZE", "4")
    monkeypatch.setenv("STARTING_LEVEL", "hard")
    settings = Settings()
    assert settings.history_size == 4
    assert settings.starting_level == DifficultyLevel.HARD


def test_history_size_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(history_size=0)


def test_storage_dir_defaults_under_project_root(tmp_path):
    settings = Settings(project_root=tmp_path)
    assert settings.storage_dir == tmp_path / "data" / "progress"
    assert settings.storage_dir.is_dir()


def test_yaml_source_flattens_sections(tmp_path, monkeypatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "settings.yaml").write_text(
        "server:\n  port: 9001\nengine:\n  random_seed: 3\nstorage:\n  data_dir: null\n",
        encoding="utf-8",
    )
    monkeypatch.setattr("note_tutor.config._find_project_root", lambda: tmp_path)
    values = YamlSettingsSource(Settings)()
    assert values == {"port": 9001, "random_seed": 3}


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()
