"""Tests for configuration functionality."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from vinylmatch.core.config import Settings, get_settings, reload_settings
from vinylmatch.core.matching import DEFAULT_CONFIG, get_matching_config, reload_matching_config


def _write_settings(data_dir: Path, data: dict) -> None:
    config_dir = data_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "settings.json").write_text(json.dumps(data), encoding="utf-8")


def test_settings_defaults(monkeypatch) -> None:
    """Test that settings have correct defaults."""
    monkeypatch.delenv("VINYLMATCH_ENV", raising=False)
    settings = Settings()

    assert settings.env == "development"
    assert settings.host_bind_address == "127.0.0.1"
    assert settings.host_port == 8000
    assert settings.host_base_url == ""
    assert settings.log_level == "INFO"
    assert settings.log_to_file is False
    assert settings.is_debug is True
    assert settings.is_production is False
    assert settings.is_testing is False

    assert settings.config_dir == settings.data_dir / "config"
    assert settings.database_dir == settings.data_dir / "database"
    assert settings.logs_dir == settings.data_dir / "logs"
    assert settings.database_file == settings.database_dir / "vinylmatch.db"


def test_settings_from_env_vars(monkeypatch) -> None:
    """Test that settings can be loaded from environment variables."""
    monkeypatch.setenv("VINYLMATCH_ENV", "production")
    monkeypatch.setenv("VINYLMATCH_HOST_BIND_ADDRESS", "0.0.0.0")
    monkeypatch.setenv("VINYLMATCH_HOST_PORT", "9000")

    settings = reload_settings()

    assert settings.env == "production"
    assert settings.host_bind_address == "0.0.0.0"
    assert settings.host_port == 9000
    assert settings.is_production is True
    assert settings.is_debug is False


def test_settings_from_env_file(tmp_path: Path, monkeypatch) -> None:
    """Test that settings can be loaded from .env file."""
    monkeypatch.delenv("VINYLMATCH_ENV", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "VINYLMATCH_ENV=testing\n"
        "VINYLMATCH_HOST_BIND_ADDRESS=localhost\n"
        "VINYLMATCH_HOST_PORT=8080\n"
        "VINYLMATCH_LOG_LEVEL=DEBUG\n"
    )

    settings = Settings(_env_file=str(env_file))

    assert settings.env == "testing"
    assert settings.host_bind_address == "localhost"
    assert settings.host_port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.is_testing is True


def test_settings_from_json_file(isolated_data_dir: Path, monkeypatch) -> None:
    """Test that settings.json is read, including the nested host section."""
    monkeypatch.delenv("VINYLMATCH_ENV", raising=False)
    _write_settings(
        isolated_data_dir,
        {
            "env": "production",
            "log_level": "WARNING",
            "host": {"bind_address": "0.0.0.0", "port": 8123, "base_url": "/vinylmatch"},
            "matching": {"load_multiplier": 20},
        },
    )

    settings = reload_settings()

    assert settings.env == "production"
    assert settings.log_level == "WARNING"
    assert settings.host_bind_address == "0.0.0.0"
    assert settings.host_port == 8123
    assert settings.host_base_url == "/vinylmatch"


def test_env_vars_override_json_file(isolated_data_dir: Path, monkeypatch) -> None:
    _write_settings(isolated_data_dir, {"host": {"port": 8123}})
    monkeypatch.setenv("VINYLMATCH_HOST_PORT", "9100")

    settings = reload_settings()

    assert settings.host_port == 9100


def test_keyword_arguments_override_env_vars(monkeypatch) -> None:
    monkeypatch.setenv("VINYLMATCH_HOST_PORT", "9100")

    settings = Settings(host_port=9200, env="production")

    assert settings.host_port == 9200
    assert settings.env == "production"


def test_env_file_overrides_json_file(isolated_data_dir: Path, tmp_path: Path, monkeypatch) -> None:
    _write_settings(isolated_data_dir, {"host": {"port": 8123, "bind_address": "10.0.0.1"}})
    env_file = tmp_path / "override.env"
    env_file.write_text("VINYLMATCH_HOST_PORT=8456\n", encoding="utf-8")

    settings = Settings(_env_file=str(env_file))

    assert settings.host_port == 8456
    assert settings.host_bind_address == "10.0.0.1"


def test_invalid_json_file_is_ignored(isolated_data_dir: Path) -> None:
    config_dir = isolated_data_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "settings.json").write_text("{not json", encoding="utf-8")

    settings = reload_settings()

    assert settings.host_port == 8000


def test_settings_port_validation() -> None:
    """Test that port validation works."""
    with pytest.raises(ValidationError):
        Settings(host_port=0)  # Too low

    with pytest.raises(ValidationError):
        Settings(host_port=70000)  # Too high


def test_settings_env_validation() -> None:
    """Test that env validation works."""
    with pytest.raises(ValidationError):
        Settings(env="invalid")  # Not in Literal


def test_get_settings_singleton() -> None:
    """Test that get_settings() returns a singleton."""
    settings1 = get_settings()
    settings2 = get_settings()

    assert settings1 is settings2


def test_data_dir_creation(tmp_path: Path) -> None:
    """Test that data directories are created automatically."""
    data_dir = tmp_path / "data"

    settings = Settings(data_dir=str(data_dir))

    assert settings.data_dir.is_dir()
    assert settings.config_dir.exists()
    assert settings.database_dir.exists()
    assert settings.logs_dir.exists()


def test_database_url_is_absolute(tmp_path: Path) -> None:
    """Test that database_url points at an absolute path in database_dir."""
    settings = Settings(data_dir=str(tmp_path))

    db_url = settings.database_url
    assert db_url.startswith("sqlite+aiosqlite:////")
    assert db_url.endswith("/database/vinylmatch.db")


def test_settings_case_insensitive(monkeypatch) -> None:
    """Test that settings are case-insensitive."""
    monkeypatch.delenv("VINYLMATCH_ENV", raising=False)
    monkeypatch.setenv("vinylmatch_env", "production")

    settings = reload_settings()

    assert settings.env == "production"


class TestMatchingConfigFile:
    """Tests for the "matching" section of settings.json."""

    def test_defaults_without_settings_file(self) -> None:
        assert reload_matching_config() == DEFAULT_CONFIG

    def test_overrides_from_settings_file(self, isolated_data_dir: Path) -> None:
        _write_settings(
            isolated_data_dir,
            {"matching": {"resonance_min_hz": 7.5, "load_multiplier": 20}},
        )

        config = reload_matching_config()

        assert config.resonance_min_hz == 7.5
        assert config.load_multiplier == 20
        assert config.resonance_max_hz == DEFAULT_CONFIG.resonance_max_hz

    def test_unknown_keys_are_ignored(self, isolated_data_dir: Path) -> None:
        _write_settings(isolated_data_dir, {"matching": {"mm_input_max_mv": 8, "bogus": 1}})

        config = reload_matching_config()

        assert config.mm_input_max_mv == 8
        assert not hasattr(config, "bogus")

    def test_invalid_file_falls_back_to_defaults(self, isolated_data_dir: Path) -> None:
        config_dir = isolated_data_dir / "config"
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "settings.json").write_text("[broken", encoding="utf-8")

        assert reload_matching_config() == DEFAULT_CONFIG

    def test_config_is_cached(self, isolated_data_dir: Path) -> None:
        first = get_matching_config()
        _write_settings(isolated_data_dir, {"matching": {"load_multiplier": 50}})

        assert get_matching_config() is first
        assert reload_matching_config().load_multiplier == 50
