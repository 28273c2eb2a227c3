"""Service configuration.

Values come from, lowest priority first: ``settings.json`` in the config
directory, a ``.env`` file, ``VINYLMATCH_*`` environment variables and finally
keyword arguments to ``Settings``.

Example settings.json::

    {
        "env": "production",
        "host": {"bind_address": "0.0.0.0", "port": 8000, "base_url": ""},
        "matching": {"resonance_min_hz": 8, "resonance_max_hz": 12}
    }

The ``matching`` section is read by ``vinylmatch.core.matching.config``.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

SETTINGS_FILE_NAME = "settings.json"

# Nested "host" keys and the flat field each one fills
_HOST_KEYS = {
    "bind_address": "host_bind_address",
    "port": "host_port",
    "base_url": "host_base_url",
}

# Sections owned by other loaders
_FOREIGN_SECTIONS = ("matching",)


def _default_data_dir() -> Path:
    # /config is the container volume; outside a container use backend/data
    container_volume = Path("/config")
    if container_volume.exists():
        return container_volume
    return (Path(__file__).resolve().parents[2] / "data").resolve()


def read_settings_file(config_dir: Path) -> dict[str, Any]:
    """Parse settings.json in a config directory.

    Returns an empty dict when the file is missing, unreadable or not a JSON
    object. Callers decide whether that deserves a warning.
    """
    settings_file = config_dir / SETTINGS_FILE_NAME
    if not settings_file.exists():
        return {}

    try:
        data = json.loads(settings_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}

    return data if isinstance(data, dict) else {}


def json_config_settings_source(
    settings: BaseSettings | None = None,
) -> dict[str, Any]:  # noqa: ANN001
    """Settings source backed by settings.json (lowest priority)."""
    # The data dir is not known yet, so follow the same env var Settings reads
    data_dir_env = os.environ.get("VINYLMATCH_DATA_DIR")
    data_dir = Path(data_dir_env) if data_dir_env else _default_data_dir()
    data = read_settings_file(data_dir / "config")

    values: dict[str, Any] = {}
    host = data.get("host")
    if isinstance(host, dict):
        values.update({field: host[key] for key, field in _HOST_KEYS.items() if key in host})

    values.update(
        {
            key.lower(): value
            for key, value in data.items()
            if key != "host" and key not in _FOREIGN_SECTIONS
        }
    )
    return values


class Settings(BaseSettings):
    """Runtime settings for the vinylmatch service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VINYLMATCH_",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Earlier sources win; settings.json only fills what nothing else sets
        return (  # type: ignore[return-value]
            init_settings,
            env_settings,
            dotenv_settings,
            json_config_settings_source,
        )

    env: Literal["development", "production", "testing"] = "development"

    host_bind_address: str = Field(default="127.0.0.1", description="Interface to listen on")
    host_port: int = Field(default=8000, ge=1, le=65535, description="TCP port to listen on")
    host_base_url: str = Field(
        default="",
        description="Path prefix when served behind a reverse proxy, e.g. /vinylmatch",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_to_file: bool = Field(
        default=False,
        description="Write JSON logs under logs_dir instead of stdout",
    )

    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Root for config/, database/ and logs/",
    )

    @property
    def config_dir(self) -> Path:
        return self.data_dir / "config"

    @property
    def database_dir(self) -> Path:
        return self.data_dir / "database"

    @property
    def logs_dir(self) -> Path:
        return self.data_dir / "logs"

    @property
    def database_file(self) -> Path:
        """SQLite file holding the component catalog."""
        return self.database_dir / "vinylmatch.db"

    @property
    def database_url(self) -> str:
        # Four slashes: sqlite+aiosqlite:/// followed by an absolute path
        return f"sqlite+aiosqlite:///{self.database_file.resolve().as_posix()}"

    @property
    def is_debug(self) -> bool:
        return self.env == "development"

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_testing(self) -> bool:
        return self.env == "testing"

    def model_post_init(self, __context: object) -> None:
        """Resolve data_dir and make sure its subdirectories exist."""
        self.data_dir = self.data_dir.resolve()
        for directory in (self.config_dir, self.database_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, built on first use."""
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and build them again from all sources."""
    get_settings.cache_clear()
    return get_settings()
