"""Matching configuration - bands, multipliers and windows."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields

import structlog

logger = structlog.get_logger("vinylmatch.matching.config")


@dataclass(frozen=True)
class MatchingConfig:
    """Configuration for component matching.

    Centralizes every numeric threshold used by the engine so they can be
    corrected from settings.json without touching the algorithms.
    """

    # Resonance band (Hz)
    resonance_min_hz: float = 8.0
    resonance_max_hz: float = 12.0
    # Distance outside the band still treated as borderline rather than bad
    resonance_borderline_margin_hz: float = 2.0
    # Distance inside the band flagged as "near the edge"
    resonance_edge_margin_hz: float = 0.5

    # Cartridge load: minimum load = internal impedance x multiplier
    load_multiplier: float = 10.0
    # Above this multiple the cartridge is lightly loaded (still acceptable)
    light_load_multiplier: float = 100.0

    # MM phono input sensitivity window (mV)
    mm_input_min_mv: float = 2.5
    mm_input_max_mv: float = 10.0
    # Standard MM phono input impedance (ohms)
    default_mm_input_impedance: float = 47000.0

    # Weight estimation
    compliance_band_ratio: float = 0.3
    reference_population_limit: int = 20


# Default config instance
DEFAULT_CONFIG = MatchingConfig()

# Cached config instance (loaded from settings file)
_cached_config: MatchingConfig | None = None


def _load_from_settings_file() -> MatchingConfig | None:
    """Read the "matching" section of settings.json, if there is one."""
    from vinylmatch.core.config import SETTINGS_FILE_NAME, get_settings

    settings_file = get_settings().config_dir / SETTINGS_FILE_NAME
    if not settings_file.exists():
        return None

    try:
        with settings_file.open("r", encoding="utf-8") as f:
            all_settings = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(
            "Could not read matching settings, using defaults",
            settings_file=str(settings_file),
            error=str(exc),
        )
        return None

    matching_settings = all_settings.get("matching") if isinstance(all_settings, dict) else None
    if not matching_settings:
        return None

    known = {f.name for f in fields(MatchingConfig)}
    unknown = sorted(set(matching_settings) - known)
    if unknown:
        logger.warning("Ignoring unknown matching settings", keys=unknown)

    return MatchingConfig(**{k: v for k, v in matching_settings.items() if k in known})


def get_matching_config() -> MatchingConfig:
    """Get the current matching configuration.

    Loads from settings.json if available, otherwise returns defaults.
    Caches the result.

    Returns:
        MatchingConfig instance with current settings
    """
    global _cached_config

    if _cached_config is None:
        _cached_config = _load_from_settings_file() or DEFAULT_CONFIG

    return _cached_config


def reload_matching_config() -> MatchingConfig:
    """Reload matching configuration from settings file.

    Call this after updating settings to ensure new values are used.
    """
    global _cached_config
    _cached_config = None
    return get_matching_config()
