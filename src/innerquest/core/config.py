from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple
import yaml

from .errors import InnerQuestError
from .ids import PhaseId
from ..events.phases import DEFAULT_PHASES, PhaseDef, PhaseTableError, validate_phase_table


class ConfigSchemaError(InnerQuestError):
    """Raised when a configuration file does not match the expected schema."""
    pass


def _default_initial_stats() -> Dict[str, int]:
    return {"energie": 50, "mental": 50, "emotionnel": 50, "spiritualite": 50}


def _default_settings() -> Dict[str, Any]:
    return {
        "locale": "fr",
        "theme": "light",
        "font_size": "medium",
        "animations_enabled": True,
        "music_enabled": True,
        "sfx_enabled": True,
        "music_volume": 0.5,
        "sfx_volume": 0.5,
        "high_contrast": False,
        "reduce_motion": False,
    }


@dataclass(frozen=True)
class GameConfig:
    initial_stats: Dict[str, int] = field(default_factory=_default_initial_stats)
    stat_min: int = 0
    stat_max: int = 100
    phases: Tuple[PhaseDef, ...] = DEFAULT_PHASES
    # Number of most recent history entries whose events cannot be drawn again
    recent_events_exclusion: int = 5
    max_history_length: int = 100
    max_days: int = 365
    save_version: str = "1.0.0"
    default_locale: str = "fr"
    fallback_locale: str = "fr"
    supported_locales: Tuple[str, ...] = ("fr", "en", "es", "de")
    default_settings: Dict[str, Any] = field(default_factory=_default_settings)
    debug: bool = False

    @property
    def stat_names(self) -> List[str]:
        return list(self.initial_stats.keys())


DEFAULT_CONFIG = GameConfig()


def _require_int(data: Dict[str, Any], key: str, path: Path, minimum: int) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigSchemaError(f"Invalid '{key}' in {path}: {value!r} (expected integer >= {minimum})")
    return value


def _parse_phases(raw_phases: Any, path: Path) -> Tuple[PhaseDef, ...]:
    if not isinstance(raw_phases, list):
        raise ConfigSchemaError(f"'phases' in {path} must be a list.")
    phases = []
    for p_data in raw_phases:
        for key in ["id", "name", "min_day"]:
            if key not in p_data:
                raise ConfigSchemaError(f"Missing key '{key}' in phase '{p_data.get('name', 'N/A')}' in {path}")
        max_day = p_data.get("max_day")
        if max_day is not None and not isinstance(max_day, int):
            raise ConfigSchemaError(f"Invalid 'max_day' in phase '{p_data['name']}' in {path}: {max_day!r}")
        phases.append(PhaseDef(
            id=PhaseId(int(p_data["id"])),
            name=str(p_data["name"]),
            min_day=int(p_data["min_day"]),
            max_day=max_day,
        ))
    try:
        validate_phase_table(phases)
    except PhaseTableError as e:
        raise ConfigSchemaError(f"Invalid phase table in {path}: {e}") from e
    return tuple(phases)


def load_config(path: Path) -> GameConfig:
    """Loads a GameConfig from a YAML file. Keys absent from the file keep their defaults."""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if data is None:
        return DEFAULT_CONFIG
    if not isinstance(data, dict):
        raise ConfigSchemaError(f"Top level of {path} must be a mapping.")

    kwargs: Dict[str, Any] = {}

    if "initial_stats" in data:
        stats = data["initial_stats"]
        if not (isinstance(stats, dict) and stats and all(isinstance(v, int) for v in stats.values())):
            raise ConfigSchemaError(f"Invalid 'initial_stats' in {path}: {stats!r}")
        kwargs["initial_stats"] = {str(k): v for k, v in stats.items()}

    for key, minimum in [("stat_min", 0), ("stat_max", 1), ("recent_events_exclusion", 0),
                         ("max_history_length", 1), ("max_days", 1)]:
        if key in data:
            kwargs[key] = _require_int(data, key, path, minimum)

    stat_min = kwargs.get("stat_min", DEFAULT_CONFIG.stat_min)
    stat_max = kwargs.get("stat_max", DEFAULT_CONFIG.stat_max)
    if stat_min >= stat_max:
        raise ConfigSchemaError(f"'stat_min' must be lower than 'stat_max' in {path}")

    if "phases" in data:
        kwargs["phases"] = _parse_phases(data["phases"], path)

    for key in ["save_version", "default_locale", "fallback_locale"]:
        if key in data:
            if not isinstance(data[key], str) or not data[key]:
                raise ConfigSchemaError(f"Invalid '{key}' in {path}: {data[key]!r}")
            kwargs[key] = data[key]

    if "supported_locales" in data:
        locales = data["supported_locales"]
        if not (isinstance(locales, list) and locales and all(isinstance(l, str) for l in locales)):
            raise ConfigSchemaError(f"Invalid 'supported_locales' in {path}: {locales!r}")
        kwargs["supported_locales"] = tuple(locales)

    if "default_settings" in data:
        settings = data["default_settings"]
        if not isinstance(settings, dict):
            raise ConfigSchemaError(f"Invalid 'default_settings' in {path}")
        merged = _default_settings()
        merged.update(settings)
        kwargs["default_settings"] = merged

    if "debug" in data:
        kwargs["debug"] = bool(data["debug"])

    config = GameConfig(**kwargs)
    if config.default_locale not in config.supported_locales:
        raise ConfigSchemaError(f"Default locale '{config.default_locale}' is not listed in 'supported_locales' in {path}")
    return config
