"""Engine configuration loaded from YAML with built-in defaults."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "scheduler": {
        "min_readings_for_intelligence": 10,
        "reading_retention_days": 30,
    },
    "adaptive_learning": {
        "enabled": True,
        "cycle_interval_minutes": 60,
        "confidence_cutoff": 0.8,
        "monitoring_interval_days": 7,
        "cooldown_hours": {
            "model_switch": 24,
            "context_optimization": 12,
            "energy_adaptation": 6,
            "trend_response": 168,
            "behavior_adaptation": 48,
            "rollback": 24,
        },
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str | Path] = None) -> dict[str, Any]:
    """Load YAML config over the defaults. Unreadable files yield the defaults."""

    if path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Config file %s not found; using defaults", config_path)
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError):
        logger.warning("Could not read config %s; using defaults", config_path, exc_info=True)
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(loaded, dict):
        logger.warning("Config %s is not a mapping; using defaults", config_path)
        return copy.deepcopy(DEFAULT_CONFIG)
    return _deep_merge(DEFAULT_CONFIG, loaded)


@dataclass
class EngineConfig:
    min_readings_for_intelligence: int = 10
    reading_retention_days: int = 30
    learning_enabled: bool = True
    cycle_interval_minutes: float = 60
    confidence_cutoff: float = 0.8
    monitoring_interval_days: float = 7
    cooldown_hours: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CONFIG["adaptive_learning"]["cooldown_hours"])
    )

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "EngineConfig":
        merged = _deep_merge(DEFAULT_CONFIG, config)
        scheduler = merged["scheduler"]
        learning = merged["adaptive_learning"]
        return cls(
            min_readings_for_intelligence=int(scheduler["min_readings_for_intelligence"]),
            reading_retention_days=int(scheduler["reading_retention_days"]),
            learning_enabled=bool(learning["enabled"]),
            cycle_interval_minutes=float(learning["cycle_interval_minutes"]),
            confidence_cutoff=float(learning["confidence_cutoff"]),
            monitoring_interval_days=float(learning["monitoring_interval_days"]),
            cooldown_hours={k: float(v) for k, v in learning["cooldown_hours"].items()},
        )

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> "EngineConfig":
        return cls.from_dict(load_config(path))
