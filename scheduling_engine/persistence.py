"""Key-value settings bridge.

The engine never assumes writes are durable: every read has a default and a
failing store degrades to keeping state in memory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
ENERGY_READINGS_KEY = "energyReadings"
ADAPTATION_RULES_KEY = "adaptationRules"
INTELLIGENCE_KEY = "intelligence"
CURRENT_MODEL_KEY = "currentModel"
DATA_SHARING_KEY = "dataSharing"
CONTEXTUAL_PREFERENCES_KEY = "contextualPreferences"
ENERGY_ADAPTATIONS_KEY = "energyAdaptations"
BEHAVIORAL_ADAPTATIONS_KEY = "behavioralAdaptations"
ADAPTATIONS_KEY = "adaptations"
ACTIVE_MODEL_ID_KEY = "workRestModel"


class SettingsStore(Protocol):
    def load_custom_setting(self, key: str, default: Any = None) -> Any: ...

    def save_custom_setting(self, key: str, value: Any) -> None: ...


class InMemorySettingsStore:
    def __init__(self, initial: Optional[dict] = None) -> None:
        self.values: dict[str, Any] = dict(initial or {})

    def load_custom_setting(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def save_custom_setting(self, key: str, value: Any) -> None:
        if value is None:
            self.values.pop(key, None)
        else:
            self.values[key] = value


class JsonFileSettingsStore:
    """All settings in a single JSON document, rewritten on every save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            raise ValueError(f"{self.path}: settings document must be a JSON object")
        return payload

    def load_custom_setting(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def save_custom_setting(self, key: str, value: Any) -> None:
        payload = self._read()
        if value is None:
            payload.pop(key, None)
        else:
            payload[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(self.path)


class SafeSettings:
    """Wraps a possibly-absent or failing store with default-returning calls."""

    def __init__(self, store: Optional[SettingsStore]) -> None:
        self.store = store

    def load(self, key: str, default: Any = None) -> Any:
        if self.store is None:
            logger.debug("No settings store; using default for %s", key)
            return default
        try:
            value = self.store.load_custom_setting(key, default)
        except Exception:  # noqa: BLE001
            logger.debug("Failed to load setting %s; using default", key, exc_info=True)
            return default
        return default if value is None else value

    def save(self, key: str, value: Any) -> bool:
        if self.store is None:
            logger.debug("No settings store; %s kept in memory only", key)
            return False
        try:
            self.store.save_custom_setting(key, value)
        except Exception:  # noqa: BLE001
            logger.debug("Failed to save setting %s; kept in memory only", key, exc_info=True)
            return False
        return True


class ModelSelector(Protocol):
    """Externally owned "active work/rest model id" setting."""

    def get_active_model_id(self) -> Optional[str]: ...

    def set_active_model_id(self, model_id: Optional[str]) -> None: ...


class SettingsModelSelector:
    """Active model id in settings; the last value set wins while a save has not landed."""

    def __init__(self, settings: SafeSettings, key: str = ACTIVE_MODEL_ID_KEY) -> None:
        self.settings = settings
        self.key = key
        self._unsaved = False
        self._model_id: Optional[str] = None

    def get_active_model_id(self) -> Optional[str]:
        if self._unsaved:
            return self._model_id
        return self.settings.load(self.key, None)

    def set_active_model_id(self, model_id: Optional[str]) -> None:
        self._model_id = model_id
        self._unsaved = not self.settings.save(self.key, model_id)
        if self._unsaved:
            logger.debug("Active model %s kept in memory only", model_id)
