"""
Service layer: the SettingsStore singleton. Loaded once over defaults and
re-persisted in full on every update.
"""
import copy
import logging
import threading
from typing import Any, Callable, Dict, List

from pydantic import ValidationError

from nurdaily.core.errors import StorageCorruption
from nurdaily.core.kv_store import KeyValueStore
from nurdaily.plugins.journal.models import PRAYER_KEYS

from .models import AppSettings, default_settings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "nur_daily_settings"
MAX_REPAIR_PASSES = 3


def _alias_map() -> Dict[str, str]:
    """field name -> wire key, so partials may use either spelling"""
    return {name: (field.alias or name) for name, field in AppSettings.model_fields.items()}


def merge_settings(base: Dict[str, Any], partial: Dict[str, Any], strict: bool = True) -> Dict[str, Any]:
    """Shallow merge of partial over base; alarms merge per prayer and per field.

    With strict=False unknown prayer keys are dropped instead of raising.
    """
    aliases = _alias_map()
    merged = copy.deepcopy(base)
    for key, value in (partial or {}).items():
        key = aliases.get(key, key)
        if key != "alarms":
            merged[key] = value
            continue
        if value is None:
            continue
        if not isinstance(value, dict):
            raise ValueError("alarms must be an object keyed by prayer")
        alarms = merged.setdefault("alarms", {})
        for prayer, alarm in value.items():
            if prayer not in PRAYER_KEYS:
                if strict:
                    raise ValueError(f"Unknown prayer alarm: {prayer}")
                logger.warning(f"Dropping unknown prayer alarm {prayer!r}")
                continue
            if not isinstance(alarm, dict):
                raise ValueError(f"Alarm for {prayer} must be an object")
            alarms[prayer] = {**alarms.get(prayer, {}), **alarm}
    return merged


def _reset_to_default(data: Dict[str, Any], defaults: Dict[str, Any], loc) -> None:
    """Replace the value at loc with its default, or drop the top-level key."""
    if not loc:
        return
    node, default = data, defaults
    for part in loc[:-1]:
        if not isinstance(node, dict) or not isinstance(default, dict) or part not in default:
            break
        node, default = node.get(part), default[part]
    else:
        if isinstance(node, dict) and isinstance(default, dict) and loc[-1] in default:
            node[loc[-1]] = copy.deepcopy(default[loc[-1]])
            return
    if loc[0] in defaults:
        data[loc[0]] = copy.deepcopy(defaults[loc[0]])
    else:
        data.pop(loc[0], None)


class SettingsStore:
    """AppSettings with partial-update merge semantics."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.RLock()
        self._listeners: List[Callable[[AppSettings], None]] = []
        self.settings = self.load()

    def load(self) -> AppSettings:
        """Persisted settings merged over defaults; unreadable data yields defaults."""
        defaults = default_settings()
        try:
            raw = self.store.get_json(SETTINGS_KEY)
        except StorageCorruption as e:
            self.logger.warning(f"Settings unreadable, using defaults: {e}")
            return defaults
        if not isinstance(raw, dict):
            if raw is not None:
                self.logger.warning("Stored settings are not an object, using defaults")
            return defaults
        default_data = defaults.to_dict()
        try:
            data = merge_settings(default_data, raw, strict=False)
        except ValueError as e:
            self.logger.warning(f"Stored settings invalid, using defaults: {e}")
            return defaults
        # each pass puts defaults back where validation failed; the rest is kept
        for _ in range(MAX_REPAIR_PASSES):
            try:
                return AppSettings.model_validate(data)
            except ValidationError as e:
                for error in e.errors():
                    self.logger.warning(
                        f"Stored setting {'.'.join(map(str, error['loc'])) or '<root>'} invalid, using default: {error['msg']}"
                    )
                    _reset_to_default(data, default_data, error["loc"])
        self.logger.warning("Stored settings could not be repaired, using defaults")
        return defaults

    def register_change_listener(self, callback: Callable[[AppSettings], None]) -> None:
        self._listeners.append(callback)

    def update(self, partial: Dict[str, Any]) -> AppSettings:
        """Merge a partial update, validate, persist and return the new settings.

        Raises ValueError (including pydantic ValidationError) on bad input;
        the current settings are left unchanged in that case.
        """
        with self._lock:
            merged = merge_settings(self.settings.to_dict(), partial)
            updated = AppSettings.model_validate(merged)
            self.store.set_json(SETTINGS_KEY, updated.to_dict())
            self.settings = updated
        self.logger.info(f"Settings updated: {sorted(partial.keys())}")
        for callback in self._listeners:
            try:
                callback(updated)
            except Exception as e:
                self.logger.error(f"Error in settings listener: {e}")
        return updated

    def reset(self) -> AppSettings:
        """Drop persisted settings and go back to defaults."""
        with self._lock:
            self.store.remove(SETTINGS_KEY)
            self.settings = default_settings()
        self.logger.info("Settings reset to defaults")
        return self.settings
