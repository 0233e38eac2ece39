"""
Service layer: the EntryStore. Holds the whole entry collection in memory,
keyed by day, and re-persists the full collection after every mutation.
"""
import json
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from nurdaily.core.dates import DateLike, day_key
from nurdaily.core.errors import RestoreParseError, StorageCorruption
from nurdaily.core.kv_store import KeyValueStore
from nurdaily.plugins.journal.models import DailyEntry, blank_entry

logger = logging.getLogger(__name__)

ENTRIES_KEY = "nur_daily_entries"

_entry_list = TypeAdapter(List[DailyEntry])


def _sorted_desc(entries: List[DailyEntry]) -> List[DailyEntry]:
    return sorted(entries, key=lambda e: e.day_key, reverse=True)


def _dedupe_by_day(entries: List[DailyEntry]) -> List[DailyEntry]:
    """Keep one entry per day; a later element replaces an earlier one."""
    by_day: Dict[str, DailyEntry] = {}
    for entry in entries:
        by_day[entry.day_key] = entry
    return list(by_day.values())


class EntryStore:
    """Date-keyed DailyEntry collection with upsert-by-day semantics."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.RLock()
        self._replace_listeners: List[Callable[[List[DailyEntry]], None]] = []
        self.entries: List[DailyEntry] = self._load()

    def _load(self) -> List[DailyEntry]:
        try:
            raw = self.store.get_json(ENTRIES_KEY)
        except StorageCorruption as e:
            self.logger.warning(f"Entry collection unreadable, starting empty: {e}")
            return []
        if raw is None:
            return []
        try:
            entries = _entry_list.validate_python(raw)
        except ValidationError as e:
            self.logger.warning(f"Entry collection failed validation, starting empty: {e}")
            return []
        return _sorted_desc(_dedupe_by_day(entries))

    def _commit(self, entries: List[DailyEntry]) -> None:
        """Persist entries, and only then make them the in-memory collection."""
        self.store.set_json(ENTRIES_KEY, [entry.to_dict() for entry in entries])
        self.entries = entries

    def register_replace_listener(self, callback: Callable[[List[DailyEntry]], None]) -> None:
        """Register a callback invoked after restore() replaces the collection"""
        self._replace_listeners.append(callback)

    def list_entries(self, start: Optional[DateLike] = None, end: Optional[DateLike] = None) -> List[DailyEntry]:
        """Entries newest first, optionally limited to an inclusive day range."""
        start_key = day_key(start) if start else None
        end_key = day_key(end) if end else None
        with self._lock:
            return [
                entry for entry in self.entries
                if (start_key is None or entry.day_key >= start_key)
                and (end_key is None or entry.day_key <= end_key)
            ]

    def query(self, day: DateLike) -> Optional[DailyEntry]:
        """Return the entry for this calendar day, or None."""
        key = day_key(day)
        with self._lock:
            for entry in self.entries:
                if entry.day_key == key:
                    return entry
        return None

    def get_or_blank(self, day: DateLike, hijri_date: str = "") -> DailyEntry:
        """Existing entry for the day, else a blank one that is not persisted."""
        existing = self.query(day)
        if existing is not None:
            return existing
        return blank_entry(day, hijri_date)

    def upsert(self, entry: DailyEntry) -> DailyEntry:
        """Replace whatever entry exists for entry's day, then persist everything."""
        key = entry.day_key
        with self._lock:
            remaining = [e for e in self.entries if e.day_key != key]
            self._commit(_sorted_desc([entry] + remaining))
        self.logger.debug(f"Saved entry for {key} ({len(self.entries)} total)")
        return entry

    def delete(self, entry_id: str) -> bool:
        """Remove by id. Returns False when no entry had that id."""
        with self._lock:
            remaining = [e for e in self.entries if e.id != entry_id]
            if len(remaining) == len(self.entries):
                return False
            self._commit(remaining)
        self.logger.info(f"Deleted entry {entry_id}")
        return True

    def clear(self) -> None:
        with self._lock:
            self.store.remove(ENTRIES_KEY)
            self.entries = []
        self.logger.info("Cleared all entries")

    def export(self) -> List[Dict[str, Any]]:
        """Backup payload: a plain array of serialized entries."""
        with self._lock:
            return [entry.to_dict() for entry in self.entries]

    def export_json(self) -> str:
        return json.dumps(self.export(), ensure_ascii=False, indent=2)

    def restore(self, data: Any) -> List[DailyEntry]:
        """Replace the whole collection with the given array of entries.

        Everything is validated before anything is written; on failure a
        RestoreParseError is raised and the current collection is untouched.
        """
        if not isinstance(data, list):
            raise RestoreParseError(f"Backup must be a JSON array, got {type(data).__name__}")
        try:
            parsed = _entry_list.validate_python(data)
        except ValidationError as e:
            raise RestoreParseError(f"Backup contains invalid entries: {e.error_count()} error(s)") from e

        restored = _sorted_desc(_dedupe_by_day(parsed))
        with self._lock:
            self._commit(restored)
        self.logger.info(f"Restored {len(restored)} entries from backup")

        for callback in self._replace_listeners:
            try:
                callback(list(restored))
            except Exception as e:
                self.logger.error(f"Error in restore listener: {e}")
        return restored

    def restore_json(self, text: Union[str, bytes]) -> List[DailyEntry]:
        """Parse a backup file's contents and restore it."""
        try:
            data = json.loads(text)
        except (ValueError, TypeError) as e:
            raise RestoreParseError(f"Backup is not valid JSON: {e}") from e
        return self.restore(data)
