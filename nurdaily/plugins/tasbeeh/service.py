"""
Service layer: TasbeehLog (most-recent-first session history, capped) and
TasbeehCounter (the running count and when a session gets logged).
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from nurdaily.core.errors import StorageCorruption
from nurdaily.core.kv_store import KeyValueStore

from .models import DHIKR_OPTIONS, TARGET_OPTIONS, TasbeehSession, find_dhikr

logger = logging.getLogger(__name__)

HISTORY_KEY = "tasbeeh_history"
MAX_SESSIONS = 50
TIMESTAMP_FORMAT = "%a, %b %d, %I:%M %p"

_session_list = TypeAdapter(List[TasbeehSession])


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TasbeehLog:
    """Append-only session history, newest first, at most MAX_SESSIONS long."""

    def __init__(self, store: KeyValueStore, now_provider: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.now_provider = now_provider or _utc_now
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.RLock()
        self.sessions: List[TasbeehSession] = self._load()

    def _load(self) -> List[TasbeehSession]:
        try:
            raw = self.store.get_json(HISTORY_KEY)
        except StorageCorruption as e:
            self.logger.warning(f"Tasbeeh history unreadable, starting empty: {e}")
            return []
        if raw is None:
            return []
        try:
            return _session_list.validate_python(raw)[:MAX_SESSIONS]
        except ValidationError as e:
            self.logger.warning(f"Tasbeeh history failed validation, starting empty: {e}")
            return []

    def history(self) -> List[TasbeehSession]:
        with self._lock:
            return list(self.sessions)

    def log_session(self, label: str, count: int) -> TasbeehSession:
        """Prepend a session, drop the oldest beyond the cap and persist."""
        if not label:
            raise ValueError("label is required")
        if count < 0:
            raise ValueError("count must not be negative")
        now = self.now_provider()
        local = now.astimezone() if now.tzinfo else now
        utc = now.astimezone(timezone.utc) if now.tzinfo else now
        session = TasbeehSession(
            id=uuid4().hex[:9],
            label=label,
            count=count,
            timestamp=local.strftime(TIMESTAMP_FORMAT),
            iso_date=utc.isoformat(),
        )
        with self._lock:
            self.sessions = ([session] + self.sessions)[:MAX_SESSIONS]
            self.store.set_json(HISTORY_KEY, [s.to_dict() for s in self.sessions])
        self.logger.info(f"Logged tasbeeh session: {label} x{count}")
        return session

    def clear_history(self) -> None:
        with self._lock:
            self.sessions = []
            self.store.remove(HISTORY_KEY)
        self.logger.info("Cleared tasbeeh history")


class TasbeehCounter:
    """Running dhikr count.

    A session is logged when the count reaches a finite target, or when a
    non-zero free-running count (target 0) is reset. Switching dhikr or
    target goes through reset() with the old state first.
    """

    def __init__(self, log: TasbeehLog, label: Optional[str] = None, target: int = 33):
        self.log = log
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()
        self.dhikr = find_dhikr(label) if label else DHIKR_OPTIONS[0]
        if self.dhikr is None:
            raise ValueError(f"Unknown dhikr: {label}")
        if target not in TARGET_OPTIONS:
            raise ValueError(f"Target must be one of {TARGET_OPTIONS}")
        self.target = target
        self.count = 0

    def _reset_locked(self) -> Optional[TasbeehSession]:
        session = None
        if self.count > 0 and self.target == 0:
            session = self.log.log_session(self.dhikr.label, self.count)
        self.count = 0
        return session

    def increment(self) -> Optional[TasbeehSession]:
        """Count one; returns the logged session when this tap hit the target."""
        with self._lock:
            self.count += 1
            if self.target > 0 and self.count == self.target:
                return self.log.log_session(self.dhikr.label, self.count)
        return None

    def reset(self) -> Optional[TasbeehSession]:
        with self._lock:
            return self._reset_locked()

    def select_dhikr(self, label: str) -> Optional[TasbeehSession]:
        dhikr = find_dhikr(label)
        if dhikr is None:
            raise ValueError(f"Unknown dhikr: {label}")
        with self._lock:
            session = self._reset_locked()
            self.dhikr = dhikr
        return session

    def set_target(self, target: int) -> Optional[TasbeehSession]:
        if target not in TARGET_OPTIONS:
            raise ValueError(f"Target must be one of {TARGET_OPTIONS}")
        with self._lock:
            session = self._reset_locked()
            self.target = target
        return session

    def progress(self) -> float:
        """Percent toward the target; free-running wraps every hundred."""
        if self.target > 0:
            return self.count / self.target * 100
        return float(self.count % 100)

    def state(self) -> Dict[str, Any]:
        return {
            "label": self.dhikr.label,
            "arabic": self.dhikr.arabic,
            "translation": self.dhikr.translation,
            "target": self.target,
            "count": self.count,
            "progress": self.progress(),
        }
