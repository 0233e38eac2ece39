import logging
from datetime import date
from typing import Any, Optional

from nurdaily.core.errors import StorageCorruption
from nurdaily.core.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


class CacheHelper:
    def __init__(self, store: KeyValueStore, component_name: str = ""):
        """Initialize cache helper on top of the key-value store
        Args:
            store: Durable key-value store the cache lives in
            component_name: Component specific key prefix
        """
        self.store = store
        self.prefix = f"{component_name}:" if component_name else ""

    def _get_cache_key(self, key: str) -> str:
        """Namespace a key under this component"""
        return f"{self.prefix}{key}"

    def read(self, key: str) -> Optional[Any]:
        """Get a cached value regardless of age. Corrupt values count as a miss."""
        try:
            return self.store.get_json(self._get_cache_key(key))
        except StorageCorruption as e:
            logger.warning(f"Ignoring corrupt cache entry: {e}")
            return None

    def write(self, key: str, content: Any) -> None:
        """Store a value with no expiry"""
        self.store.set_json(self._get_cache_key(key), content)

    def remove(self, key: str) -> None:
        self.store.remove(self._get_cache_key(key))

    def clear(self) -> int:
        """Remove every entry under this component's prefix"""
        if not self.prefix:
            raise ValueError("Refusing to clear an unprefixed cache")
        return self.store.remove_prefix(self.prefix)

    def get_cached_content(self, key: str, today: Optional[date] = None) -> Optional[Any]:
        """Get cached content if it exists and is from today"""
        cached = self.read(key)
        if not isinstance(cached, dict) or "date" not in cached:
            return None

        today = today or date.today()
        # Plain string comparison against today's date string
        if cached["date"] == today.strftime(DATE_FORMAT):
            return cached.get("data")

        return None

    def save_to_cache(self, key: str, content: Any, today: Optional[date] = None) -> None:
        """Save content to cache with today's date"""
        today = today or date.today()
        self.write(key, {"date": today.strftime(DATE_FORMAT), "data": content})
