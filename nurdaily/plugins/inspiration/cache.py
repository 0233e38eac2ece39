"""
One DailyInspiration stored as {date, data} under daily_inspiration_cache,
valid only while date equals the day being checked.
"""
import logging
from datetime import date
from typing import Optional

from pydantic import ValidationError

from nurdaily.core.cache_helper import CacheHelper
from nurdaily.core.kv_store import KeyValueStore

from .models import DailyInspiration

logger = logging.getLogger(__name__)

CACHE_KEY = "daily_inspiration_cache"


class InspirationCache:
    def __init__(self, store: KeyValueStore):
        self.cache = CacheHelper(store)

    def get(self, today: date) -> Optional[DailyInspiration]:
        data = self.cache.get_cached_content(CACHE_KEY, today)
        if data is None:
            return None
        try:
            return DailyInspiration.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed cached inspiration: {e.error_count()} error(s)")
            return None

    def put(self, today: date, inspiration: DailyInspiration) -> None:
        self.cache.save_to_cache(CACHE_KEY, inspiration.to_dict(), today)

    def clear(self) -> None:
        self.cache.remove(CACHE_KEY)
