"""
Hijri strings cached per Gregorian day under hijri_cache:<YYYY-MM-DD>.
Entries never expire; one that reads like a Gregorian date is a miss.
"""
import logging
from typing import Optional

from nurdaily.core.cache_helper import CacheHelper
from nurdaily.core.dates import DateLike, day_key
from nurdaily.core.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

GREGORIAN_MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def looks_gregorian(text: str) -> bool:
    """True when a Gregorian month name appears anywhere in text"""
    return any(month in text for month in GREGORIAN_MONTHS)


class HijriDateCache:
    def __init__(self, store: KeyValueStore):
        self.cache = CacheHelper(store, "hijri_cache")

    def get(self, day: DateLike) -> Optional[str]:
        key = day_key(day)
        value = self.cache.read(key)
        if not isinstance(value, str) or not value.strip():
            return None
        if looks_gregorian(value):
            logger.info(f"Cached Hijri date for {key} looks Gregorian ({value!r}), recomputing")
            return None
        return value

    def put(self, day: DateLike, value: str) -> None:
        self.cache.write(day_key(day), value)

    def clear(self) -> int:
        return self.cache.clear()
