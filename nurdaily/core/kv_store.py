"""
Durable string-keyed store backed by the key_value_store table.
Values are JSON documents; get/set/remove are synchronous.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from nurdaily.core.db import session_scope
from nurdaily.core.errors import StorageCorruption
from nurdaily.core.models import KeyValueRecord

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Synchronous get/set/remove over one device-local SQLite table."""

    def get(self, key: str) -> Optional[str]:
        """Return the raw stored text for key, or None."""
        with session_scope() as session:
            row = session.execute(
                select(KeyValueRecord).where(KeyValueRecord.key == key)
            ).scalars().first()
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        """Insert or replace the raw text stored under key, in one statement."""
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        stmt = sqlite_insert(KeyValueRecord).values(key=key, value=value, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[KeyValueRecord.key],
            set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
        )
        with session_scope() as session:
            session.execute(stmt)

    def remove(self, key: str) -> None:
        with session_scope() as session:
            session.execute(delete(KeyValueRecord).where(KeyValueRecord.key == key))

    def keys(self, prefix: str = "") -> List[str]:
        """Return stored keys starting with prefix, sorted."""
        with session_scope() as session:
            stmt = select(KeyValueRecord.key).order_by(KeyValueRecord.key)
            if prefix:
                stmt = stmt.where(KeyValueRecord.key.startswith(prefix, autoescape=True))
            return list(session.execute(stmt).scalars().all())

    def remove_prefix(self, prefix: str) -> int:
        """Remove every key starting with prefix. Returns the number removed."""
        with session_scope() as session:
            result = session.execute(
                delete(KeyValueRecord).where(KeyValueRecord.key.startswith(prefix, autoescape=True))
            )
            return result.rowcount or 0

    def get_json(self, key: str) -> Any:
        """Return the decoded JSON value for key, None if missing.

        Raises StorageCorruption when the stored text is not valid JSON.
        """
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise StorageCorruption(key, str(e)) from e

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, ensure_ascii=False))
