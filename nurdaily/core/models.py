"""
Core DB model: the durable key-value table every store persists into.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text

from nurdaily.core.db import Base


def _utc_now() -> datetime:
    """UTC now as naive datetime for DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class KeyValueRecord(Base):
    """One stored value. value is a JSON document serialized to text."""
    __tablename__ = "key_value_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)
