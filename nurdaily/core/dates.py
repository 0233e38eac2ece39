"""Day-granularity helpers. A day key is the YYYY-MM-DD part of a date."""
from datetime import date, datetime
from typing import Union

DateLike = Union[date, datetime, str]


def day_key(value: DateLike) -> str:
    """Return the day key of a date, datetime or ISO string (time of day dropped)."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        key = text.split("T")[0].split(" ")[0]
        # validates the key and raises ValueError on garbage
        return date.fromisoformat(key).isoformat()
    raise TypeError(f"Unsupported date value: {value!r}")


def to_date(value: DateLike) -> date:
    return date.fromisoformat(day_key(value))


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO timestamp, accepting the trailing 'Z' browsers emit."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def midnight_iso(value: DateLike) -> str:
    """ISO timestamp for the start of the given day."""
    return datetime.combine(to_date(value), datetime.min.time()).isoformat()
