"""
Service layer: consistency summary over a trailing window of days.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from nurdaily.core.dates import parse_iso_datetime
from nurdaily.plugins.journal.models import PRAYER_KEYS, DailyEntry, TriState
from nurdaily.plugins.tasbeeh.models import DAROOD_LABEL, TasbeehSession

logger = logging.getLogger(__name__)

RANGES = {"7": 7, "30": 30, "all": None}


class AnalyticsSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    range: str
    total_days: int = Field(alias="totalDays")
    total_prayers: int = Field(alias="totalPrayers")
    prayer_consistency: int = Field(alias="prayerConsistency")
    workout_consistency: int = Field(alias="workoutConsistency")
    skill_consistency: int = Field(alias="skillConsistency")
    quran_consistency: int = Field(alias="quranConsistency")
    total_tasbeeh: int = Field(alias="totalTasbeeh")
    darood_count: int = Field(alias="daroodCount")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


def _percent(part: int, whole: int) -> int:
    # halves round up
    return int(part / whole * 100 + 0.5)


def _session_time(session: TasbeehSession) -> Optional[datetime]:
    if not session.iso_date:
        return None
    try:
        moment = parse_iso_datetime(session.iso_date)
    except ValueError:
        return None
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def compute_summary(
    entries: Iterable[DailyEntry],
    sessions: Iterable[TasbeehSession],
    range_key: str = "7",
    now: Optional[datetime] = None,
) -> AnalyticsSummary:
    """Summarize entries and sessions from the last 7 or 30 days, or all time.

    A window of N days covers today and the N-1 days before it. Days with no
    saved entry do not count; the denominator is the number of saved entries
    in the window, at least 1.
    """
    if range_key not in RANGES:
        raise ValueError(f"range must be one of {sorted(RANGES)}")
    window = RANGES[range_key]
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    entries = list(entries)
    sessions = list(sessions)
    if window is not None:
        cutoff = now - timedelta(days=window)
        cutoff_key = cutoff.date().isoformat()
        entries = [e for e in entries if e.day_key > cutoff_key]
        sessions = [s for s in sessions if (_session_time(s) or cutoff) > cutoff]

    days = len(entries) or 1
    total_prayers = sum(e.prayers.completed() for e in entries)
    workout_days = sum(1 for e in entries if e.workout is TriState.YES)
    skill_days = sum(1 for e in entries if e.skill.done is TriState.YES)
    quran_days = sum(1 for e in entries if e.quran is TriState.YES)

    return AnalyticsSummary(
        range=range_key,
        total_days=len(entries),
        total_prayers=total_prayers,
        prayer_consistency=_percent(total_prayers, days * len(PRAYER_KEYS)),
        workout_consistency=_percent(workout_days, days),
        skill_consistency=_percent(skill_days, days),
        quran_consistency=_percent(quran_days, days),
        total_tasbeeh=sum(s.count for s in sessions),
        darood_count=sum(s.count for s in sessions if s.label == DAROOD_LABEL),
    )
