"""
Pydantic models for daily journal entries. Field aliases are the camelCase
keys of the persisted collection and of backup files.
"""
from enum import Enum
from typing import Annotated, List, Optional
from uuid import uuid4

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, field_validator

from nurdaily.core.dates import day_key, midnight_iso, parse_iso_datetime

PRAYER_KEYS = ["fajr", "zuhr", "asar", "maghrib", "esha"]


class TriState(str, Enum):
    """Yes / No / not answered yet. UNSET is stored as JSON null."""
    YES = "Yes"
    NO = "No"
    UNSET = "unset"


def _tri_state_in(value):
    if value is None or value == "":
        return TriState.UNSET
    return value


def _tri_state_out(value: TriState) -> Optional[str]:
    return None if value is TriState.UNSET else value.value


TriStateField = Annotated[
    TriState,
    BeforeValidator(_tri_state_in),
    PlainSerializer(_tri_state_out, return_type=Optional[str]),
]


def new_id() -> str:
    return uuid4().hex


class Prayers(BaseModel):
    fajr: bool = False
    zuhr: bool = False
    asar: bool = False
    maghrib: bool = False
    esha: bool = False

    def completed(self) -> int:
        return sum(1 for key in PRAYER_KEYS if getattr(self, key))


class Skill(BaseModel):
    done: TriStateField = TriState.UNSET
    notes: str = ""


class CustomTask(BaseModel):
    id: str = Field(default_factory=new_id)
    text: str
    done: bool = False


class DailyEntry(BaseModel):
    """One calendar day of the journal. Unique per day_key, not per id."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    date: str  # ISO timestamp; only its day part is the natural key
    hijri_date: str = Field("", alias="hijriDate")
    prayers: Prayers = Field(default_factory=Prayers)
    quran: TriStateField = TriState.UNSET
    workout: TriStateField = TriState.UNSET
    skill: Skill = Field(default_factory=Skill)
    custom_tasks: List[CustomTask] = Field(default_factory=list, alias="customTasks")
    diary: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value):
        if hasattr(value, "isoformat"):
            return value.isoformat()
        if not isinstance(value, str):
            raise ValueError("date must be an ISO date string")
        if "T" in value or " " in value.strip():
            parse_iso_datetime(value)
        else:
            day_key(value)
        return value

    @field_validator("custom_tasks", mode="before")
    @classmethod
    def _null_tasks(cls, value):
        return [] if value is None else value

    @property
    def day_key(self) -> str:
        return day_key(self.date)

    def to_dict(self) -> dict:
        """Serialized form used for storage, backup and the API."""
        return self.model_dump(by_alias=True, mode="json")

    # Custom tasks: every helper returns a new entry; the caller upserts it.

    def add_task(self, text: str) -> "DailyEntry":
        text = (text or "").strip()
        if not text:
            return self
        tasks = list(self.custom_tasks) + [CustomTask(text=text)]
        return self.model_copy(update={"custom_tasks": tasks})

    def toggle_task(self, task_id: str) -> "DailyEntry":
        tasks = [
            task.model_copy(update={"done": not task.done}) if task.id == task_id else task
            for task in self.custom_tasks
        ]
        return self.model_copy(update={"custom_tasks": tasks})

    def remove_task(self, task_id: str) -> "DailyEntry":
        tasks = [task for task in self.custom_tasks if task.id != task_id]
        return self.model_copy(update={"custom_tasks": tasks})


def blank_entry(day, hijri_date: str = "") -> DailyEntry:
    """A fresh, unsaved entry for the given day."""
    return DailyEntry(date=midnight_iso(day), hijri_date=hijri_date or "")
