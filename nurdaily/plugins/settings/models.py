"""
AppSettings and its parts. Aliases are the camelCase keys persisted under
nur_daily_settings.
"""
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    ROYAL = "royal"
    SYSTEM = "system"


class Alarm(BaseModel):
    enabled: bool = True
    time: str

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError(f"time must be HH:MM (24h), got {value!r}")
        return value


class PrayerAlarms(BaseModel):
    """Exactly one alarm per prayer; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    fajr: Alarm = Field(default_factory=lambda: Alarm(time="05:15"))
    zuhr: Alarm = Field(default_factory=lambda: Alarm(time="13:15"))
    asar: Alarm = Field(default_factory=lambda: Alarm(time="16:45"))
    maghrib: Alarm = Field(default_factory=lambda: Alarm(time="18:15"))
    esha: Alarm = Field(default_factory=lambda: Alarm(time="20:00"))


class Location(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class AppSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    theme: ThemeMode = ThemeMode.LIGHT
    notifications_enabled: bool = Field(True, alias="notificationsEnabled")
    auto_prayer_times: bool = Field(False, alias="autoPrayerTimes")
    location: Optional[Location] = None
    daily_reminder_time: str = Field("21:30", alias="dailyReminderTime")
    alarms: PrayerAlarms = Field(default_factory=PrayerAlarms)

    @field_validator("daily_reminder_time")
    @classmethod
    def _check_reminder(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError(f"dailyReminderTime must be HH:MM (24h), got {value!r}")
        return value

    @model_validator(mode="after")
    def _location_needs_auto_times(self) -> "AppSettings":
        # a location is only kept while prayer times are computed from it
        if not self.auto_prayer_times:
            self.location = None
        return self

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


def default_settings() -> AppSettings:
    return AppSettings()
