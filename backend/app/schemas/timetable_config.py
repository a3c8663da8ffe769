from __future__ import annotations

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

DAY_VALUES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def normalize_day(value: str) -> str:
    day = value.strip()
    day = DAY_SHORT_MAP.get(day, day)
    if day not in DAY_VALUES:
        raise ValueError(f"Invalid day value: {value}")
    return day


def normalize_time(value: str) -> str:
    """Accept HH:MM or HH:MM:SS and return HH:MM."""
    trimmed = value.strip()
    if not TIME_PATTERN.match(trimmed):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return trimmed[:5]


def parse_time_to_minutes(value: str) -> int:
    hours, minutes = normalize_time(value).split(":")
    return int(hours) * 60 + int(minutes)


MINUTES_PER_DAY = 24 * 60


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


class BreakPeriodEntry(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    start_time: str
    end_time: str
    period_after: int = Field(ge=1)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Break name cannot be empty")
        return trimmed

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "BreakPeriodEntry":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("Break end time must be after start time")
        return self


class TimetablePreferences(BaseModel):
    """Stored with the configuration; placement does not act on these yet."""

    model_config = {"extra": "allow"}

    allow_double_periods: bool = False
    max_consecutive_periods: int | None = Field(default=3, ge=1, le=30)
    preferred_subject_distribution: Literal["balanced", "concentrated"] = "balanced"


class TimetableConfigBase(BaseModel):
    periods_per_day: int = Field(ge=1, le=30)
    school_start_time: str
    school_end_time: str
    period_duration: int = Field(gt=0, le=240)
    break_periods: list[BreakPeriodEntry] = Field(default_factory=list, max_length=10)
    days_of_week: list[str] = Field(min_length=1, max_length=7)
    preferences: TimetablePreferences = Field(default_factory=TimetablePreferences)

    @field_validator("school_start_time", "school_end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, value: list[str]) -> list[str]:
        days = [normalize_day(item) for item in value]
        duplicates = sorted({day for day in days if days.count(day) > 1})
        if duplicates:
            raise ValueError(f"Duplicate day entries: {', '.join(duplicates)}")
        return days

    @field_validator("preferences", mode="before")
    @classmethod
    def default_preferences(cls, value):
        return {} if value is None else value

    @field_validator("break_periods", mode="before")
    @classmethod
    def default_breaks(cls, value):
        return [] if value is None else value

    @model_validator(mode="after")
    def validate_shape(self) -> "TimetableConfigBase":
        if parse_time_to_minutes(self.school_end_time) <= parse_time_to_minutes(self.school_start_time):
            raise ValueError("school_end_time must be after school_start_time")

        self.break_periods = sorted(self.break_periods, key=lambda item: item.period_after)
        previous_anchor = 0
        for item in self.break_periods:
            if item.period_after > self.periods_per_day:
                raise ValueError(
                    f"Break '{item.name}' is anchored after period {item.period_after} "
                    f"but only {self.periods_per_day} periods are configured"
                )
            if item.period_after <= previous_anchor:
                raise ValueError(f"More than one break is anchored after period {item.period_after}")
            previous_anchor = item.period_after

        if school_day_end_minutes(self) >= MINUTES_PER_DAY:
            raise ValueError("The school day must finish before midnight")
        return self


class TimetableConfigCreate(TimetableConfigBase):
    pass


class TimetableConfigOut(TimetableConfigBase):
    id: str | None = None
    is_active: bool = True
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class GridCellOut(BaseModel):
    kind: Literal["period", "break"]
    label: str
    start_time: str
    end_time: str
    period_number: int | None = None
    period_after: int | None = None

    model_config = {"from_attributes": True}


class PeriodGridOut(BaseModel):
    config_id: str | None
    days_of_week: list[str]
    cells: list[GridCellOut]


def school_day_end_minutes(config: TimetableConfigBase) -> int:
    """Minute of the day at which the last period ends, breaks included."""
    breaks = {item.period_after: item for item in config.break_periods}
    cursor = parse_time_to_minutes(config.school_start_time)
    for number in range(1, config.periods_per_day + 1):
        cursor += config.period_duration
        if number in breaks and number < config.periods_per_day:
            cursor = parse_time_to_minutes(breaks[number].end_time)
    return cursor
