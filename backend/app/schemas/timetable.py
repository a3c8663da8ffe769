from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.conflict import ConflictDetail
from app.schemas.timetable_config import normalize_day


def normalize_period(value: int | str) -> str:
    period = str(value).strip()
    if not period.isdigit() or int(period) < 1:
        raise ValueError("Period must be a positive whole number")
    return str(int(period))


class TimetableEntryBase(BaseModel):
    day: str
    period: str
    room: str | None = Field(default=None, max_length=100)
    class_id: str | None = None
    teacher_id: str | None = None
    subject_id: str | None = None

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @field_validator("period", mode="before")
    @classmethod
    def validate_period(cls, value: int | str) -> str:
        return normalize_period(value)

    @field_validator("room", "class_id", "teacher_id", "subject_id")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class TimetableEntryCreate(TimetableEntryBase):
    is_locked: bool = False


class TimetableEntryOut(BaseModel):
    id: str
    timetable_id: str
    day: str
    period: str
    room: str | None
    class_id: str | None
    teacher_id: str | None
    subject_id: str | None
    is_locked: bool

    model_config = {"from_attributes": True}


class TimetableBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    term: str = Field(min_length=1, max_length=50)
    academic_year: str = Field(min_length=1, max_length=20)
    start_date: date | None = None
    end_date: date | None = None

    @model_validator(mode="after")
    def validate_dates(self) -> "TimetableBase":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TimetableCreate(TimetableBase):
    config_id: str | None = None
    entries: list[TimetableEntryCreate] = Field(default_factory=list, max_length=5000)


class TimetableUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    term: str | None = Field(default=None, min_length=1, max_length=50)
    academic_year: str | None = Field(default=None, min_length=1, max_length=20)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None
    config_id: str | None = None
    entries: list[TimetableEntryCreate] | None = Field(default=None, max_length=5000)


class TimetableOut(TimetableBase):
    id: str
    is_active: bool
    config_id: str | None
    created_at: datetime | None = None
    entries: list[TimetableEntryOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class TimetablePage(BaseModel):
    data: list[TimetableOut]
    page: int
    limit: int
    total: int
    total_pages: int


class VersioningOut(BaseModel):
    recorded: bool
    version_id: str | None = None
    version_number: int | None = None
    change_log_id: str | None = None
    warning: str | None = None

    model_config = {"from_attributes": True}


class ManualEntryCreate(TimetableEntryCreate):
    timetable_id: str = Field(min_length=1, max_length=36)
    force: bool = False
    reason: str | None = Field(default=None, max_length=500)


class ManualEntryUpdate(BaseModel):
    day: str | None = None
    period: str | None = None
    room: str | None = Field(default=None, max_length=100)
    class_id: str | None = None
    teacher_id: str | None = None
    subject_id: str | None = None
    is_locked: bool | None = None
    force: bool = False
    reason: str | None = Field(default=None, max_length=500)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        return None if value is None else normalize_day(value)

    @field_validator("period", mode="before")
    @classmethod
    def validate_period(cls, value: int | str | None) -> str | None:
        return None if value is None else normalize_period(value)

    @field_validator("room", "class_id", "teacher_id", "subject_id")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class ManualEntryResult(BaseModel):
    entry: TimetableEntryOut
    conflicts: list[ConflictDetail] = Field(default_factory=list)
    forced: bool = False
    # None when the entry lacks a teacher, class or subject to match against.
    matches_assignment: bool | None = None
    versioning: VersioningOut


class EntryLockUpdate(BaseModel):
    is_locked: bool | None = None
    reason: str | None = Field(default=None, max_length=500)


class EntryLockResult(BaseModel):
    entry: TimetableEntryOut
    message: str
    versioning: VersioningOut
