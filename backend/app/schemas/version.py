from datetime import datetime

from pydantic import BaseModel, Field

from app.models.timetable_version import ChangeAction


class TimetableVersionCreate(BaseModel):
    description: str | None = Field(default=None, max_length=500)


class ChangeLogCreate(BaseModel):
    action: ChangeAction
    old_value: dict = Field(default_factory=dict)
    new_value: dict = Field(default_factory=dict)
    reason: str | None = Field(default=None, max_length=500)


class ChangeLogOut(BaseModel):
    id: str
    version_id: str
    action: str
    old_value: dict
    new_value: dict
    changed_by: str
    reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TimetableVersionOut(BaseModel):
    id: str
    timetable_id: str
    version_number: int
    description: str | None
    is_active: bool
    created_by: str | None
    created_at: datetime
    change_logs: list[ChangeLogOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}
