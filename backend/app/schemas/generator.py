from pydantic import BaseModel, Field

from app.schemas.conflict import ConflictDetail
from app.schemas.timetable import TimetableEntryOut, VersioningOut


class AssignmentIn(BaseModel):
    teacher_id: str | None = None
    class_id: str | None = None
    subject_id: str | None = None
    periods_per_week: int = Field(default=0, ge=0, le=60)


class AssignmentOut(AssignmentIn):
    model_config = {"from_attributes": True}


class AssignmentList(BaseModel):
    assignments: list[AssignmentOut]


class GenerateTimetableRequest(BaseModel):
    timetable_id: str = Field(min_length=1, max_length=36)
    config_id: str | None = Field(default=None, max_length=36)
    # Empty means "derive from teacher/class/subject links".
    assignments: list[AssignmentIn] = Field(default_factory=list, max_length=5000)


class UnplacedDemandOut(BaseModel):
    teacher_id: str
    class_id: str
    subject_id: str
    required: int
    placed: int
    missing: int

    model_config = {"from_attributes": True}


class GenerateTimetableResponse(BaseModel):
    entries: list[TimetableEntryOut]
    conflicts: list[ConflictDetail]
    unplaced: list[UnplacedDemandOut]
    dropped_assignments: list[AssignmentOut]
    version: int | None
    versioning: VersioningOut
    message: str
