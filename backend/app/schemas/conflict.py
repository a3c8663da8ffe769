from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ConflictDetail(BaseModel):
    day: str
    period: str
    type: Literal["teacher", "class"]
    entity_id: str
    entity_name: Optional[str] = None
    message: str
    entry_ids: List[str] = Field(default_factory=list)


class ConflictReport(BaseModel):
    timetable_id: str
    conflicts: List[ConflictDetail]
