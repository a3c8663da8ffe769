import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class TimetableConfig(Base):
    __tablename__ = "timetable_configs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    periods_per_day: Mapped[int] = mapped_column(Integer, nullable=False, default=14)
    school_start_time: Mapped[str] = mapped_column(String(5), nullable=False, default="07:30")
    school_end_time: Mapped[str] = mapped_column(String(5), nullable=False, default="16:10")
    period_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=35)
    break_periods: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    days_of_week: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    preferences: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
