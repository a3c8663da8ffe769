from __future__ import annotations

import logging

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import ResourceNotFoundError, TimetableConfigError
from app.models.timetable_config import TimetableConfig
from app.schemas.timetable_config import TimetableConfigCreate, TimetableConfigOut

logger = logging.getLogger(__name__)


def default_config() -> TimetableConfigOut:
    settings = get_settings()
    return TimetableConfigOut(
        id=None,
        is_active=True,
        periods_per_day=settings.default_periods_per_day,
        school_start_time=settings.default_school_start_time,
        school_end_time=settings.default_school_end_time,
        period_duration=settings.default_period_duration,
        break_periods=[],
        days_of_week=settings.default_days_of_week,
    )


def load_active_config(db: Session) -> TimetableConfig | None:
    return db.execute(
        select(TimetableConfig)
        .where(TimetableConfig.is_active.is_(True))
        .order_by(TimetableConfig.created_at.desc())
        .limit(1)
    ).scalar_one_or_none()


def to_config_schema(record: TimetableConfig) -> TimetableConfigOut:
    try:
        return TimetableConfigOut.model_validate(record)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
            for error in exc.errors()
        ]
        raise TimetableConfigError(
            "Stored timetable configuration is invalid",
            details={"config_id": record.id, "errors": problems},
        ) from exc


def resolve_config(
    db: Session,
    config_id: str | None = None,
    *,
    fallback_id: str | None = None,
) -> TimetableConfigOut:
    """Pick the configuration for a request.

    An explicit ``config_id`` must exist. Otherwise the timetable's own config
    (``fallback_id``) is used when it still exists, then the active config, then
    the built-in defaults.
    """
    if config_id:
        record = db.get(TimetableConfig, config_id)
        if record is None:
            raise ResourceNotFoundError("TimetableConfig", config_id)
        return to_config_schema(record)

    if fallback_id:
        record = db.get(TimetableConfig, fallback_id)
        if record is not None:
            return to_config_schema(record)

    record = load_active_config(db)
    if record is not None:
        return to_config_schema(record)

    logger.warning("TIMETABLE CONFIG MISSING | using built-in defaults")
    return default_config()


def save_config(db: Session, payload: TimetableConfigCreate) -> TimetableConfig:
    db.execute(update(TimetableConfig).values(is_active=False))
    data = payload.model_dump(mode="json")
    record = TimetableConfig(is_active=True, **data)
    db.add(record)
    db.flush()
    return record
