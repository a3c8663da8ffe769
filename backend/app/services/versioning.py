from __future__ import annotations

from dataclasses import dataclass
import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.timetable_version import ChangeAction, TimetableChangeLog, TimetableVersion

logger = logging.getLogger(__name__)

MANUAL_EDITS_DESCRIPTION = "Manual edits"


@dataclass(frozen=True)
class VersioningOutcome:
    """Result of an audit write that must never fail the operation that triggered it."""

    recorded: bool
    version_id: str | None = None
    version_number: int | None = None
    change_log_id: str | None = None
    warning: str | None = None


def next_version_number(db: Session, timetable_id: str) -> int:
    current = db.execute(
        select(func.max(TimetableVersion.version_number)).where(TimetableVersion.timetable_id == timetable_id)
    ).scalar_one_or_none()
    return (current or 0) + 1


def create_version(
    db: Session,
    *,
    timetable_id: str,
    description: str | None,
    created_by: str | None,
) -> TimetableVersion:
    number = next_version_number(db, timetable_id)
    # Earlier versions are switched off here; nothing in the schema stops two active rows.
    db.execute(
        update(TimetableVersion)
        .where(TimetableVersion.timetable_id == timetable_id)
        .values(is_active=False)
    )
    version = TimetableVersion(
        timetable_id=timetable_id,
        version_number=number,
        description=description or f"Manual version {number}",
        is_active=True,
        created_by=created_by,
    )
    db.add(version)
    db.flush()
    return version


def append_change_log(
    db: Session,
    *,
    version_id: str,
    action: ChangeAction | str,
    old_value: dict | None,
    new_value: dict | None,
    changed_by: str,
    reason: str | None = None,
) -> TimetableChangeLog:
    record = TimetableChangeLog(
        version_id=version_id,
        action=ChangeAction(action).value,
        old_value=old_value or {},
        new_value=new_value or {},
        changed_by=changed_by,
        reason=reason,
    )
    db.add(record)
    db.flush()
    return record


def active_version(db: Session, timetable_id: str) -> TimetableVersion | None:
    return db.execute(
        select(TimetableVersion)
        .where(TimetableVersion.timetable_id == timetable_id, TimetableVersion.is_active.is_(True))
        .order_by(TimetableVersion.version_number.desc())
        .limit(1)
    ).scalar_one_or_none()


def record_version(
    db: Session,
    *,
    timetable_id: str,
    description: str | None,
    created_by: str | None,
) -> VersioningOutcome:
    try:
        with db.begin_nested():
            version = create_version(
                db,
                timetable_id=timetable_id,
                description=description,
                created_by=created_by,
            )
    except SQLAlchemyError as exc:
        logger.warning(
            "TIMETABLE VERSION NOT RECORDED | timetable_id=%s | error=%s",
            timetable_id,
            exc.__class__.__name__,
            exc_info=True,
        )
        return VersioningOutcome(recorded=False, warning=f"Version could not be recorded: {exc.__class__.__name__}")
    return VersioningOutcome(recorded=True, version_id=version.id, version_number=version.version_number)


def log_change(
    db: Session,
    *,
    timetable_id: str,
    action: ChangeAction | str,
    old_value: dict | None,
    new_value: dict | None,
    changed_by: str,
    reason: str | None = None,
) -> VersioningOutcome:
    try:
        with db.begin_nested():
            version = active_version(db, timetable_id)
            if version is None:
                version = create_version(
                    db,
                    timetable_id=timetable_id,
                    description=MANUAL_EDITS_DESCRIPTION,
                    created_by=changed_by,
                )
            record = append_change_log(
                db,
                version_id=version.id,
                action=action,
                old_value=old_value,
                new_value=new_value,
                changed_by=changed_by,
                reason=reason,
            )
    except SQLAlchemyError as exc:
        logger.warning(
            "TIMETABLE CHANGE NOT LOGGED | timetable_id=%s | action=%s | error=%s",
            timetable_id,
            action,
            exc.__class__.__name__,
            exc_info=True,
        )
        return VersioningOutcome(recorded=False, warning=f"Change log could not be recorded: {exc.__class__.__name__}")
    return VersioningOutcome(
        recorded=True,
        version_id=version.id,
        version_number=version.version_number,
        change_log_id=record.id,
    )
