from __future__ import annotations

import logging
import math
from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_timetable_editor
from app.core.config import get_settings
from app.models.school import SchoolClass, Subject, Teacher
from app.models.timetable import Timetable, TimetableEntry
from app.models.timetable_version import ChangeAction, TimetableChangeLog, TimetableVersion
from app.models.user import User, UserRole
from app.schemas.conflict import ConflictReport
from app.schemas.generator import (
    AssignmentList,
    AssignmentOut,
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    UnplacedDemandOut,
)
from app.schemas.timetable import (
    EntryLockResult,
    EntryLockUpdate,
    ManualEntryCreate,
    ManualEntryResult,
    ManualEntryUpdate,
    TimetableCreate,
    TimetableEntryCreate,
    TimetableEntryOut,
    TimetableOut,
    TimetablePage,
    TimetableUpdate,
    VersioningOut,
)
from app.schemas.timetable_config import GridCellOut, PeriodGridOut, TimetableConfigCreate, TimetableConfigOut
from app.schemas.version import ChangeLogCreate, ChangeLogOut, TimetableVersionCreate, TimetableVersionOut
from app.services.assignment_index import Assignment, AssignmentIndex, derive_assignments
from app.services.config_resolver import resolve_config, save_config, to_config_schema
from app.services.conflict_service import ConflictService
from app.services.period_grid import build_period_grid, teaching_slots
from app.services.slot_placement import SlotPlacementEngine
from app.services.versioning import append_change_log, log_change, record_version

settings = get_settings()
router = APIRouter()
logger = logging.getLogger(__name__)

NON_NULLABLE_ENTRY_FIELDS = frozenset({"day", "period", "is_locked"})


def _get_timetable(db: Session, timetable_id: str, *, lock: bool = False) -> Timetable:
    statement = select(Timetable).where(Timetable.id == timetable_id)
    if lock:
        # Serialises slot checks and writes for one timetable.
        statement = statement.with_for_update()
    timetable = db.execute(statement).scalar_one_or_none()
    if timetable is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timetable not found")
    return timetable


def _get_entry(db: Session, entry_id: str) -> TimetableEntry:
    entry = db.get(TimetableEntry, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return entry


def _load_entries(db: Session, timetable_id: str) -> list[TimetableEntry]:
    return list(
        db.execute(
            select(TimetableEntry)
            .where(TimetableEntry.timetable_id == timetable_id)
            .order_by(TimetableEntry.day, TimetableEntry.period, TimetableEntry.id)
        ).scalars()
    )


def _timetable_out(db: Session, timetable: Timetable) -> TimetableOut:
    entries = [TimetableEntryOut.model_validate(item) for item in _load_entries(db, timetable.id)]
    return TimetableOut.model_validate(timetable).model_copy(update={"entries": entries})


def _name_maps(db: Session) -> tuple[dict[str, str], dict[str, str]]:
    teacher_names = {item.id: item.full_name for item in db.execute(select(Teacher)).scalars()}
    class_names = dict(db.execute(select(SchoolClass.id, SchoolClass.name)).all())
    return teacher_names, class_names


def _ensure_references(
    db: Session,
    *,
    teacher_id: str | None,
    class_id: str | None,
    subject_id: str | None,
) -> None:
    checks = ((Teacher, teacher_id, "Teacher"), (SchoolClass, class_id, "Class"), (Subject, subject_id, "Subject"))
    for model, value, label in checks:
        if value and db.get(model, value) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")


def _add_entries(db: Session, timetable_id: str, entries: list[TimetableEntryCreate]) -> None:
    for item in entries:
        _ensure_references(db, teacher_id=item.teacher_id, class_id=item.class_id, subject_id=item.subject_id)
        db.add(TimetableEntry(timetable_id=timetable_id, **item.model_dump()))


def _conflict_response(conflicts) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "message": "Conflicts detected",
            "conflicts": [item.model_dump() for item in conflicts],
        },
    )


def _slot_conflicts(
    db: Session,
    *,
    timetable_id: str,
    day: str,
    period: str,
    teacher_id: str | None,
    class_id: str | None,
    exclude_entry_id: str | None = None,
):
    occupants = db.execute(
        select(TimetableEntry).where(
            TimetableEntry.timetable_id == timetable_id,
            TimetableEntry.day == day,
            TimetableEntry.period == period,
        )
    ).scalars()
    teacher_names, class_names = _name_maps(db)
    service = ConflictService(occupants, teacher_names=teacher_names, class_names=class_names)
    return service.check_slot(
        day=day,
        period=period,
        teacher_id=teacher_id,
        class_id=class_id,
        exclude_entry_id=exclude_entry_id,
    )


def _assignment_match(
    db: Session,
    *,
    teacher_id: str | None,
    class_id: str | None,
    subject_id: str | None,
) -> bool | None:
    if not (teacher_id and class_id and subject_id):
        return None
    index = AssignmentIndex.build(derive_assignments(db))
    return index.contains(teacher_id, class_id, subject_id)


def _warn_unassigned(user_id: str, entry: TimetableEntry, matched: bool | None) -> None:
    if matched is False:
        logger.warning(
            "MANUAL ENTRY OUTSIDE ASSIGNMENTS | user_id=%s | entry_id=%s | teacher_id=%s | class_id=%s | subject_id=%s",
            user_id,
            entry.id,
            entry.teacher_id,
            entry.class_id,
            entry.subject_id,
        )


@router.get("/", response_model=TimetablePage)
def list_timetables(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.pagination_default_limit, ge=1, le=settings.pagination_max_limit),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetablePage:
    total = db.execute(select(func.count()).select_from(Timetable)).scalar_one()
    timetables = db.execute(
        select(Timetable)
        .order_by(Timetable.created_at.desc(), Timetable.id)
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars()
    return TimetablePage(
        data=[_timetable_out(db, item) for item in timetables],
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if total else 0,
    )


@router.post("/", response_model=TimetableOut, status_code=status.HTTP_201_CREATED)
def create_timetable(
    payload: TimetableCreate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> TimetableOut:
    if payload.config_id:
        resolve_config(db, payload.config_id)
    timetable = Timetable(**payload.model_dump(exclude={"entries"}))
    db.add(timetable)
    db.flush()
    _add_entries(db, timetable.id, payload.entries)
    db.commit()
    db.refresh(timetable)
    logger.info("TIMETABLE CREATED | user_id=%s | timetable_id=%s | entries=%s", current_user.id, timetable.id, len(payload.entries))
    return _timetable_out(db, timetable)


# Configuration


@router.get("/config/active", response_model=TimetableConfigOut)
def get_active_config(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableConfigOut:
    return resolve_config(db)


@router.post("/config", response_model=TimetableConfigOut, status_code=status.HTTP_201_CREATED)
def save_timetable_config(
    payload: TimetableConfigCreate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> TimetableConfigOut:
    record = save_config(db, payload)
    db.commit()
    db.refresh(record)
    logger.info("TIMETABLE CONFIG SAVED | user_id=%s | config_id=%s", current_user.id, record.id)
    return to_config_schema(record)


@router.get("/config/grid", response_model=PeriodGridOut)
def get_period_grid(
    config_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PeriodGridOut:
    config = resolve_config(db, config_id)
    return PeriodGridOut(
        config_id=config.id,
        days_of_week=config.days_of_week,
        cells=[GridCellOut.model_validate(cell) for cell in build_period_grid(config)],
    )


# Generation


@router.get("/assignments/all", response_model=AssignmentList)
def list_assignments(
    teacher_id: str | None = Query(default=None),
    class_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AssignmentList:
    index = AssignmentIndex.build(derive_assignments(db))
    if teacher_id:
        items = [item for item in index.by_teacher.get(teacher_id, []) if class_id is None or item.class_id == class_id]
    elif class_id:
        items = index.by_class.get(class_id, [])
    else:
        items = index.demands
    return AssignmentList(assignments=[AssignmentOut.model_validate(item) for item in items])



@router.post("/generate", response_model=GenerateTimetableResponse)
def generate_timetable(
    payload: GenerateTimetableRequest,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> GenerateTimetableResponse:
    started = perf_counter()
    logger.info(
        "TIMETABLE GENERATION START | user_id=%s | timetable_id=%s | config_id=%s | assignments=%s",
        current_user.id,
        payload.timetable_id,
        payload.config_id,
        len(payload.assignments) or "derived",
    )
    try:
        timetable = _get_timetable(db, payload.timetable_id, lock=True)
        config = resolve_config(db, payload.config_id, fallback_id=timetable.config_id)
        slots = teaching_slots(config)

        if payload.assignments:
            tuples = [Assignment(**item.model_dump()) for item in payload.assignments]
        else:
            tuples = derive_assignments(db)

        subject_periods = dict(
            db.execute(select(Subject.id, Subject.teaching_periods).where(Subject.is_active.is_(True))).all()
        )
        index = AssignmentIndex.build(
            tuples,
            teacher_ids=set(db.execute(select(Teacher.id).where(Teacher.is_active.is_(True))).scalars()),
            class_ids=set(db.execute(select(SchoolClass.id).where(SchoolClass.is_active.is_(True))).scalars()),
            subject_ids=set(subject_periods),
        )

        locked_entries = list(
            db.execute(
                select(TimetableEntry).where(
                    TimetableEntry.timetable_id == timetable.id,
                    TimetableEntry.is_locked.is_(True),
                )
            ).scalars()
        )
        engine = SlotPlacementEngine(
            slots,
            locked_entries=locked_entries,
            subject_periods=subject_periods,
            default_periods=settings.default_periods_per_assignment,
        )
        result = engine.place(index.demands)

        db.execute(
            delete(TimetableEntry).where(
                TimetableEntry.timetable_id == timetable.id,
                TimetableEntry.is_locked.is_(False),
            )
        )
        db.add_all(
            TimetableEntry(
                timetable_id=timetable.id,
                day=item.day,
                period=item.period,
                room=item.room,
                class_id=item.class_id,
                teacher_id=item.teacher_id,
                subject_id=item.subject_id,
                is_locked=False,
            )
            for item in result.entries
        )
        if config.id:
            timetable.config_id = config.id
        db.flush()

        versioning = record_version(
            db,
            timetable_id=timetable.id,
            description=f"Generated {len(result.entries)} entries ({len(locked_entries)} locked kept)",
            created_by=current_user.id,
        )
        db.commit()

        entries = _load_entries(db, timetable.id)
        teacher_names, class_names = _name_maps(db)
        conflicts = ConflictService(entries, teacher_names=teacher_names, class_names=class_names).detect_conflicts()

        message = f"Timetable generated with {len(result.entries)} new entries"
        if result.unplaced:
            message += f"; {result.missing_periods} periods across {result.unplaced_count} assignments could not be placed"

        elapsed_ms = int((perf_counter() - started) * 1000)
        logger.info(
            "TIMETABLE GENERATION COMPLETE | user_id=%s | timetable_id=%s | placed=%s | locked=%s | unplaced=%s | dropped=%s | conflicts=%s | wall_ms=%s",
            current_user.id,
            timetable.id,
            len(result.entries),
            len(locked_entries),
            result.unplaced_count,
            len(index.dropped),
            len(conflicts),
            elapsed_ms,
        )
        return GenerateTimetableResponse(
            entries=[TimetableEntryOut.model_validate(item) for item in entries],
            conflicts=conflicts,
            unplaced=[UnplacedDemandOut.model_validate(item) for item in result.unplaced],
            dropped_assignments=[AssignmentOut.model_validate(item) for item in index.dropped],
            version=versioning.version_number,
            versioning=VersioningOut.model_validate(versioning),
            message=message,
        )
    except Exception:
        elapsed_ms = int((perf_counter() - started) * 1000)
        logger.exception(
            "TIMETABLE GENERATION FAILED | user_id=%s | timetable_id=%s | wall_ms=%s",
            current_user.id,
            payload.timetable_id,
            elapsed_ms,
        )
        raise


# Entries


@router.post("/entries/manual", response_model=ManualEntryResult, status_code=status.HTTP_201_CREATED)
def create_manual_entry(
    payload: ManualEntryCreate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
):
    timetable = _get_timetable(db, payload.timetable_id, lock=True)
    _ensure_references(db, teacher_id=payload.teacher_id, class_id=payload.class_id, subject_id=payload.subject_id)

    conflicts = _slot_conflicts(
        db,
        timetable_id=timetable.id,
        day=payload.day,
        period=payload.period,
        teacher_id=payload.teacher_id,
        class_id=payload.class_id,
    )
    if conflicts and not payload.force:
        db.rollback()
        return _conflict_response(conflicts)

    entry = TimetableEntry(
        timetable_id=timetable.id,
        **payload.model_dump(exclude={"timetable_id", "force", "reason"}),
    )
    db.add(entry)
    db.flush()
    versioning = log_change(
        db,
        timetable_id=timetable.id,
        action=ChangeAction.create,
        old_value=None,
        new_value=entry.snapshot(),
        changed_by=current_user.id,
        reason=payload.reason,
    )
    matched = _assignment_match(
        db,
        teacher_id=entry.teacher_id,
        class_id=entry.class_id,
        subject_id=entry.subject_id,
    )
    db.commit()
    db.refresh(entry)
    _warn_unassigned(current_user.id, entry, matched)
    if conflicts:
        logger.warning(
            "MANUAL ENTRY FORCED | user_id=%s | timetable_id=%s | entry_id=%s | conflicts=%s",
            current_user.id,
            timetable.id,
            entry.id,
            len(conflicts),
        )
    return ManualEntryResult(
        entry=TimetableEntryOut.model_validate(entry),
        conflicts=conflicts,
        forced=bool(conflicts),
        matches_assignment=matched,
        versioning=VersioningOut.model_validate(versioning),
    )


@router.put("/entries/{entry_id}/manual", response_model=ManualEntryResult)
def update_manual_entry(
    entry_id: str,
    payload: ManualEntryUpdate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
):
    entry = _get_entry(db, entry_id)
    timetable = _get_timetable(db, entry.timetable_id, lock=True)
    db.refresh(entry)

    data = payload.model_dump(exclude_unset=True, exclude={"force", "reason"})
    _ensure_references(
        db,
        teacher_id=data.get("teacher_id"),
        class_id=data.get("class_id"),
        subject_id=data.get("subject_id"),
    )

    conflicts = []
    if {"day", "period", "teacher_id", "class_id"} & data.keys():
        conflicts = _slot_conflicts(
            db,
            timetable_id=timetable.id,
            day=data.get("day") or entry.day,
            period=data.get("period") or entry.period,
            teacher_id=data["teacher_id"] if "teacher_id" in data else entry.teacher_id,
            class_id=data["class_id"] if "class_id" in data else entry.class_id,
            exclude_entry_id=entry.id,
        )
        if conflicts and not payload.force:
            db.rollback()
            return _conflict_response(conflicts)

    before = entry.snapshot()
    for key, value in data.items():
        # Clearing a slot coordinate or the lock flag is not an edit.
        if key in NON_NULLABLE_ENTRY_FIELDS and value is None:
            continue
        setattr(entry, key, value)
    db.flush()

    after = entry.snapshot()
    moved = (before["day"], before["period"]) != (after["day"], after["period"])
    versioning = log_change(
        db,
        timetable_id=timetable.id,
        action=ChangeAction.move if moved else ChangeAction.update,
        old_value=before,
        new_value=after,
        changed_by=current_user.id,
        reason=payload.reason,
    )
    matched = _assignment_match(
        db,
        teacher_id=entry.teacher_id,
        class_id=entry.class_id,
        subject_id=entry.subject_id,
    )
    db.commit()
    db.refresh(entry)
    _warn_unassigned(current_user.id, entry, matched)
    return ManualEntryResult(
        entry=TimetableEntryOut.model_validate(entry),
        conflicts=conflicts,
        forced=bool(conflicts),
        matches_assignment=matched,
        versioning=VersioningOut.model_validate(versioning),
    )


@router.put("/entries/{entry_id}/lock", response_model=EntryLockResult)
def toggle_entry_lock(
    entry_id: str,
    payload: EntryLockUpdate | None = None,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> EntryLockResult:
    entry = _get_entry(db, entry_id)
    requested = payload.is_locked if payload is not None else None
    entry.is_locked = (not entry.is_locked) if requested is None else requested
    db.flush()

    versioning = log_change(
        db,
        timetable_id=entry.timetable_id,
        action=ChangeAction.lock if entry.is_locked else ChangeAction.unlock,
        old_value=None,
        new_value={**entry.snapshot(), "is_locked": entry.is_locked},
        changed_by=current_user.id,
        reason=payload.reason if payload is not None else None,
    )
    db.commit()
    db.refresh(entry)
    return EntryLockResult(
        entry=TimetableEntryOut.model_validate(entry),
        message=f"Entry {'locked' if entry.is_locked else 'unlocked'}",
        versioning=VersioningOut.model_validate(versioning),
    )


@router.delete("/entries/{entry_id}")
def delete_entry(
    entry_id: str,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> dict:
    entry = _get_entry(db, entry_id)
    if entry.is_locked:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Entry is locked; unlock it before deleting")

    timetable_id = entry.timetable_id
    snapshot = entry.snapshot()
    db.delete(entry)
    db.flush()
    versioning = log_change(
        db,
        timetable_id=timetable_id,
        action=ChangeAction.delete,
        old_value=snapshot,
        new_value=None,
        changed_by=current_user.id,
    )
    db.commit()
    return {"success": True, "versioning": VersioningOut.model_validate(versioning).model_dump()}


# Versions


@router.post("/versions/{version_id}/changes", response_model=ChangeLogOut, status_code=status.HTTP_201_CREATED)
def add_change_log(
    version_id: str,
    payload: ChangeLogCreate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> ChangeLogOut:
    version = db.get(TimetableVersion, version_id)
    if version is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Version not found")
    record = append_change_log(
        db,
        version_id=version.id,
        action=payload.action,
        old_value=payload.old_value,
        new_value=payload.new_value,
        changed_by=current_user.id,
        reason=payload.reason,
    )
    db.commit()
    db.refresh(record)
    return record


# Single timetable


@router.get("/{timetable_id}", response_model=TimetableOut)
def get_timetable(
    timetable_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableOut:
    return _timetable_out(db, _get_timetable(db, timetable_id))


@router.put("/{timetable_id}", response_model=TimetableOut)
def update_timetable(
    timetable_id: str,
    payload: TimetableUpdate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> TimetableOut:
    timetable = _get_timetable(db, timetable_id, lock=True)
    data = payload.model_dump(exclude_unset=True, exclude={"entries"})
    if data.get("config_id"):
        resolve_config(db, data["config_id"])

    for key, value in data.items():
        setattr(timetable, key, value)
    if timetable.start_date and timetable.end_date and timetable.end_date < timetable.start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must not be before start_date",
        )

    if payload.entries is not None:
        # Locked entries survive a bulk replace.
        db.execute(
            delete(TimetableEntry).where(
                TimetableEntry.timetable_id == timetable.id,
                TimetableEntry.is_locked.is_(False),
            )
        )
        _add_entries(db, timetable.id, payload.entries)
    db.commit()
    db.refresh(timetable)
    return _timetable_out(db, timetable)


@router.delete("/{timetable_id}")
def delete_timetable(
    timetable_id: str,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> dict:
    timetable = _get_timetable(db, timetable_id)
    version_ids = select(TimetableVersion.id).where(TimetableVersion.timetable_id == timetable_id)
    db.execute(delete(TimetableChangeLog).where(TimetableChangeLog.version_id.in_(version_ids)))
    db.execute(delete(TimetableVersion).where(TimetableVersion.timetable_id == timetable_id))
    db.execute(delete(TimetableEntry).where(TimetableEntry.timetable_id == timetable_id))
    db.delete(timetable)
    db.commit()
    logger.info("TIMETABLE DELETED | user_id=%s | timetable_id=%s", current_user.id, timetable_id)
    return {"success": True}


@router.get("/{timetable_id}/conflicts", response_model=ConflictReport)
def get_timetable_conflicts(
    timetable_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ConflictReport:
    timetable = _get_timetable(db, timetable_id)
    teacher_names, class_names = _name_maps(db)
    service = ConflictService(_load_entries(db, timetable.id), teacher_names=teacher_names, class_names=class_names)
    return ConflictReport(timetable_id=timetable.id, conflicts=service.detect_conflicts())


@router.get("/{timetable_id}/entries", response_model=list[TimetableEntryOut])
def list_timetable_entries(
    timetable_id: str,
    teacher_id: str | None = Query(default=None),
    class_id: str | None = Query(default=None),
    day: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimetableEntryOut]:
    """Entries of one timetable, optionally narrowed to a teacher, class or day.

    A teacher account with no explicit filter sees its own lessons.
    """
    timetable = _get_timetable(db, timetable_id)
    if teacher_id is None and class_id is None and current_user.role == UserRole.teacher:
        if current_user.teacher_id is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Account is not linked to a teacher",
            )
        teacher_id = current_user.teacher_id

    entries = _load_entries(db, timetable.id)
    day_key = day.strip().lower() if day else None
    return [
        TimetableEntryOut.model_validate(entry)
        for entry in entries
        if (teacher_id is None or entry.teacher_id == teacher_id)
        and (class_id is None or entry.class_id == class_id)
        and (day_key is None or entry.day.lower() == day_key)
    ]


@router.get("/{timetable_id}/versions", response_model=list[TimetableVersionOut])
def list_timetable_versions(
    timetable_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimetableVersionOut]:
    _get_timetable(db, timetable_id)
    versions = list(
        db.execute(
            select(TimetableVersion)
            .where(TimetableVersion.timetable_id == timetable_id)
            .order_by(TimetableVersion.version_number.desc())
        ).scalars()
    )
    logs_by_version: dict[str, list[ChangeLogOut]] = {item.id: [] for item in versions}
    if versions:
        logs = db.execute(
            select(TimetableChangeLog)
            .where(TimetableChangeLog.version_id.in_(list(logs_by_version)))
            .order_by(TimetableChangeLog.created_at, TimetableChangeLog.id)
        ).scalars()
        for log in logs:
            logs_by_version[log.version_id].append(ChangeLogOut.model_validate(log))
    return [
        TimetableVersionOut.model_validate(item).model_copy(update={"change_logs": logs_by_version[item.id]})
        for item in versions
    ]


@router.post("/{timetable_id}/versions", response_model=TimetableVersionOut, status_code=status.HTTP_201_CREATED)
def create_timetable_version(
    timetable_id: str,
    payload: TimetableVersionCreate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> TimetableVersionOut:
    timetable = _get_timetable(db, timetable_id, lock=True)
    outcome = record_version(
        db,
        timetable_id=timetable.id,
        description=payload.description,
        created_by=current_user.id,
    )
    if not outcome.recorded:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=outcome.warning)
    db.commit()
    version = db.get(TimetableVersion, outcome.version_id)
    return TimetableVersionOut.model_validate(version)
