from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_timetable_editor
from app.models.school import ClassSubject, SchoolClass, Subject, Teacher, TeacherClass, TeacherSubject
from app.models.timetable import TimetableEntry
from app.models.user import User
from app.schemas.school import (
    SchoolClassCreate,
    SchoolClassOut,
    SchoolClassUpdate,
    SubjectCreate,
    SubjectOut,
    SubjectUpdate,
    TeacherCreate,
    TeacherOut,
    TeacherUpdate,
)

router = APIRouter()


def _require_existing(db: Session, model, ids: list[str], label: str) -> None:
    if not ids:
        return
    found = set(db.execute(select(model.id).where(model.id.in_(ids))).scalars())
    missing = [item for item in ids if item not in found]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found: {', '.join(missing)}",
        )


def _teacher_out(db: Session, teacher: Teacher) -> TeacherOut:
    class_ids = list(
        db.execute(
            select(TeacherClass.class_id).where(TeacherClass.teacher_id == teacher.id).order_by(TeacherClass.class_id)
        ).scalars()
    )
    subject_ids = list(
        db.execute(
            select(TeacherSubject.subject_id)
            .where(TeacherSubject.teacher_id == teacher.id)
            .order_by(TeacherSubject.subject_id)
        ).scalars()
    )
    return TeacherOut.model_validate(teacher).model_copy(update={"class_ids": class_ids, "subject_ids": subject_ids})


def _class_out(db: Session, school_class: SchoolClass) -> SchoolClassOut:
    subject_ids = list(
        db.execute(
            select(ClassSubject.subject_id)
            .where(ClassSubject.class_id == school_class.id)
            .order_by(ClassSubject.subject_id)
        ).scalars()
    )
    return SchoolClassOut.model_validate(school_class).model_copy(update={"subject_ids": subject_ids})


def _sync_teacher_links(db: Session, teacher_id: str, class_ids: list[str] | None, subject_ids: list[str] | None) -> None:
    if class_ids is not None:
        _require_existing(db, SchoolClass, class_ids, "Classes")
        db.execute(delete(TeacherClass).where(TeacherClass.teacher_id == teacher_id))
        db.add_all(TeacherClass(teacher_id=teacher_id, class_id=class_id) for class_id in class_ids)
    if subject_ids is not None:
        _require_existing(db, Subject, subject_ids, "Subjects")
        db.execute(delete(TeacherSubject).where(TeacherSubject.teacher_id == teacher_id))
        db.add_all(TeacherSubject(teacher_id=teacher_id, subject_id=subject_id) for subject_id in subject_ids)


def _sync_class_subjects(db: Session, class_id: str, subject_ids: list[str] | None) -> None:
    if subject_ids is None:
        return
    _require_existing(db, Subject, subject_ids, "Subjects")
    db.execute(delete(ClassSubject).where(ClassSubject.class_id == class_id))
    db.add_all(ClassSubject(class_id=class_id, subject_id=subject_id) for subject_id in subject_ids)


# Teachers


@router.get("/teachers", response_model=list[TeacherOut])
def list_teachers(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[TeacherOut]:
    teachers = db.execute(select(Teacher).order_by(Teacher.last_name, Teacher.first_name)).scalars()
    return [_teacher_out(db, item) for item in teachers]


@router.get("/teachers/{teacher_id}", response_model=TeacherOut)
def get_teacher(
    teacher_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TeacherOut:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    return _teacher_out(db, teacher)


@router.post("/teachers", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> TeacherOut:
    if payload.email:
        existing = db.execute(select(Teacher).where(Teacher.email == payload.email)).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher email already exists")
    teacher = Teacher(**payload.model_dump(exclude={"class_ids", "subject_ids"}))
    db.add(teacher)
    db.flush()
    _sync_teacher_links(db, teacher.id, payload.class_ids, payload.subject_ids)
    db.commit()
    db.refresh(teacher)
    return _teacher_out(db, teacher)


@router.put("/teachers/{teacher_id}", response_model=TeacherOut)
def update_teacher(
    teacher_id: str,
    payload: TeacherUpdate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> TeacherOut:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")

    data = payload.model_dump(exclude_unset=True, exclude={"class_ids", "subject_ids"})
    if data.get("email"):
        existing = db.execute(
            select(Teacher).where(Teacher.email == data["email"], Teacher.id != teacher_id)
        ).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher email already exists")

    for key, value in data.items():
        setattr(teacher, key, value)
    _sync_teacher_links(db, teacher.id, payload.class_ids, payload.subject_ids)
    db.commit()
    db.refresh(teacher)
    return _teacher_out(db, teacher)


@router.delete("/teachers/{teacher_id}")
def delete_teacher(
    teacher_id: str,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> dict:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    db.execute(delete(TeacherClass).where(TeacherClass.teacher_id == teacher_id))
    db.execute(delete(TeacherSubject).where(TeacherSubject.teacher_id == teacher_id))
    db.execute(update(TimetableEntry).where(TimetableEntry.teacher_id == teacher_id).values(teacher_id=None))
    db.execute(update(User).where(User.teacher_id == teacher_id).values(teacher_id=None))
    db.delete(teacher)
    db.commit()
    return {"success": True}


# Classes


@router.get("/classes", response_model=list[SchoolClassOut])
def list_classes(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[SchoolClassOut]:
    classes = db.execute(select(SchoolClass).order_by(SchoolClass.name)).scalars()
    return [_class_out(db, item) for item in classes]


@router.get("/classes/{class_id}", response_model=SchoolClassOut)
def get_class(
    class_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SchoolClassOut:
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return _class_out(db, school_class)


@router.post("/classes", response_model=SchoolClassOut, status_code=status.HTTP_201_CREATED)
def create_class(
    payload: SchoolClassCreate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> SchoolClassOut:
    existing = db.execute(select(SchoolClass).where(SchoolClass.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Class name already exists")
    school_class = SchoolClass(**payload.model_dump(exclude={"subject_ids"}))
    db.add(school_class)
    db.flush()
    _sync_class_subjects(db, school_class.id, payload.subject_ids)
    db.commit()
    db.refresh(school_class)
    return _class_out(db, school_class)


@router.put("/classes/{class_id}", response_model=SchoolClassOut)
def update_class(
    class_id: str,
    payload: SchoolClassUpdate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> SchoolClassOut:
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")

    data = payload.model_dump(exclude_unset=True, exclude={"subject_ids"})
    if "name" in data:
        existing = db.execute(
            select(SchoolClass).where(SchoolClass.name == data["name"], SchoolClass.id != class_id)
        ).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Class name already exists")

    for key, value in data.items():
        setattr(school_class, key, value)
    _sync_class_subjects(db, school_class.id, payload.subject_ids)
    db.commit()
    db.refresh(school_class)
    return _class_out(db, school_class)


@router.delete("/classes/{class_id}")
def delete_class(
    class_id: str,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> dict:
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    db.execute(delete(TeacherClass).where(TeacherClass.class_id == class_id))
    db.execute(delete(ClassSubject).where(ClassSubject.class_id == class_id))
    db.execute(update(TimetableEntry).where(TimetableEntry.class_id == class_id).values(class_id=None))
    db.delete(school_class)
    db.commit()
    return {"success": True}


# Subjects


@router.get("/subjects", response_model=list[SubjectOut])
def list_subjects(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[SubjectOut]:
    return list(db.execute(select(Subject).order_by(Subject.code)).scalars())


@router.get("/subjects/{subject_id}", response_model=SubjectOut)
def get_subject(
    subject_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubjectOut:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    return subject


@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> SubjectOut:
    existing = db.execute(select(Subject).where(Subject.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject code already exists")
    subject = Subject(**payload.model_dump())
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


@router.put("/subjects/{subject_id}", response_model=SubjectOut)
def update_subject(
    subject_id: str,
    payload: SubjectUpdate,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> SubjectOut:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")

    data = payload.model_dump(exclude_unset=True)
    if data.get("code"):
        existing = db.execute(
            select(Subject).where(Subject.code == data["code"], Subject.id != subject_id)
        ).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject code already exists")

    for key, value in data.items():
        setattr(subject, key, value)
    db.commit()
    db.refresh(subject)
    return subject


@router.delete("/subjects/{subject_id}")
def delete_subject(
    subject_id: str,
    current_user: User = Depends(require_timetable_editor),
    db: Session = Depends(get_db),
) -> dict:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    db.execute(delete(TeacherSubject).where(TeacherSubject.subject_id == subject_id))
    db.execute(delete(ClassSubject).where(ClassSubject.subject_id == subject_id))
    db.execute(update(TimetableEntry).where(TimetableEntry.subject_id == subject_id).values(subject_id=None))
    db.delete(subject)
    db.commit()
    return {"success": True}
