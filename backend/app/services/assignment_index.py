from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.school import ClassSubject, SchoolClass, Subject, Teacher, TeacherClass, TeacherSubject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Assignment:
    teacher_id: str | None
    class_id: str | None
    subject_id: str | None
    periods_per_week: int = 0

    @property
    def key(self) -> tuple[str | None, str | None, str | None]:
        return (self.teacher_id, self.class_id, self.subject_id)


@dataclass
class AssignmentIndex:
    demands: list[Assignment] = field(default_factory=list)
    by_teacher: dict[str, list[Assignment]] = field(default_factory=dict)
    by_class: dict[str, list[Assignment]] = field(default_factory=dict)
    dropped: list[Assignment] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        assignments: Iterable[Assignment],
        *,
        teacher_ids: set[str] | None = None,
        class_ids: set[str] | None = None,
        subject_ids: set[str] | None = None,
    ) -> "AssignmentIndex":
        """Index assignment tuples in the order given.

        Tuples missing a teacher, class or subject (absent, or unknown to the
        supplied id sets) are dropped with a warning. A repeated tuple keeps
        its first position.
        """
        demands: list[Assignment] = []
        dropped: list[Assignment] = []
        seen: set[tuple[str | None, str | None, str | None]] = set()
        by_teacher: dict[str, list[Assignment]] = defaultdict(list)
        by_class: dict[str, list[Assignment]] = defaultdict(list)

        for assignment in assignments:
            missing = _missing_references(assignment, teacher_ids, class_ids, subject_ids)
            if missing:
                logger.warning(
                    "ASSIGNMENT DROPPED | teacher_id=%s | class_id=%s | subject_id=%s | missing=%s",
                    assignment.teacher_id,
                    assignment.class_id,
                    assignment.subject_id,
                    ",".join(missing),
                )
                dropped.append(assignment)
                continue
            if assignment.key in seen:
                continue
            seen.add(assignment.key)
            demands.append(assignment)
            by_teacher[assignment.teacher_id].append(assignment)
            by_class[assignment.class_id].append(assignment)

        return cls(demands=demands, by_teacher=dict(by_teacher), by_class=dict(by_class), dropped=dropped)

    def contains(self, teacher_id: str | None, class_id: str | None, subject_id: str | None) -> bool:
        if teacher_id is None:
            return False
        return any(
            item.class_id == class_id and item.subject_id == subject_id
            for item in self.by_teacher.get(teacher_id, [])
        )


def _missing_references(
    assignment: Assignment,
    teacher_ids: set[str] | None,
    class_ids: set[str] | None,
    subject_ids: set[str] | None,
) -> list[str]:
    missing: list[str] = []
    checks = (
        ("teacher", assignment.teacher_id, teacher_ids),
        ("class", assignment.class_id, class_ids),
        ("subject", assignment.subject_id, subject_ids),
    )
    for name, value, known in checks:
        if not value or (known is not None and value not in known):
            missing.append(name)
    return missing


def derive_assignments(db: Session) -> list[Assignment]:
    """Build tuples from teacher-class links where the teacher teaches a subject the class takes."""
    active_teachers = set(db.execute(select(Teacher.id).where(Teacher.is_active.is_(True))).scalars())
    active_classes = set(db.execute(select(SchoolClass.id).where(SchoolClass.is_active.is_(True))).scalars())
    subject_periods = {
        subject_id: periods or 0
        for subject_id, periods in db.execute(
            select(Subject.id, Subject.teaching_periods).where(Subject.is_active.is_(True))
        ).all()
    }

    teacher_subjects: dict[str, list[str]] = defaultdict(list)
    for teacher_id, subject_id in db.execute(
        select(TeacherSubject.teacher_id, TeacherSubject.subject_id).order_by(TeacherSubject.subject_id)
    ).all():
        teacher_subjects[teacher_id].append(subject_id)

    class_subjects: dict[str, set[str]] = defaultdict(set)
    for class_id, subject_id in db.execute(select(ClassSubject.class_id, ClassSubject.subject_id)).all():
        class_subjects[class_id].add(subject_id)

    assignments: list[Assignment] = []
    links = db.execute(
        select(TeacherClass.teacher_id, TeacherClass.class_id).order_by(TeacherClass.teacher_id, TeacherClass.class_id)
    ).all()
    for teacher_id, class_id in links:
        if teacher_id not in active_teachers or class_id not in active_classes:
            continue
        for subject_id in teacher_subjects.get(teacher_id, []):
            if subject_id not in subject_periods or subject_id not in class_subjects.get(class_id, set()):
                continue
            assignments.append(
                Assignment(
                    teacher_id=teacher_id,
                    class_id=class_id,
                    subject_id=subject_id,
                    periods_per_week=subject_periods[subject_id],
                )
            )
    return assignments
