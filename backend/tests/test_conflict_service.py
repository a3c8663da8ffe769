from dataclasses import dataclass

from app.services.conflict_service import ConflictService


@dataclass
class Entry:
    id: str
    day: str
    period: str
    teacher_id: str | None
    class_id: str | None


def test_one_record_per_double_booked_teacher():
    entries = [
        Entry("e1", "Monday", "3", "T1", "C1"),
        Entry("e2", "Monday", "3", "T1", "C2"),
    ]

    conflicts = ConflictService(entries, teacher_names={"T1": "Ada Okafor"}).detect_conflicts()

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert (conflict.day, conflict.period, conflict.type, conflict.entity_id) == ("Monday", "3", "teacher", "T1")
    assert conflict.entity_name == "Ada Okafor"
    assert conflict.entry_ids == ["e1", "e2"]
    assert "booked 2 times" in conflict.message


def test_teacher_conflicts_precede_class_conflicts_in_slot_order():
    entries = [
        Entry("e1", "Tuesday", "1", "T2", "C1"),
        Entry("e2", "Tuesday", "1", "T3", "C1"),
        Entry("e3", "Monday", "2", "T1", "C4"),
        Entry("e4", "Monday", "2", "T1", "C4"),
        Entry("e5", "Monday", "2", "T5", "C6"),
    ]

    conflicts = ConflictService(entries).detect_conflicts()

    assert [(item.day, item.type, item.entity_id) for item in conflicts] == [
        ("Tuesday", "class", "C1"),
        ("Monday", "teacher", "T1"),
        ("Monday", "class", "C4"),
    ]


def test_entries_without_teacher_or_class_are_ignored():
    entries = [
        Entry("e1", "Monday", "1", None, None),
        Entry("e2", "Monday", "1", None, None),
        Entry("e3", "Monday", "1", "T1", None),
    ]

    assert ConflictService(entries).detect_conflicts() == []


def test_detection_is_idempotent():
    entries = [Entry("e1", "Monday", "1", "T1", "C1"), Entry("e2", "Monday", "1", "T1", "C1")]
    service = ConflictService(entries)

    assert service.detect_conflicts() == service.detect_conflicts()


def test_check_slot_excludes_the_entry_being_edited():
    entries = [Entry("e1", "Monday", "1", "T1", "C1"), Entry("e2", "Monday", "2", "T1", "C2")]
    service = ConflictService(entries)

    assert service.check_slot(day="Monday", period="1", teacher_id="T1", class_id="C1", exclude_entry_id="e1") == []

    clashes = service.check_slot(day="Monday", period="2", teacher_id="T1", class_id="C1", exclude_entry_id="e1")
    assert [(item.type, item.message) for item in clashes] == [
        ("teacher", "Teacher is already assigned to this time slot"),
    ]
    assert clashes[0].entry_ids == ["e2"]
