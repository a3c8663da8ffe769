from dataclasses import dataclass

from app.services.assignment_index import Assignment
from app.services.conflict_service import ConflictService
from app.services.slot_placement import SlotPlacementEngine, required_periods


@dataclass
class LockedEntry:
    day: str
    period: str
    teacher_id: str | None
    class_id: str | None


def _slots(days, periods):
    return [(day, period) for day in days for period in range(1, periods + 1)]


def test_required_periods_precedence():
    explicit = Assignment("t1", "c1", "math", periods_per_week=3)
    from_subject = Assignment("t1", "c1", "math")
    fallback = Assignment("t1", "c1", "art")

    assert required_periods(explicit, {"math": 5}, 1) == 3
    assert required_periods(from_subject, {"math": 5}, 1) == 5
    assert required_periods(fallback, {"math": 5}, 2) == 2
    assert required_periods(fallback, {}, 0) == 1


def test_placement_fits_all_demand_without_conflicts():
    demands = [
        Assignment("t1", "c1", "math", periods_per_week=3),
        Assignment("t1", "c2", "math", periods_per_week=2),
        Assignment("t2", "c1", "sci", periods_per_week=2),
        Assignment("t2", "c2", "sci", periods_per_week=3),
    ]
    engine = SlotPlacementEngine(_slots(["Monday", "Tuesday"], 4))

    result = engine.place(demands)

    assert result.unplaced == []
    assert len(result.entries) == 10
    assert ConflictService(result.entries).detect_conflicts() == []


def test_stable_order_leaves_later_demand_unplaced(caplog):
    demands = [
        Assignment("teacherA", "classX", "math", periods_per_week=1),
        Assignment("teacherA", "classY", "sci", periods_per_week=1),
    ]
    engine = SlotPlacementEngine([("Monday", 1)])

    with caplog.at_level("WARNING"):
        result = engine.place(demands)

    assert [(item.class_id, item.subject_id) for item in result.entries] == [("classX", "math")]
    assert result.unplaced_count == 1
    assert result.unplaced[0].class_id == "classY"
    assert result.unplaced[0].missing == 1
    assert "DEMAND NOT PLACED" in caplog.text


def test_different_teachers_and_classes_share_a_slot():
    demands = [Assignment("t1", "c1", "math"), Assignment("t2", "c2", "sci")]

    result = SlotPlacementEngine([("Monday", 1)]).place(demands)

    assert [(item.day, item.period) for item in result.entries] == [("Monday", "1"), ("Monday", "1")]


def test_locked_entries_block_their_teacher_and_class():
    locked = [LockedEntry(day="Monday", period="1", teacher_id="t1", class_id="c9")]
    demands = [Assignment("t1", "c1", "math", periods_per_week=1), Assignment("t2", "c9", "sci", periods_per_week=1)]
    engine = SlotPlacementEngine(_slots(["Monday"], 2), locked_entries=locked)

    assert not engine.is_free("Monday", "1", "t1", "c1")
    assert engine.is_free("Monday", "1", "t3", "c3")

    result = engine.place(demands)

    assert {(item.teacher_id, item.period) for item in result.entries} == {("t1", "2"), ("t2", "2")}
    assert ConflictService(list(locked) + result.entries).detect_conflicts() == []


def test_demand_is_placed_once_per_slot():
    result = SlotPlacementEngine(_slots(["Monday"], 3)).place([Assignment("t1", "c1", "math", periods_per_week=3)])

    assert [item.period for item in result.entries] == ["1", "2", "3"]


def test_identical_input_gives_identical_output():
    demands = [Assignment(f"t{i % 3}", f"c{i % 4}", f"s{i}", periods_per_week=2) for i in range(8)]
    slots = _slots(["Monday", "Tuesday", "Wednesday"], 5)

    first = SlotPlacementEngine(slots).place(demands)
    second = SlotPlacementEngine(slots).place(demands)

    assert first == second
