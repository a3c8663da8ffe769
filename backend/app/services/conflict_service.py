from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from app.schemas.conflict import ConflictDetail
from app.services.slot_placement import SlotOccupant, period_key

SlotKey = Tuple[str, str]


class ConflictService:
    def __init__(
        self,
        entries: Iterable[SlotOccupant],
        teacher_names: Optional[Dict[str, str]] = None,
        class_names: Optional[Dict[str, str]] = None,
    ):
        self.entries = list(entries)
        self.teacher_names = teacher_names or {}
        self.class_names = class_names or {}

    def detect_conflicts(self) -> List[ConflictDetail]:
        # Single grouping pass by (day, period); one record per double-booked entity per slot.
        teachers_by_slot: Dict[SlotKey, Dict[str, List[Optional[str]]]] = defaultdict(lambda: defaultdict(list))
        classes_by_slot: Dict[SlotKey, Dict[str, List[Optional[str]]]] = defaultdict(lambda: defaultdict(list))
        slot_order: List[SlotKey] = []

        for entry in self.entries:
            slot = (entry.day, period_key(entry.period))
            if slot not in teachers_by_slot and slot not in classes_by_slot:
                slot_order.append(slot)
            entry_id = getattr(entry, "id", None)
            if entry.teacher_id:
                teachers_by_slot[slot][entry.teacher_id].append(entry_id)
            if entry.class_id:
                classes_by_slot[slot][entry.class_id].append(entry_id)

        conflicts: List[ConflictDetail] = []
        for day, period in slot_order:
            for teacher_id, entry_ids in teachers_by_slot.get((day, period), {}).items():
                if len(entry_ids) > 1:
                    conflicts.append(self._build("teacher", teacher_id, day, period, entry_ids))
            for class_id, entry_ids in classes_by_slot.get((day, period), {}).items():
                if len(entry_ids) > 1:
                    conflicts.append(self._build("class", class_id, day, period, entry_ids))
        return conflicts

    def check_slot(
        self,
        *,
        day: str,
        period: str,
        teacher_id: Optional[str],
        class_id: Optional[str],
        exclude_entry_id: Optional[str] = None,
    ) -> List[ConflictDetail]:
        """Conflicts a candidate entry would cause at one slot, ignoring the entry being edited."""
        period = period_key(period)
        occupants = [
            entry
            for entry in self.entries
            if entry.day == day
            and period_key(entry.period) == period
            and (exclude_entry_id is None or getattr(entry, "id", None) != exclude_entry_id)
        ]

        conflicts: List[ConflictDetail] = []
        if teacher_id:
            clashing = [getattr(e, "id", None) for e in occupants if e.teacher_id == teacher_id]
            if clashing:
                conflicts.append(
                    ConflictDetail(
                        day=day,
                        period=period,
                        type="teacher",
                        entity_id=teacher_id,
                        entity_name=self.teacher_names.get(teacher_id),
                        message="Teacher is already assigned to this time slot",
                        entry_ids=[item for item in clashing if item],
                    )
                )
        if class_id:
            clashing = [getattr(e, "id", None) for e in occupants if e.class_id == class_id]
            if clashing:
                conflicts.append(
                    ConflictDetail(
                        day=day,
                        period=period,
                        type="class",
                        entity_id=class_id,
                        entity_name=self.class_names.get(class_id),
                        message="Class is already assigned to this time slot",
                        entry_ids=[item for item in clashing if item],
                    )
                )
        return conflicts

    def _build(self, kind: str, entity_id: str, day: str, period: str, entry_ids: List[Optional[str]]) -> ConflictDetail:
        names = self.teacher_names if kind == "teacher" else self.class_names
        name = names.get(entity_id, entity_id)
        label = "Teacher" if kind == "teacher" else "Class"
        return ConflictDetail(
            day=day,
            period=period,
            type=kind,
            entity_id=entity_id,
            entity_name=name,
            message=f"{label} {name} is booked {len(entry_ids)} times on {day} period {period}",
            entry_ids=[item for item in entry_ids if item],
        )
