from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
import logging
from typing import Protocol

from app.services.assignment_index import Assignment

logger = logging.getLogger(__name__)


class SlotOccupant(Protocol):
    day: str
    period: str
    teacher_id: str | None
    class_id: str | None


@dataclass(frozen=True)
class PlacedEntry:
    day: str
    period: str
    teacher_id: str
    class_id: str
    subject_id: str
    room: str | None = None


@dataclass(frozen=True)
class UnplacedDemand:
    teacher_id: str
    class_id: str
    subject_id: str
    required: int
    placed: int

    @property
    def missing(self) -> int:
        return self.required - self.placed


@dataclass
class PlacementResult:
    entries: list[PlacedEntry] = field(default_factory=list)
    unplaced: list[UnplacedDemand] = field(default_factory=list)

    @property
    def unplaced_count(self) -> int:
        return len(self.unplaced)

    @property
    def missing_periods(self) -> int:
        return sum(item.missing for item in self.unplaced)


def period_key(value: int | str) -> str:
    return str(value).strip()


def required_periods(
    assignment: Assignment,
    subject_periods: dict[str, int] | None = None,
    default_periods: int = 1,
) -> int:
    if assignment.periods_per_week and assignment.periods_per_week > 0:
        return assignment.periods_per_week
    configured = (subject_periods or {}).get(assignment.subject_id) or 0
    if configured > 0:
        return configured
    return max(1, default_periods)


class SlotPlacementEngine:
    """Greedy slot filler.

    Walks the slots in order (days as configured, periods ascending) and, at
    each slot, places every pending demand whose teacher and class are both
    free there, scanning demands in the order supplied. No backtracking and no
    balancing; the same input always yields the same placement.
    """

    def __init__(
        self,
        slots: Sequence[tuple[str, int | str]],
        *,
        locked_entries: Iterable[SlotOccupant] = (),
        subject_periods: dict[str, int] | None = None,
        default_periods: int = 1,
    ) -> None:
        self.slots = [(day, period_key(period)) for day, period in slots]
        self.subject_periods = subject_periods or {}
        self.default_periods = default_periods
        self._teacher_busy: set[tuple[str, str, str]] = set()
        self._class_busy: set[tuple[str, str, str]] = set()
        for entry in locked_entries:
            self._occupy(entry.day, period_key(entry.period), entry.teacher_id, entry.class_id)

    def _occupy(self, day: str, period: str, teacher_id: str | None, class_id: str | None) -> None:
        if teacher_id:
            self._teacher_busy.add((teacher_id, day, period))
        if class_id:
            self._class_busy.add((class_id, day, period))

    def is_free(self, day: str, period: str, teacher_id: str, class_id: str) -> bool:
        return (
            (teacher_id, day, period) not in self._teacher_busy
            and (class_id, day, period) not in self._class_busy
        )

    def place(self, demands: Sequence[Assignment]) -> PlacementResult:
        required = [required_periods(item, self.subject_periods, self.default_periods) for item in demands]
        remaining = list(required)
        entries: list[PlacedEntry] = []

        for day, period in self.slots:
            if not any(count > 0 for count in remaining):
                break
            for index, demand in enumerate(demands):
                if remaining[index] <= 0:
                    continue
                if not self.is_free(day, period, demand.teacher_id, demand.class_id):
                    continue
                entries.append(
                    PlacedEntry(
                        day=day,
                        period=period,
                        teacher_id=demand.teacher_id,
                        class_id=demand.class_id,
                        subject_id=demand.subject_id,
                    )
                )
                self._occupy(day, period, demand.teacher_id, demand.class_id)
                remaining[index] -= 1

        unplaced: list[UnplacedDemand] = []
        for index, demand in enumerate(demands):
            if remaining[index] <= 0:
                continue
            item = UnplacedDemand(
                teacher_id=demand.teacher_id,
                class_id=demand.class_id,
                subject_id=demand.subject_id,
                required=required[index],
                placed=required[index] - remaining[index],
            )
            logger.warning(
                "DEMAND NOT PLACED | teacher_id=%s | class_id=%s | subject_id=%s | required=%s | placed=%s",
                item.teacher_id,
                item.class_id,
                item.subject_id,
                item.required,
                item.placed,
            )
            unplaced.append(item)

        return PlacementResult(entries=entries, unplaced=unplaced)
