from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from app.core.exceptions import TimetableConfigError
from app.schemas.timetable_config import (
    MINUTES_PER_DAY,
    TimetableConfigBase,
    minutes_to_time,
    parse_time_to_minutes,
)


@dataclass(frozen=True)
class GridCell:
    kind: Literal["period", "break"]
    label: str
    start_time: str
    end_time: str
    period_number: int | None = None
    period_after: int | None = None

    @property
    def is_period(self) -> bool:
        return self.kind == "period"


def build_period_grid(config: TimetableConfigBase) -> list[GridCell]:
    """Expand a configuration into one school day of periods and breaks.

    Periods run back to back from ``school_start_time``. A break anchored after
    period ``i`` is emitted right after it using the break's own clock times,
    and the running clock resumes from the break's end. Configured break times
    win over the computed clock, so a gap (or overlap) before a break is kept
    as configured. Breaks anchored beyond the last period are never emitted.
    """
    if config.period_duration <= 0:
        raise TimetableConfigError(
            "Period duration must be a positive number of minutes",
            details={"period_duration": config.period_duration},
        )
    if config.periods_per_day < 1:
        raise TimetableConfigError(
            "At least one period per day is required",
            details={"periods_per_day": config.periods_per_day},
        )

    breaks_by_anchor = {}
    for item in sorted(config.break_periods, key=lambda entry: entry.period_after):
        breaks_by_anchor.setdefault(item.period_after, item)

    cells: list[GridCell] = []
    cursor = parse_time_to_minutes(config.school_start_time)
    for number in range(1, config.periods_per_day + 1):
        end = cursor + config.period_duration
        if end >= MINUTES_PER_DAY:
            raise TimetableConfigError(
                "Periods run past midnight",
                details={"period": number, "start_time": minutes_to_time(cursor)},
            )
        cells.append(
            GridCell(
                kind="period",
                label=f"Period {number}",
                start_time=minutes_to_time(cursor),
                end_time=minutes_to_time(end),
                period_number=number,
            )
        )
        cursor = end

        break_entry = breaks_by_anchor.get(number)
        if break_entry is None:
            continue
        cells.append(
            GridCell(
                kind="break",
                label=break_entry.name,
                start_time=break_entry.start_time,
                end_time=break_entry.end_time,
                period_after=number,
            )
        )
        cursor = parse_time_to_minutes(break_entry.end_time)

    return cells


def teaching_periods(config: TimetableConfigBase) -> list[int]:
    return [cell.period_number for cell in build_period_grid(config) if cell.is_period]


def teaching_slots(config: TimetableConfigBase) -> list[tuple[str, int]]:
    """Ordered (day, period) coordinates: days in configured order, periods ascending."""
    periods = teaching_periods(config)
    return [(day, period) for day in config.days_of_week for period in periods]
