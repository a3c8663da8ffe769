import pytest
from pydantic import ValidationError

from app.core.exceptions import TimetableConfigError
from app.schemas.timetable_config import BreakPeriodEntry, TimetableConfigCreate
from app.services.period_grid import build_period_grid, teaching_periods, teaching_slots


def _config(**overrides):
    data = {
        "periods_per_day": 3,
        "school_start_time": "08:00",
        "school_end_time": "12:00",
        "period_duration": 40,
        "break_periods": [{"name": "Break", "start_time": "10:00", "end_time": "10:20", "period_after": 2}],
        "days_of_week": ["Monday", "Tuesday"],
    }
    data.update(overrides)
    return TimetableConfigCreate(**data)


def test_break_clock_times_are_authoritative():
    cells = build_period_grid(_config())

    assert [(cell.label, cell.start_time, cell.end_time) for cell in cells] == [
        ("Period 1", "08:00", "08:40"),
        ("Period 2", "08:40", "09:20"),
        ("Break", "10:00", "10:20"),
        ("Period 3", "10:20", "11:00"),
    ]
    assert cells[2].kind == "break"
    assert cells[2].period_after == 2
    assert [cell.period_number for cell in cells if cell.is_period] == [1, 2, 3]


def test_grid_without_breaks_runs_back_to_back():
    cells = build_period_grid(_config(break_periods=[], periods_per_day=2))

    assert [(cell.start_time, cell.end_time) for cell in cells] == [("08:00", "08:40"), ("08:40", "09:20")]


def test_breaks_are_emitted_in_anchor_order():
    config = _config(
        periods_per_day=4,
        break_periods=[
            {"name": "Lunch", "start_time": "11:00", "end_time": "11:30", "period_after": 3},
            {"name": "Tea", "start_time": "09:20", "end_time": "09:30", "period_after": 2},
        ],
    )

    labels = [cell.label for cell in build_period_grid(config)]

    assert labels == ["Period 1", "Period 2", "Tea", "Period 3", "Lunch", "Period 4"]


def test_break_anchored_beyond_last_period_is_not_emitted():
    # Bypass validation to model a stored config that predates the anchor check.
    config = _config().model_copy(
        update={
            "break_periods": [
                BreakPeriodEntry(name="Late", start_time="13:00", end_time="13:10", period_after=5),
            ]
        }
    )

    cells = build_period_grid(config)

    assert all(cell.is_period for cell in cells)
    assert len(cells) == 3


def test_out_of_range_break_anchor_is_rejected():
    with pytest.raises(ValidationError, match="anchored after period 4"):
        _config(break_periods=[{"name": "Break", "start_time": "10:00", "end_time": "10:20", "period_after": 4}])


def test_duplicate_break_anchor_is_rejected():
    with pytest.raises(ValidationError, match="More than one break"):
        _config(
            break_periods=[
                {"name": "A", "start_time": "10:00", "end_time": "10:10", "period_after": 1},
                {"name": "B", "start_time": "10:10", "end_time": "10:20", "period_after": 1},
            ]
        )


def test_non_positive_duration_is_rejected_before_grid_construction():
    with pytest.raises(ValidationError):
        _config(period_duration=0)

    config = _config().model_copy(update={"period_duration": 0})
    with pytest.raises(TimetableConfigError):
        build_period_grid(config)


def test_teaching_slots_walk_days_then_periods():
    config = _config()

    assert teaching_periods(config) == [1, 2, 3]
    assert teaching_slots(config) == [
        ("Monday", 1),
        ("Monday", 2),
        ("Monday", 3),
        ("Tuesday", 1),
        ("Tuesday", 2),
        ("Tuesday", 3),
    ]


def test_day_running_past_midnight_is_rejected():
    with pytest.raises(ValidationError, match="before midnight"):
        _config(school_start_time="23:00", school_end_time="23:59", break_periods=[])

    late_break = [{"name": "Late", "start_time": "23:30", "end_time": "23:50", "period_after": 1}]
    with pytest.raises(ValidationError, match="before midnight"):
        _config(school_start_time="20:00", school_end_time="23:00", periods_per_day=2, break_periods=late_break)


def test_stored_config_past_midnight_fails_grid_construction():
    config = _config(break_periods=[]).model_copy(update={"school_start_time": "23:00"})

    with pytest.raises(TimetableConfigError, match="past midnight"):
        build_period_grid(config)


def test_day_ending_just_before_midnight_is_accepted():
    cells = build_period_grid(
        _config(school_start_time="21:59", school_end_time="23:00", break_periods=[], periods_per_day=3)
    )

    assert cells[-1].end_time == "23:59"
