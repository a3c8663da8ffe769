import pytest
from pydantic import ValidationError

from app.core.exceptions import ResourceNotFoundError, TimetableConfigError
from app.models.timetable_config import TimetableConfig
from app.schemas.timetable_config import TimetableConfigCreate
from app.services.config_resolver import default_config, load_active_config, resolve_config, save_config


def _payload(**overrides):
    data = {
        "periods_per_day": 6,
        "school_start_time": "08:00:00",
        "school_end_time": "13:00",
        "period_duration": 40,
        "break_periods": [{"name": "Break", "start_time": "10:00", "end_time": "10:20", "period_after": 2}],
        "days_of_week": ["Mon", "Tuesday", "Wednesday"],
        "preferences": {"allow_double_periods": True, "room_hint": "lab"},
    }
    data.update(overrides)
    return TimetableConfigCreate(**data)


def test_times_and_days_are_normalised():
    config = _payload()

    assert config.school_start_time == "08:00"
    assert config.days_of_week == ["Monday", "Tuesday", "Wednesday"]
    assert config.preferences.allow_double_periods is True
    assert config.preferences.max_consecutive_periods == 3
    assert config.preferences.model_dump()["room_hint"] == "lab"


@pytest.mark.parametrize(
    "overrides",
    [
        {"periods_per_day": 0},
        {"school_end_time": "07:00"},
        {"days_of_week": []},
        {"days_of_week": ["Monday", "Mon"]},
        {"days_of_week": ["Funday"]},
        {"break_periods": [{"name": "Break", "start_time": "10:20", "end_time": "10:00", "period_after": 2}]},
        {"school_start_time": "8am"},
    ],
)
def test_invalid_configs_are_rejected(overrides):
    with pytest.raises(ValidationError):
        _payload(**overrides)


def test_save_config_keeps_a_single_active_row(db_session):
    first = save_config(db_session, _payload())
    db_session.commit()
    second = save_config(db_session, _payload(periods_per_day=7))
    db_session.commit()

    db_session.refresh(first)
    assert first.is_active is False
    assert second.is_active is True
    assert load_active_config(db_session).id == second.id
    assert second.break_periods[0]["period_after"] == 2


def test_resolve_falls_back_to_defaults(db_session):
    resolved = resolve_config(db_session)

    assert resolved.id is None
    assert resolved == default_config()
    assert resolved.periods_per_day == 14
    assert resolved.period_duration == 35


def test_resolve_prefers_explicit_then_timetable_config(db_session):
    older = save_config(db_session, _payload(periods_per_day=4))
    active = save_config(db_session, _payload(periods_per_day=5))
    db_session.commit()

    assert resolve_config(db_session).id == active.id
    assert resolve_config(db_session, older.id).periods_per_day == 4
    assert resolve_config(db_session, fallback_id=older.id).id == older.id
    assert resolve_config(db_session, fallback_id="gone").id == active.id


def test_resolve_unknown_explicit_id_is_not_found(db_session):
    with pytest.raises(ResourceNotFoundError):
        resolve_config(db_session, "missing-config")


def test_invalid_stored_config_raises_config_error(db_session):
    record = TimetableConfig(
        is_active=True,
        periods_per_day=2,
        school_start_time="08:00",
        school_end_time="12:00",
        period_duration=40,
        break_periods=[{"name": "Late", "start_time": "11:00", "end_time": "11:10", "period_after": 9}],
        days_of_week=["Monday"],
        preferences={},
    )
    db_session.add(record)
    db_session.commit()

    with pytest.raises(TimetableConfigError) as exc_info:
        resolve_config(db_session)
    assert exc_info.value.status_code == 422
    assert exc_info.value.details["config_id"] == record.id
