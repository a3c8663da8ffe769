import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.models.timetable import Timetable
from app.models.timetable_version import TimetableChangeLog, TimetableVersion
from app.services import versioning
from app.services.versioning import MANUAL_EDITS_DESCRIPTION, log_change, record_version


@pytest.fixture()
def timetable(db_session):
    record = Timetable(name="Term 1", term="Term 1", academic_year="2026")
    db_session.add(record)
    db_session.commit()
    return record


def test_record_version_numbers_sequentially_and_keeps_one_active(db_session, timetable, user):
    first = record_version(db_session, timetable_id=timetable.id, description=None, created_by=user.id)
    second = record_version(db_session, timetable_id=timetable.id, description="After review", created_by=user.id)
    db_session.commit()

    assert (first.recorded, first.version_number) == (True, 1)
    assert (second.recorded, second.version_number) == (True, 2)

    versions = db_session.execute(
        select(TimetableVersion).order_by(TimetableVersion.version_number)
    ).scalars().all()
    assert [item.is_active for item in versions] == [False, True]
    assert versions[0].description == "Manual version 1"
    assert versions[1].description == "After review"


def test_log_change_creates_manual_edits_version_when_none_is_active(db_session, timetable, user):
    outcome = log_change(
        db_session,
        timetable_id=timetable.id,
        action="move",
        old_value={"day": "Monday", "period": "1"},
        new_value={"day": "Monday", "period": "2"},
        changed_by=user.id,
        reason="Swap requested",
    )
    again = log_change(
        db_session,
        timetable_id=timetable.id,
        action="lock",
        old_value=None,
        new_value={"is_locked": True},
        changed_by=user.id,
    )
    db_session.commit()

    assert outcome.recorded and again.recorded
    assert outcome.version_id == again.version_id
    version = db_session.get(TimetableVersion, outcome.version_id)
    assert version.description == MANUAL_EDITS_DESCRIPTION
    logs = db_session.execute(select(TimetableChangeLog)).scalars().all()
    assert sorted(item.action for item in logs) == ["lock", "move"]
    assert all(item.changed_by == user.id for item in logs)


def test_failed_version_write_degrades_without_losing_the_primary_change(db_session, timetable, user, monkeypatch, caplog):
    def broken_create_version(*args, **kwargs):
        raise OperationalError("INSERT INTO timetable_versions", {}, Exception("table is locked"))

    monkeypatch.setattr(versioning, "create_version", broken_create_version)
    timetable.name = "Renamed"

    with caplog.at_level("WARNING"):
        outcome = record_version(db_session, timetable_id=timetable.id, description=None, created_by=user.id)
    db_session.commit()

    assert outcome.recorded is False
    assert "OperationalError" in outcome.warning
    assert "TIMETABLE VERSION NOT RECORDED" in caplog.text
    db_session.expire_all()
    assert db_session.get(Timetable, timetable.id).name == "Renamed"


def test_failed_change_log_write_is_reported_not_raised(db_session, timetable, user):
    outcome = log_change(
        db_session,
        timetable_id=timetable.id,
        action="create",
        old_value=None,
        new_value={"day": "Monday"},
        changed_by="no-such-user",
    )
    db_session.commit()

    assert outcome.recorded is False
    assert outcome.warning.startswith("Change log could not be recorded")
    assert db_session.execute(select(TimetableChangeLog)).scalars().all() == []
