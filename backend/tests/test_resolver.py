from datetime import date

from dispensary.services.slots.config import SlotsConfig
from dispensary.services.slots.resolver import (
    REASON_ABSENT,
    REASON_NO_CONFIG,
    resolve_session,
    weekday_of,
)

from conftest import DISPENSARY_ID, DOCTOR_ID, MONDAY


def resolve(db, target_date=MONDAY, config=None):
    return resolve_session(db, DOCTOR_ID, DISPENSARY_ID, target_date, config)


def test_weekday_counts_from_sunday():
    assert weekday_of(date(2025, 1, 5)) == 0  # Sunday
    assert weekday_of(MONDAY) == 1
    assert weekday_of(date(2025, 1, 11)) == 6  # Saturday


def test_recurring_session_used_as_configured(db_session, add_recurring):
    add_recurring(start_time="09:00", end_time="10:00", max_patients=10, minutes_per_patient=20)

    session = resolve(db_session)

    assert session.is_open
    assert session.reason is None
    assert (session.start_time, session.end_time) == ("09:00", "10:00")
    assert session.capacity == 10
    assert session.slot_minutes == 20


def test_no_recurring_session_is_closed_no_config(db_session, add_recurring):
    add_recurring(weekday=2)  # Tuesday only

    session = resolve(db_session)

    assert not session.is_open
    assert session.reason == REASON_NO_CONFIG


def test_other_doctor_config_is_ignored(db_session, add_recurring):
    add_recurring(doctor_id=DOCTOR_ID + 1)

    assert resolve(db_session).reason == REASON_NO_CONFIG


def test_full_closure_wins_over_recurring(db_session, add_recurring, add_override):
    add_recurring()
    add_override(is_modified_session=False, reason="Conference")

    session = resolve(db_session)

    assert not session.is_open
    assert session.reason == REASON_ABSENT


def test_full_closure_without_recurring_is_absent(db_session, add_override):
    add_override(is_modified_session=False)

    assert resolve(db_session).reason == REASON_ABSENT


def test_closure_only_applies_to_its_date(db_session, add_recurring, add_override):
    add_recurring()
    add_override(target_date=date(2025, 1, 13))

    assert resolve(db_session).is_open


def test_modified_session_overrides_only_set_fields(db_session, add_recurring, add_override):
    add_recurring(start_time="09:00", end_time="10:00", max_patients=10, minutes_per_patient=15)
    add_override(is_modified_session=True, max_patients=2)

    session = resolve(db_session)

    assert session.is_open
    assert (session.start_time, session.end_time) == ("09:00", "10:00")
    assert session.capacity == 2
    assert session.slot_minutes == 15


def test_modified_session_replaces_times_and_duration(db_session, add_recurring, add_override):
    add_recurring()
    add_override(
        is_modified_session=True,
        start_time="14:00",
        end_time="16:00",
        minutes_per_patient=30,
    )

    session = resolve(db_session)

    assert (session.start_time, session.end_time) == ("14:00", "16:00")
    assert session.slot_minutes == 30
    assert session.capacity == 10


def test_default_slot_duration_applied_to_recurring(db_session, add_recurring):
    add_recurring(minutes_per_patient=None)

    assert resolve(db_session).slot_minutes == 15


def test_default_slot_duration_applied_to_modified_session(db_session, add_recurring, add_override):
    add_recurring(minutes_per_patient=None)
    add_override(is_modified_session=True, max_patients=3)

    assert resolve(db_session).slot_minutes == 15


def test_default_slot_duration_comes_from_config(db_session, add_recurring):
    add_recurring(minutes_per_patient=None)

    session = resolve(db_session, config=SlotsConfig(default_slot_minutes=10))

    assert session.slot_minutes == 10


def test_round_trips_through_dict(db_session, add_recurring):
    add_recurring()
    session = resolve(db_session)

    assert type(session).from_dict(session.to_dict()) == session
