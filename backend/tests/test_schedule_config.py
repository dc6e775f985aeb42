from datetime import date

import pytest
from pydantic import ValidationError

from dispensary.errors import ConfigurationConflict
from dispensary.schemas.recurring_sessions import RecurringSessionCreate
from dispensary.schemas.schedule_overrides import ScheduleOverrideCreate
from dispensary.services import schedule_config
from dispensary.models import RecurringSessions, ScheduleOverrides
from dispensary.services.slots import occupied_slots, resolve_session

from conftest import DISPENSARY_ID, DOCTOR_ID, MONDAY, MONDAY_WEEKDAY


def recurring(**fields):
    values = {
        "doctor_id": DOCTOR_ID,
        "dispensary_id": DISPENSARY_ID,
        "weekday": MONDAY_WEEKDAY,
        "start_time": "09:00",
        "end_time": "10:00",
        "max_patients": 10,
        "minutes_per_patient": 15,
    }
    values.update(fields)
    return RecurringSessionCreate(**values)


def override(**fields):
    values = {"doctor_id": DOCTOR_ID, "dispensary_id": DISPENSARY_ID, "date": MONDAY}
    values.update(fields)
    return ScheduleOverrideCreate(**values)


class TestRecurringSessions:

    def test_duplicate_weekday_is_refused(self, db_session):
        schedule_config.create_recurring_session(db_session, recurring())

        with pytest.raises(ConfigurationConflict):
            schedule_config.create_recurring_session(db_session, recurring(max_patients=5))

        assert len(schedule_config.list_recurring_sessions(db_session, DOCTOR_ID)) == 1

    def test_same_weekday_other_dispensary_is_allowed(self, db_session):
        schedule_config.create_recurring_session(db_session, recurring())
        schedule_config.create_recurring_session(db_session, recurring(dispensary_id=DISPENSARY_ID + 1))

        assert len(schedule_config.list_recurring_sessions(db_session, DOCTOR_ID)) == 2

    def test_replace_and_delete(self, db_session):
        obj = schedule_config.create_recurring_session(db_session, recurring())

        replaced = schedule_config.replace_recurring_session(
            db_session, obj.id, recurring(end_time="11:00")
        )
        assert replaced.end_time == "11:00"

        assert schedule_config.delete_recurring_session(db_session, obj.id) is True
        assert schedule_config.delete_recurring_session(db_session, obj.id) is False
        assert resolve_session(db_session, DOCTOR_ID, DISPENSARY_ID, MONDAY).reason == "no_config"

    def test_shortening_below_booked_numbers_is_refused(self, db_session, add_booking):
        obj = schedule_config.create_recurring_session(db_session, recurring())
        for n in range(1, 5):
            add_booking(n)

        with pytest.raises(ConfigurationConflict):
            schedule_config.replace_recurring_session(db_session, obj.id, recurring(end_time="09:30"))

        assert db_session.get(RecurringSessions, obj.id).end_time == "10:00"

    def test_every_booked_date_of_the_weekday_is_checked(self, db_session, add_booking):
        obj = schedule_config.create_recurring_session(db_session, recurring())
        add_booking(1)
        add_booking(3, target_date=date(2025, 1, 13))

        with pytest.raises(ConfigurationConflict):
            schedule_config.replace_recurring_session(db_session, obj.id, recurring(max_patients=2))

        assert db_session.get(RecurringSessions, obj.id).max_patients == 10

    def test_moving_onto_a_booked_weekday_is_checked(self, db_session, add_booking):
        tuesday = schedule_config.create_recurring_session(db_session, recurring(weekday=MONDAY_WEEKDAY + 1))
        add_booking(4)

        with pytest.raises(ConfigurationConflict):
            schedule_config.replace_recurring_session(
                db_session, tuesday.id, recurring(max_patients=2)
            )

        assert db_session.get(RecurringSessions, tuesday.id).weekday == MONDAY_WEEKDAY + 1

    def test_shrinking_is_allowed_where_bookings_still_fit(self, db_session, add_booking, add_override):
        obj = schedule_config.create_recurring_session(db_session, recurring())
        add_booking(1)
        add_booking(2)
        add_booking(4, status="cancelled")
        # this date keeps four slots through its own override
        add_booking(4, target_date=date(2025, 1, 13))
        add_override(target_date=date(2025, 1, 13), is_modified_session=True, max_patients=4)

        replaced = schedule_config.replace_recurring_session(db_session, obj.id, recurring(max_patients=2))

        assert replaced.max_patients == 2
        assert resolve_session(db_session, DOCTOR_ID, DISPENSARY_ID, MONDAY).capacity == 2

    @pytest.mark.parametrize(
        "fields",
        [
            {"start_time": "10:00", "end_time": "09:00"},
            {"start_time": "10:00", "end_time": "10:00"},
            {"start_time": "9:00"},
            {"weekday": 7},
            {"minutes_per_patient": 0},
        ],
    )
    def test_invalid_input_rejected_before_storage(self, fields):
        with pytest.raises(ValidationError):
            recurring(**fields)


class TestOverrides:

    def test_closure_drops_session_fields(self):
        data = override(is_modified_session=False, max_patients=3, start_time="10:00")

        assert data.max_patients is None
        assert data.start_time is None

    def test_second_override_for_date_is_refused(self, db_session):
        schedule_config.create_override(db_session, override())

        with pytest.raises(ConfigurationConflict):
            schedule_config.create_override(db_session, override(is_modified_session=True, max_patients=1))

    def test_capacity_below_booked_count_is_refused(self, db_session, add_recurring, add_booking):
        add_recurring()
        add_booking(1)
        add_booking(2)
        add_booking(3)

        with pytest.raises(ConfigurationConflict):
            schedule_config.create_override(db_session, override(is_modified_session=True, max_patients=2))

    def test_shrinking_below_highest_booked_number_is_refused(self, db_session, add_recurring, add_booking):
        add_recurring()
        add_booking(4)

        with pytest.raises(ConfigurationConflict):
            schedule_config.create_override(db_session, override(is_modified_session=True, end_time="09:30"))

    def test_capacity_at_booked_count_is_allowed(self, db_session, add_recurring, add_booking):
        add_recurring()
        add_booking(1)
        add_booking(2)
        add_booking(3, status="cancelled")

        obj = schedule_config.create_override(
            db_session, override(is_modified_session=True, max_patients=2)
        )

        assert obj.max_patients == 2
        assert resolve_session(db_session, DOCTOR_ID, DISPENSARY_ID, MONDAY).capacity == 2

    def test_list_by_range_and_delete(self, db_session):
        first = schedule_config.create_override(db_session, override())
        schedule_config.create_override(db_session, override(date=date(2025, 1, 20)))

        listed = schedule_config.list_overrides(
            db_session, DOCTOR_ID, DISPENSARY_ID, date(2025, 1, 1), date(2025, 1, 10)
        )
        assert [o.date for o in listed] == ["2025-01-06"]

        assert schedule_config.delete_override(db_session, first.id) is True
        assert schedule_config.delete_override(db_session, first.id) is False

    def test_deleting_override_that_raised_capacity_is_refused(self, db_session, add_recurring, add_booking):
        add_recurring(max_patients=2)
        raised = schedule_config.create_override(
            db_session, override(is_modified_session=True, max_patients=4)
        )
        for n in range(1, 5):
            add_booking(n)

        with pytest.raises(ConfigurationConflict):
            schedule_config.delete_override(db_session, raised.id)

        assert db_session.get(ScheduleOverrides, raised.id) is not None
        assert resolve_session(db_session, DOCTOR_ID, DISPENSARY_ID, MONDAY).capacity == 4
        assert occupied_slots(db_session, DOCTOR_ID, DISPENSARY_ID, MONDAY) == {1, 2, 3, 4}

    def test_deleting_override_is_allowed_when_bookings_fit(self, db_session, add_recurring, add_booking):
        add_recurring(max_patients=2)
        raised = schedule_config.create_override(
            db_session, override(is_modified_session=True, max_patients=4)
        )
        add_booking(1)
        add_booking(3, status="cancelled")

        assert schedule_config.delete_override(db_session, raised.id) is True
        assert resolve_session(db_session, DOCTOR_ID, DISPENSARY_ID, MONDAY).capacity == 2

    def test_deleting_closure_reopens_day_for_its_bookings(self, db_session, add_recurring, add_booking):
        add_recurring(max_patients=1)
        closure = schedule_config.create_override(db_session, override())
        add_booking(2)

        with pytest.raises(ConfigurationConflict):
            schedule_config.delete_override(db_session, closure.id)
