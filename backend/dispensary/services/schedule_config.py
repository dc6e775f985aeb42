# backend/dispensary/services/schedule_config.py
"""
Configuration store: recurring weekly sessions and date overrides.

- One recurring session per (doctor, dispensary, weekday); a second one
  is refused, never silently picked.
- One override per (doctor, dispensary, date).
- No change may leave a live appointment number outside the addressable
  slots of its day. The check and the commit run under the per-day slot
  lock of every affected date, so allocation cannot slip in between.

Every change invalidates the cached sessions it affects.
"""

import logging
from contextlib import ExitStack, contextmanager
from datetime import date
from typing import Iterator

from redis import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConfigurationConflict
from ..models.generated import (
    Bookings as DBBooking,
    RecurringSessions as DBRecurringSession,
    ScheduleOverrides as DBScheduleOverride,
)
from ..schemas.recurring_sessions import RecurringSessionCreate
from ..schemas.schedule_overrides import ScheduleOverrideCreate
from .slots import addressable_slots, invalidate_session_cache, occupied_slots, resolve_session
from .slots.config import SlotsConfig, get_slots_config
from .slots.locks import slot_lock
from .slots.occupancy import CANCELLED
from .slots.resolver import weekday_of

logger = logging.getLogger(__name__)

DayKey = tuple[int, int, date]


# ── Recurring sessions ───────────────────────────────────────────────────


def list_recurring_sessions(
    db: Session,
    doctor_id: int | None = None,
    dispensary_id: int | None = None,
) -> list[DBRecurringSession]:
    query = db.query(DBRecurringSession)
    if doctor_id is not None:
        query = query.filter(DBRecurringSession.doctor_id == doctor_id)
    if dispensary_id is not None:
        query = query.filter(DBRecurringSession.dispensary_id == dispensary_id)
    return query.order_by(
        DBRecurringSession.doctor_id,
        DBRecurringSession.dispensary_id,
        DBRecurringSession.weekday,
    ).all()


def create_recurring_session(
    db: Session,
    data: RecurringSessionCreate,
    config: SlotsConfig | None = None,
    redis: Redis | None = None,
) -> DBRecurringSession:
    """
    Raises:
        ConfigurationConflict: the weekday is already configured, or
            bookings already made on that weekday do not fit the session.
    """
    config = config or get_slots_config()
    days = _booked_days(db, data.doctor_id, data.dispensary_id, data.weekday)

    obj = DBRecurringSession(**data.model_dump())
    with _day_locks(days, redis, config):
        db.add(obj)
        _commit_checked(db, days, config, _duplicate_weekday(data))
    db.refresh(obj)

    invalidate_session_cache(redis, obj.doctor_id, obj.dispensary_id)
    return obj


def replace_recurring_session(
    db: Session,
    session_id: int,
    data: RecurringSessionCreate,
    config: SlotsConfig | None = None,
    redis: Redis | None = None,
) -> DBRecurringSession | None:
    """
    Raises:
        ConfigurationConflict: the new weekday is already configured, or
            a booked date of the old or new weekday would lose slots
            that hold live bookings.
    """
    config = config or get_slots_config()
    obj = db.get(DBRecurringSession, session_id)
    if obj is None:
        return None

    old_pair = (obj.doctor_id, obj.dispensary_id)
    days = sorted(
        set(_booked_days(db, obj.doctor_id, obj.dispensary_id, obj.weekday))
        | set(_booked_days(db, data.doctor_id, data.dispensary_id, data.weekday))
    )

    with _day_locks(days, redis, config):
        for field, value in data.model_dump().items():
            setattr(obj, field, value)
        _commit_checked(db, days, config, _duplicate_weekday(data))
    db.refresh(obj)

    invalidate_session_cache(redis, *old_pair)
    if old_pair != (obj.doctor_id, obj.dispensary_id):
        invalidate_session_cache(redis, obj.doctor_id, obj.dispensary_id)
    return obj


def delete_recurring_session(
    db: Session,
    session_id: int,
    redis: Redis | None = None,
) -> bool:
    obj = db.get(DBRecurringSession, session_id)
    if obj is None:
        return False

    pair = (obj.doctor_id, obj.dispensary_id)
    db.delete(obj)
    db.commit()
    invalidate_session_cache(redis, *pair)
    return True


# ── Overrides ────────────────────────────────────────────────────────────


def list_overrides(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    start_date: date,
    end_date: date,
) -> list[DBScheduleOverride]:
    return (
        db.query(DBScheduleOverride)
        .filter(
            DBScheduleOverride.doctor_id == doctor_id,
            DBScheduleOverride.dispensary_id == dispensary_id,
            DBScheduleOverride.date >= start_date.isoformat(),
            DBScheduleOverride.date <= end_date.isoformat(),
        )
        .order_by(DBScheduleOverride.date)
        .all()
    )


def create_override(
    db: Session,
    data: ScheduleOverrideCreate,
    config: SlotsConfig | None = None,
    redis: Redis | None = None,
) -> DBScheduleOverride:
    """
    Raises:
        ConfigurationConflict: an override already exists for the date, or
            the modified session cannot hold the bookings already made.
        ConfigurationError: the modified session has invalid bounds.
    """
    config = config or get_slots_config()
    obj = DBScheduleOverride(**data.model_dump())
    obj.date = data.date.isoformat()
    obj.is_modified_session = int(data.is_modified_session)

    days = [(data.doctor_id, data.dispensary_id, data.date)]
    with _day_locks(days, redis, config):
        db.add(obj)
        _commit_checked(
            db,
            days,
            config,
            f"Doctor {data.doctor_id} already has an override at dispensary "
            f"{data.dispensary_id} on {data.date}",
        )
    db.refresh(obj)

    logger.info(
        f"Override created: doctor={obj.doctor_id} dispensary={obj.dispensary_id} "
        f"date={obj.date} modified={bool(obj.is_modified_session)}"
    )
    invalidate_session_cache(redis, obj.doctor_id, obj.dispensary_id, [data.date])
    return obj


def delete_override(
    db: Session,
    override_id: int,
    config: SlotsConfig | None = None,
    redis: Redis | None = None,
) -> bool:
    """
    Raises:
        ConfigurationConflict: falling back to the recurring session would
            leave live bookings outside its slots.
    """
    config = config or get_slots_config()
    obj = db.get(DBScheduleOverride, override_id)
    if obj is None:
        return False

    doctor_id, dispensary_id = obj.doctor_id, obj.dispensary_id
    target_date = date.fromisoformat(obj.date)

    days = [(doctor_id, dispensary_id, target_date)]
    with _day_locks(days, redis, config):
        db.delete(obj)
        _commit_checked(db, days, config, f"Override {override_id} could not be deleted")

    logger.info(
        f"Override deleted: doctor={doctor_id} dispensary={dispensary_id} date={target_date}"
    )
    invalidate_session_cache(redis, doctor_id, dispensary_id, [target_date])
    return True


# ── Booked-day checks ────────────────────────────────────────────────────


def _duplicate_weekday(data: RecurringSessionCreate) -> str:
    return (
        f"Doctor {data.doctor_id} already has a session at dispensary "
        f"{data.dispensary_id} on weekday {data.weekday}"
    )


def _booked_days(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    weekday: int,
) -> list[DayKey]:
    """Dates on the given weekday that hold live bookings."""
    rows = (
        db.query(DBBooking.booking_date)
        .filter(
            DBBooking.doctor_id == doctor_id,
            DBBooking.dispensary_id == dispensary_id,
            DBBooking.status != CANCELLED,
        )
        .distinct()
        .all()
    )
    days = (date.fromisoformat(value) for (value,) in rows)
    return sorted(
        (doctor_id, dispensary_id, day) for day in days if weekday_of(day) == weekday
    )


@contextmanager
def _day_locks(
    days: list[DayKey],
    redis: Redis | None,
    config: SlotsConfig,
) -> Iterator[None]:
    """Hold the slot lock of every listed day, taken in date order."""
    with ExitStack() as stack:
        for doctor_id, dispensary_id, day in sorted(set(days)):
            stack.enter_context(slot_lock(doctor_id, dispensary_id, day, redis, config))
        yield


def _commit_checked(
    db: Session,
    days: list[DayKey],
    config: SlotsConfig,
    integrity_message: str,
) -> None:
    """
    Flush the pending change, check every day against it, then commit.
    Any failure rolls the change back.
    """
    try:
        db.flush()
        for doctor_id, dispensary_id, day in days:
            _check_day_holds_bookings(db, doctor_id, dispensary_id, day, config)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConfigurationConflict(integrity_message) from e
    except BaseException:
        db.rollback()
        raise


def _check_day_holds_bookings(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
    config: SlotsConfig,
) -> None:
    """The day as now configured must keep every live appointment number."""
    session = resolve_session(db, doctor_id, dispensary_id, target_date, config)
    if not session.is_open:
        # closed days hold no addressable slots to fall outside of
        return

    capacity = addressable_slots(session)
    booked = occupied_slots(db, doctor_id, dispensary_id, target_date)
    if booked and (len(booked) > capacity or max(booked) > capacity):
        raise ConfigurationConflict(
            f"Session on {target_date} holds {capacity} slots but appointment "
            f"numbers up to {max(booked)} ({len(booked)} bookings) exist"
        )
