# backend/dispensary/services/slots/allocator.py
"""
First-fit appointment number allocation.

    resolve session → addressable slots → occupancy → lowest free number
    → clock window → insert booking

Advisory reads (availability, next available) stop before the insert and
take no lock. `allocate` runs resolve → occupancy → pick → insert under the
per-day lock, which schedule changes also hold while they commit. The
partial unique index on live bookings is the second guard, and an
IntegrityError there is retried with a fresh occupancy read.

Closed days and full days are returned as `Rejection` values.
"""

import logging
from dataclasses import dataclass
from datetime import date

from redis import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import ServiceUnavailable, SlotConflict
from . import occupancy
from .calculator import SlotWindow, addressable_slots, slot_window
from .config import SlotsConfig, get_slots_config
from .locks import slot_lock
from .redis_store import SessionRedisStore
from .resolver import ResolvedSession, resolve_session

logger = logging.getLogger(__name__)

REASON_FULL = "full"


@dataclass(frozen=True)
class Allocation:
    slot_number: int
    window: SlotWindow
    session: ResolvedSession


@dataclass(frozen=True)
class Rejection:
    reason: str  # "absent" | "no_config" | "full"


def first_free_slot(occupied: set[int], capacity: int) -> int | None:
    """Lowest number in 1..capacity not in occupied."""
    for number in range(1, capacity + 1):
        if number not in occupied:
            return number
    return None


# ── Advisory reads ───────────────────────────────────────────────────────


def next_available(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
    config: SlotsConfig | None = None,
    redis: Redis | None = None,
) -> Allocation | Rejection:
    """
    Preview the number the next booking would get. Nothing is committed,
    so a later `allocate` may return a different number.
    """
    config = config or get_slots_config()
    session = _get_session(db, doctor_id, dispensary_id, target_date, config, redis)
    if not session.is_open:
        return Rejection(session.reason)

    capacity = addressable_slots(session)
    occupied = occupancy.occupied_slots(db, doctor_id, dispensary_id, target_date)
    return _pick(session, capacity, occupied)


def calculate_availability(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
    config: SlotsConfig | None = None,
    redis: Redis | None = None,
) -> dict:
    """
    All free appointment numbers of a day.

    Returns:
        Dict for AvailabilityResponse.
    """
    config = config or get_slots_config()
    session = _get_session(db, doctor_id, dispensary_id, target_date, config, redis)

    result = {
        "doctor_id": doctor_id,
        "dispensary_id": dispensary_id,
        "date": target_date.isoformat(),
        "open": session.is_open,
        "reason": session.reason,
        "session": None,
        "addressable_slots": 0,
        "booked_count": 0,
        "free_slots": [],
    }
    if not session.is_open:
        return result

    capacity = addressable_slots(session)
    occupied = occupancy.occupied_slots(db, doctor_id, dispensary_id, target_date)

    result["session"] = {
        "start_time": session.start_time,
        "end_time": session.end_time,
        "capacity": session.capacity,
        "slot_minutes": session.slot_minutes,
    }
    result["addressable_slots"] = capacity
    result["booked_count"] = len(occupied)
    result["free_slots"] = [
        {"slot_number": number, "window": slot_window(session, number).label}
        for number in range(1, capacity + 1)
        if number not in occupied
    ]
    return result


# ── Allocation (commit) ──────────────────────────────────────────────────


def allocate(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
    booking_fields: dict,
    config: SlotsConfig | None = None,
    redis: Redis | None = None,
):
    """
    Assign the lowest free appointment number and insert the booking.

    Args:
        booking_fields: Patient/extra columns of the Bookings row.

    Returns:
        (Allocation, Bookings) on success, or Rejection.

    Raises:
        ConfigurationError: invalid session bounds.
        ServiceUnavailable: slot conflicts persisted after retries, or
            the per-day lock could not be acquired.
    """
    config = config or get_slots_config()

    for attempt in range(1, config.conflict_retries + 1):
        try:
            with slot_lock(doctor_id, dispensary_id, target_date, redis, config):
                # resolved under the lock: schedule changes commit under it too
                session = resolve_session(db, doctor_id, dispensary_id, target_date, config)
                if not session.is_open:
                    logger.info(
                        f"Allocation rejected ({session.reason}): doctor={doctor_id} "
                        f"dispensary={dispensary_id} date={target_date}"
                    )
                    return Rejection(session.reason)

                capacity = addressable_slots(session)
                occupied = occupancy.occupied_slots(
                    db, doctor_id, dispensary_id, target_date
                )
                picked = _pick(session, capacity, occupied)
                if isinstance(picked, Rejection):
                    logger.info(
                        f"Allocation rejected (full): doctor={doctor_id} "
                        f"dispensary={dispensary_id} date={target_date} "
                        f"booked={len(occupied)}/{capacity}"
                    )
                    return picked

                booking = _insert_booking(
                    db, doctor_id, dispensary_id, target_date, picked, booking_fields
                )
        except SlotConflict:
            logger.info(
                f"Slot conflict on attempt {attempt}/{config.conflict_retries}: "
                f"doctor={doctor_id} dispensary={dispensary_id} date={target_date}"
            )
            continue

        logger.info(
            f"Allocated slot {picked.slot_number} ({picked.window.label}): "
            f"booking={booking.id} doctor={doctor_id} "
            f"dispensary={dispensary_id} date={target_date}"
        )
        return picked, booking

    logger.error(
        f"Allocation gave up after {config.conflict_retries} conflicts: "
        f"doctor={doctor_id} dispensary={dispensary_id} date={target_date}"
    )
    raise ServiceUnavailable("Could not allocate a slot, please retry")


def _insert_booking(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
    picked: Allocation,
    booking_fields: dict,
):
    """
    Insert and commit the booking; all-or-nothing.

    Raises:
        SlotConflict: the number was taken by a concurrent writer.
    """
    from ...models.generated import Bookings

    booking = Bookings(
        **booking_fields,
        doctor_id=doctor_id,
        dispensary_id=dispensary_id,
        booking_date=target_date.isoformat(),
        appointment_number=picked.slot_number,
        time_slot=picked.window.label,
        estimated_time=picked.window.start,
        status="scheduled",
    )
    try:
        db.add(booking)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise SlotConflict(f"Slot {picked.slot_number} already taken") from e
    except BaseException:
        db.rollback()
        raise

    db.refresh(booking)
    return booking


# ── Helpers ──────────────────────────────────────────────────────────────


def _pick(
    session: ResolvedSession,
    capacity: int,
    occupied: set[int],
) -> Allocation | Rejection:
    if len(occupied) >= capacity:
        return Rejection(REASON_FULL)

    number = first_free_slot(occupied, capacity)
    if number is None:
        # occupied holds numbers beyond a shrunk session
        return Rejection(REASON_FULL)

    return Allocation(
        slot_number=number,
        window=slot_window(session, number),
        session=session,
    )


def _get_session(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
    config: SlotsConfig,
    redis: Redis | None,
) -> ResolvedSession:
    """Resolved session, using the Redis cache when available."""
    if redis is None:
        return resolve_session(db, doctor_id, dispensary_id, target_date, config)

    store = SessionRedisStore(redis, config)
    cached = store.get_session(doctor_id, dispensary_id, target_date)
    if cached is not None:
        return cached

    session = resolve_session(db, doctor_id, dispensary_id, target_date, config)
    store.store_session(doctor_id, dispensary_id, target_date, session)
    return session
