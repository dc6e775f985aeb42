# backend/dispensary/services/bookings.py
"""
Booking lifecycle.

States: scheduled (initial), checked_in, completed, cancelled, no_show.
Any state may be set from any other through `update_status`; there is no
forced intermediate state. Cancelling frees the appointment number for
the next allocation on the same day. Bookings are never deleted.
"""

import logging
from datetime import date, datetime

from redis import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import BookingNotFound, SlotConflict
from ..models.generated import Bookings as DBBooking
from ..schemas.bookings import BookingCreate, BookingStatusUpdate
from .events import emit_event
from .slots import Rejection, allocate
from .slots.config import SlotsConfig

logger = logging.getLogger(__name__)

SCHEDULED = "scheduled"
CHECKED_IN = "checked_in"
COMPLETED = "completed"
CANCELLED = "cancelled"
NO_SHOW = "no_show"

BOOKING_STATUSES = (SCHEDULED, CHECKED_IN, COMPLETED, CANCELLED, NO_SHOW)


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _event_payload(booking: DBBooking) -> dict:
    return {
        "booking_id": booking.id,
        "doctor_id": booking.doctor_id,
        "dispensary_id": booking.dispensary_id,
        "date": booking.booking_date,
        "appointment_number": booking.appointment_number,
        "time_slot": booking.time_slot,
        "status": booking.status,
    }


def get_booking(db: Session, booking_id: int) -> DBBooking:
    booking = db.get(DBBooking, booking_id)
    if booking is None:
        raise BookingNotFound(booking_id)
    return booking


def list_for_day(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
) -> list[DBBooking]:
    """All bookings of a day, cancelled included, by appointment number."""
    return (
        db.query(DBBooking)
        .filter(
            DBBooking.doctor_id == doctor_id,
            DBBooking.dispensary_id == dispensary_id,
            DBBooking.booking_date == target_date.isoformat(),
        )
        .order_by(DBBooking.appointment_number, DBBooking.id)
        .all()
    )


def list_for_patient(db: Session, patient_id: str) -> list[DBBooking]:
    return (
        db.query(DBBooking)
        .filter(DBBooking.patient_id == patient_id)
        .order_by(DBBooking.booking_date.desc(), DBBooking.appointment_number)
        .all()
    )


def create_booking(
    db: Session,
    data: BookingCreate,
    config: SlotsConfig | None = None,
    redis: Redis | None = None,
) -> DBBooking | Rejection:
    """Allocate the next appointment number and create the booking."""
    fields = {
        "patient_id": data.patient_id or f"temp-{data.patient_phone}",
        "patient_name": data.patient_name,
        "patient_phone": data.patient_phone,
        "patient_email": data.patient_email,
        "symptoms": data.symptoms,
    }

    result = allocate(
        db,
        data.doctor_id,
        data.dispensary_id,
        data.booking_date,
        fields,
        config=config,
        redis=redis,
    )
    if isinstance(result, Rejection):
        return result

    _, booking = result
    emit_event("booking_created", _event_payload(booking))
    return booking


def update_status(
    db: Session,
    booking_id: int,
    data: BookingStatusUpdate,
) -> DBBooking:
    """
    Set a booking's status and any provided attendance/payment fields.

    Raises:
        BookingNotFound: unknown booking id.
        SlotConflict: reactivating a cancelled booking whose appointment
            number has been given to someone else.
    """
    booking = get_booking(db, booking_id)
    previous = booking.status

    booking.status = data.status
    if data.checked_in_time is not None:
        booking.checked_in_time = data.checked_in_time.isoformat(timespec="seconds")
    elif data.status == CHECKED_IN and not booking.checked_in_time:
        booking.checked_in_time = _now()

    if data.completed_time is not None:
        booking.completed_time = data.completed_time.isoformat(timespec="seconds")
    elif data.status == COMPLETED and not booking.completed_time:
        booking.completed_time = _now()

    if data.notes:
        booking.notes = data.notes
    if data.is_paid is not None:
        booking.is_paid = int(data.is_paid)
    if data.is_patient_visited is not None:
        booking.is_patient_visited = int(data.is_patient_visited)
    booking.updated_at = _now()

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise SlotConflict(
            f"Appointment number {booking.appointment_number} on "
            f"{booking.booking_date} is no longer free"
        ) from e

    db.refresh(booking)
    if previous != booking.status:
        logger.info(f"Booking {booking.id} status {previous} → {booking.status}")
        emit_event("booking_status_changed", _event_payload(booking))
    return booking


def cancel_booking(db: Session, booking_id: int, reason: str | None = None) -> DBBooking:
    """
    Cancel a booking, keeping the record. Retrying is safe: an already
    cancelled booking is returned unchanged.
    """
    booking = get_booking(db, booking_id)
    if booking.status == CANCELLED:
        return booking

    booking.status = CANCELLED
    if reason:
        note = f"Cancellation reason: {reason}"
        booking.notes = f"{booking.notes} {note}" if booking.notes else note
    booking.updated_at = _now()
    db.commit()
    db.refresh(booking)

    logger.info(
        f"Booking {booking.id} cancelled, slot {booking.appointment_number} "
        f"on {booking.booking_date} freed"
    )
    emit_event("booking_cancelled", _event_payload(booking))
    return booking
