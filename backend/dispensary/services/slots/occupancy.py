# backend/dispensary/services/slots/occupancy.py
"""
Occupancy: appointment numbers held by live (non-cancelled) bookings.
"""

from datetime import date

from sqlalchemy.orm import Session

CANCELLED = "cancelled"


def occupied_slots(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
) -> set[int]:
    """Get the set of appointment numbers taken on a day."""
    from ...models.generated import Bookings

    rows = (
        db.query(Bookings.appointment_number)
        .filter(
            Bookings.doctor_id == doctor_id,
            Bookings.dispensary_id == dispensary_id,
            Bookings.booking_date == target_date.isoformat(),
            Bookings.status != CANCELLED,
        )
        .all()
    )
    return {number for (number,) in rows}
