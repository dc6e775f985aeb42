# backend/dispensary/routers/bookings.py
# Bookings are never deleted: DELETE = 405, cancellation is a status change

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import redis_client
from ..schemas.bookings import (
    BookingCancel,
    BookingCreate,
    BookingRead,
    BookingStatusUpdate,
)
from ..schemas.common import CalendarDate
from ..services import bookings as booking_service
from ..services.slots import Rejection

router = APIRouter(prefix="/bookings", tags=["bookings"])

REJECTION_MESSAGES = {
    "absent": "Doctor is not available on this date",
    "no_config": "No time slot configuration found for this doctor and dispensary on this day",
    "full": "All appointments for this day are booked",
}


def rejection_detail(rejection: Rejection) -> dict:
    return {
        "reason": rejection.reason,
        "detail": REJECTION_MESSAGES.get(rejection.reason, rejection.reason),
    }


@router.get("/day", response_model=list[BookingRead])
def list_day_bookings(
    doctor_id: int,
    dispensary_id: int,
    target_date: CalendarDate = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    return booking_service.list_for_day(db, doctor_id, dispensary_id, target_date)


@router.get("/patient/{patient_id}", response_model=list[BookingRead])
def list_patient_bookings(patient_id: str, db: Session = Depends(get_db)):
    return booking_service.list_for_patient(db, patient_id)


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    return booking_service.get_booking(db, id)


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
):
    result = booking_service.create_booking(db, data, redis=redis_client)
    if isinstance(result, Rejection):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=rejection_detail(result),
        )
    return result


@router.patch("/{id}/status", response_model=BookingRead)
def update_booking_status(
    id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
):
    return booking_service.update_status(db, id, data)


@router.patch("/{id}/cancel", response_model=BookingRead)
def cancel_booking(
    id: int,
    data: BookingCancel | None = None,
    db: Session = Depends(get_db),
):
    reason = data.reason if data else None
    return booking_service.cancel_booking(db, id, reason)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
