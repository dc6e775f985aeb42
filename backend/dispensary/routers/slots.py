# backend/dispensary/routers/slots.py
"""
Slots API endpoints (advisory, nothing is reserved).

GET /slots/availability   - free appointment numbers of a day
GET /slots/next-available - number the next booking would get
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import redis_client
from ..schemas.common import CalendarDate
from ..schemas.slots import AvailabilityResponse, NextAvailableResponse
from ..services.slots import (
    Rejection,
    calculate_availability,
    get_slots_config,
    invalidate_session_cache,
    next_available,
)
from .bookings import rejection_detail


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
    doctor_id: int,
    dispensary_id: int,
    target_date: CalendarDate = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """Free appointment numbers for a doctor at a dispensary on a day."""
    result = calculate_availability(
        db=db,
        doctor_id=doctor_id,
        dispensary_id=dispensary_id,
        target_date=target_date,
        config=get_slots_config(),
        redis=redis_client,
    )
    return AvailabilityResponse(**result)


@router.get("/next-available", response_model=NextAvailableResponse)
def get_next_available(
    doctor_id: int,
    dispensary_id: int,
    target_date: CalendarDate = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """Preview of the next appointment number; 404 when closed or full."""
    result = next_available(
        db,
        doctor_id,
        dispensary_id,
        target_date,
        config=get_slots_config(),
        redis=redis_client,
    )
    if isinstance(result, Rejection):
        raise HTTPException(status_code=404, detail=rejection_detail(result))

    return NextAvailableResponse(
        appointment_number=result.slot_number,
        time_slot=result.window.label,
        estimated_time=result.window.start,
        minutes_per_patient=result.session.slot_minutes,
    )


@router.post("/invalidate")
def invalidate_slots_cache(
    doctor_id: int,
    dispensary_id: int,
    dates: list[CalendarDate] | None = Query(None),
):
    """Manually invalidate cached sessions (admin endpoint)."""
    deleted = invalidate_session_cache(redis_client, doctor_id, dispensary_id, dates)

    return {
        "doctor_id": doctor_id,
        "dispensary_id": dispensary_id,
        "deleted_keys": deleted,
        "dates": [d.isoformat() for d in dates] if dates else "all",
    }
