# backend/dispensary/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from pydantic import BaseModel, Field


class SessionInfo(BaseModel):
    """Resolved working window of a day."""
    start_time: str
    end_time: str
    capacity: int
    slot_minutes: int


class FreeSlot(BaseModel):
    slot_number: int
    window: str = Field(description="HH:MM-HH:MM")


class AvailabilityResponse(BaseModel):
    """Free appointment numbers of a day (advisory)."""
    doctor_id: int
    dispensary_id: int
    date: date
    open: bool
    reason: str | None = Field(None, description="absent / no_config when closed")
    session: SessionInfo | None = None
    addressable_slots: int = 0
    booked_count: int = 0
    free_slots: list[FreeSlot] = []


class NextAvailableResponse(BaseModel):
    """Number the next booking would get (advisory)."""
    appointment_number: int
    time_slot: str = Field(description="HH:MM-HH:MM")
    estimated_time: str = Field(description="HH:MM")
    minutes_per_patient: int
