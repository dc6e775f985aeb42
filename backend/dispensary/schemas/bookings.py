# backend/dispensary/schemas/bookings.py

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from .common import CalendarDate

BookingStatus = Literal["scheduled", "checked_in", "completed", "cancelled", "no_show"]


class BookingCreate(BaseModel):
    doctor_id: int
    dispensary_id: int
    booking_date: CalendarDate

    patient_name: str = Field(min_length=1)
    patient_phone: str = Field(min_length=1)
    patient_email: Optional[str] = None
    patient_id: Optional[str] = None
    symptoms: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    checked_in_time: Optional[datetime] = None
    completed_time: Optional[datetime] = None
    notes: Optional[str] = None
    is_paid: Optional[bool] = None
    is_patient_visited: Optional[bool] = None


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingRead(BaseModel):
    id: int

    patient_id: str
    patient_name: str
    patient_phone: str
    patient_email: Optional[str] = None
    symptoms: Optional[str] = None

    doctor_id: int
    dispensary_id: int
    booking_date: date
    appointment_number: int
    time_slot: str
    estimated_time: str

    status: BookingStatus
    notes: Optional[str] = None
    is_paid: bool
    is_patient_visited: bool
    checked_in_time: Optional[datetime] = None
    completed_time: Optional[datetime] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingRejected(BaseModel):
    reason: str
    detail: str
