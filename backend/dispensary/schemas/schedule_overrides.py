# backend/dispensary/schemas/schedule_overrides.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from .common import CalendarDate, ClockTime, check_bounds


class ScheduleOverrideCreate(BaseModel):
    doctor_id: int
    dispensary_id: int
    date: CalendarDate

    # False = doctor absent all day
    is_modified_session: bool = False

    # Modified session only; unset → recurring session value
    start_time: Optional[ClockTime] = Field(None, description="HH:MM")
    end_time: Optional[ClockTime] = Field(None, description="HH:MM")
    max_patients: Optional[int] = Field(None, ge=0)
    minutes_per_patient: Optional[int] = Field(None, gt=0)

    reason: Optional[str] = None

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def validate_session_fields(self):
        if not self.is_modified_session:
            self.start_time = None
            self.end_time = None
            self.max_patients = None
            self.minutes_per_patient = None
        check_bounds(self.start_time, self.end_time)
        return self


class ScheduleOverrideRead(BaseModel):
    id: int
    doctor_id: int
    dispensary_id: int
    date: date
    is_modified_session: bool

    start_time: Optional[str] = None
    end_time: Optional[str] = None
    max_patients: Optional[int] = None
    minutes_per_patient: Optional[int] = None

    reason: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
