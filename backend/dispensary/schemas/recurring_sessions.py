# backend/dispensary/schemas/recurring_sessions.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from .common import ClockTime, check_bounds


class RecurringSessionCreate(BaseModel):
    doctor_id: int
    dispensary_id: int
    weekday: int = Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: ClockTime = Field(description="HH:MM")
    end_time: ClockTime = Field(description="HH:MM")
    max_patients: int = Field(ge=0)
    minutes_per_patient: Optional[int] = Field(None, gt=0)

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def validate_bounds(self):
        check_bounds(self.start_time, self.end_time)
        return self


class RecurringSessionRead(BaseModel):
    id: int
    doctor_id: int
    dispensary_id: int
    weekday: int
    start_time: str
    end_time: str
    max_patients: int
    minutes_per_patient: Optional[int] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
