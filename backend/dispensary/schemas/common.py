# backend/dispensary/schemas/common.py

import re
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BeforeValidator

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _truncate_to_date(value):
    """Timestamps cross the API as their date component only."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


def _clock_time(value: str) -> str:
    if not TIME_RE.match(value):
        raise ValueError("time must be in HH:MM format")
    return value


CalendarDate = Annotated[date, BeforeValidator(_truncate_to_date)]
ClockTime = Annotated[str, AfterValidator(_clock_time)]


def check_bounds(start_time: Optional[str], end_time: Optional[str]) -> None:
    # zero-padded HH:MM compares correctly as text
    if start_time and end_time and end_time <= start_time:
        raise ValueError("end_time must be after start_time")
