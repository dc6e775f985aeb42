# backend/dispensary/services/slots/calculator.py
"""
Slot capacity and slot clock windows for a resolved, open session.

addressable_slots = min(capacity, floor((end - start) / slot_minutes))

Appointment number n (1-based) covers
  [start + (n-1)*slot_minutes, start + n*slot_minutes)
"""

from dataclasses import dataclass

from ...errors import ConfigurationError
from .config import minutes_to_time_str, time_str_to_minutes
from .resolver import ResolvedSession


@dataclass(frozen=True)
class SlotWindow:
    start: str  # "HH:MM"
    end: str

    @property
    def label(self) -> str:
        """Window as "HH:MM-HH:MM"."""
        return f"{self.start}-{self.end}"


def session_minutes(session: ResolvedSession) -> int:
    """
    Length of the session in minutes.

    Raises:
        ConfigurationError: end is not strictly after start, or a time
            value is malformed.
    """
    try:
        start_min = time_str_to_minutes(session.start_time)
        end_min = time_str_to_minutes(session.end_time)
    except (AttributeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid session times {session.start_time!r}-{session.end_time!r}"
        ) from e

    if end_min <= start_min:
        raise ConfigurationError(
            f"Session end {session.end_time} must be after start {session.start_time}"
        )
    return end_min - start_min


def addressable_slots(session: ResolvedSession) -> int:
    """Number of appointment numbers valid for the session (>= 0)."""
    total = session_minutes(session)
    if session.slot_minutes <= 0:
        raise ConfigurationError(
            f"Slot duration must be positive, got {session.slot_minutes}"
        )
    return max(0, min(session.capacity, total // session.slot_minutes))


def slot_window(session: ResolvedSession, slot_number: int) -> SlotWindow:
    """Clock window of a 1-based appointment number."""
    if slot_number < 1:
        raise ValueError(f"slot_number must be >= 1, got {slot_number}")

    start_min = time_str_to_minutes(session.start_time)
    window_start = start_min + (slot_number - 1) * session.slot_minutes
    window_end = window_start + session.slot_minutes
    return SlotWindow(
        start=minutes_to_time_str(window_start),
        end=minutes_to_time_str(window_end),
    )
