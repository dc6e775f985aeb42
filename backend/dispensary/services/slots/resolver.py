# backend/dispensary/services/slots/resolver.py
"""
Session resolution: the effective working window of a doctor at a
dispensary on one calendar date.

Precedence:
  1. ScheduleOverride, full closure  → CLOSED ("absent")
  2. no RecurringSession for weekday → CLOSED ("no_config")
  3. ScheduleOverride, modified      → field-wise override of the recurring row
  4. RecurringSession                → as configured

The default slot length is applied here and nowhere else.
"""

from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from .config import SlotsConfig, get_slots_config

REASON_ABSENT = "absent"
REASON_NO_CONFIG = "no_config"


@dataclass(frozen=True)
class ResolvedSession:
    is_open: bool
    reason: Optional[str] = None
    start_time: Optional[str] = None  # "HH:MM"
    end_time: Optional[str] = None
    capacity: int = 0
    slot_minutes: int = 0

    @classmethod
    def closed(cls, reason: str) -> "ResolvedSession":
        return cls(is_open=False, reason=reason)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ResolvedSession":
        return cls(**data)


def weekday_of(target_date: date) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday."""
    return target_date.isoweekday() % 7


def resolve_session(
    db: Session,
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
    config: SlotsConfig | None = None,
) -> ResolvedSession:
    """Resolve the effective session for a doctor/dispensary on a date."""
    config = config or get_slots_config()

    override = _get_override(db, doctor_id, dispensary_id, target_date)
    if override is not None and not override.is_modified_session:
        return ResolvedSession.closed(REASON_ABSENT)

    recurring = get_recurring_session(db, doctor_id, dispensary_id, weekday_of(target_date))
    if recurring is None:
        return ResolvedSession.closed(REASON_NO_CONFIG)

    return merge_session(recurring, override, config)


def merge_session(recurring, override, config: SlotsConfig) -> ResolvedSession:
    """Combine a recurring session with an optional modified-session override."""
    start_time = recurring.start_time
    end_time = recurring.end_time
    capacity = recurring.max_patients
    slot_minutes = recurring.minutes_per_patient

    if override is not None:
        start_time = override.start_time or start_time
        end_time = override.end_time or end_time
        if override.max_patients is not None:
            capacity = override.max_patients
        if override.minutes_per_patient:
            slot_minutes = override.minutes_per_patient

    return ResolvedSession(
        is_open=True,
        start_time=start_time,
        end_time=end_time,
        capacity=capacity,
        slot_minutes=slot_minutes or config.default_slot_minutes,
    )


# ── Database helpers ─────────────────────────────────────────────────────


def _get_override(db: Session, doctor_id: int, dispensary_id: int, target_date: date):
    """Get the schedule override for the exact date, if any."""
    from ...models.generated import ScheduleOverrides

    return (
        db.query(ScheduleOverrides)
        .filter(
            ScheduleOverrides.doctor_id == doctor_id,
            ScheduleOverrides.dispensary_id == dispensary_id,
            ScheduleOverrides.date == target_date.isoformat(),
        )
        .first()
    )


def get_recurring_session(db: Session, doctor_id: int, dispensary_id: int, weekday: int):
    """Get the recurring session for a weekday, if configured."""
    from ...models.generated import RecurringSessions

    return (
        db.query(RecurringSessions)
        .filter(
            RecurringSessions.doctor_id == doctor_id,
            RecurringSessions.dispensary_id == dispensary_id,
            RecurringSessions.weekday == weekday,
        )
        .first()
    )
