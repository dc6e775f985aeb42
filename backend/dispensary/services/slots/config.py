# backend/dispensary/services/slots/config.py
"""
Slot engine configuration and clock-time helpers.
"""

from dataclasses import dataclass
from functools import lru_cache

from ...config import settings


@dataclass(frozen=True)
class SlotsConfig:
    """
    Configuration for the slot engine.

    Attributes:
        default_slot_minutes: Slot length when neither override nor
            recurring session sets one
        conflict_retries: Insert attempts after a unique-index race
            before giving up with ServiceUnavailable
        lock_timeout_seconds: Max time to wait for / hold a per-day lock
        session_cache_ttl_seconds: Redis TTL for resolved sessions
    """
    default_slot_minutes: int = 15
    conflict_retries: int = 3
    lock_timeout_seconds: float = 5.0
    session_cache_ttl_seconds: int = 3600

    def __post_init__(self):
        """Validate configuration."""
        if self.default_slot_minutes <= 0:
            raise ValueError(
                f"default_slot_minutes must be positive, got {self.default_slot_minutes}"
            )
        if self.conflict_retries < 1:
            raise ValueError(f"conflict_retries must be >= 1, got {self.conflict_retries}")


@lru_cache
def get_slots_config() -> SlotsConfig:
    """Get slot engine configuration (singleton, built from settings)."""
    return SlotsConfig(
        default_slot_minutes=settings.default_slot_minutes,
        conflict_retries=settings.conflict_retries,
        lock_timeout_seconds=settings.lock_timeout_seconds,
        session_cache_ttl_seconds=settings.session_cache_ttl_seconds,
    )


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hour, minute = value.split(":")
    return int(hour) * 60 + int(minute)


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to zero-padded 24-hour "HH:MM"."""
    minutes %= 24 * 60
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
