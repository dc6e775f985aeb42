# backend/dispensary/services/slots/__init__.py
"""
Appointment slot engine.

Session Resolver → Slot Capacity Calculator → Occupancy Tracker
→ Slot Allocator. Resolved sessions are optionally cached in Redis.
"""

from .config import SlotsConfig, get_slots_config
from .resolver import ResolvedSession, resolve_session
from .calculator import SlotWindow, addressable_slots, slot_window
from .occupancy import occupied_slots
from .allocator import (
    Allocation,
    Rejection,
    allocate,
    calculate_availability,
    next_available,
)
from .redis_store import SessionRedisStore
from .invalidator import invalidate_session_cache

__all__ = [
    "SlotsConfig",
    "get_slots_config",
    "ResolvedSession",
    "resolve_session",
    "SlotWindow",
    "addressable_slots",
    "slot_window",
    "occupied_slots",
    "Allocation",
    "Rejection",
    "allocate",
    "calculate_availability",
    "next_available",
    "SessionRedisStore",
    "invalidate_session_cache",
]
