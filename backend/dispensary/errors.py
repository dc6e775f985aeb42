# backend/dispensary/errors.py
"""
Error taxonomy of the slot engine.

"Day closed" and "full" are NOT errors: the allocator returns a
`Rejection` value for them (see services.slots.allocator).
"""


class SlotEngineError(Exception):
    """Base class for slot engine errors."""


class ConfigurationError(SlotEngineError):
    """Session configuration is invalid (e.g. end <= start). Never retried."""


class ConfigurationConflict(SlotEngineError):
    """A configuration record conflicts with an existing one or with bookings."""


class SlotConflict(SlotEngineError):
    """Two writers raced for the same appointment number."""


class ServiceUnavailable(SlotEngineError):
    """Slot conflicts persisted after all internal retries."""


class BookingNotFound(SlotEngineError):
    def __init__(self, booking_id: int):
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id
