from .generated import Base, Bookings, RecurringSessions, ScheduleOverrides, metadata

__all__ = ["Base", "Bookings", "RecurringSessions", "ScheduleOverrides", "metadata"]
