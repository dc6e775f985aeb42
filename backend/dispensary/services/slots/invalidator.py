# backend/dispensary/services/slots/invalidator.py
"""
Cache invalidation for resolved sessions.

Triggers:
✓ RecurringSession created/replaced/deleted → all dates of the pair
✓ ScheduleOverride created/deleted          → the override's date

Does NOT trigger:
✗ Booking created/cancelled (occupancy is always read from the database)
"""

import logging
from datetime import date

from redis import Redis

from .redis_store import SessionRedisStore

logger = logging.getLogger(__name__)


def invalidate_session_cache(
    redis: Redis | None,
    doctor_id: int,
    dispensary_id: int,
    dates: list[date] | None = None,
) -> int:
    """
    Invalidate cached sessions for a doctor at a dispensary.

    Returns:
        Number of deleted cache keys (0 when Redis is not configured).
    """
    if redis is None:
        return 0

    deleted = SessionRedisStore(redis).delete_sessions(doctor_id, dispensary_id, dates)
    logger.info(
        f"Session cache invalidated: doctor={doctor_id} "
        f"dispensary={dispensary_id} dates={dates or 'all'} keys={deleted}"
    )
    return deleted
