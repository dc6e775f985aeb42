"""
backend/dispensary/services/events.py

Event emitter: pushes booking lifecycle events to a Redis list for
notification consumers.

Queue: events:bookings. Delivery is best effort; a failed push never
fails the booking operation that emitted it.
"""

import json
import time
import logging

from .. import redis_client as redis_module

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:bookings"


def emit_event(event_type: str, payload: dict) -> None:
    """Push an event to `events:bookings` (no-op without Redis)."""
    client = redis_module.redis_client
    if client is None:
        logger.debug(f"Event {event_type} not emitted: Redis not configured")
        return

    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        client.rpush(EVENTS_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {EVENTS_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
