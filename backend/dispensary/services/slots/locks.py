# backend/dispensary/services/slots/locks.py
"""
Per-day allocation locks.

Key: (doctor_id, dispensary_id, date). Held by allocation (session
resolve, occupancy read, first-fit pick, insert) and by schedule changes
while they check the booked days and commit.

- Without Redis: process-local threading.Lock per key (reference counted,
  dropped when no caller holds or waits for it).
- With Redis: redis-py Lock on "slots:lock:{doctor}:{dispensary}:{date}",
  shared by every worker process.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterator

from redis import Redis
from redis.exceptions import LockError

from ...errors import ServiceUnavailable
from .config import SlotsConfig, get_slots_config

logger = logging.getLogger(__name__)

LOCK_PREFIX = "slots:lock"

SlotKey = tuple[int, int, str]

_registry_guard = threading.Lock()
_local_locks: dict[SlotKey, list] = {}  # key → [lock, users]


def slot_key(doctor_id: int, dispensary_id: int, target_date: date) -> SlotKey:
    return doctor_id, dispensary_id, target_date.isoformat()


@contextmanager
def slot_lock(
    doctor_id: int,
    dispensary_id: int,
    target_date: date,
    redis: Redis | None = None,
    config: SlotsConfig | None = None,
) -> Iterator[None]:
    """
    Serialize allocations for one doctor/dispensary/day.

    Raises:
        ServiceUnavailable: lock not acquired within lock_timeout_seconds.
    """
    config = config or get_slots_config()
    key = slot_key(doctor_id, dispensary_id, target_date)

    if redis is not None:
        with _redis_lock(redis, key, config):
            yield
    else:
        with _local_lock(key, config):
            yield


@contextmanager
def _local_lock(key: SlotKey, config: SlotsConfig) -> Iterator[None]:
    with _registry_guard:
        entry = _local_locks.setdefault(key, [threading.Lock(), 0])
        entry[1] += 1

    lock = entry[0]
    try:
        if not lock.acquire(timeout=config.lock_timeout_seconds):
            raise ServiceUnavailable(f"Timed out waiting for slot lock {key}")
        try:
            yield
        finally:
            lock.release()
    finally:
        with _registry_guard:
            entry[1] -= 1
            if entry[1] == 0:
                _local_locks.pop(key, None)


@contextmanager
def _redis_lock(redis: Redis, key: SlotKey, config: SlotsConfig) -> Iterator[None]:
    name = f"{LOCK_PREFIX}:{key[0]}:{key[1]}:{key[2]}"
    lock = redis.lock(
        name,
        timeout=config.lock_timeout_seconds,
        blocking_timeout=config.lock_timeout_seconds,
    )
    if not lock.acquire():
        raise ServiceUnavailable(f"Timed out waiting for slot lock {name}")
    try:
        yield
    finally:
        try:
            lock.release()
        except LockError:
            # Expired while held; the unique index still guards the insert
            logger.warning(f"Slot lock {name} expired before release")


def active_local_locks() -> int:
    """Number of keys currently present in the local lock registry."""
    with _registry_guard:
        return len(_local_locks)
