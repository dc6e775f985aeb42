# backend/dispensary/services/slots/redis_store.py
"""
Redis cache of resolved sessions.

Key format: slots:session:{doctor_id}:{dispensary_id}:{date}
Value: JSON of ResolvedSession (closed days included).

Used only by advisory reads (availability / next available). Allocation
always resolves the session from the database.
"""

import json
from datetime import date

from redis import Redis

from .config import SlotsConfig, get_slots_config
from .resolver import ResolvedSession


class SessionRedisStore:
    """Redis storage wrapper for resolved sessions."""

    KEY_PREFIX = "slots:session"

    def __init__(self, redis: Redis, config: SlotsConfig | None = None):
        self.redis = redis
        self.config = config or get_slots_config()

    def _key(self, doctor_id: int, dispensary_id: int, dt: date) -> str:
        return f"{self.KEY_PREFIX}:{doctor_id}:{dispensary_id}:{dt.isoformat()}"

    # ── Write ────────────────────────────────────────────────────────────

    def store_session(
        self,
        doctor_id: int,
        dispensary_id: int,
        dt: date,
        session: ResolvedSession,
    ) -> None:
        key = self._key(doctor_id, dispensary_id, dt)
        self.redis.setex(
            key,
            self.config.session_cache_ttl_seconds,
            json.dumps(session.to_dict()),
        )

    # ── Read ─────────────────────────────────────────────────────────────

    def get_session(
        self,
        doctor_id: int,
        dispensary_id: int,
        dt: date,
    ) -> ResolvedSession | None:
        """Cached session, or None on cache miss."""
        raw = self.redis.get(self._key(doctor_id, dispensary_id, dt))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        return ResolvedSession.from_dict(json.loads(raw))

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_sessions(
        self,
        doctor_id: int,
        dispensary_id: int,
        dates: list[date] | None = None,
    ) -> int:
        """
        Delete cached sessions.

        Args:
            dates: Specific dates, or None to delete every cached date
                   of the doctor/dispensary pair.

        Returns:
            Number of deleted keys.
        """
        if dates:
            keys = [self._key(doctor_id, dispensary_id, dt) for dt in dates]
        else:
            pattern = f"{self.KEY_PREFIX}:{doctor_id}:{dispensary_id}:*"
            keys = list(self.redis.scan_iter(match=pattern))

        if not keys:
            return 0

        return self.redis.delete(*keys)
