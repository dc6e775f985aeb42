# backend/dispensary/redis_client.py
"""
Shared Redis client.

Redis is optional: when REDIS_URL is not configured, `redis_client` is None
and the session cache, distributed slot locks and event queue are disabled.
"""

from typing import Optional

from redis import Redis

from .config import settings


def create_redis_client(url: Optional[str]) -> Optional[Redis]:
    if not url:
        return None
    return Redis.from_url(url, decode_responses=True, socket_timeout=2.0)


redis_client: Optional[Redis] = create_redis_client(settings.redis_url)
