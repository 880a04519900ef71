"""Redis connection and the JSON cache used by the provider directory."""

import json
from typing import Any

import redis
import structlog

from app.config import Settings

logger = structlog.get_logger()

PROVIDER_LIST_PATTERN = "provider:list:*"


def create_redis_client(settings: Settings) -> redis.Redis:
    """Client for the configured Redis; the application lifespan closes it."""
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        username=settings.redis_username,
        password=settings.redis_password,
        decode_responses=True,
        socket_connect_timeout=5,
        health_check_interval=30,
    )


def check_redis_connection(client: redis.Redis | None) -> bool:
    """True when ``client`` answers PING."""
    if client is None:
        return False
    try:
        return bool(client.ping())
    except redis.RedisError:
        return False


class CacheManager:
    """
    JSON values in Redis.

    Reads, writes and invalidations never raise on Redis failures. A broken
    cache shows up as misses and a ``cache_*_failed`` warning, and callers
    fall back to the database.
    """

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        """Decoded value stored under ``key``, or None on a miss."""
        try:
            raw = self.redis.get(key)
        except redis.RedisError as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None

        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store ``value`` as JSON.

        Args:
            key: Cache key
            value: JSON-serializable value; dates and UUIDs are stringified
            ttl: Expiry in seconds; the key never expires when omitted

        Returns:
            Whether the write reached Redis
        """
        try:
            payload = json.dumps(value, default=str)
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
        except (redis.RedisError, TypeError) as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False
        return True

    def delete_pattern(self, pattern: str) -> int:
        """Drop every key matching a glob ``pattern``; returns how many went."""
        try:
            keys = list(self.redis.scan_iter(match=pattern))
            return int(self.redis.delete(*keys)) if keys else 0
        except redis.RedisError as e:
            logger.warning("cache_invalidation_failed", pattern=pattern, error=str(e))
            return 0
