"""Redis-based rate limit storage."""

import math
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
import structlog

from .base import RateLimitStore

if TYPE_CHECKING:
    from shared_ratelimit.config.settings import RedisSettings

logger = structlog.get_logger()


class RedisRateLimitStore(RateLimitStore):
    """Rate limit storage backed by a Redis server.

    Errors raised by the client (connection loss, timeouts, server errors)
    are not caught here. A failed store operation must reach the caller
    rather than turning into an allow or deny.
    """

    def __init__(self, redis_client: Any):
        """Initialize Redis storage.

        Args:
            redis_client: ``redis.asyncio.Redis`` client instance
        """
        self.redis = redis_client
        self.logger = logger.bind(store="redis")

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisRateLimitStore":
        """Create storage with a new client connected to ``url``."""
        kwargs.setdefault("decode_responses", True)
        return cls(redis.from_url(url, **kwargs))

    @classmethod
    def from_settings(cls, settings: "RedisSettings") -> "RedisRateLimitStore":
        """Create storage from Redis settings."""
        store = cls.from_url(
            settings.connection_url,
            max_connections=settings.max_connections,
            socket_timeout=settings.socket_timeout,
        )
        store.logger.info(
            "Created Redis rate limit store", host=settings.host, db=settings.db
        )
        return store

    @staticmethod
    def _decode(value: Any) -> Any:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def incr(self, key: str) -> int:
        """Atomically increment the integer at key."""
        return int(await self.redis.incr(key))

    async def get(self, key: str) -> str | None:
        """Get the value stored at key."""
        return self._decode(await self.redis.get(key))

    async def set(self, key: str, value: str) -> None:
        """Set the value at key."""
        await self.redis.set(key, value)

    async def expire(self, key: str, seconds: float) -> None:
        """Attach or refresh a TTL on key with millisecond precision."""
        await self.redis.pexpire(key, max(1, math.ceil(seconds * 1000)))

    async def delete(self, *keys: str) -> int:
        """Delete keys."""
        if not keys:
            return 0
        return int(await self.redis.delete(*keys))

    async def keys(self, pattern: str) -> list[str]:
        """List keys matching a glob pattern using incremental SCAN."""
        return [self._decode(key) async for key in self.redis.scan_iter(match=pattern)]

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        """Increment a hash field."""
        return int(await self.redis.hincrby(key, field, amount))

    async def hmget(self, key: str, fields: list[str]) -> list[str | None]:
        """Get several hash fields."""
        values = await self.redis.hmget(key, fields)
        return [self._decode(value) for value in values]

    async def ping(self) -> bool:
        """Check the connection to Redis."""
        return bool(await self.redis.ping())

    async def close(self) -> None:
        """Close the underlying client and its connection pool."""
        await self.redis.aclose()
        self.logger.debug("Closed Redis rate limit store")
