"""Storage backends implementing the rate limit store contract."""

from .base import RateLimitStore
from .memory import InMemoryRateLimitStore
from .redis import RedisRateLimitStore

__all__ = [
    "RateLimitStore",
    "InMemoryRateLimitStore",
    "RedisRateLimitStore",
]
