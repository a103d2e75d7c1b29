"""Rate limiting backed by a shared key-value store.

Fixed window, sliding window and token bucket algorithms run against any
store implementing ``RateLimitStore``, so every process pointed at the same
store enforces the same limits.

Basic usage:
    >>> from shared_ratelimit import RateLimiter, RedisRateLimitStore, sliding_window
    >>> store = RedisRateLimitStore.from_url("redis://localhost:6379/0")
    >>> limiter = RateLimiter(store, sliding_window(10, 60), prefix="api")
    >>> decision = await limiter.decide("user-123")
    >>> decision.allowed, decision.remaining
"""

from .domain import (
    AlgorithmKind,
    AnalyticsSnapshot,
    ConfigurationException,
    Decision,
    ErrorCode,
    LimiterNotFoundException,
    MultiDecision,
    Policy,
    RateLimitException,
    RateLimitExceededException,
)
from .factory import create_limiter, create_store
from .limiter import RateLimiter
from .manager import RateLimitManager
from .presets import fixed_window, sliding_window, token_bucket
from .storage import InMemoryRateLimitStore, RateLimitStore, RedisRateLimitStore

__version__ = "0.1.0"

__all__ = [
    "RateLimiter",
    "RateLimitManager",
    "Policy",
    "AlgorithmKind",
    "Decision",
    "MultiDecision",
    "AnalyticsSnapshot",
    "ErrorCode",
    "fixed_window",
    "sliding_window",
    "token_bucket",
    "RateLimitStore",
    "InMemoryRateLimitStore",
    "RedisRateLimitStore",
    "create_limiter",
    "create_store",
    "RateLimitException",
    "ConfigurationException",
    "RateLimitExceededException",
    "LimiterNotFoundException",
]
