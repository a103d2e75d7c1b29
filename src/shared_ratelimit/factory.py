"""
Factory functions wiring settings to stores and limiters.

The core classes take their collaborators explicitly; these helpers build
them from environment-driven settings for applications that want that.
"""

import structlog

from shared_ratelimit.config.settings import Settings, get_settings
from shared_ratelimit.limiter import ExceedCallback, RateLimiter
from shared_ratelimit.storage.base import RateLimitStore
from shared_ratelimit.storage.memory import InMemoryRateLimitStore
from shared_ratelimit.storage.redis import RedisRateLimitStore

logger = structlog.get_logger()


def create_store(settings: Settings | None = None) -> RateLimitStore:
    """Create the storage backend selected by ``settings.use_redis``."""
    settings = settings or get_settings()

    if settings.use_redis:
        backend_type = "redis"
        store: RateLimitStore = RedisRateLimitStore.from_settings(settings.redis)
    else:
        backend_type = "memory"
        store = InMemoryRateLimitStore()

    logger.info("Created rate limit store", backend_type=backend_type)
    return store


def create_limiter(
    settings: Settings | None = None,
    store: RateLimitStore | None = None,
    on_limit_exceeded: ExceedCallback | None = None,
) -> RateLimiter:
    """Create a limiter from settings, building the store if none is given."""
    settings = settings or get_settings()
    rate_limit = settings.rate_limit
    policy = rate_limit.to_policy()

    return RateLimiter(
        store if store is not None else create_store(settings),
        policy,
        prefix=rate_limit.prefix,
        analytics=rate_limit.analytics,
        on_limit_exceeded=on_limit_exceeded,
    )
