"""Registry of named rate limiters sharing one store."""

import time
from collections.abc import Callable
from typing import Any

import structlog

from shared_ratelimit.domain.exceptions import LimiterNotFoundException
from shared_ratelimit.domain.models import Decision, Policy
from shared_ratelimit.limiter import ExceedCallback, RateLimiter
from shared_ratelimit.storage.base import RateLimitStore

logger = structlog.get_logger()


class RateLimitManager:
    """Manages several named limiters, e.g. one per API route or plan tier."""

    def __init__(
        self,
        store: RateLimitStore,
        base_prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize rate limit manager.

        Args:
            store: Storage backend shared by every registered limiter
            base_prefix: Prefix under which each limiter gets its own namespace
            clock: Time source handed to every limiter
        """
        self.store = store
        self.base_prefix = base_prefix
        self._clock = clock
        self.limiters: dict[str, RateLimiter] = {}

    def add_limiter(
        self,
        name: str,
        policy: Policy,
        prefix: str | None = None,
        analytics: bool = False,
        on_limit_exceeded: ExceedCallback | None = None,
    ) -> RateLimiter:
        """Add a limiter under ``name``, replacing any existing one.

        Args:
            name: Name of the limiter
            policy: Policy the limiter enforces
            prefix: Key prefix; defaults to ``{base_prefix}:{name}``
            analytics: Whether the limiter records analytics
            on_limit_exceeded: Callback fired on denied decisions

        Returns:
            Rate limiter instance
        """
        limiter = RateLimiter(
            self.store,
            policy,
            prefix=prefix or f"{self.base_prefix}:{name}",
            analytics=analytics,
            on_limit_exceeded=on_limit_exceeded,
            clock=self._clock,
        )
        self.limiters[name] = limiter

        logger.info(
            "Added rate limiter",
            name=name,
            algorithm=policy.kind.value,
            limit=policy.limit,
            window_seconds=policy.window_seconds,
        )

        return limiter

    def get_limiter(self, name: str) -> RateLimiter:
        """Get a registered limiter.

        Raises:
            LimiterNotFoundException: If no limiter has that name
        """
        limiter = self.limiters.get(name)
        if limiter is None:
            logger.warning("No rate limiter found", name=name)
            raise LimiterNotFoundException(name)
        return limiter

    def remove_limiter(self, name: str) -> None:
        """Remove a limiter. Its stored records expire on their own."""
        if name in self.limiters:
            del self.limiters[name]
            logger.info("Removed rate limiter", name=name)
        else:
            logger.warning("Rate limiter not found", name=name)

    async def decide(self, name: str, identifier: str) -> Decision:
        """Decide for ``identifier`` under the named limiter."""
        return await self.get_limiter(name).decide(identifier)

    async def reset(self, name: str, identifier: str) -> int:
        """Reset ``identifier`` under the named limiter."""
        return await self.get_limiter(name).reset(identifier)

    def get_stats(self) -> dict[str, Any]:
        """Get rate limit manager statistics.

        Returns:
            Statistics dictionary
        """
        return {
            "total_limiters": len(self.limiters),
            "limiters": {
                name: {
                    "algorithm": limiter.policy.kind.value,
                    "limit": limiter.policy.limit,
                    "window_seconds": limiter.policy.window_seconds,
                    "prefix": limiter.prefix,
                    "analytics": limiter.analytics,
                }
                for name, limiter in self.limiters.items()
            },
        }
