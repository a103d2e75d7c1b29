"""Rate limiter facade over a shared store."""

import asyncio
import inspect
import re
import time
from collections.abc import Awaitable, Callable, Iterable

import structlog

from shared_ratelimit.algorithms import evaluate
from shared_ratelimit.domain.exceptions import (
    ConfigurationException,
    RateLimitExceededException,
)
from shared_ratelimit.domain.models import (
    AnalyticsSnapshot,
    Decision,
    MultiDecision,
    Policy,
)
from shared_ratelimit.storage.base import RateLimitStore

logger = structlog.get_logger()

ExceedCallback = Callable[[str, Decision], Awaitable[None] | None]

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")

# Window starts, window indexes and token bucket fields
_RECORD_SUFFIX = r"(-?\d+|bucket|timestamp)"


def escape_glob(value: str) -> str:
    """Escape glob metacharacters so ``value`` matches only itself."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class RateLimiter:
    """Decides whether requests are allowed under one policy.

    Every key this limiter touches is namespaced under ``{prefix}:{identifier}``,
    so limiters with different prefixes never interfere. The limiter keeps no
    state between calls; all of it lives in the store.
    """

    ANALYTICS_TTL_SECONDS = 86400

    def __init__(
        self,
        store: RateLimitStore,
        policy: Policy,
        prefix: str = "ratelimit",
        analytics: bool = False,
        on_limit_exceeded: ExceedCallback | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter.

        Args:
            store: Shared storage backend
            policy: Algorithm and parameters to apply
            prefix: Namespace for every key written by this limiter
            analytics: Whether to count allowed/denied decisions per identifier
            on_limit_exceeded: Called with ``(identifier, decision)`` on denial;
                may be a coroutine function
            clock: Time source returning UNIX time in seconds

        Raises:
            ConfigurationException: If store, policy or prefix is missing
        """
        if store is None:
            raise ConfigurationException("A rate limit store is required", "store")
        if policy is None:
            raise ConfigurationException("A rate limit policy is required", "policy")
        if not prefix:
            raise ConfigurationException("Key prefix must not be empty", "prefix", prefix)

        self.store = store
        self.policy = policy
        self.prefix = prefix
        self.analytics = analytics
        self.on_limit_exceeded = on_limit_exceeded
        self._clock = clock
        self.logger = logger.bind(prefix=prefix, algorithm=policy.kind.value)

        self.logger.info(
            "Created rate limiter",
            limit=policy.limit,
            window_seconds=policy.window_seconds,
            analytics=analytics,
        )

    def _key(self, identifier: str) -> str:
        return f"{self.prefix}:{identifier}"

    def _analytics_key(self, identifier: str) -> str:
        return f"{self.prefix}:analytics:{identifier}"

    def _now_ms(self) -> int:
        return round(self._clock() * 1000)

    async def decide(self, identifier: str) -> Decision:
        """Consume one request for ``identifier`` and return the decision.

        Store errors propagate unchanged. When a callback is configured it
        runs after the decision has been persisted, and its errors propagate
        too.

        Args:
            identifier: Who is being limited (user ID, IP address, API key)

        Returns:
            Decision for this request
        """
        decision = await evaluate(
            self.store, self._key(identifier), self.policy, self._now_ms()
        )

        if self.analytics:
            await self._record_analytics(identifier, decision.allowed)

        if not decision.allowed:
            self.logger.debug(
                "Rate limit exceeded",
                identifier=identifier,
                reset_at_ms=decision.reset_at_ms,
            )
            if self.on_limit_exceeded is not None:
                result = self.on_limit_exceeded(identifier, decision)
                if inspect.isawaitable(result):
                    await result

        return decision

    async def decide_many(self, identifiers: Iterable[str]) -> list[MultiDecision]:
        """Decide for several identifiers concurrently.

        Each identifier is decided independently; results come back in input
        order. Every decision runs to completion before the first error, if
        any, is raised.
        """
        identifiers = list(identifiers)
        decisions = await asyncio.gather(
            *(self.decide(identifier) for identifier in identifiers),
            return_exceptions=True,
        )
        for decision in decisions:
            if isinstance(decision, BaseException):
                raise decision
        return [
            MultiDecision(identifier=identifier, decision=decision)
            for identifier, decision in zip(identifiers, decisions, strict=True)
        ]

    async def enforce(self, identifier: str) -> Decision:
        """Decide, raising instead of returning when the request is denied.

        Raises:
            RateLimitExceededException: If the request is denied
        """
        decision = await self.decide(identifier)
        if not decision.allowed:
            raise RateLimitExceededException(identifier, decision)
        return decision

    async def remaining_for(self, identifier: str) -> int:
        """Return the remaining count after consuming one request.

        This is a full ``decide`` call: it uses up quota, records analytics and
        may fire the exceed callback.
        """
        decision = await self.decide(identifier)
        return decision.remaining

    async def reset(self, identifier: str) -> int:
        """Delete every algorithm record stored for ``identifier``.

        Analytics counters are left alone. Not atomic with respect to
        concurrent decisions for the same identifier.

        The glob also matches records of identifiers that extend this one
        with a ``:`` (``"u"`` vs ``"u:2"``) and the analytics namespace, so
        matches are narrowed to the suffixes the algorithms actually write.

        Returns:
            Number of keys deleted
        """
        key = self._key(identifier)
        record = re.compile(f"{re.escape(key)}:{_RECORD_SUFFIX}")
        candidates = await self.store.keys(f"{escape_glob(key)}:*")
        keys = [candidate for candidate in candidates if record.fullmatch(candidate)]
        deleted = await self.store.delete(*keys) if keys else 0
        self.logger.info("Reset rate limit", identifier=identifier, keys=deleted)
        return deleted

    async def analytics_for(self, identifier: str) -> AnalyticsSnapshot | None:
        """Get allowed/denied counters, or None when analytics is disabled."""
        if not self.analytics:
            return None

        allowed, denied = await self.store.hmget(
            self._analytics_key(identifier), ["allowed", "denied"]
        )
        return AnalyticsSnapshot(
            allowed=int(allowed) if allowed else 0,
            denied=int(denied) if denied else 0,
        )

    async def _record_analytics(self, identifier: str, allowed: bool) -> None:
        analytics_key = self._analytics_key(identifier)
        await self.store.hincrby(analytics_key, "allowed" if allowed else "denied", 1)
        await self.store.expire(analytics_key, self.ANALYTICS_TTL_SECONDS)
