"""Tests for the rate limiter facade."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared_ratelimit import (
    AnalyticsSnapshot,
    ConfigurationException,
    RateLimiter,
    RateLimitExceededException,
    fixed_window,
    sliding_window,
    token_bucket,
)
from shared_ratelimit.limiter import escape_glob
from shared_ratelimit.storage.base import RateLimitStore


@pytest.fixture
def make_limiter(store, clock):
    """Build limiters over the shared in-memory store and manual clock."""

    def _make(policy, **kwargs):
        return RateLimiter(store, policy, clock=clock, **kwargs)

    return _make


class TestDecide:
    """Test single-identifier decisions."""

    @pytest.mark.asyncio
    async def test_fixed_window_scenario(self, make_limiter):
        """Test three calls against a limit of two."""
        limiter = make_limiter(fixed_window(2, 10))

        results = [await limiter.decide("u") for _ in range(3)]

        assert [(r.allowed, r.remaining) for r in results] == [
            (True, 1),
            (True, 0),
            (False, 0),
        ]

    @pytest.mark.asyncio
    async def test_keys_are_namespaced(self, make_limiter, store, clock):
        """Test records land under prefix and identifier."""
        limiter = make_limiter(fixed_window(2, 10), prefix="api")
        await limiter.decide("user-1")

        assert await store.keys("api:user-1:*") == [f"api:user-1:{clock.now_ms}"]

    @pytest.mark.asyncio
    async def test_prefixes_isolate_limiters(self, make_limiter):
        """Test the same identifier is counted separately per prefix."""
        first = make_limiter(fixed_window(1, 10), prefix="one")
        second = make_limiter(fixed_window(1, 10), prefix="two")

        assert (await first.decide("u")).allowed is True
        assert (await second.decide("u")).allowed is True
        assert (await first.decide("u")).allowed is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "policy",
        [fixed_window(3, 10), sliding_window(3, 10), token_bucket(3, 10)],
        ids=["fixed", "sliding", "token"],
    )
    async def test_decision_invariants(self, make_limiter, clock, policy):
        """Test remaining and reset stay in range for every algorithm."""
        limiter = make_limiter(policy)

        for step in range(12):
            decision = await limiter.decide("u")
            assert 0 <= decision.remaining <= decision.limit
            assert decision.reset_at_ms >= clock.now_ms
            if not decision.allowed:
                assert decision.remaining == 0
            clock.advance(0.75 if step % 3 else 0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "policy",
        [fixed_window(5, 10), sliding_window(5, 10)],
        ids=["fixed", "sliding"],
    )
    async def test_concurrent_decisions_admit_exactly_limit(self, make_limiter, policy):
        """Test concurrent calls for one identifier never over-admit."""
        limiter = make_limiter(policy)

        results = await asyncio.gather(*(limiter.decide("u") for _ in range(8)))

        assert sum(r.allowed for r in results) == 5
        assert sorted(r.remaining for r in results) == [0, 0, 0, 0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_millisecond_clock_is_rounded(self, store):
        """Test float error in the clock does not shift now back a millisecond."""
        limiter = RateLimiter(store, fixed_window(1, 0.001), clock=lambda: 1.005)
        await limiter.decide("u")

        assert await store.keys("ratelimit:u:*") == ["ratelimit:u:1005"]

    @pytest.mark.asyncio
    async def test_store_errors_propagate(self, clock):
        """Test a failing store is reported, not treated as allowed or denied."""
        store = AsyncMock(spec=RateLimitStore)
        store.incr.side_effect = ConnectionError("store unavailable")
        callback = MagicMock()
        limiter = RateLimiter(
            store,
            fixed_window(2, 10),
            analytics=True,
            on_limit_exceeded=callback,
            clock=clock,
        )

        with pytest.raises(ConnectionError, match="store unavailable"):
            await limiter.decide("u")

        store.hincrby.assert_not_called()
        callback.assert_not_called()


class TestConstruction:
    """Test configuration errors fail at construction."""

    def test_missing_store(self):
        """Test a store is required."""
        with pytest.raises(ConfigurationException) as exc_info:
            RateLimiter(None, fixed_window(1, 10))
        assert exc_info.value.field == "store"

    def test_missing_policy(self, store):
        """Test a policy is required."""
        with pytest.raises(ConfigurationException):
            RateLimiter(store, None)

    def test_empty_prefix(self, store):
        """Test an empty prefix is rejected."""
        with pytest.raises(ConfigurationException):
            RateLimiter(store, fixed_window(1, 10), prefix="")

    def test_defaults(self, store):
        """Test default prefix and analytics setting."""
        limiter = RateLimiter(store, fixed_window(1, 10))
        assert limiter.prefix == "ratelimit"
        assert limiter.analytics is False
        assert limiter.on_limit_exceeded is None


class TestDecideMany:
    """Test multi-identifier decisions."""

    @pytest.mark.asyncio
    async def test_one_result_per_identifier_in_order(self, make_limiter):
        """Test results line up with the input identifiers."""
        limiter = make_limiter(fixed_window(5, 10))

        results = await limiter.decide_many(["user-8", "user-9", "user-10"])

        assert [r.identifier for r in results] == ["user-8", "user-9", "user-10"]
        assert all(r.allowed for r in results)
        assert all(r.remaining == 4 for r in results)

    @pytest.mark.asyncio
    async def test_identifiers_are_independent(self, make_limiter):
        """Test one exhausted identifier does not affect the others."""
        limiter = make_limiter(fixed_window(1, 10))
        await limiter.decide("busy")

        results = await limiter.decide_many(["busy", "idle"])

        assert results[0].allowed is False
        assert results[1].allowed is True

    @pytest.mark.asyncio
    async def test_error_raised_after_all_decisions_finish(self, clock):
        """Test one failing identifier does not abandon the others."""

        async def incr(key):
            if ":bad:" in key:
                raise ConnectionError("store unavailable")
            return 1

        store = AsyncMock(spec=RateLimitStore)
        store.incr.side_effect = incr
        limiter = RateLimiter(store, fixed_window(2, 10), clock=clock)

        with pytest.raises(ConnectionError, match="store unavailable"):
            await limiter.decide_many(["good", "bad", "other"])

        assert store.incr.await_count == 3
        assert store.expire.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_input(self, make_limiter):
        """Test no identifiers gives no results."""
        limiter = make_limiter(fixed_window(1, 10))
        assert await limiter.decide_many([]) == []


class TestReset:
    """Test clearing stored state."""

    @pytest.mark.asyncio
    async def test_reset_makes_identifier_fresh(self, make_limiter):
        """Test the next decision after reset is allowed with limit - 1 left."""
        limiter = make_limiter(fixed_window(3, 10))
        for _ in range(4):
            await limiter.decide("u")

        deleted = await limiter.reset("u")
        decision = await limiter.decide("u")

        assert deleted == 1
        assert decision.allowed is True
        assert decision.remaining == 2

    @pytest.mark.asyncio
    async def test_reset_token_bucket_clears_both_keys(self, make_limiter, store):
        """Test bucket and timestamp records are both removed."""
        limiter = make_limiter(token_bucket(2, 10))
        await limiter.decide("u")

        assert await limiter.reset("u") == 2
        assert await store.keys("ratelimit:u:*") == []

    @pytest.mark.asyncio
    async def test_reset_leaves_other_identifiers(self, make_limiter):
        """Test identifiers sharing a string prefix are not cleared."""
        limiter = make_limiter(fixed_window(1, 10))
        await limiter.decide("u")
        await limiter.decide("u2")

        await limiter.reset("u")

        assert (await limiter.decide("u")).allowed is True
        assert (await limiter.decide("u2")).allowed is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "policy,records",
        [
            (fixed_window(1, 10), 1),
            (sliding_window(1, 10), 1),
            (token_bucket(1, 10), 2),
        ],
        ids=["fixed", "sliding", "token"],
    )
    async def test_reset_leaves_identifiers_extending_with_colon(
        self, make_limiter, policy, records
    ):
        """Test resetting "u" keeps the records of "u:2"."""
        limiter = make_limiter(policy)
        await limiter.decide("u")
        await limiter.decide("u:2")

        assert await limiter.reset("u") == records
        assert (await limiter.decide("u:2")).allowed is False

    @pytest.mark.asyncio
    async def test_reset_analytics_identifier_keeps_other_counters(self, make_limiter):
        """Test an identifier named "analytics" does not clear analytics hashes."""
        limiter = make_limiter(fixed_window(1, 10), analytics=True)
        await limiter.decide("alice")
        await limiter.decide("analytics")

        assert await limiter.reset("analytics") == 1
        assert await limiter.analytics_for("alice") == AnalyticsSnapshot(allowed=1)
        assert await limiter.analytics_for("analytics") == AnalyticsSnapshot(allowed=1)

    @pytest.mark.asyncio
    async def test_reset_escapes_glob_characters(self, make_limiter):
        """Test an identifier containing '*' only matches itself."""
        limiter = make_limiter(fixed_window(1, 10))
        await limiter.decide("user*")
        await limiter.decide("user1")

        assert await limiter.reset("user*") == 1
        assert (await limiter.decide("user1")).allowed is False

    @pytest.mark.asyncio
    async def test_reset_unknown_identifier(self, make_limiter):
        """Test resetting an identifier with no records is a no-op."""
        limiter = make_limiter(fixed_window(1, 10))
        assert await limiter.reset("nobody") == 0

    @pytest.mark.asyncio
    async def test_reset_keeps_analytics(self, make_limiter):
        """Test analytics counters survive a reset."""
        limiter = make_limiter(fixed_window(1, 10), analytics=True)
        await limiter.decide("u")

        await limiter.reset("u")

        assert await limiter.analytics_for("u") == AnalyticsSnapshot(allowed=1)


class TestRemainingFor:
    """Test the remaining-count convenience."""

    @pytest.mark.asyncio
    async def test_consumes_quota(self, make_limiter):
        """Test each call uses up one request."""
        limiter = make_limiter(fixed_window(3, 10))

        assert await limiter.remaining_for("u") == 2
        assert await limiter.remaining_for("u") == 1


class TestEnforce:
    """Test the raising variant of decide."""

    @pytest.mark.asyncio
    async def test_returns_allowed_decision(self, make_limiter):
        """Test an allowed request returns its decision."""
        limiter = make_limiter(fixed_window(1, 10))
        decision = await limiter.enforce("u")
        assert decision.allowed is True

    @pytest.mark.asyncio
    async def test_raises_when_denied(self, make_limiter):
        """Test a denied request raises with the denying decision attached."""
        limiter = make_limiter(fixed_window(1, 10))
        await limiter.enforce("u")

        with pytest.raises(RateLimitExceededException) as exc_info:
            await limiter.enforce("u")

        assert exc_info.value.identifier == "u"
        assert exc_info.value.decision.allowed is False
        assert exc_info.value.details["limit"] == 1


class TestAnalytics:
    """Test allowed/denied bookkeeping."""

    @pytest.mark.asyncio
    async def test_counts_allowed_and_denied(self, make_limiter):
        """Test counters match the decisions made."""
        limiter = make_limiter(fixed_window(2, 10), analytics=True)
        for _ in range(3):
            await limiter.decide("user-11")

        stats = await limiter.analytics_for("user-11")

        assert stats == AnalyticsSnapshot(allowed=2, denied=1)
        assert stats.total == 3

    @pytest.mark.asyncio
    async def test_disabled_returns_none(self, make_limiter):
        """Test analytics are absent when not enabled."""
        limiter = make_limiter(fixed_window(5, 10))
        await limiter.decide("user-12")

        assert await limiter.analytics_for("user-12") is None

    @pytest.mark.asyncio
    async def test_unseen_identifier_defaults_to_zero(self, make_limiter):
        """Test missing counters read as zero."""
        limiter = make_limiter(fixed_window(5, 10), analytics=True)
        assert await limiter.analytics_for("nobody") == AnalyticsSnapshot()

    @pytest.mark.asyncio
    async def test_analytics_key_and_ttl(self, make_limiter, store, clock):
        """Test counters live in a hash with a one-day TTL."""
        limiter = make_limiter(fixed_window(5, 10), analytics=True)
        await limiter.decide("u")

        assert await store.hmget("ratelimit:analytics:u", ["allowed", "denied"]) == [
            "1",
            None,
        ]
        assert store._ttl["ratelimit:analytics:u"] == clock.now + 86400


class TestExceedCallback:
    """Test the limit-exceeded hook."""

    @pytest.mark.asyncio
    async def test_fires_once_per_denial(self, make_limiter):
        """Test the callback sees each denied decision and no allowed ones."""
        calls = []
        limiter = make_limiter(
            fixed_window(1, 10),
            on_limit_exceeded=lambda identifier, decision: calls.append(
                (identifier, decision)
            ),
        )

        await limiter.decide("u")
        assert calls == []

        denied = [await limiter.decide("u") for _ in range(2)]
        assert calls == [("u", denied[0]), ("u", denied[1])]

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self, make_limiter):
        """Test coroutine callbacks are awaited."""
        callback = AsyncMock()
        limiter = make_limiter(fixed_window(1, 10), on_limit_exceeded=callback)

        await limiter.decide("u")
        denied = await limiter.decide("u")

        callback.assert_awaited_once_with("u", denied)

    @pytest.mark.asyncio
    async def test_callback_error_propagates_after_persisting(self, make_limiter):
        """Test a failing callback reaches the caller once the count is stored."""
        callback = MagicMock(side_effect=RuntimeError("webhook failed"))
        limiter = make_limiter(
            fixed_window(1, 10), analytics=True, on_limit_exceeded=callback
        )
        await limiter.decide("u")

        with pytest.raises(RuntimeError, match="webhook failed"):
            await limiter.decide("u")

        assert await limiter.analytics_for("u") == AnalyticsSnapshot(
            allowed=1, denied=1
        )


def test_escape_glob():
    """Test glob metacharacters are backslash-escaped."""
    assert escape_glob("a*b?[c]\\") == "a\\*b\\?\\[c\\]\\\\"
    assert escape_glob("plain:id") == "plain:id"
