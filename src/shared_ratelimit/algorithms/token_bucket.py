"""Token bucket rate limiting."""

import asyncio
import math

from shared_ratelimit.domain.models import Decision, Policy
from shared_ratelimit.storage.base import RateLimitStore


async def token_bucket(
    store: RateLimitStore, key: str, policy: Policy, now_ms: int
) -> Decision:
    """Refill the bucket for the elapsed time, then try to take one token.

    State is a float token count under ``{key}:bucket`` and the last refill
    time in epoch milliseconds under ``{key}:timestamp``. The read-modify-write
    below is not atomic: two concurrent calls for the same key can both start
    from the same state and both be admitted. Strict accounting would need the
    whole update to run inside the store (a transaction or server-side script).
    """
    refill_rate = policy.effective_refill_rate
    bucket_key = f"{key}:bucket"
    timestamp_key = f"{key}:timestamp"

    tokens_value, timestamp_value = await asyncio.gather(
        store.get(bucket_key),
        store.get(timestamp_key),
    )
    tokens = float(tokens_value) if tokens_value else float(policy.limit)
    last_refill = int(timestamp_value) if timestamp_value else now_ms

    elapsed_seconds = max(0, now_ms - last_refill) / 1000
    tokens = min(float(policy.limit), tokens + elapsed_seconds * refill_rate)

    allowed = tokens >= 1
    if allowed:
        tokens -= 1

    # SET clears TTLs, so expiry is attached only after both writes land
    await asyncio.gather(
        store.set(bucket_key, repr(tokens)),
        store.set(timestamp_key, str(now_ms)),
    )
    ttl = policy.window_seconds * 2
    await asyncio.gather(
        store.expire(bucket_key, ttl),
        store.expire(timestamp_key, ttl),
    )

    next_token_ms = math.ceil(((1 - tokens) / refill_rate) * 1000)
    return Decision(
        allowed=allowed,
        limit=policy.limit,
        remaining=math.floor(tokens),
        reset_at_ms=now_ms + max(0, next_token_ms),
    )
