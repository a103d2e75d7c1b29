"""Sliding window rate limiting approximated with two fixed buckets."""

import asyncio
import math

from shared_ratelimit.domain.models import Decision, Policy
from shared_ratelimit.storage.base import RateLimitStore


async def _read_count(store: RateLimitStore, key: str) -> int:
    value = await store.get(key)
    return int(value) if value else 0


async def sliding_window(
    store: RateLimitStore, key: str, policy: Policy, now_ms: int
) -> Decision:
    """Weight the previous window's count by how much of it still overlaps.

    The current bucket is incremented atomically; the previous bucket is only
    read, since nothing writes to it once its window has passed. Buckets live
    for two windows so the previous one stays readable for the whole overlap.
    """
    window_ms = policy.window_ms
    current_window = now_ms // window_ms
    previous_window = current_window - 1

    current_key = f"{key}:{current_window}"
    previous_key = f"{key}:{previous_window}"

    current_count, previous_count = await asyncio.gather(
        store.incr(current_key),
        _read_count(store, previous_key),
    )
    if current_count == 1:
        await store.expire(current_key, policy.window_seconds * 2)

    fraction_elapsed = (now_ms % window_ms) / window_ms
    weighted_count = previous_count * (1 - fraction_elapsed) + current_count

    return Decision(
        allowed=weighted_count <= policy.limit,
        limit=policy.limit,
        remaining=max(0, math.floor(policy.limit - weighted_count)),
        reset_at_ms=(current_window + 1) * window_ms,
    )
