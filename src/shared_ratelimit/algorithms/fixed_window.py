"""Fixed window rate limiting."""

from shared_ratelimit.domain.models import Decision, Policy
from shared_ratelimit.storage.base import RateLimitStore


async def fixed_window(
    store: RateLimitStore, key: str, policy: Policy, now_ms: int
) -> Decision:
    """Count requests in the fixed window containing ``now_ms``.

    One counter per window, keyed ``{key}:{window_start_ms}``. The counter
    keeps growing past the limit, so a denied identifier stays denied until
    the window rolls over.
    """
    window_ms = policy.window_ms
    window_start = (now_ms // window_ms) * window_ms
    window_key = f"{key}:{window_start}"

    count = await store.incr(window_key)
    if count == 1:
        await store.expire(window_key, policy.window_seconds)

    return Decision(
        allowed=count <= policy.limit,
        limit=policy.limit,
        remaining=max(0, policy.limit - count),
        reset_at_ms=window_start + window_ms,
    )
