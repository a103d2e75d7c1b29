"""Rate limiting algorithms.

Each algorithm is an async function ``(store, key, policy, now_ms) -> Decision``.
Dispatch goes through ``EVALUATORS`` keyed by ``AlgorithmKind``; adding an
algorithm means adding an enum member and registering its evaluator here.
"""

from collections.abc import Awaitable, Callable

from shared_ratelimit.domain.models import AlgorithmKind, Decision, Policy
from shared_ratelimit.storage.base import RateLimitStore

from .fixed_window import fixed_window
from .sliding_window import sliding_window
from .token_bucket import token_bucket

Evaluator = Callable[[RateLimitStore, str, Policy, int], Awaitable[Decision]]

EVALUATORS: dict[AlgorithmKind, Evaluator] = {
    AlgorithmKind.FIXED_WINDOW: fixed_window,
    AlgorithmKind.SLIDING_WINDOW: sliding_window,
    AlgorithmKind.TOKEN_BUCKET: token_bucket,
}


async def evaluate(
    store: RateLimitStore, key: str, policy: Policy, now_ms: int
) -> Decision:
    """Run the algorithm selected by ``policy.kind``."""
    return await EVALUATORS[policy.kind](store, key, policy, now_ms)


__all__ = [
    "EVALUATORS",
    "Evaluator",
    "evaluate",
    "fixed_window",
    "sliding_window",
    "token_bucket",
]
