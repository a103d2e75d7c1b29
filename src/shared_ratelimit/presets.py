"""Shorthand constructors for common policies."""

from shared_ratelimit.domain.models import AlgorithmKind, Policy


def fixed_window(limit: int, window: float) -> Policy:
    """Allow ``limit`` requests per fixed ``window`` seconds."""
    return Policy(kind=AlgorithmKind.FIXED_WINDOW, limit=limit, window_seconds=window)


def sliding_window(limit: int, window: float) -> Policy:
    """Allow ``limit`` requests per rolling ``window`` seconds (weighted estimate)."""
    return Policy(kind=AlgorithmKind.SLIDING_WINDOW, limit=limit, window_seconds=window)


def token_bucket(limit: int, window: float, refill_rate: float | None = None) -> Policy:
    """Bucket of ``limit`` tokens refilled at ``refill_rate`` tokens per second.

    Without an explicit rate the bucket refills completely over one window.
    """
    return Policy(
        kind=AlgorithmKind.TOKEN_BUCKET,
        limit=limit,
        window_seconds=window,
        refill_rate=refill_rate,
    )
