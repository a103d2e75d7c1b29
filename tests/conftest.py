"""Test configuration and fixtures."""

import pytest

from shared_ratelimit.storage.memory import InMemoryRateLimitStore

# Aligned to every window length used in the tests (10s, 60s, 1h)
START_TIME = 1_699_999_200.0


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def now_ms(self) -> int:
        return round(self.now * 1000)


@pytest.fixture
def clock():
    """Create a manual clock starting on a window boundary."""
    return ManualClock()


@pytest.fixture
def store(clock):
    """Create in-memory store sharing the manual clock."""
    return InMemoryRateLimitStore(clock=clock)
