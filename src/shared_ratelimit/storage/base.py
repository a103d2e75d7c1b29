"""Storage contract required by the rate limiting algorithms."""

from abc import ABC, abstractmethod


class RateLimitStore(ABC):
    """Abstract base class for rate limit storage.

    All operations act on one shared, string-keyed namespace. ``incr`` must be
    atomic across every process sharing the store; the counting algorithms
    rely on it for correctness. Backends without a native atomic increment
    have to emulate one with a lock, compare-and-swap or transaction loop.
    """

    @abstractmethod
    async def incr(self, key: str) -> int:
        """Atomically increment the integer at key.

        Args:
            key: Storage key

        Returns:
            Value after the increment (1 when the key was absent)
        """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get the value stored at key.

        Args:
            key: Storage key

        Returns:
            Stored value or None if absent or expired
        """

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Set the value at key, clearing any TTL previously attached to it.

        Args:
            key: Storage key
            value: Value to store
        """

    @abstractmethod
    async def expire(self, key: str, seconds: float) -> None:
        """Attach or refresh a TTL on key.

        Args:
            key: Storage key
            seconds: Time to live in seconds
        """

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys.

        Args:
            keys: Storage keys

        Returns:
            Number of keys removed
        """

    @abstractmethod
    async def keys(self, pattern: str) -> list[str]:
        """List keys matching a Redis-style glob pattern.

        Args:
            pattern: Glob pattern (``*``, ``?``, ``[...]``, backslash escapes)

        Returns:
            Matching keys
        """

    @abstractmethod
    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        """Increment a hash field.

        Args:
            key: Hash key
            field: Field name
            amount: Increment

        Returns:
            Field value after the increment
        """

    @abstractmethod
    async def hmget(self, key: str, fields: list[str]) -> list[str | None]:
        """Get several hash fields.

        Args:
            key: Hash key
            fields: Field names

        Returns:
            Values in field order, None for missing fields
        """
