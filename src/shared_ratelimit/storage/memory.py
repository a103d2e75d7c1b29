"""In-memory rate limit storage."""

import asyncio
import re
import time
from collections.abc import Callable

import structlog

from .base import RateLimitStore

logger = structlog.get_logger()


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a Redis-style glob pattern into a compiled regex."""
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "[" and (end := pattern.find("]", i + 1)) != -1:
            body = pattern[i + 1 : end]
            negate = body.startswith("^")
            if negate:
                body = body[1:]
            escaped = "".join(c if c == "-" else re.escape(c) for c in body)
            parts.append(f"[{'^' if negate else ''}{escaped}]")
            i = end
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("".join(parts), re.DOTALL)


class InMemoryRateLimitStore(RateLimitStore):
    """Single-process rate limit storage.

    Every operation runs under one ``asyncio.Lock``, which makes ``incr``
    atomic for all coroutines on the event loop. Limits are not shared
    between processes; use a networked store for that.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """Initialize in-memory storage.

        Args:
            clock: Time source returning UNIX time in seconds
        """
        self._data: dict[str, str | dict[str, str]] = {}
        self._ttl: dict[str, float] = {}
        self._clock = clock
        self._lock = asyncio.Lock()
        self.logger = logger.bind(store="in_memory")

    def _purge_if_expired(self, key: str) -> None:
        expiry = self._ttl.get(key)
        if expiry is not None and self._clock() >= expiry:
            self._data.pop(key, None)
            del self._ttl[key]

    def _get_string(self, key: str) -> str | None:
        self._purge_if_expired(key)
        value = self._data.get(key)
        if isinstance(value, dict):
            raise TypeError(f"Key holds a hash, not a string: {key}")
        return value

    def _get_hash(self, key: str) -> dict[str, str] | None:
        self._purge_if_expired(key)
        value = self._data.get(key)
        if value is not None and not isinstance(value, dict):
            raise TypeError(f"Key holds a string, not a hash: {key}")
        return value

    async def incr(self, key: str) -> int:
        """Atomically increment the integer at key."""
        async with self._lock:
            current = self._get_string(key)
            try:
                value = int(current) + 1 if current is not None else 1
            except ValueError:
                raise ValueError(f"Value is not an integer: {key}") from None
            self._data[key] = str(value)
            return value

    async def get(self, key: str) -> str | None:
        """Get the value stored at key."""
        async with self._lock:
            return self._get_string(key)

    async def set(self, key: str, value: str) -> None:
        """Set the value at key."""
        async with self._lock:
            self._data[key] = value
            self._ttl.pop(key, None)

    async def expire(self, key: str, seconds: float) -> None:
        """Attach or refresh a TTL on key."""
        async with self._lock:
            self._purge_if_expired(key)
            if key in self._data:
                self._ttl[key] = self._clock() + seconds

    async def delete(self, *keys: str) -> int:
        """Delete keys."""
        async with self._lock:
            removed = 0
            for key in keys:
                self._purge_if_expired(key)
                if self._data.pop(key, None) is not None:
                    removed += 1
                self._ttl.pop(key, None)
            return removed

    async def keys(self, pattern: str) -> list[str]:
        """List live keys matching a glob pattern."""
        regex = compile_glob(pattern)
        async with self._lock:
            for key in list(self._ttl):
                self._purge_if_expired(key)
            return [key for key in self._data if regex.fullmatch(key)]

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        """Increment a hash field."""
        async with self._lock:
            hash_value = self._get_hash(key)
            if hash_value is None:
                hash_value = {}
                self._data[key] = hash_value
            value = int(hash_value.get(field, "0")) + amount
            hash_value[field] = str(value)
            return value

    async def hmget(self, key: str, fields: list[str]) -> list[str | None]:
        """Get several hash fields."""
        async with self._lock:
            hash_value = self._get_hash(key) or {}
            return [hash_value.get(field) for field in fields]

    async def cleanup_expired(self) -> int:
        """Clean up expired entries.

        Returns:
            Number of entries cleaned up
        """
        async with self._lock:
            current_time = self._clock()
            expired_keys = [
                key for key, expiry in self._ttl.items() if current_time >= expiry
            ]

            for key in expired_keys:
                self._data.pop(key, None)
                self._ttl.pop(key, None)

            if expired_keys:
                self.logger.debug("Cleaned up expired entries", count=len(expired_keys))

            return len(expired_keys)
