"""
Configuration management for the rate limiter.

Settings are read from the environment (and an optional ``.env`` file) with
pydantic-settings, one settings class per concern.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared_ratelimit.domain.exceptions import ConfigurationException
from shared_ratelimit.domain.models import AlgorithmKind, Policy


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging formats."""

    JSON = "json"
    CONSOLE = "console"
    STRUCTURED = "structured"


class RedisSettings(BaseSettings):
    """Redis configuration."""

    model_config = SettingsConfigDict(
        env_prefix="REDIS_", env_file=".env", extra="ignore"
    )

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str | None = None
    url: str | None = None

    # Connection pool settings
    max_connections: int = 20
    socket_timeout: float | None = 5.0

    @property
    def connection_url(self) -> str:
        """Redis connection URL, preferring an explicit REDIS_URL."""
        if self.url:
            return self.url
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class RateLimitSettings(BaseSettings):
    """Rate limiting policy configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_", env_file=".env", extra="ignore"
    )

    algorithm: str = AlgorithmKind.SLIDING_WINDOW.value
    limit: int = 100
    window_seconds: float = 60.0
    refill_rate: float | None = None
    prefix: str = "ratelimit"
    analytics: bool = False

    def to_policy(self) -> Policy:
        """Build the policy these settings describe.

        Raises:
            ConfigurationException: If the algorithm name is unknown
            ValueError: If the policy parameters are invalid
        """
        try:
            kind = AlgorithmKind(self.algorithm.lower())
        except ValueError:
            raise ConfigurationException(
                f"Unknown rate limiting algorithm: {self.algorithm}",
                "algorithm",
                self.algorithm,
            ) from None

        return Policy(
            kind=kind,
            limit=self.limit,
            window_seconds=self.window_seconds,
            refill_rate=self.refill_rate,
        )


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OBSERVABILITY_", env_file=".env", extra="ignore"
    )

    log_level: LogLevel = LogLevel.INFO
    log_format: LogFormat = LogFormat.JSON
    log_file: str | None = None

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v


class Settings(BaseSettings):
    """Top-level settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Storage backend selection
    use_redis: bool = True

    redis: RedisSettings = Field(default_factory=RedisSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


@lru_cache
def get_settings() -> Settings:
    """Get settings, loaded once per process."""
    return Settings()
