"""Configuration settings."""

from .settings import (
    LogFormat,
    LogLevel,
    ObservabilitySettings,
    RateLimitSettings,
    RedisSettings,
    Settings,
    get_settings,
)

__all__ = [
    "LogFormat",
    "LogLevel",
    "ObservabilitySettings",
    "RateLimitSettings",
    "RedisSettings",
    "Settings",
    "get_settings",
]
