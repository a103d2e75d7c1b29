"""Structured logging configuration."""

from .config import (
    LogFormat,
    get_logger,
    setup_logging,
    setup_logging_from_settings,
    setup_testing_logging,
)

__all__ = [
    "LogFormat",
    "get_logger",
    "setup_logging",
    "setup_logging_from_settings",
    "setup_testing_logging",
]
