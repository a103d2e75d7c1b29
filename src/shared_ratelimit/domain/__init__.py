"""Domain models and exceptions."""

from .exceptions import (
    ConfigurationException,
    LimiterNotFoundException,
    RateLimitException,
    RateLimitExceededException,
)
from .models import (
    AlgorithmKind,
    AnalyticsSnapshot,
    Decision,
    ErrorCode,
    MultiDecision,
    Policy,
)

__all__ = [
    "AlgorithmKind",
    "AnalyticsSnapshot",
    "Decision",
    "ErrorCode",
    "MultiDecision",
    "Policy",
    "RateLimitException",
    "ConfigurationException",
    "RateLimitExceededException",
    "LimiterNotFoundException",
]
