"""Exception hierarchy for rate limiting."""

from typing import TYPE_CHECKING, Any

from .models import ErrorCode

if TYPE_CHECKING:
    from .models import Decision


class RateLimitException(Exception):
    """Base exception for the rate limiting package."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ConfigurationException(RateLimitException):
    """Limiter was constructed with missing or invalid inputs."""

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(
            message,
            ErrorCode.CONFIGURATION_ERROR,
            {"field": field, "value": str(value)},
        )
        self.field = field


class RateLimitExceededException(RateLimitException):
    """Rate limit exceeded exception."""

    def __init__(self, identifier: str, decision: "Decision"):
        super().__init__(
            f"Rate limit exceeded for identifier: {identifier}",
            ErrorCode.RATE_LIMIT_ERROR,
            {
                "identifier": identifier,
                "limit": decision.limit,
                "reset_at_ms": decision.reset_at_ms,
            },
        )
        self.identifier = identifier
        self.decision = decision


class LimiterNotFoundException(RateLimitException):
    """No limiter registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(
            f"No rate limiter registered with name: {name}",
            ErrorCode.NOT_FOUND,
            {"name": name},
        )
        self.name = name
