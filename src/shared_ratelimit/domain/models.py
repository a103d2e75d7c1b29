"""Core domain models for rate limiting decisions."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AlgorithmKind(str, Enum):
    """Supported rate limiting algorithms."""

    FIXED_WINDOW = "fixed_window"
    SLIDING_WINDOW = "sliding_window"
    TOKEN_BUCKET = "token_bucket"


class ErrorCode(str, Enum):
    """Standardized error codes."""

    CONFIGURATION_ERROR = "configuration_error"
    RATE_LIMIT_ERROR = "rate_limit_error"
    NOT_FOUND = "not_found"


class Policy(BaseModel):
    """Immutable description of the algorithm and parameters to apply.

    A single policy is shared by every decision a limiter makes, so it is
    validated once at construction and frozen afterwards.
    """

    model_config = ConfigDict(frozen=True)

    kind: AlgorithmKind
    limit: int = Field(gt=0, description="Maximum requests per window")
    window_seconds: float = Field(gt=0, description="Window length in seconds")
    refill_rate: float | None = Field(
        default=None,
        gt=0,
        description="Tokens restored per second (token bucket only)",
    )

    @model_validator(mode="after")
    def validate_parameters(self) -> "Policy":
        if self.window_seconds * 1000 < 1:
            raise ValueError("window_seconds must be at least one millisecond")
        if self.refill_rate is not None and self.kind != AlgorithmKind.TOKEN_BUCKET:
            raise ValueError("refill_rate only applies to the token bucket algorithm")
        return self

    @property
    def window_ms(self) -> int:
        """Window length in milliseconds."""
        return round(self.window_seconds * 1000)

    @property
    def effective_refill_rate(self) -> float:
        """Refill rate with the one-window calibration default applied."""
        if self.refill_rate is not None:
            return self.refill_rate
        return self.limit / self.window_seconds


@dataclass(frozen=True)
class Decision:
    """Result of a single rate limiting decision."""

    allowed: bool
    limit: int
    remaining: int
    reset_at_ms: int

    def retry_after_ms(self, now_ms: int) -> int:
        """Milliseconds left until the reported reset time."""
        return max(0, self.reset_at_ms - now_ms)

    def headers(self) -> dict[str, str]:
        """Conventional rate limit response headers for this decision."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at_ms),
        }


@dataclass(frozen=True)
class MultiDecision:
    """Decision paired with the identifier it was made for."""

    identifier: str
    decision: Decision

    @property
    def allowed(self) -> bool:
        return self.decision.allowed

    @property
    def remaining(self) -> int:
        return self.decision.remaining


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Allowed/denied counters recorded for one identifier."""

    allowed: int = 0
    denied: int = 0

    @property
    def total(self) -> int:
        return self.allowed + self.denied
