"""Usage event domain entity."""

from dataclasses import dataclass
from enum import Enum


class ModelTier(str, Enum):
    """Cost tier of the model used for a generation attempt."""

    LOW_COST = "low_cost"
    HIGH_COST = "high_cost"


@dataclass(frozen=True)
class UsageEvent:
    """One completed generation attempt, as reported to the usage sink.

    Attributes:
        model_tier: Tier selected for the query
        model_name: Concrete model the tier mapped to
        token_estimate: Estimated prompt tokens sent
        success: Whether the attempt produced an accepted response
        attempt: 1-based attempt number within the orchestration call
        latency_ms: Wall-clock duration of the attempt
        timestamp: When the attempt completed (Unix timestamp)
        error: Failure reason for unsuccessful attempts
    """

    model_tier: ModelTier
    model_name: str
    token_estimate: int
    success: bool
    attempt: int
    latency_ms: float
    timestamp: float
    error: str | None = None
