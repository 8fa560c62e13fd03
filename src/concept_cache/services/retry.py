"""Retry policy and per-call retry state machine.

States:
    attempting: An attempt is in progress
    backoff: The last attempt failed and a delay precedes the next one
    exhausted: The last allowed attempt failed
    succeeded: An attempt succeeded

Pattern:
    attempting -> (success) -> succeeded
    attempting -> (failure, attempts < max) -> backoff -> attempting
    attempting -> (failure, attempts == max) -> exhausted
"""

from dataclasses import dataclass, field
from enum import Enum


class RetryPhase(str, Enum):
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    EXHAUSTED = "exhausted"
    SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    Attributes:
        max_attempts: Total attempts allowed, including the first
        base_delay: Delay in seconds after the first failure; doubles after each
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, failure_number: int) -> float:
        """Delay after the ``failure_number``-th failure (1-based): 1x, 2x, 4x base."""
        return self.base_delay * (2 ** (failure_number - 1))


@dataclass
class RetryState:
    """Ephemeral retry bookkeeping for one orchestration call."""

    policy: RetryPolicy
    phase: RetryPhase | None = None
    attempts: int = 0
    delays: list[float] = field(default_factory=list)
    last_error: str | None = None

    def begin_attempt(self) -> int:
        """Enter the attempting state.

        Returns:
            The 1-based attempt number
        """
        if self.phase not in (None, RetryPhase.BACKOFF):
            raise RuntimeError(f"Cannot start an attempt from state {self.phase}")
        self.phase = RetryPhase.ATTEMPTING
        self.attempts += 1
        return self.attempts

    def record_success(self) -> None:
        if self.phase is not RetryPhase.ATTEMPTING:
            raise RuntimeError(f"Cannot succeed from state {self.phase}")
        self.phase = RetryPhase.SUCCEEDED

    def record_failure(self, reason: str, retryable: bool = True) -> float | None:
        """Record a failed attempt.

        Args:
            reason: Failure description
            retryable: False ends the call regardless of remaining budget

        Returns:
            The backoff delay before the next attempt, or None when exhausted
        """
        if self.phase is not RetryPhase.ATTEMPTING:
            raise RuntimeError(f"Cannot fail from state {self.phase}")
        self.last_error = reason

        if not retryable or self.attempts >= self.policy.max_attempts:
            self.phase = RetryPhase.EXHAUSTED
            return None

        delay = self.policy.delay_for(self.attempts)
        self.delays.append(delay)
        self.phase = RetryPhase.BACKOFF
        return delay

    @property
    def exhausted(self) -> bool:
        return self.phase is RetryPhase.EXHAUSTED

    @property
    def total_delay(self) -> float:
        """Sum of the backoff delays scheduled so far."""
        return sum(self.delays)
