"""Circuit breaker guarding the durable cache tier."""

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class TierCircuitBreaker:
    """Stops calling an unreachable tier until a cool-down has passed.

    States:
        closed: Normal operation, tier calls allowed
        open: Tier bypassed entirely
        half_open: Cool-down expired, one probe call allowed

    Pattern:
        closed -> (failures >= threshold) -> open
        open -> (timeout expired) -> half_open
        half_open -> (success) -> closed
        half_open -> (failure) -> open
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        timeout: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize circuit breaker.

        Args:
            name: Tier name used in log messages
            failure_threshold: Consecutive failures before opening circuit
            timeout: Seconds before attempting recovery from open state
            clock: Monotonic time source
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self._clock = clock
        self.failure_count = 0
        self.state = "closed"
        self.last_failure_time: float | None = None

    def on_success(self) -> None:
        """Record successful operation."""
        if self.state == "half_open":
            logger.info("%s tier recovered, closing circuit", self.name)
        self.state = "closed"
        self.failure_count = 0

    def on_failure(self) -> None:
        """Record failed operation and potentially open circuit."""
        self.failure_count += 1
        self.last_failure_time = self._clock()

        if self.state == "half_open" or self.failure_count >= self.failure_threshold:
            if self.state != "open":
                logger.warning(
                    "%s tier circuit opened after %d failures", self.name, self.failure_count
                )
            self.state = "open"

    def can_attempt(self) -> bool:
        """Check if a tier operation should be attempted."""
        if self.state == "closed":
            return True

        if self.state == "open":
            if (
                self.last_failure_time is not None
                and self._clock() - self.last_failure_time > self.timeout
            ):
                logger.info("%s tier circuit timeout expired, entering half-open state", self.name)
                self.state = "half_open"
                return True
            return False

        return True

    def reset(self) -> None:
        """Manually reset circuit breaker to closed state."""
        self.state = "closed"
        self.failure_count = 0
        self.last_failure_time = None
