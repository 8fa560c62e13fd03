"""Usage sink protocol.

A write-only destination for one usage record per completed generation
attempt (metrics backends, audit logs, in-process counters).
"""

from typing import Protocol, runtime_checkable

from concept_cache.entities import UsageEvent


@runtime_checkable
class UsageSink(Protocol):
    """Protocol for usage/metrics sinks."""

    def record(self, event: UsageEvent) -> None:
        """Record a completed generation attempt.

        Args:
            event: The usage event
        """
        ...
