"""Orchestration result entities."""

from dataclasses import dataclass

from .simulation import ResolvedSimulation
from .structured_response import StructuredResponse
from .usage_event import ModelTier


@dataclass(frozen=True)
class GeneratedConcept:
    """Successful output of the generation coordinator.

    Attributes:
        response: Validated structured response
        simulation: Whitelist resolution of the proposed simulation
        model_tier: Tier that produced the response
        attempts: Number of attempts it took
    """

    response: StructuredResponse
    simulation: ResolvedSimulation
    model_tier: ModelTier
    attempts: int


@dataclass(frozen=True)
class ConceptResult:
    """What the cache orchestrator hands back to its caller.

    Attributes:
        response: Structured response (generated, cached or fallback)
        simulation: Resolved simulation
        cached: True when served from either cache tier
        timestamp: When the result was produced (Unix timestamp)
        error_code: Set only for fallback results
    """

    response: StructuredResponse
    simulation: ResolvedSimulation
    cached: bool
    timestamp: float
    error_code: str | None = None

    @property
    def is_fallback(self) -> bool:
        """Whether this result is a fallback for a failed generation."""
        return self.error_code is not None
