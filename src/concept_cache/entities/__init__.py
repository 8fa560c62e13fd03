"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .cache_entry import CacheEntryEntity
from .concept_result import ConceptResult, GeneratedConcept
from .simulation import NO_SIMULATION, NO_SIMULATION_ID, ResolvedSimulation, SimulationSource
from .structured_response import ConfidenceLevel, StructuredResponse
from .usage_event import ModelTier, UsageEvent

__all__ = [
    "CacheEntryEntity",
    "ConceptResult",
    "ConfidenceLevel",
    "GeneratedConcept",
    "ModelTier",
    "NO_SIMULATION",
    "NO_SIMULATION_ID",
    "ResolvedSimulation",
    "SimulationSource",
    "StructuredResponse",
    "UsageEvent",
]
