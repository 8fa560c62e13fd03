"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from concept_cache.services import CacheOrchestrator, GenerationCoordinator

    coordinator = GenerationCoordinator(client=client, resolver=resolver)
    orchestrator = CacheOrchestrator.create(
        fast_tier=fast_tier,
        durable_store=durable_store,
        coordinator=coordinator,
    )
    result = await orchestrator.handle("What is photosynthesis?")
    ```
"""

from .cache_orchestrator import CacheOrchestrator
from .circuit_breaker import TierCircuitBreaker
from .fallback import build_fallback_result
from .generation_coordinator import GENERATION_FAILURE, VALIDATION_FAILURE, GenerationCoordinator
from .key_normalizer import normalize, normalize_text
from .prompt_builder import BuiltPrompt, PromptBuilder, estimate_tokens, select_model_tier
from .response_validator import ResponseValidator, SchemaError, Valid, parse_candidate
from .retry import RetryPhase, RetryPolicy, RetryState
from .simulation_resolver import SimulationResolver

__all__ = [
    "BuiltPrompt",
    "CacheOrchestrator",
    "GENERATION_FAILURE",
    "GenerationCoordinator",
    "PromptBuilder",
    "ResponseValidator",
    "RetryPhase",
    "RetryPolicy",
    "RetryState",
    "SchemaError",
    "SimulationResolver",
    "TierCircuitBreaker",
    "VALIDATION_FAILURE",
    "Valid",
    "build_fallback_result",
    "estimate_tokens",
    "normalize",
    "normalize_text",
    "parse_candidate",
    "select_model_tier",
]
