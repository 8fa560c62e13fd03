"""Concept Cache - cache-first concept explanations backed by an LLM.

This package provides a layered architecture for answering concept queries:

Layers:
    - protocols: Interface contracts (FastCacheTier, DurableCacheStore, GenerationClient, UsageSink)
    - repositories: Data access implementations (memory, Redis, Ollama, whitelist)
    - services: Business logic (normalization, validation, generation, orchestration)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from concept_cache.repositories import (
        MemoryFastTier,
        OllamaGenerationClient,
        RedisDurableStore,
        load_whitelist,
    )
    from concept_cache.services import (
        CacheOrchestrator,
        GenerationCoordinator,
        SimulationResolver,
    )

    coordinator = GenerationCoordinator(
        client=OllamaGenerationClient.create(),
        resolver=SimulationResolver(load_whitelist()),
    )
    orchestrator = CacheOrchestrator.create(
        fast_tier=MemoryFastTier(),
        durable_store=RedisDurableStore.create(),
        coordinator=coordinator,
    )
    result = await orchestrator.handle("Explain Newton's second law of motion")
    ```

For HTTP API:
    ```python
    from concept_cache.api.app import app
    ```
"""

from concept_cache.config import get_redis_client, settings
from concept_cache.dto import ConceptResponse, ExplainConceptRequest
from concept_cache.entities import (
    CacheEntryEntity,
    ConceptResult,
    ResolvedSimulation,
    StructuredResponse,
)
from concept_cache.exceptions import ConceptCacheError, GenerationFailure, InvalidQueryError
from concept_cache.handlers import ConceptHandler
from concept_cache.protocols import DurableCacheStore, FastCacheTier, GenerationClient, UsageSink
from concept_cache.repositories import (
    MemoryDurableStore,
    MemoryFastTier,
    OllamaGenerationClient,
    RedisDurableStore,
    load_whitelist,
)
from concept_cache.services import (
    CacheOrchestrator,
    GenerationCoordinator,
    SimulationResolver,
    normalize,
)

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "DurableCacheStore",
    "FastCacheTier",
    "GenerationClient",
    "UsageSink",
    # Services (business logic)
    "CacheOrchestrator",
    "GenerationCoordinator",
    "SimulationResolver",
    "normalize",
    # Handlers (HTTP)
    "ConceptHandler",
    # Repositories (data access)
    "MemoryDurableStore",
    "MemoryFastTier",
    "OllamaGenerationClient",
    "RedisDurableStore",
    "load_whitelist",
    # Entities (domain models)
    "CacheEntryEntity",
    "ConceptResult",
    "ResolvedSimulation",
    "StructuredResponse",
    # Errors
    "ConceptCacheError",
    "GenerationFailure",
    "InvalidQueryError",
    # DTOs (API contracts)
    "ConceptResponse",
    "ExplainConceptRequest",
]
