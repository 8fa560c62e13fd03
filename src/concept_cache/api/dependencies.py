"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Annotated

import httpx
from fastapi import Depends, FastAPI, Request

from concept_cache.config import settings
from concept_cache.handlers import ConceptHandler
from concept_cache.models import UsageMetrics
from concept_cache.repositories import (
    MemoryFastTier,
    OllamaGenerationClient,
    RedisDurableStore,
    load_whitelist,
    probe_availability,
)
from concept_cache.services import CacheOrchestrator, GenerationCoordinator, SimulationResolver

logger = logging.getLogger(__name__)


def get_orchestrator(request: Request) -> CacheOrchestrator:
    """Dependency injection for CacheOrchestrator from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The CacheOrchestrator instance from app.state

    Raises:
        RuntimeError: If the orchestrator is not initialized
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise RuntimeError("CacheOrchestrator not initialized. Check lifespan setup.")
    return orchestrator


def get_handler(request: Request) -> ConceptHandler:
    """Dependency injection for ConceptHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The ConceptHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "concept_handler", None)
    if handler is None:
        raise RuntimeError("ConceptHandler not initialized. Check lifespan setup.")
    return handler


async def probe_whitelist_forever(resolver: SimulationResolver, interval: float) -> None:
    """Periodically refresh simulation availability, off the request path.

    A failed round is logged and retried after ``interval``; only
    cancellation stops the loop.

    Args:
        resolver: Resolver whose availability flags are updated
        interval: Seconds between probes
    """
    async with httpx.AsyncClient() as client:
        while True:
            try:
                table = await probe_availability(resolver.table, client)
                for simulation in table.values():
                    resolver.set_availability(simulation.identifier, simulation.available)
            except Exception:
                logger.exception("Simulation availability check failed; retrying in %ss", interval)
            await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Repositories (whitelist, generation client, cache tiers)
    2. Services (resolver, coordinator, orchestrator)
    3. Handler (HTTP endpoints) - stored in app.state.concept_handler

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Drains background cache work, closes clients and removes all
        services from app.state on shutdown
    """
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    resolver = SimulationResolver(load_whitelist())
    generation_client = OllamaGenerationClient.create()
    usage_metrics = UsageMetrics()
    coordinator = GenerationCoordinator(
        client=generation_client,
        resolver=resolver,
        usage_sink=usage_metrics,
    )

    # Fast tier: in-process LRU; durable tier: Redis (source of truth)
    durable_store = RedisDurableStore.create()
    orchestrator = CacheOrchestrator.create(
        fast_tier=MemoryFastTier(),
        durable_store=durable_store,
        coordinator=coordinator,
    )
    concept_handler = ConceptHandler(
        orchestrator=orchestrator,
        resolver=resolver,
        usage_metrics=usage_metrics,
        generation_client=generation_client,
    )

    # Store in app.state (FastAPI pattern)
    app.state.resolver = resolver
    app.state.orchestrator = orchestrator
    app.state.concept_handler = concept_handler
    app.state.usage_metrics = usage_metrics

    probe_task = None
    if settings.whitelist_probe_interval > 0:
        probe_task = asyncio.create_task(
            probe_whitelist_forever(resolver, settings.whitelist_probe_interval)
        )

    logger.info("Concept cache initialized (capacity %d)", orchestrator.capacity)
    logger.info("Durable tier healthy: %s", await orchestrator.is_healthy())
    logger.info("Generation service reachable: %s", await generation_client.is_available())

    yield

    if probe_task is not None:
        probe_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await probe_task

    await orchestrator.close()
    await generation_client.close()
    await durable_store.close()

    # Cleanup - remove from app.state
    del app.state.concept_handler
    del app.state.orchestrator
    del app.state.resolver
    del app.state.usage_metrics
    logger.info("Concept cache shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[ConceptHandler, Depends(get_handler)]
OrchestratorDep = Annotated[CacheOrchestrator, Depends(get_orchestrator)]
