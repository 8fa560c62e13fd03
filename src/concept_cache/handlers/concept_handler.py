"""HTTP handlers for concept operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import logging

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from concept_cache.dto import (
    CacheClearResponse,
    CacheStatsResponse,
    ConceptResponse,
    ErrorResponse,
    ExplainConceptRequest,
    HealthCheckResponse,
    WhitelistReloadResponse,
)
from concept_cache.entities import ConceptResult
from concept_cache.exceptions import InvalidQueryError, StoreUnavailableError, WhitelistError
from concept_cache.models import UsageMetrics
from concept_cache.protocols import GenerationClient
from concept_cache.repositories import load_whitelist
from concept_cache.services import GENERATION_FAILURE, CacheOrchestrator, SimulationResolver

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, error_code: str) -> JSONResponse:
    body = ErrorResponse(message=message, error_code=error_code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def to_concept_response(result: ConceptResult) -> ConceptResponse:
    """Convert an orchestration result to its API contract."""
    response = result.response
    simulation = result.simulation
    return ConceptResponse(
        explanation=response.explanation,
        concept_tags=list(response.concept_tags),
        simulation_identifier=simulation.identifier,
        simulation_url=simulation.url,
        guided_steps=list(response.guided_steps),
        confidence_level=response.confidence_level.value,
        simulation_source=simulation.source.value,
        cached=result.cached,
        timestamp=result.timestamp,
        error_code=result.error_code,
    )


class ConceptHandler:
    """HTTP handlers for concept operations.

    This handler delegates business logic to CacheOrchestrator
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    Example:
        ```python
        handler = ConceptHandler(orchestrator=orchestrator, resolver=resolver)

        @app.post("/concepts/explain", response_model=ConceptResponse)
        async def explain(request: ExplainConceptRequest):
            return await handler.explain_concept(request)
        ```
    """

    def __init__(
        self,
        orchestrator: CacheOrchestrator,
        resolver: SimulationResolver,
        usage_metrics: UsageMetrics | None = None,
        generation_client: GenerationClient | None = None,
    ) -> None:
        """Initialize the concept handler.

        Args:
            orchestrator: The cache orchestrator (required).
            resolver: Simulation resolver, for whitelist reloads (required).
            usage_metrics: Usage sink to report in stats.
            generation_client: Generation client to probe in health checks.
        """
        self._orchestrator = orchestrator
        self._resolver = resolver
        self._usage = usage_metrics
        self._generation_client = generation_client

    async def explain_concept(
        self, request: ExplainConceptRequest
    ) -> ConceptResponse | JSONResponse:
        """Handle POST /concepts/explain requests.

        Args:
            request: The explain concept request DTO

        Returns:
            ConceptResponse (fallbacks included), or a structured error
            payload with status 400 (invalid input) or 500 (unexpected failure)
        """
        try:
            result = await self._orchestrator.handle(request.query)
        except InvalidQueryError as e:
            return _error(status.HTTP_400_BAD_REQUEST, e.message, e.code)
        except Exception:
            logger.exception("Unexpected failure explaining concept")
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "The concept could not be explained right now",
                GENERATION_FAILURE,
            )
        return to_concept_response(result)

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /stats requests.

        Returns:
            CacheStatsResponse with cache and usage statistics
        """
        stats = await self._orchestrator.get_stats()
        counters = {
            k: v
            for k, v in stats.items()
            if k not in ("total_entries", "capacity", "in_flight", "durable_circuit_state")
        }
        return CacheStatsResponse(
            total_entries=stats["total_entries"],
            capacity=stats["capacity"],
            in_flight=stats["in_flight"],
            hit_rate=stats["hit_rate"],
            durable_circuit_state=stats["durable_circuit_state"],
            counters=counters,
            usage=self._usage.to_dict() if self._usage is not None else {},
        )

    async def clear_cache(self) -> CacheClearResponse:
        """Handle DELETE /cache requests.

        Returns:
            CacheClearResponse with clear operation result

        Raises:
            HTTPException: 503 if the durable tier is unreachable
        """
        try:
            count = await self._orchestrator.clear()
        except StoreUnavailableError as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Failed to clear cache: {e.message}",
            ) from e

        return CacheClearResponse(
            success=True,
            deleted_count=count,
            message="Cache cleared successfully",
        )

    async def invalidate(self, query: str) -> CacheClearResponse:
        """Handle DELETE /concepts?query=... requests.

        Args:
            query: Any variant of the query whose entry should be removed

        Returns:
            CacheClearResponse telling whether an entry was removed
        """
        removed = await self._orchestrator.invalidate(query)
        return CacheClearResponse(
            success=True,
            deleted_count=1 if removed else 0,
            message="Entry invalidated" if removed else "No cached entry for this query",
        )

    async def reload_whitelist(self) -> WhitelistReloadResponse | JSONResponse:
        """Handle POST /admin/simulations/reload requests.

        The current whitelist stays in place if the new one is invalid.

        Returns:
            WhitelistReloadResponse, or a 422 error payload
        """
        try:
            table = load_whitelist()
        except WhitelistError as e:
            logger.error("Whitelist reload rejected: %s", e.message)
            return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, e.message, e.code)

        self._resolver.replace_table(table)
        return WhitelistReloadResponse(
            success=True,
            simulation_count=len(table),
            message="Simulation whitelist reloaded",
        )

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Returns:
            HealthCheckResponse with tier and generation status
        """
        cache_healthy = await self._orchestrator.is_healthy()
        generation_healthy = None
        is_available = getattr(self._generation_client, "is_available", None)
        if is_available is not None:
            generation_healthy = await is_available()

        return HealthCheckResponse(
            status="healthy" if cache_healthy else "unhealthy",
            cache_healthy=cache_healthy,
            generation_healthy=generation_healthy,
        )
