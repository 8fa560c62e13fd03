"""Response DTOs for API endpoints."""

from typing import Literal

from pydantic import BaseModel, Field


class ConceptResponse(BaseModel):
    """Response DTO for an explained concept.

    Fallback results use the same shape with ``error_code`` set.
    """

    explanation: str = Field(..., description="Explanation of the concept")
    concept_tags: list[str] = Field(default_factory=list, description="Short topic tags")
    simulation_identifier: str = Field(..., description="Whitelisted simulation id, or 'none'")
    simulation_url: str | None = Field(None, description="HTTPS URL of the simulation")
    guided_steps: list[str] = Field(default_factory=list, description="Suggested exploration steps")
    confidence_level: Literal["high", "medium", "low"] = Field(
        ..., description="How confident the generator was"
    )
    simulation_source: Literal["external", "proprietary", "none"] = Field(
        ..., description="Where the simulation comes from"
    )
    cached: bool = Field(..., description="Whether the result was served from cache")
    timestamp: float = Field(..., description="When the result was produced (Unix timestamp)")
    error_code: str | None = Field(
        None,
        description="Set when the result is a fallback (GENERATION_FAILURE or VALIDATION_FAILURE)",
    )


class ErrorResponse(BaseModel):
    """Response DTO for request errors."""

    status: Literal["error"] = "error"
    message: str = Field(..., description="Human-readable error message")
    error_code: str = Field(..., description="Stable machine-readable error code")


class CacheStatsResponse(BaseModel):
    """Response DTO for cache and generation statistics."""

    total_entries: int = Field(..., description="Durable entries (-1 when the tier is unreachable)")
    capacity: int = Field(..., description="Maximum durable entries", ge=1)
    in_flight: int = Field(..., description="Generations currently in flight", ge=0)
    hit_rate: float = Field(..., description="Cache hits / total queries", ge=0.0, le=1.0)
    durable_circuit_state: str = Field(..., description="closed, open or half_open")
    counters: dict[str, float | int] = Field(
        default_factory=dict, description="Orchestration counters"
    )
    usage: dict[str, object] = Field(
        default_factory=dict, description="Generation usage per model tier"
    )


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the durable tier is reachable")
    generation_healthy: bool | None = Field(
        None,
        description="Whether the generation service is reachable",
    )


class CacheClearResponse(BaseModel):
    """Response DTO for cache clear and invalidation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    deleted_count: int = Field(..., description="Number of durable entries removed", ge=0)
    message: str = Field(..., description="Human-readable status message")


class WhitelistReloadResponse(BaseModel):
    """Response DTO for whitelist reloads."""

    success: bool = Field(..., description="Whether the new whitelist was applied")
    simulation_count: int = Field(..., description="Whitelisted simulations after reload", ge=0)
    message: str = Field(..., description="Human-readable status message")
