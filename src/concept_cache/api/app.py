from typing import Any

from fastapi import FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from concept_cache.api.dependencies import HandlerDep, lifespan
from concept_cache.config import settings
from concept_cache.dto import (
    CacheClearResponse,
    CacheStatsResponse,
    ConceptResponse,
    ErrorResponse,
    ExplainConceptRequest,
    HealthCheckResponse,
    WhitelistReloadResponse,
)

app = FastAPI(
    title="Concept Cache API",
    description="Cache-first concept explanations with whitelisted simulations",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies and parameters as INVALID_INPUT."""
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    body = ErrorResponse(message=message or "Invalid request", error_code="INVALID_INPUT")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Concept Cache API",
        "version": "0.1.0",
        "description": "Cache-first concept explanations with whitelisted simulations",
        "endpoints": {
            "explain": "/concepts/explain",
            "stats": "/stats",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@app.post(
    "/concepts/explain",
    response_model=ConceptResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def explain_concept(
    request: ExplainConceptRequest, handler: HandlerDep
) -> ConceptResponse | JSONResponse:
    """
    Explain a concept, serving from cache when possible.

    Args:
        request: Request with the learner's query.

    Returns:
        Structured explanation. Fallback results carry an error_code.
    """
    return await handler.explain_concept(request)


@app.delete("/concepts", response_model=CacheClearResponse)
async def invalidate_concept(
    handler: HandlerDep,
    query: str = Query(..., min_length=1, description="Query whose cached entry to remove"),
) -> CacheClearResponse:
    """Remove the cached entry for one query."""
    return await handler.invalidate(query)


@app.delete("/cache", response_model=CacheClearResponse)
async def clear_cache(handler: HandlerDep) -> CacheClearResponse:
    """Clear all entries from the cache."""
    return await handler.clear_cache()


@app.get("/stats", response_model=CacheStatsResponse)
async def get_stats(handler: HandlerDep) -> CacheStatsResponse:
    """Get cache and generation statistics."""
    return await handler.get_stats()


@app.post(
    "/admin/simulations/reload",
    response_model=WhitelistReloadResponse,
    responses={422: {"model": ErrorResponse}},
)
async def reload_simulations(handler: HandlerDep) -> WhitelistReloadResponse | JSONResponse:
    """Reload the simulation whitelist from its source."""
    return await handler.reload_whitelist()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "concept_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
