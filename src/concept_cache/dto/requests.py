"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field


class ExplainConceptRequest(BaseModel):
    """Request DTO for explaining a concept.

    Length and content checks happen in the orchestrator so that every
    rejection carries the same INVALID_INPUT error payload.
    """

    query: str = Field(..., description="The learner's concept question")
