"""Fallback results for failed generations.

A fallback is what the caller sees when every generation attempt failed.
It is clearly low-confidence, carries no simulation and is never cached.
"""

from concept_cache.entities import (
    NO_SIMULATION,
    NO_SIMULATION_ID,
    ConceptResult,
    ConfidenceLevel,
    StructuredResponse,
)

FALLBACK_EXPLANATION = (
    "We couldn't prepare a detailed explanation for this concept right now. "
    "Please try again in a few moments, or rephrase your question."
)

FALLBACK_STEPS: tuple[str, ...] = (
    "Write down what you already know about this concept.",
    "Look up the key terms in your textbook or course notes.",
    "Try asking again later for a full explanation.",
)

FALLBACK_RESPONSE = StructuredResponse(
    explanation=FALLBACK_EXPLANATION,
    concept_tags=(),
    simulation_identifier=NO_SIMULATION_ID,
    guided_steps=FALLBACK_STEPS,
    confidence_level=ConfidenceLevel.LOW,
)


def build_fallback_result(error_code: str, timestamp: float) -> ConceptResult:
    """Build the caller-visible fallback for a failed generation.

    Args:
        error_code: Why generation failed (GENERATION_FAILURE or VALIDATION_FAILURE)
        timestamp: Unix timestamp of the failure

    Returns:
        A low-confidence, uncached result
    """
    return ConceptResult(
        response=FALLBACK_RESPONSE,
        simulation=NO_SIMULATION,
        cached=False,
        timestamp=timestamp,
        error_code=error_code,
    )
