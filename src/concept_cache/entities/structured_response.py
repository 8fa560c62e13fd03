"""Structured response domain entity."""

from dataclasses import dataclass
from enum import Enum


class ConfidenceLevel(str, Enum):
    """How confident the generation step was in its explanation."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class StructuredResponse:
    """Validated educational response for a concept query.

    Instances are only built by the response validator, so every field has
    already passed the schema checks.

    Attributes:
        explanation: Non-empty explanation text
        concept_tags: Three to five short topic tags
        simulation_identifier: Identifier proposed by the generation step
            (untrusted until resolved against the whitelist)
        guided_steps: Ordered learning steps (three to five recommended)
        confidence_level: Self-reported confidence of the generation step
    """

    explanation: str
    concept_tags: tuple[str, ...]
    simulation_identifier: str
    guided_steps: tuple[str, ...]
    confidence_level: ConfidenceLevel = ConfidenceLevel.MEDIUM
