"""Validation of untrusted generation output.

Outcomes are returned as values, never raised:

- ``Valid``: the candidate is accepted; ``warnings`` lists advisory
  (soft) defects such as a guided-steps count outside the recommended range.
- ``SchemaError``: the candidate is rejected. ``retryable`` marks hard
  failures (empty explanation) that justify regenerating with the same
  attempt budget; structural faults are not retried.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from concept_cache.entities import ConfidenceLevel, StructuredResponse
from concept_cache.exceptions import MalformedOutputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Valid:
    """Accepted candidate."""

    response: StructuredResponse
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class SchemaError:
    """Rejected candidate."""

    reason: str
    retryable: bool = False


ValidationOutcome = Union[Valid, SchemaError]


def parse_candidate(raw: str) -> dict[str, Any]:
    """Parse raw generation text into a candidate mapping.

    Markdown code fences around the JSON are tolerated.

    Args:
        raw: Raw generated text

    Returns:
        The decoded JSON object

    Raises:
        MalformedOutputError: If the text is not a JSON object
    """
    text = raw.strip()
    if "```" in text:
        parts = []
        inside = False
        for line in text.splitlines():
            if line.strip().startswith("```"):
                inside = not inside
                continue
            if inside:
                parts.append(line)
        if parts:
            text = "\n".join(parts).strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(f"Output is not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise MalformedOutputError(f"Output is a JSON {type(data).__name__}, expected an object")
    return data


def _field(candidate: Mapping[str, Any], snake: str, camel: str) -> Any:
    if snake in candidate:
        return candidate[snake]
    return candidate.get(camel)


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


class ResponseValidator:
    """Checks candidate responses against the schema and content rules.

    Args:
        min_tags: Minimum number of concept tags
        max_tags: Maximum number of concept tags
        min_steps: Recommended minimum number of guided steps (advisory)
        max_steps: Recommended maximum number of guided steps (advisory)
    """

    def __init__(
        self,
        min_tags: int = 3,
        max_tags: int = 5,
        min_steps: int = 3,
        max_steps: int = 5,
    ) -> None:
        self._min_tags = min_tags
        self._max_tags = max_tags
        self._min_steps = min_steps
        self._max_steps = max_steps

    def validate(self, candidate: Mapping[str, Any]) -> ValidationOutcome:
        """Validate a decoded candidate.

        Both snake_case and camelCase field names are accepted.

        Args:
            candidate: Decoded generation output

        Returns:
            Valid with the built response, or SchemaError
        """
        explanation = _field(candidate, "explanation", "explanation")
        if not isinstance(explanation, str) or not explanation.strip():
            return SchemaError("explanation is missing or empty", retryable=True)

        tags = _field(candidate, "concept_tags", "conceptTags")
        if not _is_string_list(tags):
            return SchemaError("concept_tags must be a list of strings")
        if not self._min_tags <= len(tags) <= self._max_tags:
            return SchemaError(
                f"concept_tags must contain {self._min_tags}-{self._max_tags} items, got {len(tags)}"
            )
        if any(not tag.strip() for tag in tags):
            return SchemaError("concept_tags must not contain empty strings")

        steps = _field(candidate, "guided_steps", "guidedSteps")
        if not _is_string_list(steps):
            return SchemaError("guided_steps must be a list of strings")

        simulation_id = _field(candidate, "simulation_identifier", "simulationIdentifier")
        if not isinstance(simulation_id, str):
            return SchemaError("simulation_identifier must be a string")

        raw_confidence = _field(candidate, "confidence_level", "confidenceLevel")
        if raw_confidence is None:
            confidence = ConfidenceLevel.MEDIUM
        else:
            try:
                confidence = ConfidenceLevel(str(raw_confidence).strip().lower())
            except ValueError:
                return SchemaError(f"confidence_level {raw_confidence!r} is not one of high, medium, low")

        warnings: list[str] = []
        if not self._min_steps <= len(steps) <= self._max_steps:
            message = (
                f"guided_steps has {len(steps)} items, "
                f"expected {self._min_steps}-{self._max_steps}; accepting as-is"
            )
            logger.warning(message)
            warnings.append(message)

        response = StructuredResponse(
            explanation=explanation.strip(),
            concept_tags=tuple(tag.strip() for tag in tags),
            simulation_identifier=simulation_id.strip(),
            guided_steps=tuple(steps),
            confidence_level=confidence,
        )
        return Valid(response=response, warnings=tuple(warnings))
