"""
Tests for response parsing and validation.
"""

import json

import pytest

from concept_cache.entities import ConfidenceLevel
from concept_cache.exceptions import MalformedOutputError
from concept_cache.services import ResponseValidator, SchemaError, Valid, parse_candidate


def candidate(**overrides):
    data = {
        "explanation": "Objects in motion stay in motion.",
        "concept_tags": ["inertia", "motion", "force"],
        "simulation_identifier": "phet-forces-and-motion-basics",
        "guided_steps": ["Push", "Observe", "Explain"],
        "confidence_level": "high",
    }
    data.update(overrides)
    return data


@pytest.fixture
def validator():
    return ResponseValidator()


def test_valid_candidate(validator):
    outcome = validator.validate(candidate())
    assert isinstance(outcome, Valid)
    assert outcome.warnings == ()
    assert outcome.response.concept_tags == ("inertia", "motion", "force")
    assert outcome.response.confidence_level is ConfidenceLevel.HIGH


@pytest.mark.parametrize("explanation", ["", "   ", None])
def test_empty_explanation_is_retryable(validator, explanation):
    outcome = validator.validate(candidate(explanation=explanation))
    assert isinstance(outcome, SchemaError)
    assert outcome.retryable


def test_missing_explanation_is_retryable(validator):
    data = candidate()
    del data["explanation"]
    outcome = validator.validate(data)
    assert isinstance(outcome, SchemaError)
    assert outcome.retryable


@pytest.mark.parametrize("tags", [["a", "b"], ["a", "b", "c", "d", "e", "f"], "a,b,c", ["a", "", "c"]])
def test_bad_tags_are_not_retryable(validator, tags):
    outcome = validator.validate(candidate(concept_tags=tags))
    assert isinstance(outcome, SchemaError)
    assert not outcome.retryable


@pytest.mark.parametrize("steps", [["one", "two"], ["1", "2", "3", "4", "5", "6"]])
def test_step_count_outside_range_is_accepted_unchanged(validator, steps, caplog):
    outcome = validator.validate(candidate(guided_steps=steps))
    assert isinstance(outcome, Valid)
    assert outcome.response.guided_steps == tuple(steps)
    assert len(outcome.warnings) == 1
    assert "guided_steps" in caplog.text


def test_steps_must_be_strings(validator):
    outcome = validator.validate(candidate(guided_steps=[1, 2, 3]))
    assert isinstance(outcome, SchemaError)


def test_simulation_identifier_must_be_string(validator):
    outcome = validator.validate(candidate(simulation_identifier=42))
    assert isinstance(outcome, SchemaError)


def test_confidence_defaults_to_medium(validator):
    data = candidate()
    del data["confidence_level"]
    outcome = validator.validate(data)
    assert outcome.response.confidence_level is ConfidenceLevel.MEDIUM


def test_confidence_is_case_insensitive(validator):
    outcome = validator.validate(candidate(confidence_level=" LOW "))
    assert outcome.response.confidence_level is ConfidenceLevel.LOW


def test_unknown_confidence_is_rejected(validator):
    outcome = validator.validate(candidate(confidence_level="certain"))
    assert isinstance(outcome, SchemaError)
    assert not outcome.retryable


def test_camel_case_fields_are_accepted(validator):
    outcome = validator.validate(
        {
            "explanation": "Waves carry energy.",
            "conceptTags": ["waves", "energy", "frequency"],
            "simulationIdentifier": "phet-wave-on-a-string",
            "guidedSteps": ["Wiggle", "Damp", "Measure"],
            "confidenceLevel": "medium",
        }
    )
    assert isinstance(outcome, Valid)
    assert outcome.response.simulation_identifier == "phet-wave-on-a-string"


def test_parse_candidate_plain_json():
    assert parse_candidate(json.dumps(candidate())) == candidate()


def test_parse_candidate_strips_code_fences():
    raw = "Here you go:\n```json\n" + json.dumps(candidate()) + "\n```\n"
    assert parse_candidate(raw)["concept_tags"] == ["inertia", "motion", "force"]


@pytest.mark.parametrize("raw", ["not json", "[1, 2, 3]", '"text"', ""])
def test_parse_candidate_rejects_non_objects(raw):
    with pytest.raises(MalformedOutputError):
        parse_candidate(raw)
