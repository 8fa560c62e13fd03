"""Test doubles shared across the test suite."""

import asyncio
import json

from concept_cache.entities import (
    CacheEntryEntity,
    ConfidenceLevel,
    ModelTier,
    ResolvedSimulation,
    SimulationSource,
    StructuredResponse,
)
from concept_cache.exceptions import StoreUnavailableError


def valid_output(**overrides) -> str:
    """Raw generation text for a well-formed response."""
    payload = {
        "explanation": "Force equals mass times acceleration.",
        "concept_tags": ["force", "mass", "acceleration"],
        "simulation_identifier": "phet-forces-and-motion-basics",
        "guided_steps": ["Push the box", "Add mass", "Compare accelerations"],
        "confidence_level": "high",
    }
    payload.update(overrides)
    return json.dumps(payload)


def make_entry(key: str, last_accessed_at: float, access_count: int = 0) -> CacheEntryEntity:
    """Build a cache entry with a fixed response."""
    return CacheEntryEntity(
        key=key,
        response=StructuredResponse(
            explanation=f"Cached explanation for {key}",
            concept_tags=("a", "b", "c"),
            simulation_identifier="phet-gravity-and-orbits",
            guided_steps=("one", "two", "three"),
            confidence_level=ConfidenceLevel.MEDIUM,
        ),
        simulation=ResolvedSimulation(
            identifier="phet-gravity-and-orbits",
            url="https://phet.colorado.edu/sims/html/gravity-and-orbits/latest/gravity-and-orbits_en.html",
            source=SimulationSource.EXTERNAL,
            provider="PhET",
            available=True,
        ),
        created_at=last_accessed_at,
        access_count=access_count,
        last_accessed_at=last_accessed_at,
    )


class FakeGenerationClient:
    """Scripted generation client.

    ``outputs`` are consumed in order; exceptions are raised, strings are
    returned. Once exhausted, a valid output is returned.
    """

    def __init__(
        self,
        outputs: list | None = None,
        delay: float = 0.0,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.outputs = list(outputs or [])
        self.delay = delay
        self.gate = gate
        self.calls = 0
        self.prompts: list[str] = []
        self.tiers: list[ModelTier] = []

    def model_name(self, tier: ModelTier) -> str:
        return f"fake-{tier.value}"

    async def generate(self, prompt: str, model_tier: ModelTier, timeout: float) -> str:
        self.calls += 1
        self.prompts.append(prompt)
        self.tiers.append(model_tier)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)

        output = self.outputs.pop(0) if self.outputs else valid_output()
        if isinstance(output, BaseException):
            raise output
        return output


class UnavailableDurableStore:
    """Durable tier whose backend is down."""

    def __init__(self) -> None:
        self.calls = 0

    async def _fail(self, *args, **kwargs):
        self.calls += 1
        raise StoreUnavailableError("connection refused")

    get = put = touch = delete = count = least_recently_accessed = clear = _fail

    async def health_check(self) -> bool:
        return False


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
