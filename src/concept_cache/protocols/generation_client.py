"""Generation client protocol.

The external generation capability is opaque to the engine: it receives a
prompt and returns raw text, or fails with ``GenerationError``.

Implementations can include:
- Ollama (local, default)
- Any hosted LLM API
- Scripted fakes for tests
"""

from typing import Protocol, runtime_checkable

from concept_cache.entities import ModelTier


@runtime_checkable
class GenerationClient(Protocol):
    """Protocol for the external text generation capability."""

    def model_name(self, tier: ModelTier) -> str:
        """Return the concrete model a tier maps to.

        Args:
            tier: Model cost tier

        Returns:
            Model name or identifier
        """
        ...

    async def generate(self, prompt: str, model_tier: ModelTier, timeout: float) -> str:
        """Run one generation.

        Args:
            prompt: Fully composed prompt
            model_tier: Cost tier to run on
            timeout: Per-attempt timeout in seconds

        Returns:
            Raw generated text

        Raises:
            GenerationError: On transport failure, timeout or empty output
        """
        ...
