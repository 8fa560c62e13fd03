"""Ollama-based generation client.

Uses Ollama's local API to generate structured concept explanations.

Requirements:
    - Ollama installed: https://ollama.com
    - Models pulled: `ollama pull llama3.2:3b` and `ollama pull llama3.1:8b`
    - Ollama running: `ollama serve` (usually runs automatically)

Key features:
- JSON-constrained output (``"format": "json"``)
- One model per cost tier
- Async support for concurrent requests
"""

import httpx

from concept_cache.config import settings
from concept_cache.entities import ModelTier
from concept_cache.exceptions import GenerationError, GenerationTimeoutError, MalformedOutputError


class OllamaGenerationClient:
    """Ollama-based implementation of the GenerationClient protocol.

    This class satisfies the GenerationClient protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        client = OllamaGenerationClient.create()
        raw = await client.generate(prompt, ModelTier.LOW_COST, timeout=30)
        ```
    """

    def __init__(
        self,
        models: dict[ModelTier, str] | None = None,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        temperature: float = 0.2,
    ) -> None:
        """Initialize the Ollama generation client.

        Args:
            models: Model name per tier. Defaults to settings.
            base_url: Ollama API base URL. Defaults to settings.ollama_base_url.
            http_client: Pre-built async HTTP client (e.g. with a mock transport).
            temperature: Sampling temperature.
        """
        self._models = models or {
            ModelTier.LOW_COST: settings.generation_model_low,
            ModelTier.HIGH_COST: settings.generation_model_high,
        }
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._client = http_client
        self._temperature = temperature

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(cls, base_url: str | None = None) -> "OllamaGenerationClient":
        """Factory method to create OllamaGenerationClient with defaults.

        Args:
            base_url: Ollama API URL. If None, uses settings.

        Returns:
            Configured OllamaGenerationClient
        """
        return cls(base_url=base_url)

    def model_name(self, tier: ModelTier) -> str:
        """Get the model a tier maps to.

        Args:
            tier: Model cost tier

        Returns:
            Ollama model name (e.g., "llama3.2:3b")
        """
        return self._models[tier]

    async def generate(self, prompt: str, model_tier: ModelTier, timeout: float) -> str:
        """Run one non-streaming generation.

        Args:
            prompt: Fully composed prompt
            model_tier: Cost tier to run on
            timeout: Request timeout in seconds

        Returns:
            The raw generated text

        Raises:
            GenerationTimeoutError: If the request times out
            GenerationError: On any other transport failure
            MalformedOutputError: If the response carries no generated text
        """
        url = f"{self._base_url}/api/generate"
        model = self.model_name(model_tier)
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {"temperature": self._temperature},
        }

        try:
            response = await self.client.post(url, json=payload, timeout=timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise GenerationTimeoutError(f"Ollama request timed out after {timeout}s") from e
        except httpx.HTTPError as e:
            error_msg = f"Ollama API error: {e}"
            if "connection refused" in str(e).lower():
                error_msg += " (is Ollama running? Try: ollama serve)"
            elif "not found" in str(e).lower():
                error_msg += f" (model missing? Try: ollama pull {model})"
            raise GenerationError(error_msg) from e
        except ValueError as e:
            raise GenerationError(f"Ollama returned a non-JSON body: {e}") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise MalformedOutputError(f"Ollama returned no generated text for model {model}")
        return text

    async def is_available(self) -> bool:
        """Check if Ollama is reachable.

        Returns:
            True if Ollama answers its tags endpoint, False otherwise
        """
        try:
            response = await self.client.get(f"{self._base_url}/api/tags", timeout=5.0)
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
