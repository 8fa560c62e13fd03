"""Generation coordinator.

Wraps the external generation capability with model tier selection, token
budgeting, retry with exponential backoff, response validation and
simulation resolution.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import replace

from concept_cache.config import settings
from concept_cache.entities import GeneratedConcept, ModelTier, UsageEvent
from concept_cache.exceptions import GenerationError, GenerationFailure
from concept_cache.protocols import GenerationClient, UsageSink
from concept_cache.services.prompt_builder import PromptBuilder, select_model_tier
from concept_cache.services.response_validator import (
    ResponseValidator,
    SchemaError,
    parse_candidate,
)
from concept_cache.services.retry import RetryPolicy, RetryState
from concept_cache.services.simulation_resolver import SimulationResolver

logger = logging.getLogger(__name__)

GENERATION_FAILURE = "GENERATION_FAILURE"
VALIDATION_FAILURE = "VALIDATION_FAILURE"


class GenerationCoordinator:
    """Produces validated, simulation-resolved responses for concept queries.

    Every attempt (transport failure, timeout, unparseable output, retryable
    schema error) consumes one unit of the shared attempt budget. One usage
    event is recorded per completed attempt.

    Example:
        ```python
        coordinator = GenerationCoordinator(
            client=OllamaGenerationClient.create(),
            resolver=SimulationResolver(load_whitelist()),
        )
        generated = await coordinator.coordinate("Explain Newton's second law")
        ```
    """

    def __init__(
        self,
        client: GenerationClient,
        resolver: SimulationResolver,
        validator: ResponseValidator | None = None,
        usage_sink: UsageSink | None = None,
        retry_policy: RetryPolicy | None = None,
        prompt_builder: PromptBuilder | None = None,
        timeout: float | None = None,
        short_query_threshold: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the coordinator.

        Args:
            client: External generation capability (required).
            resolver: Simulation resolver (required).
            validator: Response validator. Defaults to standard bounds.
            usage_sink: Destination for usage events. None disables recording.
            retry_policy: Attempt budget and backoff. Defaults to settings.
            prompt_builder: Prompt composer. Defaults to the settings token budget.
            timeout: Per-attempt timeout in seconds. Defaults to settings.
            short_query_threshold: Length below which queries use the low-cost tier.
            sleep: Backoff sleep function (injectable for tests).
        """
        self._client = client
        self._resolver = resolver
        self._validator = validator or ResponseValidator()
        self._usage_sink = usage_sink
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
        )
        self._prompt_builder = prompt_builder or PromptBuilder(settings.prompt_token_budget)
        self._timeout = timeout if timeout is not None else settings.generation_timeout
        self._short_threshold = (
            short_query_threshold
            if short_query_threshold is not None
            else settings.short_query_threshold
        )
        if self._timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self._timeout}")
        self._sleep = sleep

    async def coordinate(self, query: str) -> GeneratedConcept:
        """Generate a structured response for a validated query.

        Args:
            query: Trimmed, length-checked query text

        Returns:
            GeneratedConcept with the resolved simulation attached

        Raises:
            GenerationFailure: When the attempt budget is exhausted or the
                output is permanently invalid
        """
        tier = select_model_tier(query, self._short_threshold)
        model_name = self._client.model_name(tier)
        prompt = self._prompt_builder.build(query, self._resolver.identifiers)
        state = RetryState(self._retry_policy)
        failure_code = GENERATION_FAILURE

        while True:
            attempt = state.begin_attempt()
            started = time.perf_counter()
            retryable = True

            try:
                raw = await asyncio.wait_for(
                    self._client.generate(prompt.text, tier, self._timeout),
                    timeout=self._timeout,
                )
                outcome = self._validator.validate(parse_candidate(raw))
            except asyncio.TimeoutError:
                reason, failure_code = f"attempt timed out after {self._timeout}s", GENERATION_FAILURE
            except GenerationError as e:
                reason, failure_code = e.message, GENERATION_FAILURE
            else:
                if isinstance(outcome, SchemaError):
                    reason, failure_code = outcome.reason, VALIDATION_FAILURE
                    retryable = outcome.retryable
                else:
                    state.record_success()
                    self._record_usage(tier, model_name, prompt.token_estimate, attempt, started)
                    simulation = self._resolver.resolve(outcome.response.simulation_identifier)
                    response = replace(outcome.response, simulation_identifier=simulation.identifier)
                    return GeneratedConcept(
                        response=response,
                        simulation=simulation,
                        model_tier=tier,
                        attempts=attempt,
                    )

            self._record_usage(
                tier, model_name, prompt.token_estimate, attempt, started, error=reason
            )
            delay = state.record_failure(reason, retryable=retryable)
            if delay is None:
                logger.error(
                    "Generation failed after %d attempt(s) on %s: %s",
                    state.attempts,
                    model_name,
                    reason,
                )
                raise GenerationFailure(
                    f"Generation failed after {state.attempts} attempt(s): {reason}",
                    code=failure_code,
                    attempts=state.attempts,
                )

            logger.warning(
                "Generation attempt %d/%d failed (%s); retrying in %.2fs",
                attempt,
                self._retry_policy.max_attempts,
                reason,
                delay,
            )
            await self._sleep(delay)

    def _record_usage(
        self,
        tier: ModelTier,
        model_name: str,
        token_estimate: int,
        attempt: int,
        started: float,
        error: str | None = None,
    ) -> None:
        if self._usage_sink is None:
            return
        event = UsageEvent(
            model_tier=tier,
            model_name=model_name,
            token_estimate=token_estimate,
            success=error is None,
            attempt=attempt,
            latency_ms=(time.perf_counter() - started) * 1000,
            timestamp=time.time(),
            error=error,
        )
        try:
            self._usage_sink.record(event)
        except Exception as e:
            # Usage recording is best-effort.
            logger.error("Usage sink rejected event: %s", e)

    @property
    def retry_policy(self) -> RetryPolicy:
        """Get the retry policy."""
        return self._retry_policy
