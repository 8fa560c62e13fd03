"""Model tier selection and bounded prompt assembly.

Tier heuristic:
    - Short queries and "define X" style queries -> low-cost tier
    - Comparison / causal-reasoning cues ("why", "how", "compare",
      "relationship between", ...) -> high-cost tier
    - Everything else -> low-cost tier

Token budgeting:
    Token counts are estimated from word counts. When the composed prompt
    exceeds the budget, the query text is truncated at a word boundary, keeping
    at least one word even when the instructions alone are over budget; the
    request itself is never dropped.
"""

import logging
import re
from dataclasses import dataclass

from concept_cache.entities import ModelTier

logger = logging.getLogger(__name__)

SIMPLE_DEFINITION = re.compile(r"^\s*(?:define|definition of|meaning of)\s+\S+", re.IGNORECASE)

COMPLEX_CUES = re.compile(
    r"\b(?:why|how|compare|comparison|relationship between|difference between"
    r"|versus|vs\.?|cause[sd]?|effect of)\b",
    re.IGNORECASE,
)

TRUNCATION_MARKER = " ..."

PROMPT_TEMPLATE = (
    "You are an educational assistant that explains science and math concepts to learners.\n"
    "Explain the concept below and answer ONLY with a JSON object using these keys:\n"
    '  "explanation": a clear explanation of the concept (string, required),\n'
    '  "concept_tags": 3 to 5 short topic tags (array of strings),\n'
    '  "simulation_identifier": one identifier from the allowed list, or "none",\n'
    '  "guided_steps": 3 to 5 short learning steps (array of strings),\n'
    '  "confidence_level": "high", "medium" or "low".\n'
    "Allowed simulation identifiers: {simulations}\n\n"
    "Concept: {query}\n"
)


def estimate_tokens(text: str) -> int:
    """Estimate token count using word count heuristic (words * 1.3)."""
    return int(len(text.split()) * 1.3)


def select_model_tier(query: str, short_threshold: int = 40) -> ModelTier:
    """Pick a model tier for a query.

    Args:
        query: Trimmed query text
        short_threshold: Queries shorter than this many characters are simple

    Returns:
        The selected tier
    """
    text = query.strip()
    if len(text) < short_threshold or SIMPLE_DEFINITION.match(text):
        return ModelTier.LOW_COST
    if COMPLEX_CUES.search(text):
        return ModelTier.HIGH_COST
    return ModelTier.LOW_COST


@dataclass(frozen=True)
class BuiltPrompt:
    """A composed prompt ready for generation."""

    text: str
    token_estimate: int
    truncated: bool = False


class PromptBuilder:
    """Composes generation prompts under a token budget.

    Args:
        token_budget: Maximum estimated prompt tokens
        template: Prompt template with ``{simulations}`` and ``{query}`` fields
    """

    def __init__(self, token_budget: int = 1024, template: str = PROMPT_TEMPLATE) -> None:
        if token_budget < 1:
            raise ValueError("token_budget must be positive")
        self._budget = token_budget
        self._template = template

    def build(self, query: str, simulation_ids: list[str] | None = None) -> BuiltPrompt:
        """Build the prompt for a query.

        Args:
            query: Trimmed query text
            simulation_ids: Whitelisted identifiers the model may choose from

        Returns:
            The composed prompt and its token estimate
        """
        simulations = ", ".join(simulation_ids or []) or "none"
        text = self._template.format(simulations=simulations, query=query)
        tokens = estimate_tokens(text)
        if tokens <= self._budget:
            return BuiltPrompt(text=text, token_estimate=tokens)

        fixed_tokens = estimate_tokens(self._template.format(simulations=simulations, query=""))
        words = query.split()
        if fixed_tokens >= self._budget:
            cause = "instructions alone exceed token budget"
            keep = 1
        else:
            cause = "query exceeds remaining token budget"
            keep = max(1, int((self._budget - fixed_tokens) / 1.3) - 1)
        # Rounding can leave room for every word; drop at least one.
        keep = min(keep, len(words) - 1)
        if keep < 1:
            logger.warning(
                "Prompt exceeded token budget (%d > %d) and a single-word query cannot be "
                "shortened; sending it unchanged",
                tokens,
                self._budget,
            )
            return BuiltPrompt(text=text, token_estimate=tokens)

        shortened = " ".join(words[:keep]) + TRUNCATION_MARKER
        logger.warning(
            "Prompt exceeded token budget (%d > %d), %s; query truncated from %d to %d words",
            tokens,
            self._budget,
            cause,
            len(words),
            keep,
        )
        text = self._template.format(simulations=simulations, query=shortened)
        return BuiltPrompt(text=text, token_estimate=estimate_tokens(text), truncated=True)
