"""Exception hierarchy for the concept cache.

Every error carries a stable ``code`` so the HTTP layer can report it
without leaking internals. Only ``InvalidQueryError`` escapes the cache
orchestrator; the others are absorbed and surface as fallbacks, log lines
or usage events.
"""

from typing import Any


class ConceptCacheError(Exception):
    """Base exception for all concept cache errors."""

    code: str = "CONCEPT_CACHE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidQueryError(ConceptCacheError):
    """Query failed length or content checks. Never retried."""

    code: str = "INVALID_INPUT"


class GenerationError(ConceptCacheError):
    """A single generation attempt failed (transport, timeout, bad output)."""

    code: str = "GENERATION_ERROR"


class GenerationTimeoutError(GenerationError):
    """A generation attempt exceeded its per-attempt timeout."""

    code: str = "GENERATION_TIMEOUT"


class MalformedOutputError(GenerationError):
    """Generation output could not be parsed as a JSON object."""

    code: str = "MALFORMED_OUTPUT"


class GenerationFailure(ConceptCacheError):
    """All generation attempts were exhausted, or output was permanently invalid.

    ``code`` is either ``GENERATION_FAILURE`` or ``VALIDATION_FAILURE`` depending
    on what ended the last attempt.
    """

    code: str = "GENERATION_FAILURE"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        attempts: int = 0,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        if code is not None:
            self.code = code
        self.attempts = attempts


class StoreUnavailableError(ConceptCacheError):
    """A cache tier could not be reached."""

    code: str = "STORE_UNAVAILABLE"


class WhitelistError(ConceptCacheError):
    """The simulation whitelist source is missing or invalid."""

    code: str = "WHITELIST_INVALID"
