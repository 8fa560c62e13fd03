"""Cache entry domain entity."""

from dataclasses import dataclass, replace

from .simulation import ResolvedSimulation
from .structured_response import StructuredResponse


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a cached concept explanation.

    This is an internal representation used by services and repositories.
    For API contracts, use the DTO classes from the dto package.

    Attributes:
        key: Normalized query key (SHA-256 hex digest)
        response: The validated structured response
        simulation: Simulation resolved from the whitelist at generation time
        created_at: When this entry was created (Unix timestamp)
        access_count: Number of cache hits served from this entry
        last_accessed_at: Last time this entry was created or hit (Unix timestamp)
    """

    key: str
    response: StructuredResponse
    simulation: ResolvedSimulation
    created_at: float
    access_count: int = 0
    last_accessed_at: float = 0.0

    def touched(self, accessed_at: float) -> "CacheEntryEntity":
        """Return a copy recording one more hit at ``accessed_at``."""
        return replace(
            self,
            access_count=self.access_count + 1,
            last_accessed_at=max(self.last_accessed_at, accessed_at),
        )
