"""Simulation resolution against the trusted whitelist.

The generation step only ever contributes an identifier string. Everything
else about a simulation (URL, provider, availability) comes from the
whitelist table, which is read-only during request handling. Administrative
reloads and liveness updates swap in a new table as a whole.
"""

import logging
from collections.abc import Mapping
from dataclasses import replace
from types import MappingProxyType

from concept_cache.entities import NO_SIMULATION, NO_SIMULATION_ID, ResolvedSimulation

logger = logging.getLogger(__name__)


def _lookup_key(identifier: str) -> str:
    return identifier.strip().lower()


class SimulationResolver:
    """Resolves proposed simulation identifiers to whitelist metadata.

    Example:
        ```python
        resolver = SimulationResolver(load_whitelist())
        simulation = resolver.resolve("phet-forces-and-motion-basics")
        ```
    """

    def __init__(self, table: Mapping[str, ResolvedSimulation]) -> None:
        """Initialize the resolver.

        Args:
            table: Whitelist mapping identifier -> metadata. URLs must already
                be validated (see ``load_whitelist``).
        """
        self._table = self._freeze(table)

    @staticmethod
    def _freeze(table: Mapping[str, ResolvedSimulation]) -> Mapping[str, ResolvedSimulation]:
        return MappingProxyType({_lookup_key(k): v for k, v in table.items()})

    def resolve(self, identifier: str) -> ResolvedSimulation:
        """Resolve an identifier proposed by the generation step.

        Never performs network I/O.

        Args:
            identifier: Proposed simulation identifier

        Returns:
            Whitelisted metadata, or the "none" simulation
        """
        key = _lookup_key(identifier)
        if key in ("", NO_SIMULATION_ID):
            return NO_SIMULATION

        simulation = self._table.get(key)
        if simulation is None:
            logger.warning(
                "Generation proposed simulation %r which is not whitelisted; resolving to none",
                identifier,
            )
            return NO_SIMULATION
        return simulation

    def replace_table(self, table: Mapping[str, ResolvedSimulation]) -> None:
        """Atomically replace the whitelist (administrative operation).

        Args:
            table: The new whitelist
        """
        self._table = self._freeze(table)
        logger.info("Simulation whitelist replaced (%d entries)", len(self._table))

    def set_availability(self, identifier: str, available: bool) -> bool:
        """Update one simulation's availability by swapping in a new table.

        Args:
            identifier: Whitelisted identifier
            available: New availability flag

        Returns:
            True if the identifier exists in the whitelist
        """
        key = _lookup_key(identifier)
        current = self._table.get(key)
        if current is None:
            return False
        if current.available != available:
            updated = dict(self._table)
            updated[key] = replace(current, available=available)
            self._table = MappingProxyType(updated)
        return True

    @property
    def table(self) -> Mapping[str, ResolvedSimulation]:
        """Current read-only whitelist."""
        return self._table

    @property
    def identifiers(self) -> list[str]:
        """Whitelisted identifiers, sorted."""
        return sorted(simulation.identifier for simulation in self._table.values())
