"""Resolved simulation domain entity."""

from dataclasses import dataclass
from enum import Enum


class SimulationSource(str, Enum):
    """Where a whitelisted simulation comes from."""

    EXTERNAL = "external"
    PROPRIETARY = "proprietary"
    NONE = "none"


NO_SIMULATION_ID = "none"


@dataclass(frozen=True)
class ResolvedSimulation:
    """Simulation metadata taken from the trusted whitelist.

    Attributes:
        identifier: Whitelist identifier, or "none"
        url: HTTPS URL of the simulation, or None
        source: Origin of the simulation
        provider: Human-readable provider name (e.g. "PhET")
        available: Whether the simulation is currently reachable
    """

    identifier: str
    url: str | None
    source: SimulationSource
    provider: str | None = None
    available: bool = False


NO_SIMULATION = ResolvedSimulation(
    identifier=NO_SIMULATION_ID,
    url=None,
    source=SimulationSource.NONE,
    provider=None,
    available=False,
)
