"""Simulation whitelist loading and liveness probing.

The whitelist is a JSON list of records:

    [
        {
            "identifier": "phet-forces-and-motion-basics",
            "url": "https://phet.colorado.edu/...",   (optional)
            "source": "external",
            "provider": "PhET",
            "available": true
        }
    ]

It is loaded once at startup (and on administrative reload). The liveness
probe runs out of band and produces a new table; it is never called while
handling a query.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import replace
from importlib import resources
from pathlib import Path
from types import MappingProxyType

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from concept_cache.config import settings
from concept_cache.entities import NO_SIMULATION_ID, ResolvedSimulation, SimulationSource
from concept_cache.exceptions import WhitelistError

logger = logging.getLogger(__name__)

WhitelistTable = Mapping[str, ResolvedSimulation]


class WhitelistRecord(BaseModel):
    """One whitelist record as stored in the source file."""

    identifier: str = Field(..., min_length=1)
    url: str | None = None
    source: SimulationSource
    provider: str | None = None
    available: bool = True

    @field_validator("identifier")
    @classmethod
    def identifier_not_reserved(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("identifier must not be blank")
        if value.lower() == NO_SIMULATION_ID:
            raise ValueError(f"identifier {NO_SIMULATION_ID!r} is reserved")
        return value

    @field_validator("url")
    @classmethod
    def url_is_https(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        try:
            parsed = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"simulation URL is malformed: {e}") from e
        if parsed.scheme != "https" or not parsed.host:
            raise ValueError(f"simulation URL must be an absolute HTTPS URL, got {value!r}")
        return value

    @field_validator("source")
    @classmethod
    def source_not_none(cls, value: SimulationSource) -> SimulationSource:
        if value is SimulationSource.NONE:
            raise ValueError("whitelisted simulations must have a real source")
        return value

    def to_entity(self) -> ResolvedSimulation:
        """Convert to the domain entity."""
        return ResolvedSimulation(
            identifier=self.identifier,
            url=self.url,
            source=self.source,
            provider=self.provider,
            available=self.available,
        )


def _read_source(path: str | Path | None) -> str:
    if path is None:
        return resources.files("concept_cache").joinpath("data/simulations.json").read_text(
            encoding="utf-8"
        )
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise WhitelistError(f"Cannot read simulation whitelist {path}: {e}") from e


def parse_whitelist(raw: str) -> WhitelistTable:
    """Parse and validate whitelist JSON.

    Args:
        raw: JSON text (a list of records)

    Returns:
        Read-only mapping identifier -> ResolvedSimulation

    Raises:
        WhitelistError: If the JSON is malformed or any record is invalid
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise WhitelistError(f"Simulation whitelist is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise WhitelistError("Simulation whitelist must be a JSON list of records")

    table: dict[str, ResolvedSimulation] = {}
    for index, item in enumerate(data):
        try:
            record = WhitelistRecord.model_validate(item)
        except ValidationError as e:
            raise WhitelistError(
                f"Invalid whitelist record at index {index}",
                details={"index": index, "errors": e.errors(include_url=False)},
            ) from e

        key = record.identifier.lower()
        if key in table:
            raise WhitelistError(f"Duplicate simulation identifier {record.identifier!r}")
        table[key] = record.to_entity()

    return MappingProxyType(table)


def load_whitelist(path: str | Path | None = None) -> WhitelistTable:
    """Load the simulation whitelist.

    Args:
        path: Whitelist file. Defaults to settings, then to the bundled list.

    Returns:
        Read-only mapping identifier -> ResolvedSimulation

    Raises:
        WhitelistError: If the source is missing or invalid
    """
    source = path or settings.simulation_whitelist_path
    table = parse_whitelist(_read_source(source))
    logger.info(
        "Loaded %d whitelisted simulations from %s", len(table), source or "bundled defaults"
    )
    return table


async def _probe_one(client: httpx.AsyncClient, simulation: ResolvedSimulation, timeout: float) -> bool:
    try:
        response = await client.head(simulation.url, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.warning("Simulation %s unreachable: %s", simulation.identifier, e)
        return False
    return response.status_code < 400


async def probe_availability(
    table: WhitelistTable,
    client: httpx.AsyncClient,
    timeout: float = 5.0,
) -> WhitelistTable:
    """Check each whitelisted URL and return a table with updated availability.

    Records without a URL are not requested and keep their availability.

    Args:
        table: Current whitelist
        client: HTTP client used for HEAD requests
        timeout: Per-request timeout in seconds

    Returns:
        New read-only table; the input is not modified
    """
    keys = [k for k in table if table[k].url]
    results = await asyncio.gather(*(_probe_one(client, table[k], timeout) for k in keys))

    updated = dict(table)
    updated.update({key: replace(table[key], available=ok) for key, ok in zip(keys, results)})
    down = [updated[k].identifier for k in keys if not updated[k].available]
    if down:
        logger.warning("Simulations currently unavailable: %s", ", ".join(down))
    return MappingProxyType(updated)
