"""Upstream place-name lookups feeding the location code resolver.

Each lookup turns a normalized query into ``(name, code)`` candidates and
raises ``ProviderError`` on failure; the resolver decides how to degrade.
"""

from typing import List, NamedTuple, Protocol

from pydantic import ValidationError

from wayfarer.config import settings
from wayfarer.providers.client import RapidApiClient
from wayfarer.providers.errors import MalformedPayload
from wayfarer.providers.payloads import AirportLookupPayload, StationLookupPayload


class LocationCandidate(NamedTuple):
    name: str
    code: str


class LocationLookup(Protocol):
    provider: str

    async def candidates(self, query: str) -> List[LocationCandidate]:
        ...


class StationLookup:
    """Indian railway station codes, e.g. 'vapi' -> VAPI, 'mumbai' -> BCT."""

    provider = "station_lookup"

    def __init__(self, client: RapidApiClient):
        self.client = client

    async def candidates(self, query: str) -> List[LocationCandidate]:
        raw = await self.client.get_json(
            self.provider, settings.STATION_API_HOST, "/api/v1/station", {"name": query}
        )
        try:
            payload = StationLookupPayload.model_validate(raw)
        except ValidationError as e:
            raise MalformedPayload(self.provider, str(e)) from e
        return [LocationCandidate(s.name, s.code.upper()) for s in payload.data if s.code]


class AirportLookup:
    """IATA airport codes from the flight provider's destination search."""

    provider = "airport_lookup"

    def __init__(self, client: RapidApiClient):
        self.client = client

    async def candidates(self, query: str) -> List[LocationCandidate]:
        raw = await self.client.get_json(
            self.provider, settings.FLIGHT_API_HOST, "/api/v1/flights/searchDestination", {"query": query}
        )
        try:
            payload = AirportLookupPayload.model_validate(raw)
        except ValidationError as e:
            raise MalformedPayload(self.provider, str(e)) from e
        out = []
        for a in payload.data:
            if a.iata:
                out.append(LocationCandidate(a.city_name or a.name, a.iata))
        return out
