import asyncio
from typing import Any, List, Optional

from pydantic import ValidationError

from wayfarer.config import settings
from wayfarer.locations.resolver import LocationCodeResolver
from wayfarer.obs.logger import log_event
from wayfarer.providers.base import TransportAdapter
from wayfarer.providers.client import RapidApiClient
from wayfarer.providers.errors import MalformedPayload
from wayfarer.providers.payloads import FlightSearchPayload
from wayfarer.providers.transform import from_flight_payload
from wayfarer.types import TransportOption

CABIN_CLASSES = {
    "economy": "ECONOMY",
    "premium": "PREMIUM_ECONOMY",
    "premium_economy": "PREMIUM_ECONOMY",
    "premium-economy": "PREMIUM_ECONOMY",
    "business": "BUSINESS",
    "first": "FIRST",
}


def cabin_class(preference: Optional[str]) -> str:
    if not preference:
        return "ECONOMY"
    return CABIN_CLASSES.get(preference.strip().lower(), "ECONOMY")


class FlightAdapter(TransportAdapter):
    """Flight search via booking-com15 (RapidAPI)."""

    provider = "flights"

    def __init__(self, client: RapidApiClient, resolver: LocationCodeResolver, max_results: int = None):
        self.client = client
        self.resolver = resolver
        self.max_results = max_results or settings.PROVIDER_MAX_RESULTS

    async def _search(self, origin: str, destination: str, date: str, currency: str,
                      class_preference: Optional[str] = None, **filters: Any) -> List[TransportOption]:
        origin_code, destination_code = await asyncio.gather(
            self.resolver.resolve(origin), self.resolver.resolve(destination)
        )
        # Unresolved endpoints are passed through as typed; the provider may still match them
        if not origin_code or not destination_code:
            log_event("flight_code_fallback", level="WARNING",
                      origin=origin, destination=destination,
                      origin_code=origin_code, destination_code=destination_code)
        from_id = f"{origin_code}.AIRPORT" if origin_code else origin
        to_id = f"{destination_code}.AIRPORT" if destination_code else destination

        raw = await self.client.get_json(
            self.provider,
            settings.FLIGHT_API_HOST,
            "/api/v1/flights/searchFlights",
            {
                "fromId": from_id,
                "toId": to_id,
                "departDate": date,
                "adults": 1,
                "cabinClass": cabin_class(class_preference),
                "currency_code": currency,
            },
        )
        try:
            payload = FlightSearchPayload.model_validate(raw)
        except ValidationError as e:
            raise MalformedPayload(self.provider, str(e)) from e

        return from_flight_payload(
            payload,
            origin_code or origin,
            destination_code or destination,
            date,
            limit=self.max_results,
        )
