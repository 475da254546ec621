from typing import Dict, List, NamedTuple, Optional

from wayfarer.providers.base import TransportAdapter
from wayfarer.providers.links import directions_url
from wayfarer.providers.transform import format_price
from wayfarer.types import Availability, TransportKind, TransportOption, is_eco_friendly
from wayfarer.utils.dates import parse_duration_minutes


class TransferFare(NamedTuple):
    taxi: int
    rickshaw: int
    taxi_time: str
    rickshaw_time: str


class TransitLine(NamedTuple):
    name: str
    fare: int
    time: str
    via_rail: bool


# Indicative cross-city fares; not live, callers must not treat them as quotes
DEFAULT_FARE = TransferFare(400, 250, "45-60 min", "50-70 min")
HUB_FARES: Dict[str, TransferFare] = {
    "mumbai": TransferFare(550, 300, "60-90 min", "70-100 min"),
    "delhi": TransferFare(450, 250, "45-75 min", "60-90 min"),
    "bengaluru": TransferFare(700, 350, "60-90 min", "75-105 min"),
    "chennai": TransferFare(400, 220, "40-60 min", "50-70 min"),
    "kolkata": TransferFare(380, 200, "45-60 min", "50-75 min"),
}

# Public transport between the main station and the airport, where there is a sensible one
HUB_TRANSIT: Dict[str, TransitLine] = {
    "mumbai": TransitLine("Western line local to Andheri, then Metro Line 1", 40, "70-90 min", True),
    "delhi": TransitLine("Delhi Metro Airport Express", 60, "30-45 min", True),
    "chennai": TransitLine("Chennai Metro Blue Line", 50, "35-50 min", True),
    "bengaluru": TransitLine("BMTC Vayu Vajra airport bus", 300, "90-120 min", False),
}


def _hub_key(hub_city: str) -> str:
    return hub_city.split(",", 1)[0].strip().lower()


class LocalTransferAdapter(TransportAdapter):
    """Taxi, rickshaw, city transit and driving options inside one hub city.

    Backed by static fare and transit tables rather than a live maps API; the
    contract matches the live adapters so callers cannot tell the difference.
    Driving carries no fare, only directions.
    """

    provider = "local_transfer"
    live = False

    async def search(self, hub_city: str, origin_point: str, destination_point: str,
                     currency: str) -> List[TransportOption]:
        return await self._guarded(self._search_hub, origin_point, destination_point, hub_city, currency)

    async def _search_hub(self, origin_point: str, destination_point: str, hub_city: str,
                          currency: str) -> List[TransportOption]:
        key = _hub_key(hub_city)
        fare = HUB_FARES.get(key, DEFAULT_FARE)
        transit = HUB_TRANSIT.get(key)
        start, end = f"{origin_point}, {hub_city}", f"{destination_point}, {hub_city}"
        route = f"{origin_point} to {destination_point}"

        options = [
            self._option(TransportKind.TAXI, "Local Taxi", f"Pre-paid or metered taxi: {route}",
                         fare.taxi_time, format_price(currency, fare.taxi), directions_url(start, end)),
            self._option(TransportKind.RICKSHAW, "Auto Rickshaw", f"Metered auto-rickshaw: {route}",
                         fare.rickshaw_time, format_price(currency, fare.rickshaw), directions_url(start, end)),
        ]
        if transit is not None:
            options.append(self._option(
                TransportKind.TRANSIT, transit.name, f"{transit.name}: {route}", transit.time,
                format_price(currency, transit.fare), directions_url(start, end, "transit"),
                via_rail=transit.via_rail,
            ))
        options.append(self._option(
            TransportKind.DRIVING, "Self-drive", f"Driving directions: {route}", fare.taxi_time,
            format_price(currency, None), directions_url(start, end),
            availability=Availability.NOT_APPLICABLE,
        ))
        return options

    @staticmethod
    def _option(kind: TransportKind, provider: str, details: str, duration: str, price: str, link: str,
                via_rail: bool = False, availability: Optional[Availability] = None) -> TransportOption:
        return TransportOption(
            kind=kind,
            provider=provider,
            descriptor=details,
            duration=duration,
            duration_minutes=parse_duration_minutes(duration),
            price=price,
            booking_link=link,
            eco_friendly=is_eco_friendly(kind, via_rail),
            availability=availability or Availability.AVAILABLE,
        )
