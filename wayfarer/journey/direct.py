from typing import Callable, Iterable, List, Optional

from wayfarer.journey.locale import RouteBias, classify_route
from wayfarer.obs.logger import log_event
from wayfarer.obs.metrics import inc_counter
from wayfarer.providers.base import TransportAdapter
from wayfarer.types import Availability, JourneyLeg, TransportKind, TransportOption, TravelPreferences

_RANK = {
    Availability.AVAILABLE: 0,
    Availability.WAITLISTED: 1,
    Availability.UNKNOWN: 2,
    Availability.NOT_APPLICABLE: 3,
}


def place_label(place: str) -> str:
    return place.split(",", 1)[0].strip() if place else place


def rank_options(options: Iterable[TransportOption]) -> List[TransportOption]:
    """Drop sold-out options; available first, then by duration."""
    viable = [o for o in options if o.availability.is_viable]
    return sorted(viable, key=lambda o: (
        _RANK[o.availability],
        o.duration_minutes if o.duration_minutes is not None else float("inf"),
    ))


def describe_leg(options: List[TransportOption], origin: str, destination: str) -> str:
    route = f"from {place_label(origin)} to {place_label(destination)}"
    kinds = {o.kind for o in options}
    if kinds == {TransportKind.TRAIN}:
        return f"Train {route}"
    if kinds == {TransportKind.FLIGHT}:
        return f"Flight {route}"
    if kinds and all(k.is_local_transfer or k is TransportKind.DRIVING for k in kinds):
        return f"Transfer {route}"
    return f"Travel {route}"


class DirectRouteSearch:
    """Single-leg search between two places.

    Rail-biased routes ask rail first and add flights only when no train has a
    confirmed seat; flight-biased routes ask flights only.
    """

    def __init__(self, rail: TransportAdapter, flights: TransportAdapter,
                 classify: Callable[[str, str], RouteBias] = classify_route):
        self.rail = rail
        self.flights = flights
        self.classify = classify

    async def find_direct(self, origin: str, destination: str, date: str, currency: str,
                          prefs: Optional[TravelPreferences] = None) -> JourneyLeg:
        prefs = prefs or TravelPreferences()
        bias = self.classify(origin, destination)

        if bias is RouteBias.RAIL:
            options = await self.rail.search(
                origin, destination, date, currency, prefs.train_class, max_hours=prefs.max_train_hours
            )
            # Waitlisted, sold-out and unknown trains all leave the traveler without a seat
            if not any(o.availability is Availability.AVAILABLE for o in options):
                inc_counter("flight_fallback_total")
                log_event("flight_fallback", origin=origin, destination=destination,
                          rail_options=len(options))
                options = options + await self.flights.search(
                    origin, destination, date, currency, prefs.plane_class
                )
        else:
            options = await self.flights.search(origin, destination, date, currency, prefs.plane_class)

        ranked = rank_options(options)
        return JourneyLeg(
            sequence=1,
            description=describe_leg(ranked, origin, destination),
            options=ranked,
        )
