import asyncio

import pytest

from wayfarer.infrastructure.deadline import deadline_scope
from wayfarer.journey.direct import DirectRouteSearch, describe_leg, rank_options
from wayfarer.journey.locale import RouteBias, classify_route
from wayfarer.obs.metrics import get_counter
from wayfarer.providers.base import TransportAdapter
from wayfarer.types import Availability, TransportKind, TransportOption, TravelPreferences


def option(kind=TransportKind.TRAIN, availability=Availability.AVAILABLE, minutes=120, name="Train 1"):
    return TransportOption(
        kind=kind,
        provider="Indian Railways" if kind is TransportKind.TRAIN else "IndiGo",
        descriptor=name,
        duration=f"{minutes // 60}h {minutes % 60}m",
        duration_minutes=minutes,
        price="INR 500",
        booking_link="https://example.com/book",
        availability=availability,
    )


class FakeAdapter:
    def __init__(self, options=None):
        self.options = options or []
        self.calls = []

    async def search(self, origin, destination, date, currency, class_preference=None, **filters):
        self.calls.append((origin, destination, date, currency, class_preference, filters))
        return list(self.options)


def test_classify_route():
    assert classify_route("Vapi, India", "Pune, India") is RouteBias.RAIL
    assert classify_route("Shimla", "Goa") is RouteBias.RAIL
    assert classify_route("London, United Kingdom", "Paris, France") is RouteBias.FLIGHT
    assert classify_route("Dubai", "Mumbai") is RouteBias.RAIL


def test_rank_options_drops_sold_out_and_prefers_available():
    ranked = rank_options([
        option(availability=Availability.WAITLISTED, minutes=60, name="wl"),
        option(availability=Availability.SOLD_OUT, minutes=30, name="regret"),
        option(availability=Availability.AVAILABLE, minutes=180, name="slow"),
        option(availability=Availability.AVAILABLE, minutes=90, name="fast"),
    ])
    assert [o.descriptor for o in ranked] == ["fast", "slow", "wl"]


def test_describe_leg():
    trains = [option()]
    flights = [option(kind=TransportKind.FLIGHT)]
    assert describe_leg(trains, "Vapi, India", "Mumbai, India") == "Train from Vapi to Mumbai"
    assert describe_leg(flights, "London", "Paris") == "Flight from London to Paris"
    assert describe_leg(trains + flights, "Vapi", "Pune") == "Travel from Vapi to Pune"
    taxis = [option(kind=TransportKind.TAXI), option(kind=TransportKind.RICKSHAW)]
    assert describe_leg(taxis, "Mumbai Central", "BOM") == "Transfer from Mumbai Central to BOM"
    assert describe_leg([], "Vapi", "Pune") == "Travel from Vapi to Pune"


async def test_available_train_skips_flights():
    rail = FakeAdapter([option(availability=Availability.AVAILABLE)])
    flights = FakeAdapter([option(kind=TransportKind.FLIGHT)])
    search = DirectRouteSearch(rail, flights)

    leg = await search.find_direct("Vapi, India", "Mumbai, India", "2025-12-20", "INR")

    assert flights.calls == []
    assert [o.kind for o in leg.options] == [TransportKind.TRAIN]
    assert leg.description == "Train from Vapi to Mumbai"


async def test_waitlisted_trains_trigger_flight_fallback():
    rail = FakeAdapter([option(availability=Availability.WAITLISTED)])
    flights = FakeAdapter([option(kind=TransportKind.FLIGHT, minutes=65)])
    search = DirectRouteSearch(rail, flights)
    before = get_counter("flight_fallback_total")

    leg = await search.find_direct("Vapi, India", "Pune, India", "2025-12-20", "INR")

    assert len(flights.calls) == 1
    assert get_counter("flight_fallback_total") == before + 1
    # Confirmed flight ranks ahead of the waitlisted train
    assert [o.kind for o in leg.options] == [TransportKind.FLIGHT, TransportKind.TRAIN]
    assert leg.description == "Travel from Vapi to Pune"


async def test_no_trains_at_all_also_falls_back():
    rail = FakeAdapter([])
    flights = FakeAdapter([option(kind=TransportKind.FLIGHT)])
    leg = await DirectRouteSearch(rail, flights).find_direct("Vapi", "Pune", "2025-12-20", "INR")
    assert len(flights.calls) == 1
    assert leg.description == "Flight from Vapi to Pune"


async def test_sold_out_trains_are_excluded():
    rail = FakeAdapter([option(availability=Availability.SOLD_OUT)])
    flights = FakeAdapter([])
    leg = await DirectRouteSearch(rail, flights).find_direct("Vapi", "Pune", "2025-12-20", "INR")
    assert leg.options == []
    assert len(flights.calls) == 1


async def test_flight_biased_route_never_asks_rail():
    rail = FakeAdapter([option()])
    flights = FakeAdapter([option(kind=TransportKind.FLIGHT)])
    prefs = TravelPreferences(plane_class="business")

    leg = await DirectRouteSearch(rail, flights).find_direct(
        "London, United Kingdom", "Paris, France", "2025-12-20", "EUR", prefs
    )

    assert rail.calls == []
    assert flights.calls[0][4] == "business"
    assert len(leg.options) == 1


async def test_preferences_reach_rail():
    rail = FakeAdapter([option()])
    prefs = TravelPreferences(train_class="ac-3-tier", max_train_hours=6)
    await DirectRouteSearch(rail, FakeAdapter()).find_direct("Vapi", "Mumbai", "2025-12-20", "INR", prefs)

    _, _, _, _, class_pref, filters = rail.calls[0]
    assert class_pref == "ac-3-tier"
    assert filters == {"max_hours": 6}


class StalledRail(TransportAdapter):
    provider = "rail"
    timeout_seconds = 0.05

    async def _search(self, origin, destination, date, currency, class_preference=None, **filters):
        await asyncio.sleep(5)
        return [option()]


async def test_stalled_rail_times_out_and_flights_still_fill_the_leg():
    failures = {"provider": "rail", "reason": "timeout"}
    before = get_counter("provider_failures_total", failures)
    flights = FakeAdapter([option(kind=TransportKind.FLIGHT, name="IndiGo 6E 5301")])

    leg = await DirectRouteSearch(StalledRail(), flights).find_direct("Vapi", "Pune", "2025-12-20", "INR")

    assert [o.descriptor for o in leg.options] == ["IndiGo 6E 5301"]
    assert leg.description == "Flight from Vapi to Pune"
    assert get_counter("provider_failures_total", failures) == before + 1


async def test_exhausted_journey_budget_skips_live_adapters():
    with deadline_scope(0):
        assert await StalledRail().search("Vapi", "Pune", "2025-12-20", "INR") == []
