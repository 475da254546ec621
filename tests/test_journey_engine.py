import asyncio
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from wayfarer.cache.location_cache import InMemoryLocationCache
from wayfarer.journey.direct import DirectRouteSearch, place_label
from wayfarer.journey.engine import JourneyEngine, create_engine
from wayfarer.journey.hub_resolver import HubFallbackResolver
from wayfarer.obs.metrics import get_counter
from wayfarer.providers.client import RapidApiClient
from wayfarer.providers.local_transfer import LocalTransferAdapter
from wayfarer.types import (
    Availability,
    Journey,
    JourneyLeg,
    JourneyRequest,
    TransportKind,
    TransportOption,
)


def option(kind=TransportKind.TRAIN, availability=Availability.AVAILABLE, name="Train 1"):
    return TransportOption(
        kind=kind,
        provider="Indian Railways",
        descriptor=name,
        duration="2h 0m",
        duration_minutes=120,
        price="INR 500",
        booking_link="https://example.com/book",
        availability=availability,
    )


class RouteTable:
    def __init__(self, routes=None):
        self.routes = routes or {}

    async def search(self, origin, destination, date, currency, class_preference=None, **filters):
        return list(self.routes.get((place_label(origin), place_label(destination)), []))


def engine_for(rail_routes=None, flight_routes=None, timeout_seconds=None):
    direct = DirectRouteSearch(RouteTable(rail_routes), RouteTable(flight_routes))
    hubs = HubFallbackResolver(direct, LocalTransferAdapter())
    return JourneyEngine(direct, hubs, timeout_seconds=timeout_seconds)


def request(origin="Vapi, India", destination="Pune, India", **kw):
    return JourneyRequest(origin=origin, destination=destination, date="2025-12-20", **kw)


async def test_direct_route_is_a_single_leg():
    engine = engine_for(rail_routes={("Vapi", "Mumbai"): [option()]})
    journey = await engine.resolve(request(destination="Mumbai, India"))

    assert len(journey.legs) == 1
    assert journey.legs[0].sequence == 1
    assert journey.legs[0].description == "Train from Vapi to Mumbai"


async def test_falls_back_to_hub_route():
    engine = engine_for(rail_routes={
        ("Vapi", "Mumbai"): [option(name="Train 12933")],
        ("Mumbai", "Pune"): [option(name="Train 12127")],
    })
    journey = await engine.resolve(request())

    assert [leg.sequence for leg in journey.legs] == [1, 2]
    assert not journey.is_empty()


async def test_hub_resolver_invoked_once_and_failure_is_single_leg():
    direct = Mock()
    direct.find_direct = AsyncMock(return_value=JourneyLeg(sequence=1, description="Travel", options=[]))
    hubs = Mock()
    hubs.find_via_hub = AsyncMock(return_value=None)

    journey = await JourneyEngine(direct, hubs).resolve(request())

    hubs.find_via_hub.assert_awaited_once()
    assert len(journey.legs) == 1
    assert journey.legs[0].options == []
    assert journey.legs[0].description == "No transport options found from Vapi to Pune"


async def test_direct_hit_never_consults_hubs():
    direct = Mock()
    direct.find_direct = AsyncMock(return_value=JourneyLeg(sequence=1, description="Train", options=[option()]))
    hubs = Mock()
    hubs.find_via_hub = AsyncMock()

    await JourneyEngine(direct, hubs).resolve(request())

    hubs.find_via_hub.assert_not_awaited()


async def test_default_currency_applies():
    direct = Mock()
    direct.find_direct = AsyncMock(return_value=JourneyLeg(sequence=1, description="Train", options=[option()]))

    await JourneyEngine(direct, Mock()).resolve(request())

    assert direct.find_direct.await_args.args[3] == "INR"


async def test_overall_timeout_yields_failure_journey():
    async def slow(*args, **kwargs):
        await asyncio.sleep(5)

    direct = Mock()
    direct.find_direct = slow
    journey = await JourneyEngine(direct, Mock(), timeout_seconds=0.05).resolve(request())

    assert journey.is_empty()
    assert len(journey.legs) == 1


async def test_unexpected_error_yields_failure_journey():
    direct = Mock()
    direct.find_direct = AsyncMock(side_effect=RuntimeError("boom"))
    journey = await JourneyEngine(direct, Mock()).resolve(request())

    assert isinstance(journey, Journey)
    assert journey.legs[0].description == "No transport options found from Vapi to Pune"


async def test_unconfigured_providers_degrade_to_failure_journey():
    client = RapidApiClient(api_key="")
    engine = create_engine(client, InMemoryLocationCache(), InMemoryLocationCache())
    try:
        journey = await engine.resolve(request())
    finally:
        await client.aclose()

    assert journey.is_empty()
    assert journey.legs[0].description == "No transport options found from Vapi to Pune"


class SlowRailNetwork:
    """Async upstream where every call is slow but healthy.

    Trains run Vapi -> Mumbai Central -> Pune, never Vapi -> Pune directly,
    and every seat is waitlisted so each rail leg also asks for flights.
    """

    STATIONS = {"vapi": "VAPI", "mumbai": "BCT", "pune": "PUNE"}
    TRAINS = {
        ("VAPI", "BCT"): [{"train_number": 12933, "train_name": "Karnavati Exp", "duration": "02:35"}],
        ("BCT", "PUNE"): [{"train_number": 11007, "train_name": "Deccan Exp", "duration": "03:10"}],
    }

    def __init__(self, delay=0.1, flight_delay=0.6):
        self.delay = delay
        self.flight_delay = flight_delay

    async def __call__(self, request):
        path = request.url.path
        params = dict(request.url.params)
        await asyncio.sleep(self.flight_delay if path.endswith("searchFlights") else self.delay)
        if path == "/api/v1/station":
            code = self.STATIONS.get(params["name"])
            return httpx.Response(200, json={"data": [{"name": params["name"], "code": code}] if code else []})
        if path == "/api/v3/trainBetweenStations":
            trains = self.TRAINS.get((params["fromStationCode"], params["toStationCode"]), [])
            return httpx.Response(200, json={"data": trains})
        if path == "/api/v1/checkSeatAvailability":
            return httpx.Response(200, json={"data": [{"current_status": "GNWL23/WL10", "total_fare": 455}]})
        if path == "/api/v1/checkPrice":
            return httpx.Response(200, json={"data": {"total_fare": 455}})
        if path == "/api/v1/flights/searchDestination":
            return httpx.Response(200, json={"data": []})
        return httpx.Response(200, json={"data": {"flights": []}})


async def test_slow_providers_keep_hub_legs_inside_the_journey_budget():
    failures = {"provider": "flights", "reason": "timeout"}
    before = get_counter("provider_failures_total", failures)
    client = RapidApiClient(
        api_key="test-key",
        http=httpx.AsyncClient(transport=httpx.MockTransport(SlowRailNetwork())),
        retry_backoff=0,
    )
    engine = create_engine(client, InMemoryLocationCache(), InMemoryLocationCache())
    engine.timeout_seconds = 1.5
    try:
        journey = await engine.resolve(request())
    finally:
        await client.aclose()

    assert len(journey.legs) >= 2
    assert journey.legs[0].description == "Train from Vapi to Mumbai"
    assert journey.legs[0].options[0].descriptor.startswith("Train 12933 - Karnavati Exp")
    assert journey.legs[-1].options[0].descriptor.startswith("Train 11007 - Deccan Exp")
    assert get_counter("provider_failures_total", failures) > before
