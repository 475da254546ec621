import asyncio
import time
from typing import Dict, Optional

from wayfarer.cache.location_cache import LocationCache, create_location_cache
from wayfarer.config import settings
from wayfarer.infrastructure.deadline import DEADLINE_GRACE_SECONDS, deadline_scope
from wayfarer.journey.assembler import assemble
from wayfarer.journey.direct import DirectRouteSearch
from wayfarer.journey.hub_resolver import HubFallbackResolver
from wayfarer.journey.hubs import HubStrategy
from wayfarer.journey.normalize import normalize
from wayfarer.locations.lookup import AirportLookup, StationLookup
from wayfarer.locations.resolver import LocationCodeResolver
from wayfarer.obs.context import set_route
from wayfarer.obs.logger import log_event
from wayfarer.obs.metrics import inc_counter, record_timing
from wayfarer.providers.client import RapidApiClient
from wayfarer.providers.flights import FlightAdapter
from wayfarer.providers.local_transfer import LocalTransferAdapter
from wayfarer.providers.rail import RailAdapter
from wayfarer.types import Journey, JourneyRequest


class JourneyEngine:
    """Direct search, then hub fallback, then assembly and normalization.

    ``resolve`` never raises for upstream trouble: errors and the overall
    timeout are logged and folded into the normalizer's empty journey. The
    journey budget is shared with every adapter call, so slow providers cost
    their own legs rather than the whole journey.
    """

    def __init__(self, direct: DirectRouteSearch, hub_resolver: HubFallbackResolver,
                 timeout_seconds: Optional[float] = None,
                 location_caches: Optional[Dict[str, LocationCache]] = None):
        self.direct = direct
        self.hub_resolver = hub_resolver
        self.timeout_seconds = timeout_seconds or settings.RESOLUTION_TIMEOUT_SECONDS
        self.location_caches = location_caches or {}

    def cache_stats(self) -> Dict[str, Dict]:
        return {name: cache.get_cache_stats() for name, cache in self.location_caches.items()}

    async def resolve(self, request: JourneyRequest) -> Journey:
        currency = request.currency or settings.DEFAULT_CURRENCY
        set_route(request.origin, request.destination)
        log_event("journey_requested", date=request.date, currency=currency)
        start = time.monotonic()

        result = None
        try:
            # Adapters stop at the journey deadline and keep what they found;
            # this outer cancel is the net for anything that ignores it
            with deadline_scope(self.timeout_seconds):
                result = await asyncio.wait_for(
                    self._resolve(request, currency),
                    timeout=self.timeout_seconds + 2 * DEADLINE_GRACE_SECONDS,
                )
        except asyncio.TimeoutError:
            log_event("journey_timeout", level="WARNING", timeout_s=self.timeout_seconds)
        except Exception as e:
            log_event("journey_error", level="ERROR", error=f"{type(e).__name__}: {e}")

        journey = normalize(result, request.origin, request.destination)

        outcome = "empty" if journey.is_empty() else ("hub" if len(journey.legs) > 1 else "direct")
        elapsed_ms = (time.monotonic() - start) * 1000.0
        inc_counter("journeys_total", {"outcome": outcome})
        record_timing("journey_latency_ms", elapsed_ms, {"outcome": outcome})
        log_event("journey_resolved", outcome=outcome, legs=len(journey.legs), ms_total=round(elapsed_ms, 2))
        return journey

    async def _resolve(self, request: JourneyRequest, currency: str) -> Optional[Journey]:
        prefs = request.preferences
        leg = await self.direct.find_direct(request.origin, request.destination, request.date, currency, prefs)
        if leg.options:
            return assemble([leg])

        log_event("hub_fallback", reason="no_direct_options")
        return await self.hub_resolver.find_via_hub(
            request.origin, request.destination, request.date, currency, prefs
        )


def create_engine(client: Optional[RapidApiClient] = None,
                  station_cache: Optional[LocationCache] = None,
                  airport_cache: Optional[LocationCache] = None,
                  hub_strategy: Optional[HubStrategy] = None) -> JourneyEngine:
    """Wire the live adapters around one shared HTTP client."""
    client = client or RapidApiClient()
    caches = {
        "stations": station_cache or create_location_cache("stations"),
        "airports": airport_cache or create_location_cache("airports"),
    }
    stations = LocationCodeResolver(StationLookup(client), caches["stations"])
    airports = LocationCodeResolver(AirportLookup(client), caches["airports"])

    direct = DirectRouteSearch(
        rail=RailAdapter(client, stations),
        flights=FlightAdapter(client, airports),
    )
    hub_resolver = HubFallbackResolver(direct, LocalTransferAdapter(), strategy=hub_strategy)
    return JourneyEngine(direct, hub_resolver, location_caches=caches)
