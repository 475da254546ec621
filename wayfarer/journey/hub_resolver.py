import asyncio
from typing import List, Optional

from wayfarer.journey.assembler import assemble
from wayfarer.journey.direct import DirectRouteSearch, place_label
from wayfarer.journey.hubs import Hub, HubStrategy, TableHubStrategy
from wayfarer.obs.logger import log_event
from wayfarer.providers.local_transfer import LocalTransferAdapter
from wayfarer.types import Journey, JourneyLeg, TransportKind, TravelPreferences


def _point_in_hub(hub: Hub, leg: JourneyLeg) -> Optional[str]:
    """Where a leg touches the hub, judged by its leading option."""
    if not leg.options:
        return None
    kind = leg.options[0].kind
    if kind is TransportKind.FLIGHT:
        return hub.airport
    if kind is TransportKind.TRAIN:
        return hub.station
    return None


class HubFallbackResolver:
    """Route origin -> hub -> destination when there is no direct service.

    Candidate hubs are the origin's hub, then the destination's. The first
    candidate whose inbound leg finds anything wins; the outbound leg may come
    back empty and is kept as a degraded leg.
    """

    def __init__(self, direct: DirectRouteSearch, local_transfer: LocalTransferAdapter,
                 strategy: Optional[HubStrategy] = None):
        self.direct = direct
        self.local_transfer = local_transfer
        self.strategy = strategy or TableHubStrategy()

    def candidates(self, origin: str, destination: str) -> List[Hub]:
        endpoints = {place_label(origin).lower(), place_label(destination).lower()}
        hubs: List[Hub] = []
        for place in (origin, destination):
            hub = self.strategy.hub_for(place)
            if hub and hub not in hubs and place_label(hub.city).lower() not in endpoints:
                hubs.append(hub)
        return hubs

    async def find_via_hub(self, origin: str, destination: str, date: str, currency: str,
                           prefs: Optional[TravelPreferences] = None) -> Optional[Journey]:
        for hub in self.candidates(origin, destination):
            inbound, outbound = await asyncio.gather(
                self.direct.find_direct(origin, hub.city, date, currency, prefs),
                self.direct.find_direct(hub.city, destination, date, currency, prefs),
            )
            if not inbound.options:
                log_event("hub_unreachable", level="WARNING", hub=hub.city, origin=origin)
                continue

            legs = [inbound]
            arrival = _point_in_hub(hub, inbound)
            departure = _point_in_hub(hub, outbound)
            if arrival and departure and arrival != departure:
                transfer = await self.local_transfer.search(hub.city, arrival, departure, currency)
                legs.append(JourneyLeg(
                    sequence=1,
                    description=f"Transfer across {place_label(hub.city)} from {arrival} to {departure}",
                    options=transfer,
                ))
            legs.append(outbound)

            log_event("hub_route", hub=hub.city, legs=len(legs),
                      outbound_options=len(outbound.options))
            return assemble(legs)

        return None
