from typing import Optional

from wayfarer.cache.location_cache import InMemoryLocationCache, LocationCache
from wayfarer.locations.lookup import LocationLookup
from wayfarer.obs.logger import log_event, log_provider_failure
from wayfarer.obs.metrics import inc_counter
from wayfarer.providers.errors import ProviderError


def normalize_place(place_name: str) -> str:
    """'  Vapi, Gujarat, India ' -> 'vapi'"""
    if not place_name:
        return ""
    return place_name.split(",", 1)[0].strip().lower()


class LocationCodeResolver:
    """Resolve a free-text place to one provider-specific code, with caching.

    Never raises: any upstream failure or an empty candidate list yields None,
    which callers read as "this place cannot be searched with this provider".
    Only successful lookups are cached.
    """

    def __init__(self, lookup: LocationLookup, cache: Optional[LocationCache] = None):
        self.lookup = lookup
        self.cache = cache if cache is not None else InMemoryLocationCache()

    async def resolve(self, place_name: str) -> Optional[str]:
        query = normalize_place(place_name)
        if not query:
            return None

        cached = self.cache.get(query)
        if cached:
            inc_counter("location_cache_hits_total", {"provider": self.lookup.provider})
            return cached

        try:
            candidates = await self.lookup.candidates(query)
        except ProviderError as e:
            log_provider_failure(self.lookup.provider, e.reason, query=query, error=str(e))
            return None

        if not candidates:
            log_event("location_unresolved", level="WARNING", provider=self.lookup.provider, query=query)
            return None

        # Exact name or code match first, else the provider's top candidate
        best = next(
            (c for c in candidates if c.name.strip().lower() == query or c.code.lower() == query),
            candidates[0],
        )
        self.cache.set(query, best.code)
        log_event("location_resolved", provider=self.lookup.provider, query=query, code=best.code)
        return best.code
