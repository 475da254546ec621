import asyncio
from contextlib import nullcontext
from typing import Any, Awaitable, Callable, List, Optional

from wayfarer.config import settings
from wayfarer.infrastructure.deadline import DEADLINE_GRACE_SECONDS, deadline_scope
from wayfarer.obs.logger import log_provider_empty, log_provider_failure
from wayfarer.providers.errors import ProviderError
from wayfarer.types import TransportOption


class TransportAdapter:
    """Base for provider adapters.

    Subclasses implement ``_search`` and may raise anything; ``search`` is the
    boundary that turns every failure into an empty list plus a
    ``provider_failure`` event. Cancellation is not caught.

    Live adapters run under ``timeout_seconds`` (default
    ``PROVIDER_SEARCH_TIMEOUT_SECONDS``), clipped to whatever the enclosing
    journey deadline has left.
    """

    provider = "adapter"
    live = True
    timeout_seconds: Optional[float] = None

    async def search(self, origin: str, destination: str, date: str, currency: str,
                     class_preference: Optional[str] = None, **filters: Any) -> List[TransportOption]:
        return await self._guarded(
            self._search, origin, destination, date, currency, class_preference, **filters
        )

    async def _search(self, origin: str, destination: str, date: str, currency: str,
                      class_preference: Optional[str] = None, **filters: Any) -> List[TransportOption]:
        raise NotImplementedError

    async def _guarded(self, fn: Callable[..., Awaitable[List[TransportOption]]],
                       origin: str, destination: str, *args: Any, **kwargs: Any) -> List[TransportOption]:
        if self.live:
            scope = deadline_scope(self.timeout_seconds or settings.PROVIDER_SEARCH_TIMEOUT_SECONDS)
        else:
            scope = nullcontext()
        with scope as deadline:
            if deadline is not None and deadline.expired():
                log_provider_failure(self.provider, "timeout", origin=origin, destination=destination,
                                     error="no time left in the journey budget")
                return []
            # Adapters that keep partial results stop themselves at the deadline;
            # the hard cancel sits one grace step later
            timeout = deadline.seconds + DEADLINE_GRACE_SECONDS if deadline is not None else None
            try:
                options = await asyncio.wait_for(fn(origin, destination, *args, **kwargs), timeout=timeout)
            except asyncio.TimeoutError:
                log_provider_failure(self.provider, "timeout", origin=origin, destination=destination,
                                     error="search timed out", budget_s=timeout)
                return []
            except ProviderError as e:
                log_provider_failure(e.provider, e.reason, adapter=self.provider,
                                     origin=origin, destination=destination, error=str(e))
                return []
            except Exception as e:
                log_provider_failure(self.provider, "unexpected", origin=origin, destination=destination,
                                     error=f"{type(e).__name__}: {e}")
                return []

        if not options:
            log_provider_empty(self.provider, origin=origin, destination=destination)
            return []
        return list(options)
