import asyncio
from typing import Any, Dict, List, Optional

import httpx

from wayfarer.config import settings
from wayfarer.infrastructure.resilience import CircuitBreaker, RateLimiter
from wayfarer.obs.metrics import timed
from wayfarer.providers.errors import (
    MalformedPayload,
    ProviderError,
    ProviderHTTPError,
    ProviderTimeout,
    ProviderUnavailable,
)

_RETRYABLE = (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.ConnectError, httpx.RemoteProtocolError)


def default_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        connect=settings.PROVIDER_CONNECT_TIMEOUT,
        read=settings.PROVIDER_READ_TIMEOUT,
        write=settings.PROVIDER_READ_TIMEOUT,
        pool=settings.PROVIDER_CONNECT_TIMEOUT,
    )


class RapidApiClient:
    """Shared async HTTP client for every RapidAPI-hosted provider.

    One instance serves all adapters so they share the connection pool. Each
    provider name gets its own circuit breaker and rate-limit bucket. Failures
    surface as ``ProviderError`` subclasses; adapters decide what to do with
    them.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        retry_backoff: float = 1.5,
    ):
        self.api_key = api_key if api_key is not None else settings.RAPIDAPI_KEY
        # Persistent HTTP client with HTTP/2 and bounded timeouts
        self._http = http or httpx.AsyncClient(http2=True, timeout=default_timeout())
        self._limiter = rate_limiter or RateLimiter(settings.PROVIDER_RATE_LIMIT_PER_MINUTE)
        self._breakers: Dict[str, CircuitBreaker] = {}
        self.retry_backoff = retry_backoff

    def breaker(self, provider: str) -> CircuitBreaker:
        if provider not in self._breakers:
            self._breakers[provider] = CircuitBreaker(
                name=provider,
                failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD,
                recovery_timeout=settings.CIRCUIT_RECOVERY_SECONDS,
                expected_exception=ProviderError,
            )
        return self._breakers[provider]

    def breaker_states(self) -> List[Dict[str, Any]]:
        return [b.get_state() for b in self._breakers.values()]

    async def get_json(self, provider: str, host: str, path: str, params: Dict[str, Any]) -> Any:
        if not self.api_key:
            raise ProviderUnavailable(provider, "RAPIDAPI_KEY is not set")
        self._limiter.acquire(provider)
        with timed("provider_latency_ms", {"provider": provider}):
            return await self.breaker(provider).async_call(self._get, provider, host, path, params)

    async def _get(self, provider: str, host: str, path: str, params: Dict[str, Any]) -> Any:
        headers = {
            "X-RapidAPI-Key": self.api_key,
            "X-RapidAPI-Host": host,
            "Accept": "application/json",
        }
        url = f"https://{host}{path}"

        # Single retry with short backoff, for 5xx and connection trouble only
        attempt = 0
        while True:
            try:
                r = await self._http.get(url, params=params, headers=headers)
                r.raise_for_status()
                break
            except httpx.HTTPStatusError as e:
                if 500 <= e.response.status_code < 600 and attempt == 0:
                    attempt += 1
                    await asyncio.sleep(self.retry_backoff)
                    continue
                raise ProviderHTTPError(provider, e.response.status_code, e.response.reason_phrase) from e
            except _RETRYABLE as e:
                if attempt == 0:
                    attempt += 1
                    await asyncio.sleep(self.retry_backoff)
                    continue
                if isinstance(e, httpx.TimeoutException):
                    raise ProviderTimeout(provider, type(e).__name__) from e
                raise ProviderError(provider, f"{type(e).__name__}: {e}") from e
            except httpx.HTTPError as e:
                raise ProviderError(provider, f"{type(e).__name__}: {e}") from e

        try:
            return r.json()
        except ValueError as e:
            raise MalformedPayload(provider, "response body is not JSON") from e

    async def aclose(self) -> None:
        await self._http.aclose()
