import time

import httpx
import pytest

from wayfarer.infrastructure.resilience import CircuitBreaker, CircuitState, RateLimiter
from wayfarer.providers.client import RapidApiClient
from wayfarer.providers.errors import (
    MalformedPayload,
    ProviderError,
    ProviderHTTPError,
    ProviderTimeout,
    ProviderUnavailable,
    RateLimited,
)


async def failing():
    raise ProviderError("flights", "boom")


async def succeeding():
    return "ok"


class TestCircuitBreaker:
    async def test_opens_after_threshold(self):
        breaker = CircuitBreaker("flights", failure_threshold=2, recovery_timeout=60, expected_exception=ProviderError)
        for _ in range(2):
            with pytest.raises(ProviderError):
                await breaker.async_call(failing)
        assert breaker.state is CircuitState.OPEN

        with pytest.raises(ProviderUnavailable):
            await breaker.async_call(succeeding)

    async def test_half_open_trial_closes_on_success(self):
        breaker = CircuitBreaker("flights", failure_threshold=1, recovery_timeout=60, expected_exception=ProviderError)
        with pytest.raises(ProviderError):
            await breaker.async_call(failing)
        breaker.last_failure_time = time.monotonic() - 61

        assert await breaker.async_call(succeeding) == "ok"
        assert breaker.state is CircuitState.CLOSED
        assert breaker.get_state()["failure_count"] == 0

    async def test_failed_trial_reopens(self):
        breaker = CircuitBreaker("flights", failure_threshold=3, recovery_timeout=60, expected_exception=ProviderError)
        breaker.state = CircuitState.OPEN
        breaker.last_failure_time = time.monotonic() - 61

        with pytest.raises(ProviderError):
            await breaker.async_call(failing)
        assert breaker.state is CircuitState.OPEN

    async def test_unexpected_exceptions_do_not_count(self):
        async def broken():
            raise KeyError("x")

        breaker = CircuitBreaker("flights", failure_threshold=1, expected_exception=ProviderError)
        with pytest.raises(KeyError):
            await breaker.async_call(broken)
        assert breaker.state is CircuitState.CLOSED


class TestRateLimiter:
    def test_window_quota(self):
        limiter = RateLimiter(max_requests=2, window_seconds=60)
        assert limiter.check("rail")[0]
        assert limiter.check("rail")[0]
        allowed, info = limiter.check("rail")
        assert not allowed
        assert info["limit"] == 2
        assert info["retry_after"] > 0
        # Buckets are per provider
        assert limiter.check("flights")[0]

    def test_acquire_raises_when_exhausted(self):
        limiter = RateLimiter(max_requests=1)
        limiter.acquire("rail")
        with pytest.raises(RateLimited):
            limiter.acquire("rail")


def client_for(handler, **kw):
    return RapidApiClient(api_key="k", http=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
                          retry_backoff=0, **kw)


class TestRapidApiClient:
    async def test_retries_one_server_error(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(502)
            return httpx.Response(200, json={"data": []})

        client = client_for(handler)
        assert await client.get_json("rail", "irctc1.p.rapidapi.com", "/api/v3/trainBetweenStations", {}) == {"data": []}
        await client.aclose()
        assert len(calls) == 2
        assert str(calls[0].url).startswith("https://irctc1.p.rapidapi.com/api/v3/trainBetweenStations")

    async def test_client_errors_are_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        client = client_for(handler)
        with pytest.raises(ProviderHTTPError) as exc:
            await client.get_json("rail", "irctc1.p.rapidapi.com", "/x", {})
        await client.aclose()
        assert exc.value.status_code == 404
        assert len(calls) == 1

    async def test_timeouts_become_provider_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = client_for(handler)
        with pytest.raises(ProviderTimeout):
            await client.get_json("flights", "booking-com15.p.rapidapi.com", "/x", {})
        await client.aclose()

    async def test_non_json_body_is_malformed(self):
        client = client_for(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(MalformedPayload):
            await client.get_json("flights", "booking-com15.p.rapidapi.com", "/x", {})
        await client.aclose()

    async def test_rate_limit_applies_before_the_call(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        client = client_for(handler, rate_limiter=RateLimiter(max_requests=1))
        await client.get_json("flights", "h", "/x", {})
        with pytest.raises(RateLimited):
            await client.get_json("flights", "h", "/x", {})
        await client.aclose()
        assert len(calls) == 1

    async def test_missing_key_is_unavailable(self):
        client = RapidApiClient(api_key="", http=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
        with pytest.raises(ProviderUnavailable):
            await client.get_json("flights", "h", "/x", {})
        await client.aclose()

    def test_one_breaker_per_provider(self):
        client = client_for(lambda r: httpx.Response(200))
        assert client.breaker("rail") is client.breaker("rail")
        assert client.breaker("rail") is not client.breaker("flights")

    async def test_breaker_states_cover_every_provider_called(self):
        client = client_for(lambda r: httpx.Response(404))
        with pytest.raises(ProviderHTTPError):
            await client.get_json("rail", "h", "/x", {})
        await client.aclose()

        states = client.breaker_states()
        assert [s["name"] for s in states] == ["rail"]
        assert states[0]["state"] == "closed"
        assert states[0]["failure_count"] == 1
