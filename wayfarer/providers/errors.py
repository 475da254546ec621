"""Provider error hierarchy.

These are raised inside the HTTP/provider layer and caught only at the adapter
boundary, where they are turned into an empty result plus a
``provider_failure`` event. ``reason`` is the short label used on metrics.
"""

from typing import Optional


class ProviderError(Exception):
    reason = "error"

    def __init__(self, provider: str, message: str = ""):
        self.provider = provider
        super().__init__(f"{provider}: {message}" if message else provider)


class ProviderUnavailable(ProviderError):
    """Credential missing or circuit breaker open; the call was never made."""
    reason = "unavailable"


class RateLimited(ProviderError):
    reason = "rate_limited"


class ProviderHTTPError(ProviderError):
    reason = "http_error"

    def __init__(self, provider: str, status_code: Optional[int], message: str = ""):
        self.status_code = status_code
        super().__init__(provider, f"HTTP {status_code} {message}".strip())


class ProviderTimeout(ProviderError):
    reason = "timeout"


class MalformedPayload(ProviderError):
    reason = "malformed_payload"
