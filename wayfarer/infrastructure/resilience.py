import threading
import time
from collections import defaultdict, deque
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Tuple

from wayfarer.obs.logger import log_event
from wayfarer.obs.metrics import inc_counter
from wayfarer.providers.errors import ProviderUnavailable, RateLimited


class CircuitState(Enum):
    CLOSED = "closed"  # Normal operation
    OPEN = "open"      # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreaker:
    """Per-provider breaker around outbound calls.

    Only ``expected_exception`` counts as a failure; anything else passes
    through untouched. While open, calls are refused with
    ``ProviderUnavailable`` without touching the network.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60,
        expected_exception: type = Exception
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = CircuitState.CLOSED

    async def async_call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        self.before_call()
        try:
            result = await func(*args, **kwargs)
        except self.expected_exception:
            self._record_failure()
            raise
        self._record_success()
        return result

    def before_call(self) -> None:
        if self.state is not CircuitState.OPEN:
            return
        if not self._recovery_elapsed():
            raise ProviderUnavailable(self.name, "circuit breaker is open")
        self._transition(CircuitState.HALF_OPEN)

    def _record_success(self) -> None:
        self.failure_count = 0
        if self.state is not CircuitState.CLOSED:
            self._transition(CircuitState.CLOSED)

    def _record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.monotonic()
        # A failed trial call re-opens immediately
        tripped = self.failure_count >= self.failure_threshold
        if self.state is CircuitState.HALF_OPEN or (tripped and self.state is CircuitState.CLOSED):
            self._transition(CircuitState.OPEN)

    def _recovery_elapsed(self) -> bool:
        if self.last_failure_time is None:
            return True
        return time.monotonic() - self.last_failure_time >= self.recovery_timeout

    def _transition(self, state: CircuitState) -> None:
        previous, self.state = self.state, state
        inc_counter("circuit_transitions_total", {"provider": self.name, "state": state.value})
        log_event(
            "circuit_state",
            level="WARNING" if state is CircuitState.OPEN else "INFO",
            provider=self.name,
            previous=previous.value,
            state=state.value,
            failure_count=self.failure_count,
        )

    def get_state(self) -> Dict:
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "last_failure": self.last_failure_time
        }


class RateLimiter:
    """Sliding-window quota per provider, kept in process.

    RapidAPI plans meter per key, so every adapter sharing the client draws on
    the bucket named after its provider.
    """

    def __init__(self, max_requests: int, window_seconds: float = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._lock = threading.Lock()
        self._calls: Dict[str, Deque[float]] = defaultdict(deque)

    def check(self, key: str) -> Tuple[bool, Dict]:
        now = time.monotonic()
        with self._lock:
            calls = self._calls[key]
            while calls and calls[0] <= now - self.window_seconds:
                calls.popleft()

            allowed = len(calls) < self.max_requests
            if allowed:
                calls.append(now)
            info = {
                "allowed": allowed,
                "current": len(calls),
                "limit": self.max_requests,
                "window_seconds": self.window_seconds,
            }
            if not allowed:
                info["retry_after"] = round(max(0.0, calls[0] + self.window_seconds - now), 1)
            return allowed, info

    def acquire(self, key: str) -> None:
        allowed, info = self.check(key)
        if not allowed:
            raise RateLimited(key, f"quota of {info['limit']}/{info['window_seconds']}s exhausted, "
                                   f"retry after {info['retry_after']}s")
