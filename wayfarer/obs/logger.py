"""Structured JSON logging to stdout.

Low overhead, minimal dependencies, safe for production stdout collectors.
"""

from typing import Any, Dict
from datetime import datetime, timezone
import json

from wayfarer.obs.context import request_id_var, route_var
from wayfarer.obs.metrics import inc_counter


def log_event(event: str, **fields: Any) -> None:
    now = datetime.now(timezone.utc).isoformat()
    payload: Dict[str, Any] = {
        "ts": now,
        "level": fields.pop("level", "INFO"),
        "event": event,
        "request_id": request_id_var.get(),
    }
    # Attach context vars if not provided explicitly
    payload.setdefault("route", route_var.get())

    # Merge remaining fields
    for k, v in fields.items():
        payload[k] = v

    try:
        print(json.dumps(payload, separators=(",", ":"), default=str))
    except Exception:
        # As a last resort, avoid crashing the app due to logging
        pass


def log_provider_failure(provider: str, reason: str, **fields: Any) -> None:
    """Record a failure an adapter absorbed instead of raising.

    Emits a WARNING event and bumps ``provider_failures_total`` so a provider
    outage is distinguishable from a route that simply has no service.
    """
    inc_counter("provider_failures_total", {"provider": provider, "reason": reason})
    log_event("provider_failure", level="WARNING", provider=provider, reason=reason, **fields)


def log_provider_empty(provider: str, **fields: Any) -> None:
    inc_counter("provider_empty_total", {"provider": provider})
    log_event("provider_empty", provider=provider, **fields)
