"""Request context helpers using ContextVars.

Holds request-scoped identifiers so log lines emitted deep inside provider
adapters can be tied back to the journey request that caused them.
"""

from contextvars import ContextVar
from typing import Optional


# Public ContextVars (names are stable API)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
route_var: ContextVar[Optional[str]] = ContextVar("route", default=None)


def set_route(origin: str, destination: str) -> None:
    route_var.set(f"{origin} -> {destination}")


def clear_context() -> None:
    """Reset context variables to defaults."""
    request_id_var.set(None)
    route_var.set(None)
