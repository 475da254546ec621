"""Observability package.

Lightweight, dependency-free pieces for request context, structured logging,
in-process metrics and the ASGI middleware that ties them to HTTP requests.
Provider adapters report absorbed failures through here.
"""

__all__ = [
    "middleware",
    "metrics",
    "logger",
    "context",
]
