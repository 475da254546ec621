"""ASGI middleware tying request ids, latency and status to every HTTP call."""

from typing import Callable, Any
import time
import uuid

from fastapi import FastAPI

from wayfarer.obs.context import request_id_var, clear_context
from wayfarer.obs.logger import log_event
from wayfarer.obs.metrics import record_timing, inc_counter

REQUEST_ID_HEADER = b"x-request-id"


def _request_id(scope: dict) -> str:
    # Honour an upstream id so the narrative service can correlate its calls
    for name, value in scope.get("headers") or []:
        if name.lower() == REQUEST_ID_HEADER and value:
            return value.decode("latin-1")
    return str(uuid.uuid4())


class ObservabilityMiddleware:
    def __init__(self, app: FastAPI):
        self.app = app

    async def __call__(self, scope: dict, receive: Callable, send: Callable[[dict], Any]):
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        req_id = _request_id(scope)
        request_id_var.set(req_id)
        path = scope.get("path", "")
        start = time.monotonic()
        status_code = 500

        async def send_wrapper(message: dict):
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 200))
                headers = list(message.get("headers") or [])
                headers.append((REQUEST_ID_HEADER, req_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (time.monotonic() - start) * 1000.0
            record_timing("request_latency_ms", elapsed_ms, {"route": path})
            inc_counter("requests_total", {"route": path, "status": str(status_code)})
            log_event(
                "request",
                method=scope.get("method", ""),
                path=path,
                status=status_code,
                ms_total=round(elapsed_ms, 2),
            )
            clear_context()
